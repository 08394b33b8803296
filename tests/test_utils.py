"""Tests for the shared timestamp, http and asyncio helpers."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
import respx

from shared.errors import UpstreamRequestError, UpstreamShapeError, UpstreamStatusError
from shared.utils.aio import join_all
from shared.utils.http import build_http_client, read_json, send
from shared.utils.timestamps import from_js_timestamp, parse_rfc3339, to_rfc3339


class TestTimestamps:
    def test_parse_zulu(self) -> None:
        assert parse_rfc3339("2024-05-01T12:00:00Z") == datetime(
            2024, 5, 1, 12, tzinfo=timezone.utc
        )

    def test_parse_offset_is_normalized_to_utc(self) -> None:
        parsed = parse_rfc3339("2024-05-01T14:00:00+02:00")

        assert parsed == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        assert to_rfc3339(parsed) == "2024-05-01T12:00:00Z"

    @pytest.mark.parametrize("value", ["", "yesterday", "2024-05-01T12:00:00"])
    def test_parse_rejects(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_rfc3339(value)

    def test_js_timestamp(self) -> None:
        assert from_js_timestamp(1714521600000) == datetime(2024, 5, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [1.0, "1714521600000", True])
    def test_js_timestamp_rejects_non_integers(self, value) -> None:
        with pytest.raises(ValueError):
            from_js_timestamp(value)


@pytest.mark.asyncio
class TestSend:
    async def test_transport_error(self) -> None:
        with respx.mock() as router:
            router.get("https://example.com/x").mock(side_effect=httpx.ConnectError("boom"))
            async with build_http_client() as client:
                with pytest.raises(UpstreamRequestError):
                    await send(client, "GET", "https://example.com/x", context="x")

    async def test_status_error_carries_code(self) -> None:
        with respx.mock() as router:
            router.get("https://example.com/x").mock(return_value=httpx.Response(418))
            async with build_http_client() as client:
                with pytest.raises(UpstreamStatusError) as exc_info:
                    await send(client, "GET", "https://example.com/x", context="x")

        assert exc_info.value.status_code == 418

    async def test_allowed_status_passes(self) -> None:
        with respx.mock() as router:
            router.head("https://example.com/x").mock(return_value=httpx.Response(304))
            async with build_http_client() as client:
                response = await send(
                    client, "HEAD", "https://example.com/x", context="x", allow_status=(304,)
                )

        assert response.status_code == 304

    async def test_invalid_json(self) -> None:
        with pytest.raises(UpstreamShapeError):
            read_json(httpx.Response(200, text="<html>"), context="x")


@pytest.mark.asyncio
class TestJoinAll:
    async def test_results_in_argument_order(self) -> None:
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await join_all(value(1, 0.02), value(2, 0)) == [1, 2]

    async def test_waits_for_siblings_before_raising(self) -> None:
        finished = []

        async def fail():
            raise UpstreamStatusError("x", status_code=500)

        async def slow():
            await asyncio.sleep(0.02)
            finished.append(True)

        with pytest.raises(UpstreamStatusError):
            await join_all(fail(), slow())

        assert finished == [True]
