"""Tests for the Tiltify campaign model and the ETag-revalidating client."""

from __future__ import annotations

import httpx
import pytest
import respx

from services.tiltify.api.campaign import TiltifyWatcher
from services.tiltify.models.campaign import Campaign
from shared.errors import UpstreamShapeError, UpstreamStatusError
from shared.utils.http import build_http_client

CAMPAIGN_URL = "https://tiltify.com/api/v3/campaigns/468510"


def _watcher(client: httpx.AsyncClient) -> TiltifyWatcher:
    return TiltifyWatcher(http_client=client, api_key="tilt-key", campaign_id=468510)


def _body(data: dict) -> dict:
    return {"meta": {"status": 200}, "data": data}


class TestCampaignModel:
    def test_parses_js_timestamps(self, campaign_data) -> None:
        campaign = Campaign.from_api(campaign_data())

        assert campaign.starts_at.year == 2024
        assert campaign.starts_at.tzinfo is not None
        assert campaign.team.name == "The Team"
        assert campaign.user.name == "organizer"

    def test_missing_end_date(self, campaign_data) -> None:
        assert Campaign.from_api(campaign_data(endsAt=None)).ends_at is None

    def test_equality_by_id(self, campaign_data) -> None:
        a = Campaign.from_api(campaign_data(totalAmountRaised=1))
        b = Campaign.from_api(campaign_data(totalAmountRaised=2))
        c = Campaign.from_api(campaign_data(id=1))

        assert a == b
        assert hash(a) == hash(b)
        assert a != c

    def test_incompatible_payload(self, campaign_data) -> None:
        data = campaign_data()
        del data["causeId"]

        with pytest.raises(UpstreamShapeError):
            Campaign.from_api(data)

    def test_float_timestamp_is_rejected(self, campaign_data) -> None:
        with pytest.raises(UpstreamShapeError):
            Campaign.from_api(campaign_data(startsAt=1.5))

    def test_to_dict(self, campaign_data) -> None:
        payload = Campaign.from_api(campaign_data()).to_dict()

        assert payload["starts_at"] == "2024-05-01T00:00:00Z"
        assert payload["total_amount_raised"] == 1334.5
        assert payload["team"]["avatar"]["width"] == 200


@pytest.mark.asyncio
class TestTiltifyWatcher:
    async def test_revalidation_sequence(self, campaign_data) -> None:
        v1 = campaign_data(totalAmountRaised=100)
        v2 = campaign_data(totalAmountRaised=250)

        with respx.mock() as router:
            get = router.get(CAMPAIGN_URL).mock(
                side_effect=[
                    httpx.Response(200, json=_body(v1), headers={"ETag": '"etag-1"'}),
                    httpx.Response(200, json=_body(v2), headers={"ETag": '"etag-2"'}),
                ]
            )
            head = router.head(CAMPAIGN_URL).mock(
                side_effect=[
                    httpx.Response(304),
                    httpx.Response(200, headers={"ETag": '"etag-2"'}),
                ]
            )

            async with build_http_client() as client:
                watcher = _watcher(client)

                # Cold cache: one full GET, no revalidation
                first = await watcher.get_campaign()
                assert get.call_count == 1
                assert head.call_count == 0
                assert first.total_amount_raised == 100

                # Same etag: served from cache
                second = await watcher.get_campaign()
                assert get.call_count == 1
                assert head.call_count == 1
                assert second is first
                assert head.calls.last.request.headers["If-None-Match"] == '"etag-1"'

                # Changed etag: refetched and cache replaced
                third = await watcher.get_campaign()
                assert get.call_count == 2
                assert head.call_count == 2
                assert third.total_amount_raised == 250
                assert watcher.cached_etag == '"etag-2"'

    async def test_head_with_matching_etag_uses_cache(self, campaign_data) -> None:
        with respx.mock() as router:
            get = router.get(CAMPAIGN_URL).mock(
                return_value=httpx.Response(
                    200, json=_body(campaign_data()), headers={"ETag": "abc"}
                )
            )
            router.head(CAMPAIGN_URL).mock(
                return_value=httpx.Response(200, headers={"ETag": "abc"})
            )
            async with build_http_client() as client:
                watcher = _watcher(client)
                first = await watcher.get_campaign()
                second = await watcher.get_campaign()

        assert second is first
        assert get.call_count == 1

    async def test_sends_bearer_token(self, campaign_data) -> None:
        with respx.mock() as router:
            get = router.get(CAMPAIGN_URL).mock(
                return_value=httpx.Response(
                    200, json=_body(campaign_data()), headers={"ETag": "abc"}
                )
            )
            async with build_http_client() as client:
                await _watcher(client).get_campaign()

        assert get.calls.last.request.headers["Authorization"] == "Bearer tilt-key"

    async def test_missing_etag_is_an_error(self, campaign_data) -> None:
        with respx.mock() as router:
            router.get(CAMPAIGN_URL).mock(
                return_value=httpx.Response(200, json=_body(campaign_data()))
            )
            async with build_http_client() as client:
                watcher = _watcher(client)
                with pytest.raises(UpstreamShapeError):
                    await watcher.get_campaign()

        assert watcher.cached_etag is None

    async def test_error_status_is_an_error(self) -> None:
        with respx.mock() as router:
            router.get(CAMPAIGN_URL).mock(return_value=httpx.Response(500))
            async with build_http_client() as client:
                with pytest.raises(UpstreamStatusError) as exc_info:
                    await _watcher(client).get_campaign()

        assert exc_info.value.status_code == 500

    async def test_failed_refetch_keeps_previous_cache(self, campaign_data) -> None:
        with respx.mock() as router:
            router.get(CAMPAIGN_URL).mock(
                side_effect=[
                    httpx.Response(200, json=_body(campaign_data()), headers={"ETag": "e1"}),
                    httpx.Response(503),
                ]
            )
            router.head(CAMPAIGN_URL).mock(
                return_value=httpx.Response(200, headers={"ETag": "e2"})
            )
            async with build_http_client() as client:
                watcher = _watcher(client)
                await watcher.get_campaign()
                with pytest.raises(UpstreamStatusError):
                    await watcher.get_campaign()

        assert watcher.cached_etag == "e1"

    async def test_body_without_data_object(self) -> None:
        with respx.mock() as router:
            router.get(CAMPAIGN_URL).mock(
                return_value=httpx.Response(200, json={"meta": {}}, headers={"ETag": "e"})
            )
            async with build_http_client() as client:
                with pytest.raises(UpstreamShapeError):
                    await _watcher(client).get_campaign()
