"""
Shared httpx plumbing for upstream clients.

All upstream calls go through one AsyncClient owned by the launcher; these
helpers translate httpx failures into the typed WatcherError hierarchy.
"""

from __future__ import annotations

from typing import Any

import httpx

from shared.errors import UpstreamRequestError, UpstreamShapeError, UpstreamStatusError

DEFAULT_TIMEOUT = 15.0


def build_http_client(*, timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    context: str,
    allow_status: tuple = (),
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue a request and return the response.

    Raises UpstreamRequestError on transport failures and UpstreamStatusError
    on any non-success status not listed in `allow_status`.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        raise UpstreamRequestError(f"{context}: request failed: {e}") from e

    if response.status_code in allow_status:
        return response

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise UpstreamStatusError(
            f"{context}: HTTP {e.response.status_code} {e.response.reason_phrase}",
            status_code=e.response.status_code,
        ) from e

    return response


def read_json(response: httpx.Response, *, context: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamShapeError(
            f"{context}: response body is not valid JSON",
            payload=response.text,
        ) from e
