"""
Quota-free YouTube lookups by scraping canonical URLs.

YouTube pages carry a `<link rel="canonical">` pointing at the channel page
(`/channel/UC...`) or, for a `/live` alias that is currently streaming, at the
watch page (`/watch?v=...`). Reading it costs no Data API quota.
"""

from typing import Optional

import httpx
from bs4 import BeautifulSoup

from shared.errors import ScrapeError
from shared.logging.logger import get_logger
from shared.utils.http import send

log = get_logger("youtube.scraping", runtime="causewatch")

# YouTube serves generic clients a consent wall without canonical links.
CRAWLER_USER_AGENT = (
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
)
CANONICAL_HOST = "www.youtube.com"


def profile_url(handle: str) -> str:
    return f"https://youtube.com/{handle}"


async def get_canonical_url(http_client: httpx.AsyncClient, url: str) -> httpx.URL:
    """
    Fetch a YouTube page and return its canonical URL.

    Raises ScrapeError when the page has no canonical link or the link does
    not point at www.youtube.com; transport/status failures propagate as
    UpstreamRequestError / UpstreamStatusError.
    """
    response = await send(
        http_client,
        "GET",
        url,
        context=f"youtube page {url}",
        headers={"User-Agent": CRAWLER_USER_AGENT},
    )

    soup = BeautifulSoup(response.text, "html.parser")
    link = soup.find("link", rel="canonical")
    if link is None:
        raise ScrapeError(f"no canonical url found in {url}")

    href = link.get("href")
    if not href:
        raise ScrapeError(f"canonical link in {url} has no href")

    try:
        canonical = httpx.URL(href)
    except httpx.InvalidURL as e:
        raise ScrapeError(f"canonical href {href!r} is not a valid url") from e

    if canonical.host != CANONICAL_HOST:
        raise ScrapeError(f"canonical url {href} does not point to {CANONICAL_HOST}")

    return canonical


async def get_channel_id(http_client: httpx.AsyncClient, handle: str) -> str:
    """Resolve a handle (e.g. "@LofiGirl") to its channel id."""
    canonical = await get_canonical_url(http_client, profile_url(handle))

    segments = [segment for segment in canonical.path.split("/") if segment]
    if len(segments) < 2 or segments[0] != "channel":
        raise ScrapeError(f"canonical url {canonical} is not a channel url")

    return segments[1]


async def get_livestream_video_id(
    http_client: httpx.AsyncClient,
    handle: str,
) -> Optional[str]:
    """
    Resolve the handle's /live alias.

    Returns the video id when the alias points at a watch page, None when it
    falls back to the channel page (offline).
    """
    canonical = await get_canonical_url(http_client, f"{profile_url(handle)}/live")

    if canonical.path != "/watch":
        if canonical.path.startswith("/channel"):
            return None
        raise ScrapeError(f"canonical url {canonical} is not a watch url or channel url")

    video_id = canonical.params.get("v")
    if not video_id:
        raise ScrapeError(f"watch url {canonical} has no `v` query parameter")

    return video_id
