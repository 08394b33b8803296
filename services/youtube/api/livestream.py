from typing import Any, Dict

import httpx

from services.youtube.models.stream import YouTubeChannel, YouTubeVideo
from shared.errors import UpstreamShapeError
from shared.logging.logger import get_logger
from shared.runtime.quotas import QuotaUsageCounter
from shared.utils.http import read_json, send

log = get_logger("youtube.livestream", runtime="causewatch")


class YouTubeLivestreamAPI:
    """
    YouTube Data API v3 detail lookups.

    Responsibilities:
    - Fetch channel snippets (display name, custom URL, thumbnail)
    - Fetch video snippet + liveStreamingDetails
    - Count quota units for every call issued

    Ids come from page scraping (see scraping.py), so only the metered
    `list` endpoints are used here; `search` is never called.
    """

    CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"
    VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"

    # channels.list / videos.list cost
    # https://developers.google.com/youtube/v3/getting-started#calculating-quota-usage
    QUOTA_COST_PER_CALL = 1

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        api_key: str,
        quota: QuotaUsageCounter,
    ):
        if not api_key:
            raise RuntimeError("YouTube API key is required")
        self._http = http_client
        self._api_key = api_key
        self.quota = quota

    # ------------------------------------------------------------

    async def get_channel(self, channel_id: str) -> YouTubeChannel:
        item = await self._get_single_item(
            self.CHANNELS_URL,
            {"part": "snippet", "id": channel_id},
            context=f"youtube channel {channel_id}",
        )
        return YouTubeChannel.from_api(channel_id, item)

    async def get_video(self, video_id: str) -> YouTubeVideo:
        item = await self._get_single_item(
            self.VIDEOS_URL,
            {"part": "snippet,liveStreamingDetails", "id": video_id},
            context=f"youtube video {video_id}",
        )
        return YouTubeVideo.from_api(video_id, item)

    # ------------------------------------------------------------

    async def _get_single_item(
        self,
        url: str,
        params: Dict[str, str],
        *,
        context: str,
    ) -> Dict[str, Any]:
        # Counted before sending: the request is billed even if it fails.
        self.quota.inc(self.QUOTA_COST_PER_CALL)

        response = await send(
            self._http,
            "GET",
            url,
            context=context,
            params={**params, "key": self._api_key},
            headers={"Accept": "application/json"},
        )
        data = read_json(response, context=context)

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list) or not items:
            raise UpstreamShapeError(f"{context}: no items in response")

        if len(items) > 1:
            log.warning(f"[YouTube] {context}: multiple items returned, using the first")

        item = items[0]
        if not isinstance(item, dict):
            raise UpstreamShapeError(f"{context}: item is not an object")
        return item
