from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from services.base import CreatorSource
from services.youtube.api.livestream import YouTubeLivestreamAPI
from services.youtube.api.scraping import get_channel_id, get_livestream_video_id
from shared.errors import WatcherError
from shared.logging.logger import get_logger
from shared.models.creator import Creator, LiveStreamDetails, StreamingService
from shared.runtime.quotas import QuotaUsageCounter
from shared.utils.aio import join_all

log = get_logger("youtube.livestream_worker", runtime="causewatch")

_FAILED = object()


class YouTubeLiveWatcher(CreatorSource):
    """
    Live status watcher for the YouTube roster.

    Every creator is resolved independently and concurrently:
    - identity: scrape the channel id, then one metered channels lookup
    - liveness: scrape the /live alias, then one metered videos lookup
      only when it points at a watch page

    A creator whose identity or liveness fails is dropped from this cycle
    with a warning; the rest of the roster is unaffected.
    """

    service = StreamingService.YOUTUBE

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        api_key: str,
        quota: QuotaUsageCounter,
        handles: Sequence[str],
    ):
        super().__init__(handles)
        self._http = http_client
        self._api = YouTubeLivestreamAPI(
            http_client=http_client,
            api_key=api_key,
            quota=quota,
        )

    @property
    def quota(self) -> QuotaUsageCounter:
        return self._api.quota

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    async def fetch_creators(self, handles: Sequence[str]) -> Dict[str, Creator]:
        results = await join_all(
            *(self._resolve_identity(handle) for handle in handles)
        )
        return {
            handle: creator
            for handle, creator in zip(handles, results)
            if creator is not None
        }

    async def _resolve_identity(self, handle: str) -> Optional[Creator]:
        try:
            channel_id = await get_channel_id(self._http, handle)
            channel = await self._api.get_channel(channel_id)
        except WatcherError as e:
            log.warning(f"[YouTube][{handle}] Unknown creator this cycle: {e}")
            return None

        return channel.to_creator()

    # ------------------------------------------------------------------ #
    # Liveness
    # ------------------------------------------------------------------ #

    async def fetch_live_status(
        self, handles: Sequence[str]
    ) -> Dict[str, Optional[LiveStreamDetails]]:
        results: List[Tuple[str, object]] = await join_all(
            *(self._resolve_livestream(handle) for handle in handles)
        )
        # Handles whose lookup failed are left out; None means offline.
        return {
            handle: details
            for handle, details in results
            if details is not _FAILED
        }

    async def _resolve_livestream(self, handle: str) -> Tuple[str, object]:
        try:
            video_id = await get_livestream_video_id(self._http, handle)
            if video_id is None:
                return handle, None

            log.debug(f"[YouTube][{handle}] /live points at video {video_id}")
            video = await self._api.get_video(video_id)
            if not video.is_live():
                return handle, None

            details = video.to_details()
        except WatcherError as e:
            log.warning(f"[YouTube][{handle}] Live status lookup failed: {e}")
            return handle, _FAILED

        log.info(f"[YouTube][{handle}] Creator is live: {details.title!r}")
        return handle, details

    # ------------------------------------------------------------------ #

    def merge(
        self,
        creators: Dict[str, Creator],
        live: Mapping[str, Optional[LiveStreamDetails]],
    ) -> List[Creator]:
        merged: List[Creator] = []
        for handle, creator in creators.items():
            if handle not in live:
                log.warning(f"[YouTube][{handle}] Dropped: live status unknown this cycle")
                continue
            merged.append(replace(creator, stream=live[handle]))

        if len(merged) < len(self.handles):
            log.warning(
                f"[YouTube] {len(self.handles) - len(merged)} of "
                f"{len(self.handles)} creator(s) excluded from this cycle"
            )
        return merged
