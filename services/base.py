"""
Creator source interface shared by the platform watchers.

Exactly two variants exist (Twitch and YouTube). Each one resolves creator
identities and live statuses for its roster; `get_creators()` runs both
lookups concurrently and joins them into Creator objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence

from shared.models.creator import Creator, LiveStreamDetails, StreamingService
from shared.utils.aio import join_all


class CreatorSource(ABC):
    service: StreamingService

    def __init__(self, handles: Sequence[str]):
        self.handles = tuple(handles)

    async def prepare(self) -> None:
        """Per-cycle hook run before any lookup (token refresh, ...)."""

    @abstractmethod
    async def fetch_creators(self, handles: Sequence[str]) -> Dict[str, Creator]:
        """Resolve creator identities, keyed by roster handle."""

    @abstractmethod
    async def fetch_live_status(
        self, handles: Sequence[str]
    ) -> Mapping[str, Optional[LiveStreamDetails]]:
        """Resolve live streams, keyed by roster handle."""

    def merge(
        self,
        creators: Dict[str, Creator],
        live: Mapping[str, Optional[LiveStreamDetails]],
    ) -> List[Creator]:
        # A creator with no live-status entry is offline.
        return [
            replace(creator, stream=live.get(handle))
            for handle, creator in creators.items()
        ]

    async def get_creators(self) -> List[Creator]:
        await self.prepare()

        creators, live = await join_all(
            self.fetch_creators(self.handles),
            self.fetch_live_status(self.handles),
        )
        return self.merge(creators, live)
