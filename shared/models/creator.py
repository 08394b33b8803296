"""Platform-neutral creator model and the merge/sort rules for the snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shared.utils.timestamps import to_rfc3339


class StreamingService(Enum):
    TWITCH = "twitch"
    YOUTUBE = "youtube"


@dataclass(frozen=True)
class LiveStreamDetails:
    href: str
    title: str
    start_time: datetime
    # Some creators hide their viewer count; that is None, not zero.
    viewers: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "href": self.href,
            "title": self.title,
            "start_time": to_rfc3339(self.start_time),
            "viewers": self.viewers,
        }


@dataclass(frozen=True)
class Creator:
    """
    One streamer's public presentation for a single refresh cycle.

    `id` is the internal, unchanging identifier of the streaming service.
    Instances are rebuilt on every cycle and never mutated.
    """

    id: str
    display_name: str
    handle: str
    href: str
    icon_url: str
    service: StreamingService
    stream: Optional[LiveStreamDetails] = None

    @property
    def is_live(self) -> bool:
        return self.stream is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "handle": self.handle,
            "href": self.href,
            "icon_url": self.icon_url,
            "stream": self.stream.to_dict() if self.stream else None,
            "service": self.service.value,
        }


def creator_sort_key(creator: Creator) -> Tuple[bool, str]:
    # Live creators first (False sorts before True), then by display name.
    return (not creator.is_live, creator.display_name)


def sort_creators(creators: Iterable[Creator]) -> List[Creator]:
    """Stable sort: live before offline, display name within each group."""
    return sorted(creators, key=creator_sort_key)


def merge_creators(*sources: Iterable[Creator]) -> Tuple[Creator, ...]:
    """Concatenate per-platform creator lists and apply the snapshot ordering."""
    merged: List[Creator] = []
    for creators in sources:
        merged.extend(creators)
    return tuple(sort_creators(merged))
