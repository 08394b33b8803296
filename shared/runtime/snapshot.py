"""
Latest-snapshot distribution.

The watcher is the single writer; the web layer and the state exporter are
readers. Readers only ever see whole, immutable Snapshot objects: publishing
swaps the reference, it never edits a snapshot in place.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from shared.models.creator import Creator
from shared.utils.timestamps import to_rfc3339

if TYPE_CHECKING:
    from services.tiltify.models.campaign import Campaign


@dataclass(frozen=True)
class Snapshot:
    updated: datetime
    creators: Tuple[Creator, ...]
    fundraising: "Campaign"

    @property
    def live_creators(self) -> Tuple[Creator, ...]:
        return tuple(c for c in self.creators if c.is_live)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": to_rfc3339(self.updated),
            "creators": [creator.to_dict() for creator in self.creators],
            "fundraising": self.fundraising.to_dict(),
        }


class SnapshotPublisher:
    """
    Single-writer / multi-reader cell holding Optional[Snapshot].

    - publish() is synchronous and never waits on readers
    - last value wins; intermediate snapshots are not queued
    - value is None until the first successful refresh cycle
    """

    def __init__(self) -> None:
        self._value: Optional[Snapshot] = None
        self._version = 0
        self._changed = asyncio.Event()

    @property
    def latest(self) -> Optional[Snapshot]:
        return self._value

    @property
    def version(self) -> int:
        return self._version

    def publish(self, snapshot: Snapshot) -> None:
        self._value = snapshot
        self._version += 1

        # Wake everyone waiting on the current event, then arm a fresh one
        # for the next publish.
        fired = self._changed
        self._changed = asyncio.Event()
        fired.set()

    def subscribe(self) -> "SnapshotSubscription":
        return SnapshotSubscription(self)

    async def _wait_past(self, version: int) -> None:
        while self._version == version:
            await self._changed.wait()


class SnapshotSubscription:
    """
    Reader handle. Always observes the latest value and can wait for the
    next change. A fresh subscription treats the current value as seen.
    """

    def __init__(self, publisher: SnapshotPublisher):
        self._publisher = publisher
        self._seen = publisher.version

    def borrow(self) -> Optional[Snapshot]:
        return self._publisher.latest

    def borrow_and_update(self) -> Optional[Snapshot]:
        self._seen = self._publisher.version
        return self._publisher.latest

    def has_changed(self) -> bool:
        return self._publisher.version != self._seen

    async def changed(self) -> Optional[Snapshot]:
        """Wait until a newer snapshot than the last one seen is published."""
        await self._publisher._wait_past(self._seen)
        return self.borrow_and_update()
