"""
Refresh orchestrator.

One cycle fetches YouTube, Twitch and Tiltify concurrently, merges the two
creator lists, and publishes a new Snapshot. A cycle either publishes a
complete snapshot or publishes nothing: the last good snapshot stays visible
across any number of failed cycles.
"""

from __future__ import annotations

import asyncio
import math
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from core.context import DEFAULT_REFRESH_PERIOD
from services.base import CreatorSource
from services.tiltify.api.campaign import TiltifyWatcher
from shared.logging.logger import get_logger
from shared.models.creator import merge_creators
from shared.runtime.quotas import LiveCreatorsGauge
from shared.runtime.snapshot import Snapshot, SnapshotPublisher
from shared.utils.timestamps import utc_now

log = get_logger("core.watcher", runtime="causewatch")


class WatcherState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    PUBLISHING = "publishing"


def next_deadline(previous: float, now: float, period: float) -> float:
    """
    Next tick strictly after `now` on the grid `previous + k * period`.

    Ticks that were missed while a cycle overran are skipped rather than
    fired back to back.
    """
    if period <= 0:
        raise ValueError("period must be positive")

    deadline = previous + period
    if deadline > now:
        return deadline

    skipped = math.floor((now - previous) / period)
    deadline = previous + (skipped + 1) * period
    # Guard against float rounding landing exactly on `now`.
    if deadline <= now:
        deadline += period
    return deadline


class LiveWatcher:
    def __init__(
        self,
        *,
        youtube: CreatorSource,
        twitch: CreatorSource,
        tiltify: TiltifyWatcher,
        publisher: SnapshotPublisher,
        gauge: Optional[LiveCreatorsGauge] = None,
        refresh_period: float = DEFAULT_REFRESH_PERIOD,
        clock: Callable[[], datetime] = utc_now,
    ):
        if refresh_period <= 0:
            raise ValueError("refresh_period must be positive")

        self.youtube = youtube
        self.twitch = twitch
        self.tiltify = tiltify
        self.publisher = publisher
        self.gauge = gauge or LiveCreatorsGauge()
        self.refresh_period = refresh_period
        self._clock = clock

        self.state = WatcherState.IDLE
        self.cycles_ok = 0
        self.cycles_failed = 0

    # ------------------------------------------------------------------

    async def run_cycle(self) -> Optional[Snapshot]:
        """
        Execute exactly one refresh cycle.

        Returns the published snapshot, or None when any fetch failed.
        """
        try:
            return await self._cycle()
        finally:
            self.state = WatcherState.IDLE

    async def _cycle(self) -> Optional[Snapshot]:
        self.state = WatcherState.FETCHING
        results = await asyncio.gather(
            self.youtube.get_creators(),
            self.twitch.get_creators(),
            self.tiltify.get_campaign(),
            return_exceptions=True,
        )

        failed = False
        for name, result in zip(("YouTube", "Twitch", "Tiltify"), results):
            if not isinstance(result, BaseException):
                continue
            if not isinstance(result, Exception):
                raise result
            log.error(f"[{name}] Refresh failed, keeping previous snapshot: {result!r}")
            failed = True

        if failed:
            self.cycles_failed += 1
            return None

        youtube_creators, twitch_creators, campaign = results

        self.state = WatcherState.MERGING
        creators = merge_creators(twitch_creators, youtube_creators)
        self.gauge.update(creators)

        self.state = WatcherState.PUBLISHING
        snapshot = Snapshot(
            updated=self._clock(),
            creators=creators,
            fundraising=campaign,
        )
        self.publisher.publish(snapshot)
        self.cycles_ok += 1

        log.info(
            f"Published snapshot: {len(creators)} creator(s), "
            f"{len(snapshot.live_creators)} live, "
            f"raised {campaign.total_amount_raised}"
        )
        return snapshot

    # ------------------------------------------------------------------

    async def run(self, stop_event: asyncio.Event) -> None:
        """Refresh on a fixed period until `stop_event` is set."""
        loop = asyncio.get_running_loop()
        log.info(f"Watcher started (period={self.refresh_period}s)")

        deadline = loop.time()
        while not stop_event.is_set():
            await self.run_cycle()

            now = loop.time()
            upcoming = next_deadline(deadline, now, self.refresh_period)
            missed = round((upcoming - deadline) / self.refresh_period) - 1
            if missed > 0:
                log.warning(f"Cycle overran; skipping {missed} tick(s)")
            deadline = upcoming

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=deadline - now)
            except asyncio.TimeoutError:
                pass

        log.info(
            f"Watcher stopped ({self.cycles_ok} ok, {self.cycles_failed} failed)"
        )
