"""
Snapshot state exporter.

Subscribes to the SnapshotPublisher and, on every new snapshot, writes:
  - creators.json: the serialized Snapshot
  - metrics.json: YouTube quota usage and the live-creators gauge

Files go through StateFilePublisher (atomic replace, optional mirror root).
Export failures are logged and never reach the watcher.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from runtime import version as runtime_version
from shared.logging.logger import get_logger
from shared.runtime.quotas import LiveCreatorsGauge, QuotaUsageCounter
from shared.runtime.snapshot import Snapshot, SnapshotPublisher
from shared.storage.state_publisher import StateFilePublisher
from shared.utils.timestamps import to_rfc3339, utc_now

log = get_logger("core.state_exporter", runtime="causewatch")


class SnapshotStateExporter:
    CREATORS_FILENAME = "creators.json"
    METRICS_FILENAME = "metrics.json"

    def __init__(
        self,
        *,
        publisher: SnapshotPublisher,
        quota: QuotaUsageCounter,
        gauge: LiveCreatorsGauge,
        base_dir: Path | str | None = None,
        publish_root: Path | str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._snapshots = publisher
        self._quota = quota
        self._gauge = gauge
        self._files = StateFilePublisher(base_dir=base_dir, publish_root=publish_root)
        self._clock = clock
        self.exports = 0

    def build_metrics(self) -> Dict[str, Any]:
        return {
            "generated_at": to_rfc3339(self._clock()),
            "runtime": runtime_version.as_dict(),
            "quota": {"youtube": self._quota.snapshot()},
            "live_creators": {
                "count": self._gauge.live_count(),
                "creators": self._gauge.snapshot(),
            },
        }

    def export(self, snapshot: Optional[Snapshot]) -> bool:
        """Write both state files; returns False if either primary write failed."""
        ok = True
        if snapshot is not None:
            ok = self._files.publish(self.CREATORS_FILENAME, snapshot.to_dict())

        ok = self._files.publish(self.METRICS_FILENAME, self.build_metrics()) and ok
        if ok:
            self.exports += 1
        return ok

    async def run(self, stop_event: asyncio.Event) -> None:
        """Export every published snapshot until `stop_event` is set."""
        subscription = self._snapshots.subscribe()
        log.info(f"State exporter writing to {self._files.base_dir}")

        # Whatever is already published is exported once up front.
        current = subscription.borrow_and_update()
        if current is not None:
            self.export(current)

        while not stop_event.is_set():
            changed = asyncio.ensure_future(subscription.changed())
            stopped = asyncio.ensure_future(stop_event.wait())
            try:
                await asyncio.wait(
                    {changed, stopped}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                pending = [t for t in (changed, stopped) if not t.done()]
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

            if changed.done() and not changed.cancelled():
                snapshot = changed.result()
                if self.export(snapshot):
                    log.debug(f"Exported snapshot updated={to_rfc3339(snapshot.updated)}")

        log.info(f"State exporter stopped after {self.exports} export(s)")
