from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from shared.logging.logger import get_logger
from shared.models.creator import Creator, StreamingService

log = get_logger("shared.runtime.quotas")


# ======================================================================
# Data Models
# ======================================================================

@dataclass
class DailyQuota:
    """
    Tracks cumulative usage for a single UTC day.
    """
    day: date
    used: int = 0

    def reset_if_new_day(self) -> bool:
        today = datetime.now(timezone.utc).date()
        if self.day != today:
            self.day = today
            self.used = 0
            return True
        return False


# ======================================================================
# Quota Usage Counter (OBSERVABILITY ONLY)
# ======================================================================

class QuotaUsageCounter:
    """
    Runtime quota usage counter for a metered upstream API.

    - `total` only ever increases (exported as a monotonic counter)
    - daily usage resets automatically on UTC day rollover
    - an optional daily budget logs a warning once per day when crossed;
      it never blocks or rejects a request
    """

    def __init__(
        self,
        *,
        platform: str,
        daily_budget: Optional[int] = None,
    ):
        self.platform = platform
        self.daily_budget = daily_budget
        self._total = 0
        self._warned = False
        self.state = DailyQuota(day=datetime.now(timezone.utc).date())

    @property
    def total(self) -> int:
        return self._total

    @property
    def used_today(self) -> int:
        self._rollover()
        return self.state.used

    def _rollover(self) -> None:
        if self.state.reset_if_new_day():
            self._warned = False

    def inc(self, units: int = 1) -> None:
        if units <= 0:
            return

        self._rollover()
        self._total += units
        self.state.used += units

        if (
            self.daily_budget
            and not self._warned
            and self.state.used >= self.daily_budget
        ):
            self._warned = True
            log.warning(
                f"[{self.platform}] Daily quota budget reached: "
                f"{self.state.used} / {self.daily_budget} units"
            )

    def snapshot(self) -> Dict[str, object]:
        self._rollover()
        now = datetime.now(timezone.utc)
        reset_at = datetime.combine(
            now.date() + timedelta(days=1), datetime.min.time(), tzinfo=timezone.utc
        )
        return {
            "platform": self.platform,
            "total": self._total,
            "used_today": self.state.used,
            "budget": self.daily_budget,
            "reset_at": reset_at.isoformat().replace("+00:00", "Z"),
        }


# ======================================================================
# Live Creators Gauge
# ======================================================================

GaugeKey = Tuple[StreamingService, str, str]


class LiveCreatorsGauge:
    """
    0/1 gauge per (service, handle, id) describing who was live at the last
    successful refresh. Creators that drop out of the roster keep their last
    value, the same way a labelled gauge does.
    """

    def __init__(self) -> None:
        self._values: Dict[GaugeKey, int] = {}

    def set(self, creator: Creator) -> None:
        key = (creator.service, creator.handle, creator.id)
        self._values[key] = 1 if creator.is_live else 0

    def update(self, creators: Iterable[Creator]) -> None:
        for creator in creators:
            self.set(creator)

    def get(self, service: StreamingService, handle: str, creator_id: str) -> Optional[int]:
        return self._values.get((service, handle, creator_id))

    def live_count(self) -> int:
        return sum(self._values.values())

    def snapshot(self) -> List[Dict[str, object]]:
        return [
            {
                "service": service.value,
                "username": handle,
                "id": creator_id,
                "live": value,
            }
            for (service, handle, creator_id), value in sorted(
                self._values.items(), key=lambda item: (item[0][0].value, item[0][1])
            )
        ]
