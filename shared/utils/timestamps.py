from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC 3339 date-time ("2024-01-02T03:04:05Z") into an aware datetime.

    Raises ValueError when the value is not a well formed date-time.
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"not an RFC 3339 date-time: {value!r}")

    normalized = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        raise ValueError(f"RFC 3339 date-time without offset: {value!r}")
    return parsed.astimezone(timezone.utc)


def to_rfc3339(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def from_js_timestamp(millis: int) -> datetime:
    """Convert a JavaScript unix timestamp (milliseconds) to an aware datetime."""
    if isinstance(millis, bool) or not isinstance(millis, int):
        raise ValueError(f"not a millisecond unix timestamp: {millis!r}")
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
