"""Shared fixtures for the causewatch test suite."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Callable, Dict

# Loggers open their file handler at import time; keep test runs out of ./logs.
os.environ.setdefault("CAUSEWATCH_LOG_DIR", tempfile.mkdtemp(prefix="causewatch-logs-"))
os.environ.setdefault("CAUSEWATCH_LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from services.tiltify.models.campaign import Campaign  # noqa: E402
from shared.models.creator import Creator, LiveStreamDetails, StreamingService  # noqa: E402
from shared.runtime.snapshot import Snapshot  # noqa: E402

FIXED_NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _campaign_data(**overrides: Any) -> Dict[str, Any]:
    avatar = {"src": "https://assets.tiltify.com/a.png", "alt": "", "width": 200, "height": 200}
    data = {
        "id": 468510,
        "name": "Charity Stream 2024",
        "slug": "charity-stream-2024",
        "startsAt": 1714521600000,
        "endsAt": 1717200000000,
        "description": "Raising money together",
        "avatar": avatar,
        "causeId": 42,
        "fundraiserGoalAmount": 10000,
        "originalFundraiserGoal": 5000,
        "amountRaised": 1234.5,
        "supportingAmountRaised": 100,
        "totalAmountRaised": 1334.5,
        "supportable": True,
        "user": {
            "id": 1,
            "username": "organizer",
            "slug": "organizer",
            "url": "/@organizer",
            "avatar": avatar,
        },
        "team": {
            "id": 2,
            "name": "The Team",
            "slug": "the-team",
            "url": "/+the-team",
            "avatar": avatar,
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def campaign_data() -> Callable[..., Dict[str, Any]]:
    """Factory for the `data` object of a Tiltify v3 campaign response."""
    return _campaign_data


@pytest.fixture
def campaign() -> Campaign:
    return Campaign.from_api(_campaign_data())


@pytest.fixture
def make_creator() -> Callable[..., Creator]:
    def _make(
        name: str,
        *,
        live: bool = False,
        viewers: int | None = None,
        service: StreamingService = StreamingService.TWITCH,
    ) -> Creator:
        stream = None
        if live:
            stream = LiveStreamDetails(
                href=f"https://twitch.tv/{name.lower()}",
                title=f"{name} is live",
                start_time=FIXED_NOW,
                viewers=viewers,
            )
        return Creator(
            id=f"id-{name.lower()}",
            display_name=name,
            handle=name.lower(),
            href=f"https://twitch.tv/{name.lower()}",
            icon_url=f"https://cdn.example/{name.lower()}.png",
            service=service,
            stream=stream,
        )

    return _make


@pytest.fixture
def make_snapshot(campaign, make_creator) -> Callable[..., Snapshot]:
    def _make(*names: str, updated: datetime = FIXED_NOW) -> Snapshot:
        return Snapshot(
            updated=updated,
            creators=tuple(make_creator(name) for name in names),
            fundraising=campaign,
        )

    return _make
