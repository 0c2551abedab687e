"""
Shared fixtures for worldmon tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from worldmon.analysis import Event

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def build_event(
    event_id: str,
    hours: float = 0,
    lat: float | None = None,
    lon: float | None = None,
    region: str = "X",
    category: str = "military",
    keywords: tuple[str, ...] = (),
    title: str | None = None,
    source: str = "wire",
) -> Event:
    return Event(
        id=event_id,
        title=title or f"Event {event_id}",
        timestamp=T0 + timedelta(hours=hours),
        latitude=lat,
        longitude=lon,
        region=region,
        category=category,
        source=source,
        keywords=keywords,
    )


@pytest.fixture
def make_event():
    """Factory for events offset in hours from a fixed start time."""
    return build_event


@pytest.fixture
def t0() -> datetime:
    return T0
