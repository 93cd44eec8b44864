"""Shared fixtures for calgrid tests.

All time-dependent tests are pinned to the week of Sunday 2026-10-18 00:00 UTC
through Sunday 2026-10-25 00:00 UTC (exclusive), with "now" on Wednesday.
"""

from collections.abc import Generator
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest

from calgrid.grid_config import DEFAULT_GRID, GridConfig
from calgrid.models import CalendarDocument, Cell

FIXED_NOW = datetime(2026, 10, 21, 12, 0, tzinfo=timezone.utc)
WEEK_START = datetime(2026, 10, 18, 0, 0, tzinfo=timezone.utc)
WEEK_END = datetime(2026, 10, 25, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear calgrid environment overrides so host settings never leak into tests."""
    for name in ("CALGRID_TEST_TIME", "CALGRID_TIMEZONE", "CALGRID_LOG_LEVEL", "CALGRID_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def frozen_time(monkeypatch: Any) -> datetime:
    """Freeze calgrid's clock at FIXED_NOW via CALGRID_TEST_TIME."""
    monkeypatch.setenv("CALGRID_TEST_TIME", FIXED_NOW.isoformat())
    return FIXED_NOW


@pytest.fixture
def grid() -> GridConfig:
    """Default grid: Sunday-first week, 08:00-22:00 UTC, 30 minute slots."""
    return DEFAULT_GRID


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Minimal fetcher settings with fast retries."""
    return SimpleNamespace(
        request_timeout=5,
        max_retries=2,
        retry_backoff_factor=1.0,
    )


@pytest.fixture
def make_document():
    """Build a document from ``{slot_id: [users]}``."""

    def _make(cells: dict[str, list[str]]) -> CalendarDocument:
        return CalendarDocument(
            cells=[
                Cell(id=cell_id, users=list(users), num_people=len(users))
                for cell_id, users in cells.items()
            ]
        )

    return _make


# ==================== ICS Test Data Fixtures ====================


@pytest.fixture
def sample_ics_week() -> str:
    """
    Return an ICS calendar with events around the pinned week.

    Events:
        - "Standup" Monday 2026-10-19 10:00-11:00 UTC (in week: B5, B6)
        - "Lunch" Tuesday 2026-10-20 12:00-12:30 UTC, TRANSP:TRANSPARENT (free)
        - "Cancelled review" Wednesday 2026-10-21 09:00-10:00 UTC, STATUS:CANCELLED
        - "Last week" Monday 2026-10-12 10:00-11:00 UTC (outside the week)
        - "Next week" Sunday 2026-10-25 00:00-01:00 UTC (outside the week)
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//calgrid test//EN
CALSCALE:GREGORIAN
BEGIN:VEVENT
UID:standup-001@calgrid.test
DTSTART:20261019T100000Z
DTEND:20261019T110000Z
SUMMARY:Standup
DTSTAMP:20261001T090000Z
END:VEVENT
BEGIN:VEVENT
UID:lunch-001@calgrid.test
DTSTART:20261020T120000Z
DTEND:20261020T123000Z
SUMMARY:Lunch
TRANSP:TRANSPARENT
DTSTAMP:20261001T090000Z
END:VEVENT
BEGIN:VEVENT
UID:review-001@calgrid.test
DTSTART:20261021T090000Z
DTEND:20261021T100000Z
SUMMARY:Cancelled review
STATUS:CANCELLED
DTSTAMP:20261001T090000Z
END:VEVENT
BEGIN:VEVENT
UID:old-001@calgrid.test
DTSTART:20261012T100000Z
DTEND:20261012T110000Z
SUMMARY:Last week
DTSTAMP:20261001T090000Z
END:VEVENT
BEGIN:VEVENT
UID:next-001@calgrid.test
DTSTART:20261025T000000Z
DTEND:20261025T010000Z
SUMMARY:Next week
DTSTAMP:20261001T090000Z
END:VEVENT
END:VCALENDAR"""


@pytest.fixture
def sample_ics_recurring() -> str:
    """
    Return an ICS string with a weekly recurring event and one exclusion.

    Event: "Gym" every Thursday 18:00-19:00 UTC since 2026-09-03,
    EXDATE on 2026-10-15 (previous week, so this week's occurrence remains).
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//calgrid test//EN
BEGIN:VEVENT
UID:gym-001@calgrid.test
DTSTART:20260903T180000Z
DTEND:20260903T190000Z
SUMMARY:Gym
RRULE:FREQ=WEEKLY;BYDAY=TH
EXDATE:20261015T180000Z
DTSTAMP:20260901T090000Z
END:VEVENT
END:VCALENDAR"""
