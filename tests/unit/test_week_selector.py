"""Unit tests for calgrid.week_selector.

Week convention under test: Sunday 00:00 (grid timezone, UTC by default) up
to, but not including, the following Sunday 00:00.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from calgrid.grid_config import GridConfig
from calgrid.ical_parser import ICalParser
from calgrid.models import BusyInterval, RawEvent
from calgrid.week_selector import current_week_window, select_current_week

pytestmark = pytest.mark.unit

WEEK_START = datetime(2026, 10, 18, tzinfo=timezone.utc)
WEEK_END = datetime(2026, 10, 25, tzinfo=timezone.utc)


def _event(start: datetime, end: datetime, **kwargs) -> RawEvent:
    return RawEvent(start=start, end=end, **kwargs)


class TestCurrentWeekWindow:
    """Tests for current_week_window."""

    def test_window_for_wednesday(self, fixed_now: datetime) -> None:
        assert current_week_window(fixed_now) == (WEEK_START, WEEK_END)

    def test_window_uses_clock_override(self, frozen_time: datetime) -> None:
        assert current_week_window() == (WEEK_START, WEEK_END)

    def test_saturday_night_still_same_week(self) -> None:
        late = datetime(2026, 10, 24, 23, 59, 59, tzinfo=timezone.utc)
        assert current_week_window(late) == (WEEK_START, WEEK_END)

    def test_monday_first_grid(self, fixed_now: datetime) -> None:
        start, end = current_week_window(fixed_now, GridConfig(week_start="monday"))
        assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 26, tzinfo=timezone.utc)

    def test_local_timezone_window(self) -> None:
        los_angeles = ZoneInfo("America/Los_Angeles")
        grid = GridConfig(timezone="America/Los_Angeles")
        start, end = current_week_window(datetime(2026, 10, 21, 12, tzinfo=timezone.utc), grid)
        assert start == datetime(2026, 10, 18, tzinfo=los_angeles)
        assert end == datetime(2026, 10, 25, tzinfo=los_angeles)


class TestSelectCurrentWeek:
    """Tests for select_current_week boundaries and ordering."""

    def test_event_inside_week_kept_unchanged(self, fixed_now: datetime) -> None:
        start = datetime(2026, 10, 19, 10, tzinfo=timezone.utc)
        end = start + timedelta(hours=1)
        assert select_current_week([_event(start, end)], fixed_now) == [
            BusyInterval(start=start, end=end)
        ]

    def test_event_starting_at_lower_boundary_included(self, fixed_now: datetime) -> None:
        event = _event(WEEK_START, WEEK_START + timedelta(hours=1))
        assert len(select_current_week([event], fixed_now)) == 1

    def test_event_ending_at_upper_boundary_included(self, fixed_now: datetime) -> None:
        event = _event(WEEK_END - timedelta(hours=1), WEEK_END)
        selected = select_current_week([event], fixed_now)
        assert selected == [BusyInterval(start=event.start, end=WEEK_END)]

    def test_event_next_sunday_excluded(self, fixed_now: datetime) -> None:
        event = _event(WEEK_END, WEEK_END + timedelta(hours=1))
        assert select_current_week([event], fixed_now) == []

    def test_event_before_week_excluded(self, fixed_now: datetime) -> None:
        event = _event(WEEK_START - timedelta(hours=2), WEEK_START - timedelta(hours=1))
        assert select_current_week([event], fixed_now) == []

    def test_event_ending_at_lower_boundary_excluded(self, fixed_now: datetime) -> None:
        event = _event(WEEK_START - timedelta(hours=1), WEEK_START)
        assert select_current_week([event], fixed_now) == []

    def test_spanning_event_clipped_to_week(self, fixed_now: datetime) -> None:
        event = _event(WEEK_START - timedelta(hours=2), WEEK_START + timedelta(hours=2))
        assert select_current_week([event], fixed_now) == [
            BusyInterval(start=WEEK_START, end=WEEK_START + timedelta(hours=2))
        ]

    def test_zero_width_events(self, fixed_now: datetime) -> None:
        at_start = _event(WEEK_START, WEEK_START)
        at_end = _event(WEEK_END, WEEK_END)
        assert select_current_week([at_start, at_end], fixed_now) == [
            BusyInterval(start=WEEK_START, end=WEEK_START)
        ]

    def test_inverted_event_dropped(self, fixed_now: datetime) -> None:
        event = _event(WEEK_START + timedelta(hours=2), WEEK_START + timedelta(hours=1))
        assert select_current_week([event], fixed_now) == []

    def test_source_order_and_duplicates_kept(self, fixed_now: datetime) -> None:
        late = _event(datetime(2026, 10, 23, 9, tzinfo=timezone.utc), datetime(2026, 10, 23, 10, tzinfo=timezone.utc))
        early = _event(datetime(2026, 10, 19, 9, tzinfo=timezone.utc), datetime(2026, 10, 19, 10, tzinfo=timezone.utc))
        selected = select_current_week([late, early, late], fixed_now)
        assert [interval.start.day for interval in selected] == [23, 19, 23]

    def test_empty_feed(self, fixed_now: datetime) -> None:
        assert select_current_week([], fixed_now) == []


class TestRecurringEvents:
    """Tests for expansion of recurring events inside the week."""

    def test_weekly_rule_yields_this_weeks_occurrence(self, fixed_now: datetime) -> None:
        event = _event(
            datetime(2026, 9, 7, 9, tzinfo=timezone.utc),
            datetime(2026, 9, 7, 10, tzinfo=timezone.utc),
            rrule="FREQ=WEEKLY;BYDAY=MO",
        )
        assert select_current_week([event], fixed_now) == [
            BusyInterval(
                start=datetime(2026, 10, 19, 9, tzinfo=timezone.utc),
                end=datetime(2026, 10, 19, 10, tzinfo=timezone.utc),
            )
        ]

    def test_exdate_removes_occurrence(self, fixed_now: datetime) -> None:
        event = _event(
            datetime(2026, 9, 7, 9, tzinfo=timezone.utc),
            datetime(2026, 9, 7, 10, tzinfo=timezone.utc),
            rrule="FREQ=WEEKLY;BYDAY=MO",
            exdates=[datetime(2026, 10, 19, 9, tzinfo=timezone.utc)],
        )
        assert select_current_week([event], fixed_now) == []

    def test_daily_rule_stops_at_week_end(self, fixed_now: datetime) -> None:
        event = _event(
            datetime(2026, 10, 23, 20, tzinfo=timezone.utc),
            datetime(2026, 10, 23, 21, tzinfo=timezone.utc),
            rrule="FREQ=DAILY;COUNT=5",
        )
        selected = select_current_week([event], fixed_now)
        assert [interval.start.day for interval in selected] == [23, 24]

    def test_rule_that_ended_before_week(self, fixed_now: datetime) -> None:
        event = _event(
            datetime(2026, 9, 7, 9, tzinfo=timezone.utc),
            datetime(2026, 9, 7, 10, tzinfo=timezone.utc),
            rrule="FREQ=WEEKLY;COUNT=2",
        )
        assert select_current_week([event], fixed_now) == []

    def test_occurrence_overlapping_week_start_clipped(self, fixed_now: datetime) -> None:
        event = _event(
            datetime(2026, 10, 10, 23, tzinfo=timezone.utc),
            datetime(2026, 10, 11, 1, tzinfo=timezone.utc),
            rrule="FREQ=WEEKLY",
        )
        assert select_current_week([event], fixed_now) == [
            BusyInterval(start=WEEK_START, end=WEEK_START + timedelta(hours=1)),
            BusyInterval(
                start=datetime(2026, 10, 24, 23, tzinfo=timezone.utc),
                end=WEEK_END,
            ),
        ]

    def test_unusable_rule_falls_back_to_master(self, fixed_now: datetime) -> None:
        start = datetime(2026, 10, 20, 9, tzinfo=timezone.utc)
        event = _event(start, start + timedelta(hours=1), rrule="FREQ=SOMETIMES")
        assert select_current_week([event], fixed_now) == [
            BusyInterval(start=start, end=start + timedelta(hours=1))
        ]

    def test_fixture_feed_recurrence(self, fixed_now: datetime, sample_ics_recurring: str) -> None:
        events = ICalParser().parse(sample_ics_recurring)
        assert select_current_week(events, fixed_now) == [
            BusyInterval(
                start=datetime(2026, 10, 22, 18, tzinfo=timezone.utc),
                end=datetime(2026, 10, 22, 19, tzinfo=timezone.utc),
            )
        ]


class TestRecurrenceUntil:
    """Rules ending with a date-only or floating UNTIL keep this week's occurrence."""

    @staticmethod
    def _feed(event_lines: str) -> str:
        return (
            "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//calgrid test//EN\n"
            f"BEGIN:VEVENT\n{event_lines.strip()}\nEND:VEVENT\nEND:VCALENDAR"
        )

    def test_all_day_series_with_date_until(self, fixed_now: datetime) -> None:
        events = ICalParser().parse(
            self._feed(
                """
UID:allday-until@calgrid.test
DTSTART;VALUE=DATE:20260907
DTEND;VALUE=DATE:20260908
RRULE:FREQ=WEEKLY;UNTIL=20261231
"""
            )
        )
        assert select_current_week(events, fixed_now) == [
            BusyInterval(
                start=datetime(2026, 10, 19, tzinfo=timezone.utc),
                end=datetime(2026, 10, 20, tzinfo=timezone.utc),
            )
        ]

    def test_floating_series_with_naive_until(self, fixed_now: datetime) -> None:
        events = ICalParser().parse(
            self._feed(
                """
UID:floating-until@calgrid.test
DTSTART:20260907T090000
DTEND:20260907T100000
RRULE:FREQ=WEEKLY;UNTIL=20261231T000000
"""
            )
        )
        assert select_current_week(events, fixed_now) == [
            BusyInterval(
                start=datetime(2026, 10, 19, 9, tzinfo=timezone.utc),
                end=datetime(2026, 10, 19, 10, tzinfo=timezone.utc),
            )
        ]

    def test_naive_until_read_in_event_timezone(self, fixed_now: datetime) -> None:
        berlin = ZoneInfo("Europe/Berlin")
        start = datetime(2026, 9, 7, 9, tzinfo=berlin)
        event = _event(
            start,
            start + timedelta(hours=1),
            rrule="FREQ=WEEKLY;UNTIL=20261019T090000",
        )
        selected = select_current_week([event], fixed_now)
        assert [interval.start for interval in selected] == [datetime(2026, 10, 19, 9, tzinfo=berlin)]

    def test_until_before_week_still_ends_series(self, fixed_now: datetime) -> None:
        start = datetime(2026, 9, 7, 9, tzinfo=timezone.utc)
        event = _event(start, start + timedelta(hours=1), rrule="FREQ=WEEKLY;UNTIL=20261013")
        assert select_current_week([event], fixed_now) == []
