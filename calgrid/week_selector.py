"""Current-week selection of busy events.

The week is the half-open window ``[week_start, week_start + 7 days)`` where
``week_start`` is local midnight, in the grid timezone, of the grid's first
weekday (Sunday by default).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from dateutil.parser import isoparse
from dateutil.rrule import rrulestr

from .clock import now_utc
from .grid_config import DEFAULT_GRID, GridConfig
from .models import BusyInterval, RawEvent

logger = logging.getLogger(__name__)


def current_week_window(
    now: Optional[datetime] = None, grid: GridConfig = DEFAULT_GRID
) -> tuple[datetime, datetime]:
    """Return the (inclusive start, exclusive end) of the week containing ``now``."""
    week_start = grid.week_start_for(now if now is not None else now_utc())
    return week_start, week_start + timedelta(days=7)


def _clip(
    start: datetime, end: datetime, week_start: datetime, week_end: datetime
) -> Optional[BusyInterval]:
    if end < start:
        return None
    if start == end:
        # Zero-width events still belong to the week they start in
        if week_start <= start < week_end:
            return BusyInterval(start=start, end=end)
        return None
    if start < week_end and end > week_start:
        return BusyInterval(start=max(start, week_start), end=min(end, week_end))
    return None


def _utc_until(rrule: str, tz: Optional[tzinfo]) -> str:
    """Rewrite a date-only or floating UNTIL as a UTC timestamp.

    dateutil refuses a naive UNTIL once DTSTART is aware; such values are local
    to the event, so they take the timezone of its start.
    """
    parts = []
    for part in rrule.split(";"):
        key, sep, value = part.partition("=")
        if sep and key.upper() == "UNTIL" and not value.upper().endswith("Z"):
            try:
                until = isoparse(value)
            except ValueError:
                parts.append(part)
                continue
            if until.tzinfo is None:
                until = until.replace(tzinfo=tz or timezone.utc)
            part = f"{key}={until.astimezone(timezone.utc):%Y%m%dT%H%M%SZ}"
        parts.append(part)
    return ";".join(parts)


def _occurrences(
    event: RawEvent, week_start: datetime, week_end: datetime
) -> Iterator[tuple[datetime, datetime]]:
    """Yield the (start, end) pairs of ``event`` that may touch the window."""
    if event.rrule is None:
        yield event.start, event.end
        return

    duration = event.end - event.start
    try:
        rule = rrulestr(_utc_until(event.rrule, event.start.tzinfo), dtstart=event.start)
        starts = rule.between(week_start - duration, week_end, inc=True)
    except (ValueError, TypeError) as e:
        logger.warning(
            "Cannot expand RRULE %r of %r, using its first occurrence only: %s",
            event.rrule,
            event.summary,
            e,
        )
        yield event.start, event.end
        return

    excluded = {exdate.astimezone(timezone.utc) for exdate in event.exdates}
    for occurrence in starts:
        if occurrence.astimezone(timezone.utc) in excluded:
            continue
        yield occurrence, occurrence + duration


def select_current_week(
    events: Iterable[RawEvent],
    now: Optional[datetime] = None,
    grid: GridConfig = DEFAULT_GRID,
) -> list[BusyInterval]:
    """Keep the events of the current week, clipped to it, in source order.

    Recurring events contribute one interval per occurrence inside the week.
    Events entirely outside the week are dropped without error.
    """
    week_start, week_end = current_week_window(now, grid)

    selected: list[BusyInterval] = []
    dropped = 0
    for event in events:
        for start, end in _occurrences(event, week_start, week_end):
            interval = _clip(start, end, week_start, week_end)
            if interval is None:
                dropped += 1
                continue
            selected.append(interval)

    logger.debug(
        "Selected %d intervals for week starting %s (%d outside the week)",
        len(selected),
        week_start.isoformat(),
        dropped,
    )
    return selected
