"""iCalendar parsing into raw busy events."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from icalendar import Calendar, Event as ICalEvent

from .exceptions import ParseError
from .grid_config import DEFAULT_GRID, GridConfig
from .models import RawEvent

logger = logging.getLogger(__name__)


class ICalParser:
    """Turns ICS text into RawEvent records carrying only what the grid needs."""

    def __init__(self, grid: GridConfig = DEFAULT_GRID) -> None:
        """Initialize ICS parser.

        Args:
            grid: Grid configuration; its timezone is applied to floating times
        """
        self.grid = grid

    def parse(self, ics_content: str) -> list[RawEvent]:
        """Parse ICS content into busy events, in feed order.

        Args:
            ics_content: Raw ICS file content

        Returns:
            Busy events (cancelled and transparent events are left out)

        Raises:
            ParseError: If the content is empty or not an iCalendar document
        """
        if not ics_content or not ics_content.strip():
            raise ParseError("Empty ICS content")

        if "BEGIN:VCALENDAR" not in ics_content:
            raise ParseError("Content does not appear to be valid ICS format")

        try:
            calendar = Calendar.from_ical(ics_content)
        except Exception as e:
            logger.exception("Failed to parse ICS content")
            raise ParseError(f"Malformed iCalendar content: {e}") from e

        events: list[RawEvent] = []
        skipped = 0
        for component in calendar.walk("VEVENT"):
            try:
                event = self._parse_event_component(component)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping unreadable event %s: %s", component.get("UID"), e)
                skipped += 1
                continue

            if event is None:
                skipped += 1
                continue
            events.append(event)

        logger.debug("Parsed %d busy events from ICS content (%d skipped)", len(events), skipped)
        return events

    def _parse_event_component(self, component: ICalEvent) -> Optional[RawEvent]:
        """Parse a single VEVENT, returning None when it does not block time."""
        status = str(component.get("STATUS", "")).upper()
        transparency = str(component.get("TRANSP", "")).upper()
        if status == "CANCELLED" or transparency == "TRANSPARENT":
            return None

        dtstart = component.get("DTSTART")
        if dtstart is None:
            logger.warning("Skipping event %s without DTSTART", component.get("UID"))
            return None

        start = self._to_datetime(dtstart.dt)

        dtend = component.get("DTEND")
        duration = component.get("DURATION")
        if dtend is not None:
            end = self._to_datetime(dtend.dt)
        elif duration is not None:
            end = start + duration.dt
        elif not isinstance(dtstart.dt, datetime):
            # All-day event without an end covers its whole day
            end = start + timedelta(days=1)
        else:
            end = start

        summary = component.get("SUMMARY")
        rrule = component.get("RRULE")

        return RawEvent(
            start=start,
            end=end,
            summary=str(summary) if summary is not None else None,
            rrule=rrule.to_ical().decode() if rrule is not None else None,
            exdates=self._collect_exdates(component),
        )

    def _collect_exdates(self, component: ICalEvent) -> list[datetime]:
        exdate_prop = component.get("EXDATE")
        if exdate_prop is None:
            return []

        props: list[Any] = exdate_prop if isinstance(exdate_prop, list) else [exdate_prop]
        return [self._to_datetime(value.dt) for prop in props for value in prop.dts]

    def _to_datetime(self, value: Any) -> datetime:
        """Normalize a DTSTART/DTEND value to an aware datetime."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=self.grid.tzinfo)
            return value
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=self.grid.tzinfo)
        raise TypeError(f"Unsupported date value: {value!r}")
