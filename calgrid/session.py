"""Setup and view flows tying the normalization pipeline to a calendar store.

The presentation layer hands in primitives (a name, a URL, selected slot ids)
and gets back GridView records; no UI object crosses this boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from .combine import combine_all
from .config_loader import Config
from .grid_converter import from_selection, require_owner, to_grid
from .ical_fetcher import ICalFetcher
from .ical_parser import ICalParser
from .models import EMPTY_DOCUMENT, CalendarRecord, GridView
from .schema import serialize_document
from .selection import CellSelection
from .store import CalendarStore
from .week_selector import select_current_week

logger = logging.getLogger(__name__)

NO_CALENDAR_SELECTED = "No Calendar Selected"
COMBINED_CALENDAR = "Combined Calendar"


class CalendarSession:
    """One user's session: the store plus the flows that fill and read it."""

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[CalendarStore] = None,
        fetcher: Optional[ICalFetcher] = None,
    ) -> None:
        """Initialize a session.

        Args:
            config: Application configuration (defaults when omitted)
            store: Calendar store; a fresh one is created when omitted
            fetcher: Feed fetcher to reuse; otherwise one is opened per setup
        """
        self.config = config or Config()
        self.grid = self.config.grid()
        self.store = store if store is not None else CalendarStore.init()
        self.parser = ICalParser(self.grid)
        self._fetcher = fetcher

    def new_selection(self) -> CellSelection:
        """Empty manual selection over this session's grid."""
        return CellSelection(self.grid)

    async def _download(self, url: str) -> str:
        if self._fetcher is not None:
            return await self._fetcher.fetch(url)
        async with ICalFetcher(self.config) as fetcher:
            return await fetcher.fetch(url)

    async def setup_ical(self, name: str, url: str) -> CalendarRecord:
        """Register the current week of the feed at ``url`` under ``name``.

        Raises:
            FetchError: If the feed cannot be downloaded
            ParseError: If the feed is not valid iCalendar
            SchemaError: If ``name`` is blank
        """
        owner = require_owner(name)
        ics_content = await self._download(url)

        events = self.parser.parse(ics_content)
        intervals = select_current_week(events, grid=self.grid)
        document = to_grid(intervals, owner, self.grid)

        record = self.store.add_calendar(
            CalendarRecord(
                user=owner,
                ical_url=url,
                calendar_json=serialize_document(document),
            )
        )
        logger.info(
            "Added ICS calendar for %s: %d events, %d busy slots this week",
            owner,
            len(events),
            len(document.cells),
        )
        return record

    def setup_manual(self, name: str, selection: Iterable[str]) -> CalendarRecord:
        """Register manually selected slots under ``name``.

        A CellSelection passed in is cleared once the calendar is stored.

        Raises:
            SchemaError: If ``name`` is blank or a slot id is not on the grid
        """
        owner = require_owner(name)
        document = from_selection(selection, owner, self.grid)

        record = self.store.add_calendar(
            CalendarRecord(user=owner, ical_url="", calendar_json=serialize_document(document))
        )
        if isinstance(selection, CellSelection):
            selection.clear()

        logger.info("Added manual calendar for %s with %d busy slots", owner, len(document.cells))
        return record

    def calendar_names(self) -> list[str]:
        """Owners in the order their calendars were added, for navigation."""
        return self.store.users()

    def view_calendar(self, name: str) -> GridView:
        """Grid of one registered calendar.

        Raises:
            KeyError: If no calendar is registered under ``name``
        """
        name = name.strip()
        record = self.store.find(name)
        return GridView(title=f"{name}'s Calendar", calendar_json=record.calendar_json, num_calendars=1)

    def view_combined(self) -> GridView:
        """Availability grid combining every registered calendar in store order."""
        combination = combine_all(self.store.documents())
        return GridView(
            title=COMBINED_CALENDAR,
            calendar_json=serialize_document(combination),
            num_calendars=len(self.store),
        )

    def reset_view(self) -> GridView:
        """Empty grid shown when nothing is selected."""
        return GridView(
            title=NO_CALENDAR_SELECTED,
            calendar_json=serialize_document(EMPTY_DOCUMENT),
            num_calendars=0,
        )

    def close(self) -> None:
        """End the session, discarding its calendars."""
        self.store.discard()
