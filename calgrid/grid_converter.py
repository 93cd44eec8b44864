"""Conversion of busy intervals and manual selections into calendar documents."""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from typing import Protocol

from .exceptions import SchemaError
from .grid_config import DEFAULT_GRID, GridConfig
from .models import CalendarDocument
from .schema import build_document, make_cell

logger = logging.getLogger(__name__)


class Interval(Protocol):
    start: datetime
    end: datetime


def require_owner(owner: str) -> str:
    """Return the stripped display name, rejecting blanks."""
    if not isinstance(owner, str) or not owner.strip():
        raise SchemaError(f"Calendar owner must be a non-empty name, got {owner!r}")
    return owner.strip()


def overlapped_slots(start: datetime, end: datetime, grid: GridConfig = DEFAULT_GRID) -> Iterator[str]:
    """Yield the ids of every slot ``[start, end)`` overlaps, in time order.

    Slots outside the displayed hours are skipped. Zero-width and inverted
    intervals yield nothing.
    """
    local_start = start.astimezone(grid.tzinfo)
    local_end = end.astimezone(grid.tzinfo)
    if local_end <= local_start:
        return

    slot = grid.slot_length
    day = local_start.date()
    # Slot ids repeat weekly: a partial first day plus seven more covers every id
    for _ in range(8):
        if day > local_end.date():
            break
        opens, closes = grid.day_bounds(day)
        lower = max(local_start, opens)
        upper = min(local_end, closes)
        if lower < upper:
            first_row = (lower - opens) // slot
            last_row = -((opens - upper) // slot)
            for row in range(first_row, last_row):
                yield grid.slot_id(grid.day_index(day), row)
        day += timedelta(days=1)


def to_grid(
    intervals: Iterable[Interval], owner: str, grid: GridConfig = DEFAULT_GRID
) -> CalendarDocument:
    """Map busy intervals onto the grid as single-occupant cells for ``owner``.

    A slot covered by several intervals appears once.
    """
    owner = require_owner(owner)

    slot_ids: dict[str, None] = {}
    for interval in intervals:
        for slot_id in overlapped_slots(interval.start, interval.end, grid):
            slot_ids.setdefault(slot_id)

    document = build_document([make_cell(slot_id, owner) for slot_id in slot_ids])
    logger.debug("Converted intervals for %s into %d cells", owner, len(document.cells))
    return document


def from_selection(
    slot_ids: Iterable[str], owner: str, grid: GridConfig = DEFAULT_GRID
) -> CalendarDocument:
    """Wrap manually selected slot ids into single-occupant cells for ``owner``.

    Raises:
        SchemaError: If an id is not part of the grid's slot space
    """
    owner = require_owner(owner)

    ordered = dict.fromkeys(slot_ids)
    for slot_id in ordered:
        grid.parse_slot_id(slot_id)

    return build_document([make_cell(slot_id, owner) for slot_id in ordered])
