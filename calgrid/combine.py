"""Combination of calendar documents into one availability grid.

Ordering convention: the result keeps the first document's cell order, a
merged cell stays where the first document had it, and cells only present in
the second document are appended in that document's order. Inside a merged
cell the first document's users come first. Users are never deduplicated:
each source calendar counts on its own.
"""

import logging
from collections.abc import Iterable

from .models import EMPTY_DOCUMENT, CalendarDocument, Cell
from .schema import build_document

logger = logging.getLogger(__name__)


def combine(first: CalendarDocument, second: CalendarDocument) -> CalendarDocument:
    """Merge ``second`` into ``first`` without mutating either.

    ``EMPTY_DOCUMENT`` is the identity on both sides.
    """
    merged: dict[str, Cell] = {cell.id: cell for cell in first.cells}

    for cell in second.cells:
        existing = merged.get(cell.id)
        if existing is None:
            merged[cell.id] = cell
            continue
        users = [*existing.users, *cell.users]
        merged[cell.id] = Cell(id=cell.id, users=users, num_people=len(users))

    return build_document(list(merged.values()))


def combine_all(documents: Iterable[CalendarDocument]) -> CalendarDocument:
    """Left fold of ``combine`` over ``documents`` seeded with the empty document.

    Runs in a single pass over all cells instead of rebuilding the index per
    document.
    """
    occupants: dict[str, list[str]] = {}
    originals: dict[str, Cell] = {}
    count = 0

    for document in documents:
        count += 1
        for cell in document.cells:
            users = occupants.get(cell.id)
            if users is None:
                occupants[cell.id] = list(cell.users)
                originals[cell.id] = cell
            else:
                users.extend(cell.users)

    if not occupants:
        return EMPTY_DOCUMENT

    cells = [
        originals[cell_id]
        if len(users) == len(originals[cell_id].users)
        else Cell(id=cell_id, users=users, num_people=len(users))
        for cell_id, users in occupants.items()
    ]
    logger.debug("Combined %d documents into %d cells", count, len(cells))
    return build_document(cells)
