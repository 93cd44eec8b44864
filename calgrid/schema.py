"""Cell validation and the canonical JSON form of calendar documents.

Invalid cells reject the whole document: a document either parses completely
or raises, so nothing partial ever reaches the store.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, SchemaError
from .models import CalendarDocument, Cell

logger = logging.getLogger(__name__)


def _describe(error: PydanticValidationError) -> str:
    """Condense a pydantic error into one line naming the offending fields."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ())) or "cell"
        parts.append(f"{location}: {detail.get('msg', 'invalid')}")
    return "; ".join(parts)


def validate_cell(raw: Any) -> Cell:
    """Validate one raw cell mapping.

    Args:
        raw: Mapping with ``id``, ``users`` and ``numPeople`` keys (or a Cell)

    Returns:
        The validated Cell

    Raises:
        SchemaError: If a field is missing, has the wrong type, or the
            count does not match the user list
    """
    if isinstance(raw, Cell):
        return raw
    if not isinstance(raw, Mapping):
        raise SchemaError(f"Calendar cell must be an object, got {type(raw).__name__}")

    try:
        return Cell.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise SchemaError(f"Invalid calendar cell {raw.get('id')!r}: {_describe(e)}") from e


def make_cell(slot_id: str, owner: str) -> Cell:
    """Single-occupant cell for ``owner`` at ``slot_id``."""
    return validate_cell({"id": slot_id, "users": [owner], "numPeople": 1})


def build_document(cells: list[Cell]) -> CalendarDocument:
    """Assemble validated cells into a document, enforcing unique ids."""
    try:
        return CalendarDocument(cells=cells)
    except PydanticValidationError as e:
        raise SchemaError(f"Invalid calendar document: {_describe(e)}") from e


def parse_document(source: Union[str, bytes, Mapping[str, Any]]) -> CalendarDocument:
    """Parse a serialized (or already decoded) calendar document.

    Raises:
        ParseError: If the text is not JSON or lacks a ``cells`` list
        SchemaError: If any cell is malformed or ids repeat
    """
    if isinstance(source, (str, bytes, bytearray)):
        try:
            data = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"Calendar JSON is not valid JSON: {e}") from e
    else:
        data = source

    if not isinstance(data, Mapping):
        raise ParseError("Calendar JSON must be an object with a 'cells' list")

    raw_cells = data.get("cells")
    if not isinstance(raw_cells, list):
        raise ParseError("Calendar JSON is missing its 'cells' list")

    document = build_document([validate_cell(raw) for raw in raw_cells])
    logger.debug("Parsed calendar document with %d cells", len(document.cells))
    return document


def serialize_document(document: CalendarDocument) -> str:
    """Compact ``{"cells":[{"id":..,"users":[..],"numPeople":n}]}`` text."""
    return document.model_dump_json(by_alias=True)
