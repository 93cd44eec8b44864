"""Session registry of the calendars a user has added."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, SchemaError, ValidationError
from .models import CalendarDocument, CalendarRecord
from .schema import parse_document

logger = logging.getLogger(__name__)

RecordLike = Union[CalendarRecord, Mapping[str, Any]]


def _admit(record: RecordLike) -> tuple[CalendarRecord, CalendarDocument]:
    """Validate a record and the document it carries.

    Raises:
        ValidationError: If the record or its calendarJson is unusable
    """
    if not isinstance(record, CalendarRecord):
        try:
            record = CalendarRecord.model_validate(record)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid calendar record: {e.error_count()} field error(s)") from e

    try:
        document = parse_document(record.calendar_json)
    except (ParseError, SchemaError) as e:
        logger.warning("Rejected calendar for %s: %s", record.user, e)
        raise ValidationError(f"Calendar for {record.user!r} could not be added: {e}") from e

    return record, document


def add_calendar(calendars: list[CalendarRecord], record: RecordLike) -> CalendarRecord:
    """Append ``record`` to ``calendars`` once its document validates.

    The list is left untouched when validation fails. Adding the same user
    twice yields two independent records.

    Raises:
        ValidationError: If calendarJson is not a well-formed calendar document
    """
    admitted, _ = _admit(record)
    calendars.append(admitted)
    logger.debug("Added calendar for %s (%d total)", admitted.user, len(calendars))
    return admitted


class CalendarStore:
    """Calendars selected during one session.

    Owned by the application and passed to the flows that need it; records
    only enter through ``add_calendar``.
    """

    def __init__(self) -> None:
        self._calendars: list[CalendarRecord] = []
        self._documents: list[CalendarDocument] = []

    @classmethod
    def init(cls) -> CalendarStore:
        """Start an empty store for a new session."""
        logger.debug("Calendar store initialized")
        return cls()

    def discard(self) -> None:
        """Drop every record at the end of the session."""
        self._calendars.clear()
        self._documents.clear()
        logger.debug("Calendar store discarded")

    @property
    def selected_cal_list(self) -> tuple[CalendarRecord, ...]:
        return tuple(self._calendars)

    def add_calendar(self, record: RecordLike) -> CalendarRecord:
        admitted, document = _admit(record)
        self._calendars.append(admitted)
        self._documents.append(document)
        logger.debug("Added calendar for %s (%d total)", admitted.user, len(self._calendars))
        return admitted

    def find(self, user: str) -> CalendarRecord:
        """First record registered under ``user``.

        Raises:
            KeyError: If no calendar has that user
        """
        for record in self._calendars:
            if record.user == user:
                return record
        raise KeyError(user)

    def document_for(self, user: str) -> CalendarDocument:
        for record, document in zip(self._calendars, self._documents):
            if record.user == user:
                return document
        raise KeyError(user)

    def documents(self) -> list[CalendarDocument]:
        """Parsed documents in insertion order."""
        return list(self._documents)

    def users(self) -> list[str]:
        return [record.user for record in self._calendars]

    def __len__(self) -> int:
        return len(self._calendars)

    def __iter__(self) -> Iterator[CalendarRecord]:
        return iter(self.selected_cal_list)
