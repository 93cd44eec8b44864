"""Data models for calendar normalization and combination."""

from datetime import datetime
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    model_validator,
)


class Cell(BaseModel):
    """One time slot of the weekly grid and the people busy in it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: StrictStr = Field(..., description="Slot identifier, unique within a document")
    users: list[StrictStr] = Field(..., description="Display names occupying the slot")
    num_people: StrictInt = Field(..., alias="numPeople", ge=0, description="len(users)")

    @model_validator(mode="after")
    def _check_count(self) -> "Cell":
        if self.num_people != len(self.users):
            raise ValueError(
                f"numPeople={self.num_people} does not match {len(self.users)} listed users"
            )
        return self


class CalendarDocument(BaseModel):
    """Canonical ``{cells: [...]}`` representation every calendar source converges to."""

    model_config = ConfigDict(frozen=True)

    cells: list[Cell] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_cells(self) -> "CalendarDocument":
        seen: set[str] = set()
        for cell in self.cells:
            if cell.id in seen:
                raise ValueError(f"Duplicate cell id {cell.id!r}")
            if not cell.users:
                raise ValueError(f"Cell {cell.id!r} has no users")
            seen.add(cell.id)
        return self

    def cell_ids(self) -> list[str]:
        return [cell.id for cell in self.cells]


EMPTY_DOCUMENT = CalendarDocument()


class CalendarRecord(BaseModel):
    """A registered calendar source as kept by the store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: StrictStr = Field(..., description="Display name of the calendar owner")
    ical_url: StrictStr = Field(default="", alias="icalUrl", description="Empty for manual input")
    calendar_json: StrictStr = Field(
        ..., alias="calendarJson", description="Serialized CalendarDocument"
    )

    @property
    def is_manual(self) -> bool:
        return not self.ical_url


class RawEvent(BaseModel):
    """Busy event read from an iCalendar feed, before week selection."""

    start: datetime = Field(..., description="Timezone-aware start")
    end: datetime = Field(..., description="Timezone-aware end")
    summary: Optional[str] = Field(default=None, description="SUMMARY, for log messages")
    rrule: Optional[str] = Field(default=None, description="RRULE value, e.g. FREQ=WEEKLY;BYDAY=MO")
    exdates: list[datetime] = Field(default_factory=list, description="Excluded occurrences")

    @property
    def is_recurring(self) -> bool:
        return self.rrule is not None


class BusyInterval(BaseModel):
    """A busy ``{start, end}`` span inside the selected week."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

class GridView(BaseModel):
    """What the presentation layer receives for one grid display."""

    title: str
    calendar_json: str = Field(..., description="Serialized CalendarDocument")
    num_calendars: int = Field(..., ge=0, description="Number of source calendars combined")
