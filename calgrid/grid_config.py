"""Weekly slot-identifier space shared by manual selection and the ICS converter.

A slot id is ``<column><row>``: the column letter is the day of the week
(``A`` is the first day of the configured week, ``G`` the last) and the row is
the 1-based index of the time slot counted from ``day_start_hour``. With the
defaults ``A1`` is Sunday 08:00-08:30 and ``C5`` is Tuesday 10:00-10:30.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import SchemaError

logger = logging.getLogger(__name__)

DAY_COLUMNS = "ABCDEFG"

# datetime.weekday() value of the first grid column
_FIRST_WEEKDAY = {"monday": 0, "sunday": 6}


class GridConfig(BaseModel):
    """Resolution and placement of the weekly availability grid."""

    model_config = ConfigDict(frozen=True)

    day_start_hour: int = Field(default=8, ge=0, le=23, description="First hour shown each day")
    day_end_hour: int = Field(default=22, ge=1, le=24, description="Hour at which each day closes")
    slot_minutes: int = Field(default=30, gt=0, description="Length of one grid slot in minutes")
    week_start: Literal["sunday", "monday"] = Field(
        default="sunday", description="Day of the week shown in column A"
    )
    timezone: str = Field(default="UTC", description="IANA timezone the grid is drawn in")

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value

    @model_validator(mode="after")
    def _check_span(self) -> GridConfig:
        if self.day_end_hour <= self.day_start_hour:
            raise ValueError("day_end_hour must be later than day_start_hour")
        if 60 % self.slot_minutes and self.slot_minutes % 60:
            raise ValueError(
                f"slot_minutes={self.slot_minutes} must divide an hour or be whole hours"
            )
        if self.span_minutes % self.slot_minutes:
            raise ValueError(
                f"slot_minutes={self.slot_minutes} does not divide the daily span of "
                f"{self.span_minutes} minutes"
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def span_minutes(self) -> int:
        return (self.day_end_hour - self.day_start_hour) * 60

    @property
    def rows_per_day(self) -> int:
        return self.span_minutes // self.slot_minutes

    @property
    def slot_length(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    def day_index(self, day: date) -> int:
        """Column index (0..6) of a calendar date."""
        return (day.weekday() - _FIRST_WEEKDAY[self.week_start]) % 7

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        """Local opening and closing time of the grid on ``day``."""
        midnight = datetime.combine(day, time.min, tzinfo=self.tzinfo)
        return (
            midnight + timedelta(hours=self.day_start_hour),
            midnight + timedelta(hours=self.day_end_hour),
        )

    def week_start_for(self, moment: datetime) -> datetime:
        """Local midnight of the first day of the week containing ``moment``."""
        local = moment.astimezone(self.tzinfo)
        first_day = local.date() - timedelta(days=self.day_index(local.date()))
        return datetime.combine(first_day, time.min, tzinfo=self.tzinfo)

    def slot_id(self, day_index: int, row_index: int) -> str:
        if not 0 <= day_index < len(DAY_COLUMNS):
            raise SchemaError(f"Day index {day_index} is outside the week")
        if not 0 <= row_index < self.rows_per_day:
            raise SchemaError(f"Row index {row_index} is outside the grid")
        return f"{DAY_COLUMNS[day_index]}{row_index + 1}"

    def parse_slot_id(self, slot_id: str) -> tuple[int, int]:
        """Split a slot id into (day_index, row_index).

        Raises:
            SchemaError: If the id is not part of this grid's slot space
        """
        if not isinstance(slot_id, str) or len(slot_id) < 2:
            raise SchemaError(f"Invalid slot id: {slot_id!r}")

        column, row_text = slot_id[0], slot_id[1:]
        if column not in DAY_COLUMNS or not row_text.isdigit():
            raise SchemaError(f"Invalid slot id: {slot_id!r}")

        row_index = int(row_text) - 1
        # Reject non-canonical spellings such as "A01"
        if str(row_index + 1) != row_text or not 0 <= row_index < self.rows_per_day:
            raise SchemaError(f"Slot id {slot_id!r} is outside the grid")

        return DAY_COLUMNS.index(column), row_index

    def contains(self, slot_id: str) -> bool:
        try:
            self.parse_slot_id(slot_id)
        except SchemaError:
            return False
        return True

    def slot_ids(self) -> list[str]:
        """Every slot id of the grid, day by day."""
        return [
            self.slot_id(day_index, row_index)
            for day_index in range(len(DAY_COLUMNS))
            for row_index in range(self.rows_per_day)
        ]

    def slot_for(self, moment: datetime) -> Optional[str]:
        """Slot id containing ``moment``, or None outside the displayed hours."""
        local = moment.astimezone(self.tzinfo)
        opens, closes = self.day_bounds(local.date())
        if not opens <= local < closes:
            return None
        return self.slot_id(self.day_index(local.date()), (local - opens) // self.slot_length)


DEFAULT_GRID = GridConfig()
