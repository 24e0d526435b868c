"""Recurrence schedules for team telework rules.

A recurrence is one of three closed variants. Each variant knows how to
match a calendar day, and ``recurrence_from_dict`` is the only place that
turns a stored descriptor back into a variant.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Union

from teleplan.domain.calendar import Weekday


class RecurrenceType(Enum):
    """Tags for the recurrence variants."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    SPECIFIC_DATES = "specific_dates"


@dataclass(frozen=True)
class WeeklyRecurrence:
    """Applies every week on one weekday.

    Attributes:
        day_of_week: Weekday the rule applies on.
    """

    day_of_week: Weekday

    @property
    def recurrence_type(self) -> RecurrenceType:
        return RecurrenceType.WEEKLY

    def matches(self, d: date) -> bool:
        return Weekday.from_date(d) == self.day_of_week

    def to_dict(self) -> dict:
        return {"type": self.recurrence_type.value, "day_of_week": self.day_of_week.value}


@dataclass(frozen=True)
class MonthlyRecurrence:
    """Applies every month on one day of the month.

    Months shorter than ``day_of_month`` have no matching day.

    Attributes:
        day_of_month: Day of the month (1-31).
    """

    day_of_month: int

    def __post_init__(self):
        if not 1 <= self.day_of_month <= 31:
            raise ValueError(f"day_of_month must be between 1 and 31, got {self.day_of_month}")

    @property
    def recurrence_type(self) -> RecurrenceType:
        return RecurrenceType.MONTHLY

    def matches(self, d: date) -> bool:
        return d.day == self.day_of_month

    def to_dict(self) -> dict:
        return {"type": self.recurrence_type.value, "day_of_month": self.day_of_month}


@dataclass(frozen=True)
class SpecificDatesRecurrence:
    """Applies on an explicit set of dates.

    Attributes:
        dates: Calendar days the rule applies on.
    """

    dates: frozenset[date] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of dates from callers
        if not isinstance(self.dates, frozenset):
            object.__setattr__(self, "dates", frozenset(self.dates))

    @property
    def recurrence_type(self) -> RecurrenceType:
        return RecurrenceType.SPECIFIC_DATES

    def matches(self, d: date) -> bool:
        return d in self.dates

    def to_dict(self) -> dict:
        return {
            "type": self.recurrence_type.value,
            "dates": [d.isoformat() for d in sorted(self.dates)],
        }


Recurrence = Union[WeeklyRecurrence, MonthlyRecurrence, SpecificDatesRecurrence]


def recurrence_from_dict(data: dict) -> Recurrence:
    """Build a recurrence variant from its stored descriptor.

    Args:
        data: Dict with a ``type`` tag and the variant's fields.

    Raises:
        ValueError: If the tag is unknown or a field is missing.
    """
    try:
        recurrence_type = RecurrenceType(data["type"])
    except (KeyError, ValueError):
        raise ValueError(f"Unknown recurrence descriptor: {data!r}")

    try:
        if recurrence_type == RecurrenceType.WEEKLY:
            return WeeklyRecurrence(day_of_week=Weekday(data["day_of_week"]))
        if recurrence_type == RecurrenceType.MONTHLY:
            return MonthlyRecurrence(day_of_month=int(data["day_of_month"]))
        return SpecificDatesRecurrence(
            dates=frozenset(date.fromisoformat(d) for d in data["dates"])
        )
    except KeyError as exc:
        raise ValueError(f"Recurrence {recurrence_type.value} is missing field {exc}")
