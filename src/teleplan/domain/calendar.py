"""Calendar helpers for whole-day telework dates.

All dates handled by the engine are plain ``datetime.date`` values with no
time-of-day component. Weeks start on Monday.
"""

from datetime import date, timedelta
from enum import Enum


class Weekday(Enum):
    """Weekday keys used by weekly patterns and weekly recurrences."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        """Get the weekday key for a date."""
        return _WEEKDAY_ORDER[d.weekday()]

    @property
    def index(self) -> int:
        """Zero-based index matching ``date.weekday()`` (Monday is 0)."""
        return _WEEKDAY_ORDER.index(self)


_WEEKDAY_ORDER = list(Weekday)


def week_start(d: date) -> date:
    """Get the Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


def week_bounds(d: date) -> tuple[date, date]:
    """Get (monday, sunday) of the week containing ``d``."""
    start = week_start(d)
    return start, start + timedelta(days=6)


def date_range(start: date, end: date) -> list[date]:
    """List every calendar day from ``start`` to ``end`` inclusive.

    An empty list is returned when ``end`` is before ``start``.
    """
    dates = []
    current = start
    while current <= end:
        dates.append(current)
        current += timedelta(days=1)
    return dates
