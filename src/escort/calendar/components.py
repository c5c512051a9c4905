from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from typing import Iterator, Optional


class CalendarIdentifier(enum.Enum):
    """Calendar systems the engine knows how to build."""

    GREGORIAN = "gregorian"
    ISO8601 = "iso8601"
    BUDDHIST = "buddhist"


class Component(enum.Enum):
    """
    Calendar units. The value of each member is the matching field name on
    :class:`DateComponents`.
    """

    ERA = "era"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    NANOSECOND = "nanosecond"
    WEEKDAY = "weekday"
    WEEKDAY_ORDINAL = "weekday_ordinal"
    QUARTER = "quarter"
    WEEK_OF_MONTH = "week_of_month"
    WEEK_OF_YEAR = "week_of_year"
    YEAR_FOR_WEEK_OF_YEAR = "year_for_week_of_year"


@dataclass(frozen=True)
class DateComponents:
    """
    A bag of optional calendar fields. Used both as the result of component
    extraction and as the amount to add in calendar arithmetic.
    """

    era: Optional[int] = None
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[int] = None
    nanosecond: Optional[int] = None
    weekday: Optional[int] = None
    weekday_ordinal: Optional[int] = None
    quarter: Optional[int] = None
    week_of_month: Optional[int] = None
    week_of_year: Optional[int] = None
    year_for_week_of_year: Optional[int] = None

    def get(self, unit: Component) -> Optional[int]:
        return getattr(self, unit.value)

    def items(self) -> Iterator[tuple[Component, int]]:
        """Yield ``(unit, value)`` for every field that is set."""
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                yield Component(f.name), value
