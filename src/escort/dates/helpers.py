from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

import numpy as np

from escort.calendar import (
    Calendar,
    CalendarIdentifier,
    CalendarResolver,
    Component,
    DateComponents,
)

DateLike = Union[datetime, np.datetime64, "np.ndarray"]
IntLike = Union[int, "np.ndarray"]

_SAME_YEAR = (Component.ERA, Component.YEAR)
_SAME_MONTH = (Component.ERA, Component.YEAR, Component.MONTH)
_SAME_WEEK = (Component.WEEK_OF_YEAR, Component.YEAR_FOR_WEEK_OF_YEAR)
_SAME_DAY = (Component.ERA, Component.YEAR, Component.MONTH, Component.DAY)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_datetime(value: Any) -> Any:
    # datetime64 carries no zone; it is read as UTC.
    if isinstance(value, np.datetime64):
        return value.astype("datetime64[us]").item().replace(tzinfo=timezone.utc)
    return value


def _object_array(value: Any) -> np.ndarray:
    arr = np.asarray(value)
    if np.issubdtype(arr.dtype, np.datetime64):
        naive = arr.astype("datetime64[us]").astype(object)
        return np.frompyfunc(lambda d: d.replace(tzinfo=timezone.utc), 1, 1)(naive)
    return arr


def _broadcast(func: Callable[..., int], *args: Any) -> IntLike:
    """
    Apply ``func`` elementwise. Scalars in, scalar out; otherwise the
    arguments are broadcast against each other and an int64 array returned.
    """
    if all(np.ndim(a) == 0 for a in args):
        return func(*(_to_datetime(a) for a in args))
    arrays = [_object_array(a) for a in args]
    result = np.frompyfunc(func, len(args), 1)(*arrays)
    return np.asarray(result).astype(np.int64)


class Dates:
    """
    Date helpers: relative dates, unit starts, comparisons, intervals,
    arithmetic and component getters.

    Every operation reads the resolver's ``current_calendar`` once and
    drops it when done, so configuration and local zone changes are seen
    by the next call. ``now`` is the clock; it defaults to aware UTC now.

    Component getters and interval helpers accept NumPy arrays of datetimes
    wherever a single datetime is accepted::

        dates = Dates()
        dates.weekday(np.array([d1, d2, d3]))   # -> array([..., ..., ...])
    """

    def __init__(
        self,
        resolver: Optional[CalendarResolver] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._resolver = resolver if resolver is not None else CalendarResolver()
        self._now = now if now is not None else _utc_now

    @property
    def resolver(self) -> CalendarResolver:
        return self._resolver

    @property
    def calendar(self) -> Calendar:
        return self._resolver.current_calendar

    def _gregorian(self) -> Calendar:
        return Calendar.for_identifier(CalendarIdentifier.GREGORIAN, self.calendar.time_zone)

    # ── relative dates ───────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._now()

    def tomorrow(self) -> datetime:
        return self.date_from_now(1)

    def yesterday(self) -> datetime:
        return self.date_from_now(-1)

    def date_from_now(self, days: int) -> datetime:
        return self.add(self.now(), day=days)

    # ── unit starts ──────────────────────────────────────────────────────

    def date_of(self, unit: Component, dt: datetime) -> tuple[datetime, float]:
        """Start of the ``unit`` containing ``dt`` and its length in seconds."""
        return self.calendar.range_of(unit, dt)

    def start_of_year(self, dt: datetime) -> datetime:
        return self.date_of(Component.YEAR, dt)[0]

    def start_of_month(self, dt: datetime) -> datetime:
        return self.date_of(Component.MONTH, dt)[0]

    def start_of_week(self, dt: datetime) -> datetime:
        return self.date_of(Component.WEEK_OF_YEAR, dt)[0]

    def start_of_day(self, dt: datetime) -> datetime:
        return self.date_of(Component.DAY, dt)[0]

    # ── comparisons ──────────────────────────────────────────────────────

    @staticmethod
    def _same(calendar: Calendar, units: tuple[Component, ...], a: datetime, b: datetime) -> bool:
        return calendar.date_components(units, a) == calendar.date_components(units, b)

    def is_same_year(self, dt: datetime, other: datetime) -> bool:
        return self._same(self._gregorian(), _SAME_YEAR, dt, other)

    def is_this_year(self, dt: datetime) -> bool:
        return self.is_same_year(dt, self.now())

    def is_same_month(self, dt: datetime, other: datetime) -> bool:
        return self._same(self._gregorian(), _SAME_MONTH, dt, other)

    def is_this_month(self, dt: datetime) -> bool:
        return self.is_same_month(dt, self.now())

    def is_same_week(self, dt: datetime, other: datetime) -> bool:
        return self._same(self.calendar, _SAME_WEEK, dt, other)

    def is_this_week(self, dt: datetime) -> bool:
        return self.is_same_week(dt, self.now())

    def is_next_week(self, dt: datetime) -> bool:
        return self.is_same_week(dt, self.add(self.now(), week_of_year=1))

    def is_last_week(self, dt: datetime) -> bool:
        return self.is_same_week(dt, self.add(self.now(), week_of_year=-1))

    def is_same_day(self, dt: datetime, other: datetime) -> bool:
        """True when both instants fall on the same calendar day, ignoring time."""
        return self._same(self.calendar, _SAME_DAY, dt, other)

    def is_today(self, dt: datetime) -> bool:
        return self.is_same_day(dt, self.now())

    def is_tomorrow(self, dt: datetime) -> bool:
        return self.is_same_day(dt, self.tomorrow())

    def is_yesterday(self, dt: datetime) -> bool:
        return self.is_same_day(dt, self.yesterday())

    def is_in_past(self, dt: datetime) -> bool:
        calendar = self.calendar
        return calendar.localize(dt) < calendar.localize(self.now())

    def is_in_future(self, dt: datetime) -> bool:
        calendar = self.calendar
        return calendar.localize(self.now()) < calendar.localize(dt)

    # ── date roles ───────────────────────────────────────────────────────

    def is_typically_weekend(self, dt: datetime) -> bool:
        # first and last weekday of the week range (Sunday and Saturday)
        calendar = self.calendar
        weekdays = calendar.maximum_range(Component.WEEKDAY)
        weekday = calendar.component(Component.WEEKDAY, dt)
        return weekday == weekdays.start or weekday == weekdays.stop - 1

    def is_typically_workday(self, dt: datetime) -> bool:
        return not self.is_typically_weekend(dt)

    # ── intervals ────────────────────────────────────────────────────────

    def _between(self, unit: Component, dt: DateLike, reference: DateLike) -> IntLike:
        calendar = self.calendar
        return _broadcast(
            lambda a, b: calendar.components_between(unit, b, a), dt, reference
        )

    def seconds_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole seconds ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.SECOND, dt, reference)

    def minutes_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole minutes ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.MINUTE, dt, reference)

    def hours_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole hours ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.HOUR, dt, reference)

    def days_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole days ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.DAY, dt, reference)

    def months_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole months ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.MONTH, dt, reference)

    def years_after(self, dt: DateLike, reference: DateLike) -> IntLike:
        """Whole years ``dt`` lies after ``reference`` (negative if before)."""
        return self._between(Component.YEAR, dt, reference)

    # ── arithmetic ───────────────────────────────────────────────────────

    def add(
        self,
        dt: datetime,
        *,
        era: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        second: Optional[int] = None,
        nanosecond: Optional[int] = None,
        weekday: Optional[int] = None,
        weekday_ordinal: Optional[int] = None,
        quarter: Optional[int] = None,
        week_of_month: Optional[int] = None,
        week_of_year: Optional[int] = None,
        year_for_week_of_year: Optional[int] = None,
    ) -> datetime:
        components = DateComponents(
            era=era,
            year=year,
            month=month,
            day=day,
            hour=hour,
            minute=minute,
            second=second,
            nanosecond=nanosecond,
            weekday=weekday,
            weekday_ordinal=weekday_ordinal,
            quarter=quarter,
            week_of_month=week_of_month,
            week_of_year=week_of_year,
            year_for_week_of_year=year_for_week_of_year,
        )
        return self.calendar.date_by_adding(components, dt)

    # ── decomposing ──────────────────────────────────────────────────────

    def component(self, unit: Component, dt: DateLike) -> IntLike:
        calendar = self.calendar
        return _broadcast(lambda d: calendar.component(unit, d), dt)

    def era(self, dt: DateLike) -> IntLike:
        return self.component(Component.ERA, dt)

    def year(self, dt: DateLike) -> IntLike:
        return self.component(Component.YEAR, dt)

    def month(self, dt: DateLike) -> IntLike:
        return self.component(Component.MONTH, dt)

    def day(self, dt: DateLike) -> IntLike:
        return self.component(Component.DAY, dt)

    def hour(self, dt: DateLike) -> IntLike:
        return self.component(Component.HOUR, dt)

    def minute(self, dt: DateLike) -> IntLike:
        return self.component(Component.MINUTE, dt)

    def second(self, dt: DateLike) -> IntLike:
        return self.component(Component.SECOND, dt)

    def nanosecond(self, dt: DateLike) -> IntLike:
        return self.component(Component.NANOSECOND, dt)

    def weekday(self, dt: DateLike) -> IntLike:
        """1 (Sunday) through 7 (Saturday)."""
        return self.component(Component.WEEKDAY, dt)

    def weekday_ordinal(self, dt: DateLike) -> IntLike:
        return self.component(Component.WEEKDAY_ORDINAL, dt)

    def quarter(self, dt: DateLike) -> IntLike:
        return self.component(Component.QUARTER, dt)

    def week_of_month(self, dt: DateLike) -> IntLike:
        return self.component(Component.WEEK_OF_MONTH, dt)

    def week_of_year(self, dt: DateLike) -> IntLike:
        return self.component(Component.WEEK_OF_YEAR, dt)

    def year_for_week_of_year(self, dt: DateLike) -> IntLike:
        return self.component(Component.YEAR_FOR_WEEK_OF_YEAR, dt)

    # ── extract ──────────────────────────────────────────────────────────

    def gregorian_year(self, dt: DateLike) -> IntLike:
        """Year of ``dt`` in the Gregorian calendar, whatever calendar is configured."""
        calendar = self._gregorian()
        return _broadcast(lambda d: calendar.component(Component.YEAR, d), dt)

    def nearest_hour(self, dt: DateLike) -> IntLike:
        """Hour of ``dt`` rounded to the nearest hour; the half-hour rounds up."""
        calendar = self.calendar

        def nearest(d: datetime) -> int:
            minutes = calendar.range_in(Component.MINUTE, Component.HOUR, d)
            if calendar.component(Component.MINUTE, d) < len(minutes) // 2:
                return calendar.component(Component.HOUR, d)
            later = calendar.date_by_adding(DateComponents(hour=1), d)
            return calendar.component(Component.HOUR, later)

        return _broadcast(nearest, dt)

    def __repr__(self) -> str:
        return f"Dates(resolver={self._resolver!r})"
