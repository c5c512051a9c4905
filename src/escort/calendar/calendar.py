from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional, Union

from dateutil import tz
from dateutil.relativedelta import relativedelta

from ._exceptions import CalendarError, UnsupportedComponentError
from .components import CalendarIdentifier, Component, DateComponents

_UTC = timezone.utc
_DAYS_PER_WEEK = 7
_MICROSECOND = timedelta(microseconds=1)

# Units measured on the absolute timeline, in microseconds.
_ABSOLUTE_UNITS: dict[Component, int] = {
    Component.HOUR: 3_600_000_000,
    Component.MINUTE: 60_000_000,
    Component.SECOND: 1_000_000,
}

# Units measured on the wall clock, in microseconds.
_WALL_UNITS: dict[Component, int] = {
    Component.DAY: 86_400_000_000,
    Component.WEEK_OF_YEAR: 7 * 86_400_000_000,
    Component.WEEK_OF_MONTH: 7 * 86_400_000_000,
}


def _weekday(d: date) -> int:
    """Weekday numbered 1 (Sunday) through 7 (Saturday)."""
    return d.isoweekday() % _DAYS_PER_WEEK + 1


def _truncate(value: int, size: int) -> int:
    q = abs(value) // size
    return q if value >= 0 else -q


def _absolute(dt: datetime) -> datetime:
    return dt.astimezone(_UTC)


class Calendar:
    """
    Zone-bound calendar: a calendar system, its week rules and a time zone.
    Component extraction and arithmetic are answered on top of ``datetime``
    and ``dateutil``. Instances are immutable; use :meth:`with_time_zone` to
    rebind to another zone.

    Weekdays are numbered 1 (Sunday) through 7 (Saturday) whatever the first
    weekday of the calendar is.
    """

    # identifier -> (first weekday, minimum days in first week)
    _WEEK_RULES: dict[CalendarIdentifier, tuple[int, int]] = {
        CalendarIdentifier.GREGORIAN: (1, 1),
        CalendarIdentifier.ISO8601: (2, 4),
        CalendarIdentifier.BUDDHIST: (1, 1),
    }

    _YEAR_OFFSETS: dict[CalendarIdentifier, int] = {
        CalendarIdentifier.BUDDHIST: 543,
    }

    def __init__(
        self,
        identifier: Union[CalendarIdentifier, str],
        time_zone: Optional[tzinfo] = None,
        first_weekday: Optional[int] = None,
        minimum_days_in_first_week: Optional[int] = None,
    ) -> None:
        identifier = CalendarIdentifier(identifier)
        default_first, default_min = self._WEEK_RULES[identifier]
        if first_weekday is None:
            first_weekday = default_first
        if minimum_days_in_first_week is None:
            minimum_days_in_first_week = default_min

        if not 1 <= first_weekday <= _DAYS_PER_WEEK:
            raise CalendarError(f"First weekday must be in 1..7; got {first_weekday}.")
        if not 1 <= minimum_days_in_first_week <= _DAYS_PER_WEEK:
            raise CalendarError(
                "Minimum days in first week must be in 1..7; "
                f"got {minimum_days_in_first_week}."
            )

        self._identifier: CalendarIdentifier = identifier
        self._time_zone: tzinfo = time_zone if time_zone is not None else _UTC
        self._first_weekday: int = first_weekday
        self._minimum_days: int = minimum_days_in_first_week
        self._year_offset: int = self._YEAR_OFFSETS.get(identifier, 0)

    # ── construction ─────────────────────────────────────────────────────

    @classmethod
    def for_identifier(
        cls,
        identifier: Union[CalendarIdentifier, str],
        time_zone: Optional[tzinfo] = None,
    ) -> "Calendar":
        return cls(identifier, time_zone)

    @classmethod
    def platform_default(
        cls,
        time_zone: Optional[tzinfo] = None,
        identifier: CalendarIdentifier = CalendarIdentifier.GREGORIAN,
    ) -> "Calendar":
        """
        The calendar used when the host has not configured one. The week
        rules come from ``identifier`` alone (Sunday-first for Gregorian);
        they do not follow the host locale or ``calendar.firstweekday()``.
        """
        return cls(identifier, time_zone)

    def with_time_zone(self, time_zone: tzinfo) -> "Calendar":
        return Calendar(
            self._identifier,
            time_zone,
            self._first_weekday,
            self._minimum_days,
        )

    # ── instants ─────────────────────────────────────────────────────────

    def localize(self, dt: datetime) -> datetime:
        """
        Express ``dt`` as wall time in this calendar's zone. Naive datetimes
        are taken to already be wall time here; times falling in a DST gap
        are shifted forward.
        """
        if not isinstance(dt, datetime):
            raise TypeError(f"Expected datetime, got {type(dt).__name__}.")
        if dt.tzinfo is None:
            return tz.resolve_imaginary(dt.replace(tzinfo=self._time_zone))
        return dt.astimezone(self._time_zone)

    def _midnight(self, d: date) -> datetime:
        return tz.resolve_imaginary(datetime.combine(d, time(), tzinfo=self._time_zone))

    # ── weeks ────────────────────────────────────────────────────────────

    def _week_start(self, d: date) -> date:
        return d - timedelta(days=(_weekday(d) - self._first_weekday) % _DAYS_PER_WEEK)

    def _first_week_start(self, period_start: date) -> date:
        """Start of week 1 of the month or year beginning on ``period_start``."""
        start = self._week_start(period_start)
        if _DAYS_PER_WEEK - (period_start - start).days < self._minimum_days:
            start += timedelta(days=_DAYS_PER_WEEK)
        return start

    def _week_of_year(self, d: date) -> tuple[int, int]:
        year = d.year
        try:
            start = self._first_week_start(date(year, 1, 1))
            if d < start:
                year -= 1
                start = self._first_week_start(date(year, 1, 1))
            # week 1 of the next year starts on December 26th at the earliest
            elif d >= date(year, 12, 26):
                following = self._first_week_start(date(year + 1, 1, 1))
                if d >= following:
                    year += 1
                    start = following
        except (OverflowError, ValueError) as exc:
            raise CalendarError(f"Week of year is out of bounds for {d.isoformat()}.") from exc
        return year, (d - start).days // _DAYS_PER_WEEK + 1

    def _week_of_month(self, d: date) -> int:
        try:
            start = self._first_week_start(d.replace(day=1))
        except OverflowError as exc:
            raise CalendarError(f"Week of month is out of bounds for {d.isoformat()}.") from exc
        return (d - start).days // _DAYS_PER_WEEK + 1

    def _weeks_in_year(self, year: int) -> int:
        try:
            start = self._first_week_start(date(year, 1, 1))
            end = self._first_week_start(date(year + 1, 1, 1))
        except (OverflowError, ValueError) as exc:
            raise CalendarError(f"Weeks of year {year} are out of bounds.") from exc
        return (end - start).days // _DAYS_PER_WEEK

    # ── component extraction ─────────────────────────────────────────────

    def _extract(self, unit: Component, local: datetime) -> int:
        day = local.date()
        if unit is Component.ERA:
            return 0 if self._identifier is CalendarIdentifier.BUDDHIST else 1
        if unit is Component.YEAR:
            return local.year + self._year_offset
        if unit is Component.MONTH:
            return local.month
        if unit is Component.DAY:
            return local.day
        if unit is Component.HOUR:
            return local.hour
        if unit is Component.MINUTE:
            return local.minute
        if unit is Component.SECOND:
            return local.second
        if unit is Component.NANOSECOND:
            return local.microsecond * 1000
        if unit is Component.WEEKDAY:
            return _weekday(day)
        if unit is Component.WEEKDAY_ORDINAL:
            return (local.day - 1) // _DAYS_PER_WEEK + 1
        if unit is Component.QUARTER:
            return (local.month - 1) // 3 + 1
        if unit is Component.WEEK_OF_MONTH:
            return self._week_of_month(day)
        if unit is Component.WEEK_OF_YEAR:
            return self._week_of_year(day)[1]
        if unit is Component.YEAR_FOR_WEEK_OF_YEAR:
            return self._week_of_year(day)[0] + self._year_offset
        raise UnsupportedComponentError(f"Unknown component {unit!r}.")

    def component(self, unit: Component, dt: datetime) -> int:
        return self._extract(unit, self.localize(dt))

    def date_components(self, units: Iterable[Component], dt: datetime) -> DateComponents:
        local = self.localize(dt)
        return DateComponents(**{u.value: self._extract(u, local) for u in units})

    # ── arithmetic ───────────────────────────────────────────────────────

    def date_by_adding(self, components: DateComponents, dt: datetime) -> datetime:
        """
        Add ``components`` to ``dt``. Calendar fields move the wall clock
        (month ends are clamped); time fields move the absolute timeline.
        """
        if components.era:
            raise CalendarError("Adding eras is not supported.")

        def n(value: Optional[int]) -> int:
            return value or 0

        calendar_delta = relativedelta(
            years=n(components.year) + n(components.year_for_week_of_year),
            months=n(components.month) + 3 * n(components.quarter),
            weeks=(
                n(components.week_of_year)
                + n(components.week_of_month)
                + n(components.weekday_ordinal)
            ),
            days=n(components.day) + n(components.weekday),
        )
        time_delta = timedelta(
            hours=n(components.hour),
            minutes=n(components.minute),
            seconds=n(components.second),
            microseconds=n(components.nanosecond) / 1000,
        )

        local = self.localize(dt)
        try:
            shifted = local
            if calendar_delta:
                # relativedelta drops fold; keep the source occurrence of a repeated hour
                shifted = tz.resolve_imaginary(tz.enfold(local + calendar_delta, fold=local.fold))
            if time_delta:
                shifted = (_absolute(shifted) + time_delta).astimezone(self._time_zone)
        except (OverflowError, ValueError) as exc:
            raise CalendarError(f"Cannot add {components} to {dt.isoformat()}: {exc}") from exc
        return shifted

    def components_between(self, unit: Component, start: datetime, end: datetime) -> int:
        """Whole ``unit``s from ``start`` to ``end``, truncated toward zero."""
        a, b = self.localize(start), self.localize(end)

        if unit is Component.NANOSECOND:
            return ((_absolute(b) - _absolute(a)) // _MICROSECOND) * 1000
        if unit in _ABSOLUTE_UNITS:
            micro = (_absolute(b) - _absolute(a)) // _MICROSECOND
            return _truncate(micro, _ABSOLUTE_UNITS[unit])

        wall_a, wall_b = a.replace(tzinfo=None), b.replace(tzinfo=None)
        if unit in _WALL_UNITS:
            return _truncate((wall_b - wall_a) // _MICROSECOND, _WALL_UNITS[unit])

        delta = relativedelta(wall_b, wall_a)
        if unit is Component.YEAR:
            return delta.years
        if unit is Component.MONTH:
            return delta.years * 12 + delta.months
        if unit is Component.QUARTER:
            return _truncate(delta.years * 12 + delta.months, 3)
        raise UnsupportedComponentError(f"Cannot count {unit.value} between two dates.")

    # ── ranges ───────────────────────────────────────────────────────────

    def range_of(self, unit: Component, dt: datetime) -> tuple[datetime, float]:
        """
        Start of the ``unit`` containing ``dt`` and the unit's length in
        seconds. Lengths are measured on the absolute timeline, so a day
        spanning a DST change is 23 or 25 hours long.
        """
        local = self.localize(dt)
        day = local.date()

        if unit is Component.HOUR:
            return local.replace(minute=0, second=0, microsecond=0), 3600.0
        if unit is Component.MINUTE:
            return local.replace(second=0, microsecond=0), 60.0
        if unit is Component.SECOND:
            return local.replace(microsecond=0), 1.0

        if unit is Component.YEAR:
            first = date(day.year, 1, 1)
            step = relativedelta(years=1)
        elif unit is Component.QUARTER:
            first = date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
            step = relativedelta(months=3)
        elif unit is Component.MONTH:
            first = day.replace(day=1)
            step = relativedelta(months=1)
        elif unit in (Component.WEEK_OF_YEAR, Component.WEEK_OF_MONTH):
            try:
                first = self._week_start(day)
            except OverflowError as exc:
                raise CalendarError(f"Range of {unit.value} is out of bounds for {dt.isoformat()}.") from exc
            step = relativedelta(days=_DAYS_PER_WEEK)
        elif unit is Component.DAY:
            first = day
            step = relativedelta(days=1)
        else:
            raise UnsupportedComponentError(f"No range is defined for {unit.value}.")

        try:
            start = self._midnight(first)
            end = self._midnight(first + step)
        except (OverflowError, ValueError) as exc:
            raise CalendarError(f"Range of {unit.value} is out of bounds for {dt.isoformat()}.") from exc
        return start, (_absolute(end) - _absolute(start)).total_seconds()

    def maximum_range(self, unit: Component) -> range:
        if unit is Component.ERA:
            return range(0, 1) if self._identifier is CalendarIdentifier.BUDDHIST else range(0, 2)
        if unit in (Component.YEAR, Component.YEAR_FOR_WEEK_OF_YEAR):
            return range(1 + self._year_offset, 10000 + self._year_offset)
        if unit is Component.MONTH:
            return range(1, 13)
        if unit is Component.DAY:
            return range(1, 32)
        if unit is Component.HOUR:
            return range(0, 24)
        if unit in (Component.MINUTE, Component.SECOND):
            return range(0, 60)
        if unit is Component.NANOSECOND:
            return range(0, 1_000_000_000)
        if unit is Component.WEEKDAY:
            return range(1, 8)
        if unit is Component.WEEKDAY_ORDINAL:
            return range(1, 6)
        if unit is Component.QUARTER:
            return range(1, 5)
        if unit is Component.WEEK_OF_MONTH:
            if self._minimum_days == 1:
                return range(1, 7)
            return range(0, 6)
        if unit is Component.WEEK_OF_YEAR:
            return range(1, 54)
        raise UnsupportedComponentError(f"Unknown component {unit!r}.")

    def range_in(self, smaller: Component, larger: Component, dt: datetime) -> range:
        """Values ``smaller`` takes within the ``larger`` unit containing ``dt``."""
        local = self.localize(dt)
        day = local.date()
        pair = (smaller, larger)

        if pair in ((Component.SECOND, Component.MINUTE), (Component.MINUTE, Component.HOUR)):
            return range(0, 60)
        if pair == (Component.HOUR, Component.DAY):
            return range(0, 24)
        if pair == (Component.DAY, Component.MONTH):
            return range(1, monthrange(day.year, day.month)[1] + 1)
        if pair == (Component.MONTH, Component.YEAR):
            return range(1, 13)
        if pair == (Component.QUARTER, Component.YEAR):
            return range(1, 5)
        if smaller is Component.WEEKDAY and larger in (
            Component.WEEK_OF_YEAR,
            Component.WEEK_OF_MONTH,
        ):
            return range(1, 8)
        if pair == (Component.WEEK_OF_MONTH, Component.MONTH):
            last = day.replace(day=monthrange(day.year, day.month)[1])
            return range(
                self._week_of_month(day.replace(day=1)),
                self._week_of_month(last) + 1,
            )
        if pair == (Component.WEEK_OF_YEAR, Component.YEAR_FOR_WEEK_OF_YEAR):
            year, _ = self._week_of_year(day)
            return range(1, self._weeks_in_year(year) + 1)
        raise UnsupportedComponentError(
            f"No range is defined for {smaller.value} in {larger.value}."
        )

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def identifier(self) -> CalendarIdentifier:
        return self._identifier

    @property
    def time_zone(self) -> tzinfo:
        return self._time_zone

    @property
    def first_weekday(self) -> int:
        return self._first_weekday

    @property
    def minimum_days_in_first_week(self) -> int:
        return self._minimum_days

    def _key(self) -> tuple:
        return (self._identifier, self._time_zone, self._first_weekday, self._minimum_days)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Calendar):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((self._identifier, self._first_weekday, self._minimum_days))

    def __repr__(self) -> str:
        return (
            f"Calendar(identifier={self._identifier.value!r}, "
            f"time_zone={self._time_zone!r}, "
            f"first_weekday={self._first_weekday}, "
            f"minimum_days_in_first_week={self._minimum_days})"
        )
