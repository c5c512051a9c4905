"""
escort.calendar
~~~~~~~~~~~~~~~

Calendar resolution and the calendar engine the date helpers run on.
A CalendarResolver holds the configured calendar system and hands out a
Calendar bound to the local time zone on every read.

Basic usage::

    from escort.calendar import CalendarIdentifier, CalendarResolver, Component

    resolver = CalendarResolver()
    resolver.set_default_identifier(CalendarIdentifier.ISO8601)

    cal = resolver.current_calendar                  # ISO weeks, local zone
    cal.component(Component.WEEK_OF_YEAR, some_datetime)

The resolved calendar must not be held beyond a single operation: read
``current_calendar`` again so that a local zone change is picked up.

Public API
----------
Calendar            Zone-bound calendar engine.
CalendarIdentifier  Calendar systems (Gregorian, ISO8601, Buddhist).
CalendarResolver    Thread-safe source of the current calendar.
ResolverConfig      Construction-time settings for the resolver.
Component           Calendar units.
DateComponents      Optional per-unit values.
CalendarError       Base exception for all calendar-related errors.
"""

from __future__ import annotations

from escort.calendar._exceptions import CalendarError, UnsupportedComponentError
from escort.calendar.calendar import Calendar
from escort.calendar.components import CalendarIdentifier, Component, DateComponents
from escort.calendar.resolver import CalendarResolver, ResolverConfig

__all__ = [
    "Calendar",
    "CalendarError",
    "CalendarIdentifier",
    "CalendarResolver",
    "Component",
    "DateComponents",
    "ResolverConfig",
    "UnsupportedComponentError",
]
