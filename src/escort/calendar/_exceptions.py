class CalendarError(Exception):
    """Base exception for all calendar-related errors."""


class UnsupportedComponentError(CalendarError):
    """The calendar cannot answer for this unit (or pair of units)."""
