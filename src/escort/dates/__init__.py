"""
escort.dates
~~~~~~~~~~~~

Date helpers built on a CalendarResolver: relative dates, unit starts,
today/tomorrow/same-week predicates, intervals, arithmetic and component
getters.

Basic usage::

    from escort.calendar import CalendarIdentifier, CalendarResolver
    from escort.dates import Dates

    resolver = CalendarResolver()
    dates = Dates(resolver)

    dates.is_today(some_datetime)
    dates.add(some_datetime, month=1, day=-1)
    dates.start_of_week(some_datetime)

    resolver.set_default_identifier(CalendarIdentifier.ISO8601)
    dates.week_of_year(some_datetime)                # ISO week number

NumPy arrays are accepted by the component getters and interval helpers::

    import numpy as np
    dates.days_after(np.array([d1, d2]), reference)

Public API
----------
Dates   The helper class.
"""

from __future__ import annotations

from escort.dates.helpers import Dates

__all__ = ["Dates"]
