from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Callable, Optional

from dateutil import tz

from .calendar import Calendar
from .components import CalendarIdentifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolverConfig:
    """
    Construction-time settings for a :class:`CalendarResolver`.

    default_identifier   Calendar system to use; ``None`` means the platform default.
    platform_identifier  Calendar system standing in for the platform default.
    local_zone           Returns the local time zone; called on every access.
    """

    default_identifier: Optional[CalendarIdentifier] = None
    platform_identifier: CalendarIdentifier = CalendarIdentifier.GREGORIAN
    local_zone: Callable[[], tzinfo] = field(default=tz.tzlocal)


@dataclass(frozen=True)
class _Snapshot:
    # identifier the calendar was built for (None = platform default)
    identifier: Optional[CalendarIdentifier]
    calendar: Calendar


class CalendarResolver:
    """
    Single source of the "current calendar" for date computations.

    The configured identifier is guarded by a lock. The resolved calendar is
    cached as an immutable snapshot keyed by that identifier and swapped in
    with one assignment; concurrent readers may rebuild it redundantly, which
    is harmless since building depends only on the identifier. The local zone
    is never cached: every read of :attr:`current_calendar` binds the cached
    calendar to whatever ``local_zone()`` returns at that moment.
    """

    def __init__(self, config: Optional[ResolverConfig] = None) -> None:
        self._config: ResolverConfig = config if config is not None else ResolverConfig()
        self._lock = threading.Lock()
        self._identifier: Optional[CalendarIdentifier] = self._config.default_identifier
        self._snapshot: Optional[_Snapshot] = None

    # ── configuration ────────────────────────────────────────────────────

    def set_default_identifier(self, identifier: Optional[CalendarIdentifier]) -> None:
        if identifier is not None:
            identifier = CalendarIdentifier(identifier)
        with self._lock:
            self._identifier = identifier
        logger.debug("Default calendar identifier set to %s", identifier)

    def get_default_identifier(self) -> Optional[CalendarIdentifier]:
        with self._lock:
            return self._identifier

    @property
    def default_identifier(self) -> Optional[CalendarIdentifier]:
        return self.get_default_identifier()

    @default_identifier.setter
    def default_identifier(self, identifier: Optional[CalendarIdentifier]) -> None:
        self.set_default_identifier(identifier)

    def invalidate(self) -> None:
        """Drop the cached calendar; the next read rebuilds it."""
        self._snapshot = None

    # ── resolution ───────────────────────────────────────────────────────

    def _build(self, identifier: Optional[CalendarIdentifier]) -> _Snapshot:
        if identifier is not None:
            calendar = Calendar.for_identifier(identifier)
        else:
            calendar = Calendar.platform_default(identifier=self._config.platform_identifier)
        logger.debug("Built calendar %s for configured identifier %s", calendar.identifier.value, identifier)
        return _Snapshot(identifier, calendar)

    @property
    def current_calendar(self) -> Calendar:
        identifier = self.get_default_identifier()
        snapshot = self._snapshot
        if snapshot is None or snapshot.identifier is not identifier:
            snapshot = self._build(identifier)
            self._snapshot = snapshot
        return snapshot.calendar.with_time_zone(self._config.local_zone())

    @property
    def platform_identifier(self) -> CalendarIdentifier:
        return self._config.platform_identifier

    def __repr__(self) -> str:
        return (
            f"CalendarResolver(default_identifier={self.get_default_identifier()}, "
            f"platform_identifier={self._config.platform_identifier}, "
            f"cached={self._snapshot is not None})"
        )
