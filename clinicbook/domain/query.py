"""
Filtering and ordering of appointments for list views.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .calendar_grid import to_local
from .models import Appointment, Service

_NON_DIGITS = re.compile(r"\D")


class StatusBucket(str, Enum):
    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    PAST = "past"


class DateRange(str, Enum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"


_RANGE_DAYS = {
    DateRange.WEEK: 7,
    DateRange.MONTH: 30,
}


@dataclass(frozen=True)
class QueryFilters:
    """
    Filter values for the appointment list. Unset filters do not restrict.

    ``tz_offset`` decides which calendar day counts as "today".
    """
    search: str = ""
    status: StatusBucket = StatusBucket.ALL
    service: Optional[Service] = None
    date_range: DateRange = DateRange.ALL
    tz_offset: int = 0


@dataclass(frozen=True)
class AppointmentStats:
    total: int
    upcoming: int
    today: int
    past: int


def matches_search(appointment: Appointment, term: str) -> bool:
    """Case-insensitive name match, or a raw / digits-only phone match."""
    term = term.strip()
    if not term:
        return True
    if term.lower() in appointment.name.lower():
        return True
    if term in appointment.phone_number:
        return True
    digits = _NON_DIGITS.sub("", term)
    return bool(digits) and digits in _NON_DIGITS.sub("", appointment.phone_number)


def _in_status(appointment: Appointment, status: StatusBucket, now: DateTime, tz_offset: int) -> bool:
    if status is StatusBucket.TODAY:
        return to_local(appointment.start, tz_offset).date() == to_local(now, tz_offset).date()
    if status is StatusBucket.UPCOMING:
        return appointment.start > now
    if status is StatusBucket.PAST:
        return appointment.start < now
    return True


def query(
    appointments: Sequence[Appointment],
    filters: QueryFilters | None = None,
    now: DateTime | None = None,
) -> List[Appointment]:
    """
    Apply ``filters`` and sort by start, most recent first.

    ``now`` is sampled once so every appointment is bucketed against the
    same instant.
    """
    filters = filters or QueryFilters()
    now = now or pendulum.now("UTC")

    range_start = None
    if filters.date_range in _RANGE_DAYS:
        range_start = now.subtract(days=_RANGE_DAYS[filters.date_range])

    result = [
        appointment for appointment in appointments
        if matches_search(appointment, filters.search)
        and _in_status(appointment, filters.status, now, filters.tz_offset)
        and (filters.service is None or appointment.service is filters.service)
        and (range_start is None or appointment.start >= range_start)
    ]

    return sorted(result, key=lambda a: (a.start, a.id), reverse=True)


def summarize(
    appointments: Sequence[Appointment],
    now: DateTime | None = None,
    tz_offset: int = 0,
) -> AppointmentStats:
    """Count appointments per status bucket for the dashboard header."""
    now = now or pendulum.now("UTC")
    return AppointmentStats(
        total=len(appointments),
        upcoming=sum(1 for a in appointments if _in_status(a, StatusBucket.UPCOMING, now, tz_offset)),
        today=sum(1 for a in appointments if _in_status(a, StatusBucket.TODAY, now, tz_offset)),
        past=sum(1 for a in appointments if _in_status(a, StatusBucket.PAST, now, tz_offset)),
    )


class QueryEngine:
    """
    Runs queries against a cached repository snapshot.

    The cache is dropped by :meth:`invalidate`, which is meant to be
    subscribed to the repository's invalidation signal.
    """

    def __init__(self, appointments_source: Callable[[], Sequence[Appointment]]) -> None:
        self._appointments_source = appointments_source
        self._snapshot: Optional[Tuple[Appointment, ...]] = None
        self._lock = threading.Lock()

    def invalidate(self, *_event) -> None:
        with self._lock:
            self._snapshot = None

    def snapshot(self) -> Tuple[Appointment, ...]:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = tuple(self._appointments_source())
            return self._snapshot

    def run(self, filters: QueryFilters | None = None, now: DateTime | None = None) -> List[Appointment]:
        return query(self.snapshot(), filters, now)

    def stats(self, now: DateTime | None = None, tz_offset: int = 0) -> AppointmentStats:
        return summarize(self.snapshot(), now, tz_offset)
