"""
Per-day slot classification.

Algorithm:
1. Generate the day's candidate starts from the availability window
2. Mark a slot busy if any appointment intersects it
3. Otherwise mark it available if it is bookable (inside the window, open
   weekday, and the requested service fits), else unavailable
4. Link busy slots to their appointment for display

Conflict enforcement never happens here; the repository owns it.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import date as Date
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pendulum import DateTime

from .calendar_grid import generate_slots, to_local, window_range
from .models import (
    Appointment,
    Availability,
    AvailabilityWindow,
    Service,
    Slot,
    SlotStatus,
    TimeRange,
)


def find_containing(instant: DateTime, appointments: Iterable[Appointment]) -> Optional[Appointment]:
    """Exact lookup: the appointment whose ``[start, end)`` contains the instant."""
    for appointment in appointments:
        if appointment.time_range.contains(instant):
            return appointment
    return None


def find_nearby(
    instant: DateTime,
    appointments: Iterable[Appointment],
    tolerance_minutes: int,
    tz_offset: int = 0,
) -> Optional[Appointment]:
    """
    Tolerant lookup for display only.

    Matches an appointment starting on the same local calendar day within
    ``tolerance_minutes`` of the instant.
    """
    local_day = to_local(instant, tz_offset).date()
    for appointment in appointments:
        if to_local(appointment.start, tz_offset).date() != local_day:
            continue
        if abs((appointment.start - instant).total_seconds()) <= tolerance_minutes * 60:
            return appointment
    return None


class AvailabilityResolver:
    """
    Classifies every grid slot of a day against the booked appointments.

    ``appointments_source`` returns the current snapshot; results are cached
    until :meth:`invalidate` is called (normally by the repository's
    invalidation signal). At most ``cache_size`` days are kept, least
    recently used first out.
    """

    def __init__(
        self,
        appointments_source: Callable[[], Sequence[Appointment]],
        window: AvailabilityWindow | None = None,
        cache_size: int = 64,
    ) -> None:
        self._appointments_source = appointments_source
        self.window = window or AvailabilityWindow()
        self.cache_size = cache_size
        self._cache: OrderedDict[Tuple, List[Slot]] = OrderedDict()
        self._cache_lock = threading.Lock()
        # Bumped on invalidation; results computed under an older value are not cached
        self._generation = 0

    def invalidate(self, *_event) -> None:
        """Drop cached results. Accepts and ignores an invalidation event."""
        with self._cache_lock:
            self._generation += 1
            self._cache.clear()

    def resolve(
        self,
        day: Date,
        window: AvailabilityWindow | None = None,
        tz_offset: int = 0,
        service: Service | None = None,
    ) -> List[Slot]:
        """
        Classify all slots of ``day``.

        Args:
            day: Local calendar day
            window: Working hours; defaults to the resolver's window
            tz_offset: Minutes to add to local time to reach UTC
            service: When given, a free slot is only available if the whole
                service duration fits from there

        Returns:
            Slots in chronological order, each with exactly one status
        """
        window = window or self.window
        key = (day.isoformat(), window, tz_offset, service)

        with self._cache_lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return list(cached)
            generation = self._generation

        slots = self._classify(day, window, tz_offset, service, tuple(self._appointments_source()))

        with self._cache_lock:
            if generation == self._generation and self.cache_size > 0:
                self._cache[key] = slots
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)
        return list(slots)

    def availability(
        self,
        day: Date,
        window: AvailabilityWindow | None = None,
        tz_offset: int = 0,
        service: Service | None = None,
    ) -> Availability:
        """Group the day's slots into available, busy and working instants."""
        result = Availability()
        for slot in self.resolve(day, window, tz_offset, service):
            result.working_slots.append(slot.start)
            if slot.status is SlotStatus.AVAILABLE:
                result.available_slots.append(slot.start)
            elif slot.status is SlotStatus.BUSY:
                result.busy_slots.append(slot.start)
        return result

    def _classify(
        self,
        day: Date,
        window: AvailabilityWindow,
        tz_offset: int,
        service: Service | None,
        appointments: Tuple[Appointment, ...],
    ) -> List[Slot]:
        opening, closing = window_range(day, window, tz_offset)
        is_open = window.is_open_on(day)
        slots: List[Slot] = []

        for start in generate_slots(day, window, tz_offset):
            end = start.add(minutes=window.granularity_minutes)
            slot_range = TimeRange(start=start, end=end)
            label = to_local(start, tz_offset).format("HH:mm")

            if any(a.time_range.overlaps(slot_range) for a in appointments):
                owner = find_containing(start, appointments) or find_nearby(
                    start,
                    appointments,
                    tolerance_minutes=window.granularity_minutes,
                    tz_offset=tz_offset,
                )
                slots.append(Slot(start, end, label, SlotStatus.BUSY, owner))
                continue

            bookable = is_open and opening <= start and end <= closing
            if bookable and service is not None:
                booking = TimeRange(start=start, end=start.add(minutes=service.duration_minutes))
                bookable = booking.end <= closing and not any(
                    a.time_range.overlaps(booking) for a in appointments
                )

            status = SlotStatus.AVAILABLE if bookable else SlotStatus.UNAVAILABLE
            slots.append(Slot(start, end, label, status))

        return slots
