"""
Candidate slot generation for a single day.
"""

from datetime import date as Date
from typing import List

import pendulum
from pendulum import DateTime

from .models import AvailabilityWindow


def local_midnight_utc(day: Date, tz_offset: int = 0) -> DateTime:
    """
    Return the UTC instant of the day's local midnight.

    ``tz_offset`` follows the browser ``getTimezoneOffset()`` convention:
    minutes to add to local time to reach UTC (UTC+3 is -180).
    """
    return pendulum.datetime(day.year, day.month, day.day, tz="UTC").add(minutes=tz_offset)


def to_local(instant: DateTime, tz_offset: int = 0) -> DateTime:
    """Shift a UTC instant to the caller's wall clock (kept in a UTC container)."""
    return instant.in_timezone("UTC").subtract(minutes=tz_offset)


def generate_slots(day: Date, window: AvailabilityWindow, tz_offset: int = 0) -> List[DateTime]:
    """
    Generate the ordered slot start instants for ``day``.

    Steps from the window's opening hour in granularity increments and emits
    every start before closing time. An empty list means no slots are
    configured (closing before opening, or a non-positive granularity).
    """
    if window.end_hour <= window.start_hour or window.granularity_minutes <= 0:
        return []

    midnight = local_midnight_utc(day, tz_offset)
    current = midnight.add(hours=window.start_hour)
    closing = midnight.add(hours=window.end_hour)

    slots: List[DateTime] = []
    while current < closing:
        slots.append(current)
        current = current.add(minutes=window.granularity_minutes)

    return slots


def window_range(day: Date, window: AvailabilityWindow, tz_offset: int = 0):
    """Return ``(opening, closing)`` UTC instants for the day."""
    midnight = local_midnight_utc(day, tz_offset)
    return midnight.add(hours=window.start_hour), midnight.add(hours=window.end_hour)
