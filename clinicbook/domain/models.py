"""
Domain models for appointments, time ranges and slot classification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pendulum
from pendulum import DateTime


class Service(str, Enum):
    """Bookable services with their canonical durations."""

    CONSULTATION = "consultation"
    TREATMENT = "treatment"
    EXTRACTION = "extraction"
    PROSTHETICS = "prosthetics"

    @property
    def duration_minutes(self) -> int:
        return _SERVICE_DURATIONS[self]

    @property
    def label(self) -> str:
        return _SERVICE_LABELS[self]


_SERVICE_DURATIONS = {
    Service.CONSULTATION: 15,
    Service.TREATMENT: 45,
    Service.EXTRACTION: 45,
    Service.PROSTHETICS: 45,
}

_SERVICE_LABELS = {
    Service.CONSULTATION: "Consultation",
    Service.TREATMENT: "Treatment",
    Service.EXTRACTION: "Extraction",
    Service.PROSTHETICS: "Prosthetics",
}


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant falls inside the range."""
        return self.start <= instant < self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    Working hours for a single day.

    Hours are local wall-clock hours; ``end_hour`` may be 24 to close at
    midnight.
    """
    start_hour: int = 9
    end_hour: int = 18
    granularity_minutes: int = 15
    closed_weekdays: Tuple[int, ...] = ()  # 0=Monday, 6=Sunday

    def is_open_on(self, day: pendulum.Date) -> bool:
        """Check if the clinic works on the given calendar day."""
        return day.weekday() not in self.closed_weekdays


@dataclass(frozen=True)
class Appointment:
    """A booked appointment. All instants are UTC."""
    id: str
    name: str
    phone_number: str
    service: Service
    start: DateTime
    end: DateTime
    created_at: DateTime
    updated_at: DateTime

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire format used by the dashboard clients."""
        return {
            "_id": self.id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "service": self.service.value,
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "createdAt": self.created_at.to_iso8601_string(),
            "updatedAt": self.updated_at.to_iso8601_string(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Appointment":
        """
        Build an appointment from its wire format.

        Raises:
            KeyError: If a required key is missing
            ValueError: If a value cannot be parsed
        """
        return cls(
            id=str(data["_id"]),
            name=data["name"],
            phone_number=data["phoneNumber"],
            service=Service(data["service"]),
            start=_parse_utc(data["start"]),
            end=_parse_utc(data["end"]),
            created_at=_parse_utc(data["createdAt"]),
            updated_at=_parse_utc(data["updatedAt"]),
        )


@dataclass(frozen=True)
class AppointmentDraft:
    """
    Booking request or partial update.

    Fields left as ``None`` are "not supplied". ``start`` is either an
    ISO-8601 string or a datetime; naive values are local wall time shifted
    by ``tz_offset`` minutes.
    """
    name: Optional[str] = None
    phone_number: Optional[str] = None
    service: Optional[str] = None
    start: Any = None
    tz_offset: Optional[int] = None


@dataclass
class Slot:
    """A classified grid slot within one day."""
    start: DateTime
    end: DateTime
    label: str
    status: SlotStatus
    appointment: Optional[Appointment] = None

    @property
    def is_bookable(self) -> bool:
        return self.status is SlotStatus.AVAILABLE


@dataclass
class Availability:
    """Slot start instants grouped the way the availability endpoint reports them."""
    available_slots: List[DateTime] = field(default_factory=list)
    busy_slots: List[DateTime] = field(default_factory=list)
    working_slots: List[DateTime] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "availableSlots": [s.to_iso8601_string() for s in self.available_slots],
            "busySlots": [s.to_iso8601_string() for s in self.busy_slots],
            "workingSlots": [s.to_iso8601_string() for s in self.working_slots],
        }


def _parse_utc(value: str) -> DateTime:
    parsed = pendulum.parse(value)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Not a date-time value: {value!r}")
    return parsed.in_timezone("UTC")
