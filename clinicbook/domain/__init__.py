"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityResolver
from .calendar_grid import generate_slots
from .exceptions import (
    ClinicBookError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .models import (
    Appointment,
    AppointmentDraft,
    Availability,
    AvailabilityWindow,
    Service,
    Slot,
    SlotStatus,
    TimeRange,
)
from .query import DateRange, QueryEngine, QueryFilters, StatusBucket, query

__all__ = [
    "Appointment",
    "AppointmentDraft",
    "Availability",
    "AvailabilityResolver",
    "AvailabilityWindow",
    "ClinicBookError",
    "ConflictError",
    "DateRange",
    "NotFoundError",
    "QueryEngine",
    "QueryFilters",
    "Service",
    "Slot",
    "SlotStatus",
    "StatusBucket",
    "StorageError",
    "TimeRange",
    "ValidationError",
    "generate_slots",
    "query",
]
