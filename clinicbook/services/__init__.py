"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .appointment_repository import (
    AppointmentRepository,
    AppointmentStoreProtocol,
    Invalidation,
)
from .scheduling import SchedulingService, parse_day

__all__ = [
    "AppointmentRepository",
    "AppointmentStoreProtocol",
    "Invalidation",
    "SchedulingService",
    "parse_day",
]
