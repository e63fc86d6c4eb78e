"""
Domain-specific exception hierarchy for the appointment scheduling core.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from .models import Appointment


class ClinicBookError(Exception):
    """Base class for all application-level errors."""


class ValidationError(ClinicBookError):
    """Raised when a draft has malformed or missing fields."""

    def __init__(self, fields: Dict[str, str]):
        self.fields = dict(fields)
        details = "; ".join(f"{name}: {reason}" for name, reason in self.fields.items())
        super().__init__(f"Invalid appointment data ({details})")


class ConflictError(ClinicBookError):
    """Raised when an appointment would overlap an existing booking."""

    def __init__(self, conflicting: "Appointment"):
        self.conflicting = conflicting
        super().__init__(
            f"Time {conflicting.time_range} is already booked (appointment {conflicting.id})"
        )


class NotFoundError(ClinicBookError):
    """Raised when an appointment id is unknown."""

    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment not found: {appointment_id}")


class StorageError(ClinicBookError):
    """Raised when the persistence collaborator fails to commit or load."""
