"""
Shared fixtures for the scheduling tests.
"""

import itertools

import pendulum
import pytest

from clinicbook.adapters.memory_store import InMemoryStore
from clinicbook.domain.models import Appointment, Service
from clinicbook.services.appointment_repository import AppointmentRepository

FIXED_NOW = pendulum.parse("2024-01-01T08:00:00Z")

_ids = itertools.count(1)


def make_appointment(start: str, service: Service = Service.TREATMENT, name: str = "Anna Petrova",
                     phone: str = "+7 (999) 123-45-67", appointment_id: str | None = None) -> Appointment:
    """Build an appointment starting at ``start`` (ISO-8601, UTC)."""
    begin = pendulum.parse(start).in_timezone("UTC")
    return Appointment(
        id=appointment_id or f"apt-{next(_ids)}",
        name=name,
        phone_number=phone,
        service=service,
        start=begin,
        end=begin.add(minutes=service.duration_minutes),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repository(store):
    return AppointmentRepository(store, clock=lambda: FIXED_NOW)
