"""
Application service wiring the repository to its derived views.

The repository's invalidation signal is subscribed by the availability
resolver and the query engine, so every successful booking, change or
cancellation drops their caches without the caller having to ask for a
refetch.
"""

from __future__ import annotations

from datetime import date as Date
from typing import Callable, List, Optional

import pendulum
from pendulum import DateTime

from ..adapters.json_store import JsonFileStore
from ..adapters.memory_store import InMemoryStore
from ..config import AppConfig
from ..domain.availability import AvailabilityResolver
from ..domain.models import (
    Appointment,
    AppointmentDraft,
    Availability,
    AvailabilityWindow,
    Service,
    Slot,
)
from ..domain.query import AppointmentStats, QueryEngine, QueryFilters
from .appointment_repository import AppointmentRepository, AppointmentStoreProtocol


class SchedulingService:
    """Facade used by the HTTP and CLI surfaces."""

    def __init__(
        self,
        repository: AppointmentRepository,
        window: AvailabilityWindow | None = None,
    ) -> None:
        self.repository = repository
        self.window = window or AvailabilityWindow()
        self.resolver = AvailabilityResolver(repository.list, self.window)
        self.query_engine = QueryEngine(repository.list)
        self._unsubscribers: List[Callable[[], None]] = [
            repository.subscribe(self.resolver.invalidate),
            repository.subscribe(self.query_engine.invalidate),
        ]

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> "SchedulingService":
        store: AppointmentStoreProtocol
        if config.storage_path is not None:
            store = JsonFileStore(config.storage_path)
        else:
            store = InMemoryStore()

        repository = (
            AppointmentRepository(store, clock=clock) if clock else AppointmentRepository(store)
        )
        return cls(repository, window=config.window.to_window())

    def close(self) -> None:
        """Detach the derived views from the repository."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def list_appointments(
        self,
        filters: QueryFilters | None = None,
        now: DateTime | None = None,
    ) -> List[Appointment]:
        return self.query_engine.run(filters, now)

    def stats(self, now: DateTime | None = None, tz_offset: int = 0) -> AppointmentStats:
        return self.query_engine.stats(now, tz_offset)

    def slots(
        self,
        day: Date,
        tz_offset: int = 0,
        service: Service | None = None,
    ) -> List[Slot]:
        return self.resolver.resolve(day, self.window, tz_offset, service)

    def availability(
        self,
        day: Date,
        tz_offset: int = 0,
        service: Service | None = None,
    ) -> Availability:
        return self.resolver.availability(day, self.window, tz_offset, service)

    def book(self, draft: AppointmentDraft) -> Appointment:
        return self.repository.create(draft)

    def reschedule(self, appointment_id: str, draft: AppointmentDraft) -> Appointment:
        return self.repository.update(appointment_id, draft)

    def cancel(self, appointment_id: str) -> None:
        self.repository.delete(appointment_id)


def parse_day(value: str) -> Date:
    """
    Parse a ``YYYY-MM-DD`` calendar day.

    Raises:
        ValueError: If the value is not a valid date
    """
    return pendulum.from_format(value, "YYYY-MM-DD").date()
