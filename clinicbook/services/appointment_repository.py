"""
Owner of the canonical appointment set.

All mutations are serialised through a single lock so that the overlap check
and the commit happen atomically. Reads return the current immutable
snapshot without locking; a snapshot is swapped in only after the store has
accepted the new state.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ConflictError, NotFoundError, StorageError
from ..domain.models import Appointment, AppointmentDraft, TimeRange
from ..domain.validation import validate_draft

logger = logging.getLogger(__name__)


class AppointmentStoreProtocol(Protocol):
    """Persistence collaborator used by the repository."""

    def load(self) -> List[Appointment]:
        """Return every persisted appointment."""

    def save(self, appointments: Sequence[Appointment]) -> None:
        """Durably replace the persisted set. Raise StorageError on failure."""


@dataclass(frozen=True)
class Invalidation:
    """Emitted after every successful commit."""
    action: str  # created | updated | deleted
    appointment_id: str


Listener = Callable[[Invalidation], None]


def find_conflict(
    candidate: TimeRange,
    appointments: Iterable[Appointment],
    exclude_id: Optional[str] = None,
) -> Optional[Appointment]:
    """Return the first appointment whose exact interval overlaps ``candidate``."""
    for appointment in appointments:
        if appointment.id == exclude_id:
            continue
        if appointment.time_range.overlaps(candidate):
            return appointment
    return None


class AppointmentRepository:
    """
    Validates, commits and publishes appointment changes.

    Dependency inversion toward a store protocol lets the same repository run
    against the in-memory store in tests and the JSON file store in the CLI.
    """

    def __init__(
        self,
        store: AppointmentStoreProtocol,
        clock: Callable[[], DateTime] = lambda: pendulum.now("UTC"),
    ) -> None:
        self._store = store
        self._clock = clock
        self._write_lock = threading.Lock()
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()

        try:
            loaded = store.load()
        except OSError as exc:
            raise StorageError(f"Could not load appointments: {exc}") from exc
        self._snapshot: Tuple[Appointment, ...] = tuple(loaded)

    def list(self) -> Tuple[Appointment, ...]:
        """Return a snapshot of all appointments (order not meaningful)."""
        return self._snapshot

    def get(self, appointment_id: str) -> Appointment:
        for appointment in self._snapshot:
            if appointment.id == appointment_id:
                return appointment
        raise NotFoundError(appointment_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for invalidation events.

        Returns:
            A callable that removes the listener again
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def create(self, draft: AppointmentDraft) -> Appointment:
        """
        Book a new appointment.

        Raises:
            ValidationError: If any field is missing or malformed
            ConflictError: If the interval overlaps an existing appointment
            StorageError: If the store rejects the commit
        """
        values = validate_draft(draft)

        with self._write_lock:
            now = self._clock()
            start = values["start"]
            service = values["service"]
            appointment = Appointment(
                id=uuid.uuid4().hex,
                name=values["name"],
                phone_number=values["phone_number"],
                service=service,
                start=start,
                end=start.add(minutes=service.duration_minutes),
                created_at=now,
                updated_at=now,
            )
            self._check_conflict(appointment)
            self._commit(self._snapshot + (appointment,))

        logger.info("Created appointment %s at %s", appointment.id, appointment.time_range)
        self._publish(Invalidation("created", appointment.id))
        return appointment

    def update(self, appointment_id: str, draft: AppointmentDraft) -> Appointment:
        """
        Apply the supplied fields of ``draft`` to an existing appointment.

        Raises:
            NotFoundError: If the id is unknown
            ValidationError: If a supplied field is malformed
            ConflictError: If the new interval overlaps another appointment
            StorageError: If the store rejects the commit
        """
        values = validate_draft(draft, partial=True)

        with self._write_lock:
            current = self.get(appointment_id)
            updated = replace(current, **values, updated_at=self._clock())
            if "start" in values or "service" in values:
                updated = replace(
                    updated,
                    end=updated.start.add(minutes=updated.service.duration_minutes),
                )
                self._check_conflict(updated)

            self._commit(tuple(
                updated if appointment.id == appointment_id else appointment
                for appointment in self._snapshot
            ))

        logger.info("Updated appointment %s (%s)", appointment_id, ", ".join(sorted(values)) or "no fields")
        self._publish(Invalidation("updated", appointment_id))
        return updated

    def delete(self, appointment_id: str) -> None:
        """
        Remove an appointment.

        Raises:
            NotFoundError: If the id is unknown
            StorageError: If the store rejects the commit
        """
        with self._write_lock:
            self.get(appointment_id)
            self._commit(tuple(a for a in self._snapshot if a.id != appointment_id))

        logger.info("Deleted appointment %s", appointment_id)
        self._publish(Invalidation("deleted", appointment_id))

    def _check_conflict(self, appointment: Appointment) -> None:
        conflict = find_conflict(appointment.time_range, self._snapshot, exclude_id=appointment.id)
        if conflict is not None:
            logger.warning(
                "Rejected %s: overlaps appointment %s",
                appointment.time_range,
                conflict.id,
            )
            raise ConflictError(conflict)

    def _commit(self, appointments: Tuple[Appointment, ...]) -> None:
        """Persist ``appointments`` and swap the snapshot only once durable."""
        try:
            self._store.save(appointments)
        except StorageError:
            logger.error("Store rejected commit; repository state unchanged")
            raise
        except OSError as exc:
            logger.error("Store rejected commit: %s", exc)
            raise StorageError(f"Could not save appointments: {exc}") from exc
        self._snapshot = appointments

    def _publish(self, event: Invalidation) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Invalidation listener %r failed for %s", listener, event)
