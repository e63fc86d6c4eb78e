"""
In-memory appointment store for tests and ephemeral runs.
"""

from typing import Iterable, List, Sequence

from ..domain.models import Appointment


class InMemoryStore:
    """Keeps the committed appointment set in a plain list."""

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._appointments: List[Appointment] = list(appointments)
        self.save_count = 0

    def load(self) -> List[Appointment]:
        return list(self._appointments)

    def save(self, appointments: Sequence[Appointment]) -> None:
        self._appointments = list(appointments)
        self.save_count += 1
