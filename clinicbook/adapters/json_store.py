"""
JSON file persistence for appointments.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Sequence

from ..domain.exceptions import StorageError
from ..domain.models import Appointment

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Stores appointments as a JSON array in the dashboard wire format.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a failed save leaves the previous file intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Appointment]:
        """
        Load all appointments. A missing file is an empty clinic.

        Raises:
            StorageError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"Invalid JSON in {self.path}: {exc}") from exc

        if not isinstance(data, list):
            raise StorageError(f"{self.path} must contain a JSON array of appointments.")

        try:
            return [Appointment.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed appointment record in {self.path}: {exc}") from exc

    def save(self, appointments: Sequence[Appointment]) -> None:
        """
        Atomically replace the file contents.

        Raises:
            StorageError: If the file cannot be written
        """
        payload = [appointment.to_dict() for appointment in appointments]
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.warning("Could not save appointments to %s: %s", self.path, exc)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Could not write {self.path}: {exc}") from exc
