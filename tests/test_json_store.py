"""
Tests for the JSON file store.
"""

import json

import pytest

from clinicbook.adapters.json_store import JsonFileStore
from clinicbook.domain.exceptions import StorageError
from clinicbook.domain.models import AppointmentDraft
from clinicbook.services.appointment_repository import AppointmentRepository

from conftest import make_appointment


class TestJsonFileStore:

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "appointments.json").load() == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "data" / "appointments.json"
        store = JsonFileStore(path)
        appointments = [make_appointment("2024-01-01T10:00:00Z"), make_appointment("2024-01-01T11:00:00Z")]

        store.save(appointments)

        assert JsonFileStore(path).load() == appointments
        assert json.loads(path.read_text(encoding="utf-8"))[0]["phoneNumber"] == "+7 (999) 123-45-67"

    def test_save_leaves_no_temporary_files(self, tmp_path):
        store = JsonFileStore(tmp_path / "appointments.json")

        store.save([make_appointment("2024-01-01T10:00:00Z")])

        assert [p.name for p in tmp_path.iterdir()] == ["appointments.json"]

    def test_invalid_json_raises_storage_error(self, tmp_path):
        path = tmp_path / "appointments.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid JSON"):
            JsonFileStore(path).load()

    def test_non_array_raises_storage_error(self, tmp_path):
        path = tmp_path / "appointments.json"
        path.write_text('{"_id": "x"}', encoding="utf-8")

        with pytest.raises(StorageError):
            JsonFileStore(path).load()

    def test_malformed_record_raises_storage_error(self, tmp_path):
        path = tmp_path / "appointments.json"
        path.write_text('[{"_id": "x", "name": "Anna"}]', encoding="utf-8")

        with pytest.raises(StorageError, match="Malformed"):
            JsonFileStore(path).load()

    def test_unwritable_target_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileStore(blocker / "appointments.json")

        with pytest.raises(StorageError):
            store.save([])

    def test_repository_round_trip(self, tmp_path):
        path = tmp_path / "appointments.json"
        repository = AppointmentRepository(JsonFileStore(path))
        created = repository.create(AppointmentDraft(
            name="Anna", phone_number="+7 999 000 00 00", service="treatment", start="2024-01-01T10:00:00Z",
        ))

        reopened = AppointmentRepository(JsonFileStore(path))

        assert reopened.list() == (created,)
