"""
Tests for the HTTP surface.
"""

import inspect

import pendulum
import pytest
from fastapi.testclient import TestClient

from clinicbook.adapters.memory_store import InMemoryStore
from clinicbook.api import create_app
from clinicbook.api.routes import router
from clinicbook.domain.exceptions import StorageError
from clinicbook.services.appointment_repository import AppointmentRepository
from clinicbook.services.scheduling import SchedulingService

from conftest import FIXED_NOW


class BrokenStore(InMemoryStore):

    def save(self, appointments):
        raise StorageError("database unavailable")


def _client(store=None):
    repository = AppointmentRepository(store or InMemoryStore(), clock=lambda: FIXED_NOW)
    return TestClient(create_app(scheduling=SchedulingService(repository)))


def _body(**overrides):
    body = {
        "name": "Anna Petrova",
        "phoneNumber": "+7 (999) 123-45-67",
        "service": "treatment",
        "start": "2024-01-01T10:00:00Z",
        "tzOffset": 0,
    }
    body.update(overrides)
    return body


@pytest.fixture
def client():
    return _client()


class TestAppointmentsEndpoints:

    def test_create_and_list(self, client):
        response = client.post("/appointments", json=_body())

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Anna Petrova"
        assert pendulum.parse(created["end"]) == pendulum.parse("2024-01-01T10:45:00Z")

        listed = client.get("/appointments").json()
        assert [a["_id"] for a in listed] == [created["_id"]]

    def test_create_with_local_time_and_offset(self, client):
        response = client.post("/appointments", json=_body(start="2024-01-01T13:00", tzOffset=-180))

        assert pendulum.parse(response.json()["start"]) == pendulum.parse("2024-01-01T10:00:00Z")

    def test_validation_error_reports_fields(self, client):
        response = client.post("/appointments", json=_body(phoneNumber="call me", name=""))

        assert response.status_code == 400
        payload = response.json()
        assert payload["error"] == "validation_error"
        assert set(payload["fields"]) == {"name", "phone_number"}

    def test_missing_fields(self, client):
        response = client.post("/appointments", json={"name": "Anna"})

        assert response.status_code == 400
        assert {"phone_number", "service", "start"} <= set(response.json()["fields"])

    def test_malformed_body_is_a_validation_error(self, client):
        response = client.post("/appointments", json=_body(tzOffset="abc"))

        assert response.status_code == 400
        payload = response.json()
        assert payload["error"] == "validation_error"
        assert set(payload["fields"]) == {"tzOffset"}
        assert client.get("/appointments").json() == []

    def test_malformed_query_is_a_validation_error(self, client):
        response = client.get("/appointments", params={"status": "someday"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert "status" in response.json()["fields"]

    def test_conflict(self, client):
        first = client.post("/appointments", json=_body(service="consultation")).json()

        response = client.post("/appointments", json=_body(start="2024-01-01T10:10:00Z"))

        assert response.status_code == 409
        assert response.json()["conflictingId"] == first["_id"]

    def test_patch(self, client):
        created = client.post("/appointments", json=_body()).json()

        response = client.patch(f"/appointments/{created['_id']}", json={"service": "consultation"})

        assert response.status_code == 200
        assert pendulum.parse(response.json()["end"]) == pendulum.parse("2024-01-01T10:15:00Z")
        assert response.json()["name"] == "Anna Petrova"

    def test_patch_conflict_keeps_original(self, client):
        moving = client.post("/appointments", json=_body(start="2024-01-01T09:00:00Z")).json()
        client.post("/appointments", json=_body(start="2024-01-01T11:00:00Z"))

        response = client.patch(f"/appointments/{moving['_id']}", json={"start": "2024-01-01T10:30:00Z"})

        assert response.status_code == 409
        listed = {a["_id"]: a for a in client.get("/appointments").json()}
        assert listed[moving["_id"]]["start"] == moving["start"]

    def test_patch_unknown(self, client):
        response = client.patch("/appointments/missing", json={"name": "X"})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_delete(self, client):
        created = client.post("/appointments", json=_body()).json()

        response = client.delete(f"/appointments/{created['_id']}")

        assert response.status_code == 200
        assert "message" in response.json()
        assert client.get("/appointments").json() == []
        assert client.delete(f"/appointments/{created['_id']}").status_code == 404

    def test_storage_failure(self):
        client = _client(BrokenStore())

        response = client.post("/appointments", json=_body())

        assert response.status_code == 503
        assert client.get("/appointments").json() == []

    def test_list_filters(self, client):
        client.post("/appointments", json=_body(name="Anna"))
        client.post("/appointments", json=_body(name="Boris", start="2024-01-01T12:00:00Z", service="extraction"))

        assert [a["name"] for a in client.get("/appointments", params={"search": "bor"}).json()] == ["Boris"]
        assert [a["name"] for a in client.get("/appointments", params={"service": "treatment"}).json()] == ["Anna"]
        assert [a["name"] for a in client.get("/appointments").json()] == ["Boris", "Anna"]


class TestAvailabilityEndpoint:

    def test_shape_and_busy_slots(self, client):
        client.post("/appointments", json=_body())

        response = client.get("/appointments/availability", params={"date": "2024-01-01"})

        assert response.status_code == 200
        payload = response.json()
        assert set(payload) == {"availableSlots", "busySlots", "workingSlots"}
        assert len(payload["workingSlots"]) == 36
        assert [pendulum.parse(s) for s in payload["busySlots"]] == [
            pendulum.parse("2024-01-01T10:00:00Z"),
            pendulum.parse("2024-01-01T10:15:00Z"),
            pendulum.parse("2024-01-01T10:30:00Z"),
        ]
        assert len(payload["availableSlots"]) == 33

    def test_tz_offset(self, client):
        payload = client.get("/appointments/availability", params={"date": "2024-01-01", "tzOffset": -180}).json()

        assert pendulum.parse(payload["workingSlots"][0]) == pendulum.parse("2024-01-01T06:00:00Z")

    def test_service_narrows_available_slots(self, client):
        client.post("/appointments", json=_body(service="consultation"))

        payload = client.get(
            "/appointments/availability", params={"date": "2024-01-01", "service": "treatment"}
        ).json()
        available = {pendulum.parse(s) for s in payload["availableSlots"]}

        assert pendulum.parse("2024-01-01T09:15:00Z") in available
        assert pendulum.parse("2024-01-01T09:30:00Z") not in available

    def test_bad_date(self, client):
        response = client.get("/appointments/availability", params={"date": "01.01.2024"})

        assert response.status_code == 400
        assert "date" in response.json()["fields"]

    def test_missing_date(self, client):
        response = client.get("/appointments/availability")

        assert response.status_code == 400
        assert response.json()["fields"] == {"date": "Field required"}

    def test_unknown_service(self, client):
        response = client.get("/appointments/availability", params={"date": "2024-01-01", "service": "spa"})

        assert response.status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_routes_run_in_the_threadpool():
    """Handlers call the blocking repository, so none of them may run on the event loop."""
    endpoints = [route.endpoint for route in router.routes]

    assert endpoints
    assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)
