from datetime import date, timedelta

import httpx

from cbrc.api.deps import get_relay_transport
from cbrc.core.config import settings
from cbrc.main import app

AUTH = {"Authorization": "Bearer test-service-key"}


def _form(service_id: str, d: date, hh_mm: str) -> dict:
    return {
        "first_name": "Anna",
        "last_name": "Muster",
        "email": "anna@salon-muster.at",
        "phone": "+43 660 1234567",
        "service_id": service_id,
        "gender": "DAMEN",
        "appointment_date": d.isoformat(),
        "appointment_time": hh_mm,
        "special_requests": "Bitte kurz",
    }


async def test_create_via_relay_then_slot_is_taken(client, services, booking_date):
    resp = await client.post("/api/appointments/create", json=_form(services["cut"].id, booking_date, "11:00"))
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["appointment_id"]

    resp = await client.post("/api/time-slots", json={"date": booking_date.isoformat(), "duration": 30})
    slots = {s["time"]: s["available"] for s in resp.json()["timeSlots"]}
    assert slots["11:00"] is False

    resp = await client.post("/api/appointments/create", json=_form(services["cut"].id, booking_date, "11:00"))
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "error": "Time slot 11:00 is already booked", "appointment_id": None}


async def test_missing_fields_are_rejected(client, services, booking_date):
    form = _form(services["cut"].id, booking_date, "11:00")
    del form["phone"]
    resp = await client.post("/api/appointments/create", json=form)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Missing required fields", "appointment_id": None}


async def test_invalid_fields_are_rejected(client, services, booking_date):
    cases = [
        {"email": "not-an-email"},
        {"gender": "BEIDE"},
        {"appointment_time": "9:00"},
        {"appointment_date": (date.today() - timedelta(days=1)).isoformat()},
        {"appointment_date": (date.today() + timedelta(days=400)).isoformat()},
    ]
    for override in cases:
        form = {**_form(services["cut"].id, booking_date, "11:00"), **override}
        resp = await client.post("/api/appointments/create", json=form)
        assert resp.status_code == 400, override
        body = resp.json()
        assert body["success"] is False
        assert body["appointment_id"] is None


async def test_create_relay_unconfigured(client, services, booking_date, monkeypatch):
    monkeypatch.setattr(settings, "service_role_key", "")
    resp = await client.post("/api/appointments/create", json=_form(services["cut"].id, booking_date, "11:00"))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Server configuration error", "appointment_id": None}


async def test_create_relay_forwards_upstream_failure(client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error": "function crashed"})

    app.dependency_overrides[get_relay_transport] = lambda: httpx.MockTransport(handler)
    resp = await client.post("/api/appointments/create", json={"first_name": "Anna"})
    assert resp.status_code == 502
    assert resp.json() == {"success": False, "error": "function crashed", "appointment_id": None}


async def test_admin_routes_require_service_key(client):
    assert (await client.get("/api/appointments")).status_code == 401
    resp = await client.put("/api/appointments", json={"appointmentId": "x", "status": "confirmed"})
    assert resp.status_code == 401


async def test_admin_list_conflict_and_status(client, services, book, booking_date):
    appointment = await book(services["cut"], booking_date, "14:00")

    resp = await client.get("/api/appointments", headers=AUTH)
    [listed] = resp.json()["appointments"]
    assert listed["id"] == appointment.id
    assert listed["appointment_time"] == "14:00"
    assert listed["status"] == "pending"

    params = {"date": booking_date.isoformat(), "time": "14:00"}
    resp = await client.get("/api/appointments", params=params, headers=AUTH)
    assert resp.json() == {"hasConflict": False}

    resp = await client.put("/api/appointments", json={"appointmentId": appointment.id, "status": "confirmed"}, headers=AUTH)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "confirmed"
    assert resp.json()["data"]["confirmed_at"] is not None

    resp = await client.get("/api/appointments", params=params, headers=AUTH)
    assert resp.json() == {"hasConflict": True}


async def test_admin_status_unknown_appointment(client):
    resp = await client.put("/api/appointments", json={"appointmentId": "missing", "status": "confirmed"}, headers=AUTH)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Appointment not found"}


async def test_services_list_is_public(client, services):
    resp = await client.get("/api/services")
    assert resp.status_code == 200
    durations = {s["name"]: s["duration_minutes"] for s in resp.json()}
    assert durations == {"Färben": 90, "Haarschnitt": 30}
