from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from clinicvisits.api.deps import get_clock, get_participant_directory, get_visit_repository
from clinicvisits.app import create_app
from clinicvisits.core.config import get_settings

PATIENT = {"X-Participant-Id": "pat-alice"}
OTHER_PATIENT = {"X-Participant-Id": "pat-bob"}
DOCTOR = {"X-Participant-Id": "doc-smith"}
FINANCE = {"X-Participant-Id": "fin-1"}

TOMORROW = "2025-06-16T09:00:00Z"


@pytest.fixture
def client(monkeypatch, visit_repo, directory, clock):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("LOG_FORMAT", "text")
    get_settings.cache_clear()

    app = create_app()
    app.dependency_overrides[get_visit_repository] = lambda: visit_repo
    app.dependency_overrides[get_participant_directory] = lambda: directory
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)

    get_settings.cache_clear()


def _schedule(client, headers=PATIENT, doctor="doc-smith", when=TOMORROW):
    return client.post(
        "/visits/",
        json={"practitioner_id": doctor, "scheduled_date": when, "chief_complaint": "Cut finger"},
        headers=headers,
    )


@pytest.fixture
def visit_id(client) -> str:
    response = _schedule(client)
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["storage"] == "memory"


def test_requests_need_a_known_participant(client) -> None:
    assert client.get("/visits/").status_code == 401
    assert client.get("/visits/", headers={"X-Participant-Id": "nobody"}).status_code == 401


def test_schedule_visit(client) -> None:
    response = _schedule(client)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "scheduled"
    assert body["totalAmount"] == "0.00"
    assert body["treatments"] == []
    assert body["patientRef"] == "pat-alice"
    assert body["doctor"]["name"] == "Dr. Jane Smith"
    assert body["duration"] is None


def test_second_active_visit_is_a_conflict(client, visit_id) -> None:
    response = _schedule(client, headers=OTHER_PATIENT)

    assert response.status_code == 409
    assert response.json()["error"] == "ACTIVE_VISIT_CONFLICT"


def test_schedule_in_the_past_is_rejected(client) -> None:
    response = _schedule(client, when="2020-01-01T09:00:00Z")
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_malformed_body_keeps_framework_status(client) -> None:
    response = client.post("/visits/", json={"scheduled_date": TOMORROW}, headers=PATIENT)
    assert response.status_code == 422


def test_treatment_ledger_over_http(client, visit_id) -> None:
    base = f"/visits/{visit_id}/treatments"

    first = client.post(base, json={"name": "Suture", "unit_price": "50.00", "quantity": 2}, headers=DOCTOR)
    assert first.status_code == 201
    assert first.json()["totalAmount"] == "100.00"
    first_id = first.json()["treatments"][0]["id"]
    assert first.json()["treatments"][0]["totalPrice"] == "100.00"

    second = client.post(base, json={"name": "Dressing", "unit_price": 25.5}, headers=DOCTOR)
    assert second.json()["totalAmount"] == "125.50"

    updated = client.patch(f"{base}/{first_id}", json={"quantity": 3}, headers=DOCTOR)
    assert updated.status_code == 200
    assert updated.json()["totalAmount"] == "175.50"

    removed = client.delete(f"{base}/{first_id}", headers=DOCTOR)
    assert removed.json()["totalAmount"] == "25.50"

    again = client.delete(f"{base}/{first_id}", headers=DOCTOR)
    assert again.status_code == 200
    assert again.json()["totalAmount"] == "25.50"

    missing = client.patch(f"{base}/{uuid.uuid4()}", json={"quantity": 1}, headers=DOCTOR)
    assert missing.status_code == 404
    assert missing.json()["error"] == "TREATMENT_NOT_FOUND"


@pytest.mark.parametrize("price", ["12.345", "1e30"])
def test_treatment_price_is_validated(client, visit_id, price) -> None:
    response = client.post(
        f"/visits/{visit_id}/treatments",
        json={"name": "Suture", "unit_price": price},
        headers=DOCTOR,
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "unit_price"


def test_status_flow_and_closed_ledger(client, visit_id, clock) -> None:
    started = client.post(f"/visits/{visit_id}/start", headers=DOCTOR)
    assert started.status_code == 200
    assert started.json()["status"] == "in_progress"

    clock.advance(minutes=45)
    completed = client.post(f"/visits/{visit_id}/complete", headers=DOCTOR)
    assert completed.json()["status"] == "completed"
    assert completed.json()["duration"] == 45

    late = client.post(
        f"/visits/{visit_id}/treatments", json={"name": "Late", "unit_price": "1.00"}, headers=DOCTOR
    )
    assert late.status_code == 409
    assert late.json()["error"] == "INVALID_TRANSITION"
    assert late.json()["details"]["current_status"] == "completed"

    cancel = client.post(f"/visits/{visit_id}/cancel", headers=PATIENT)
    assert cancel.status_code == 409


def test_partial_clinical_update(client, visit_id) -> None:
    client.patch(f"/visits/{visit_id}", json={"diagnosis": "Laceration"}, headers=DOCTOR)
    response = client.patch(f"/visits/{visit_id}", json={"notes": "Keep dry"}, headers=DOCTOR)

    body = response.json()
    assert body["diagnosis"] == "Laceration"
    assert body["notes"] == "Keep dry"
    assert body["chiefComplaint"] == "Cut finger"


def test_ownership_is_enforced(client, visit_id) -> None:
    assert client.post(f"/visits/{visit_id}/start", headers=FINANCE).status_code == 403
    assert client.post(f"/visits/{visit_id}/cancel", headers=OTHER_PATIENT).status_code == 403
    assert client.get(f"/visits/{visit_id}", headers=OTHER_PATIENT).status_code == 403
    assert client.get(f"/visits/{visit_id}", headers=PATIENT).status_code == 200


def test_unknown_and_malformed_visit_ids(client) -> None:
    missing = client.get(f"/visits/{uuid.uuid4()}", headers=PATIENT)
    assert missing.status_code == 404
    assert missing.json()["error"] == "VISIT_NOT_FOUND"

    malformed = client.get("/visits/not-a-uuid", headers=PATIENT)
    assert malformed.status_code == 400


def test_list_my_visits(client, visit_id) -> None:
    mine = client.get("/visits/", headers=PATIENT)
    assert [v["id"] for v in mine.json()] == [visit_id]
    assert client.get("/visits/", headers=OTHER_PATIENT).json() == []
    assert client.get("/visits/", headers=FINANCE).status_code == 403


def test_finance_search_and_dashboard(client, visit_id) -> None:
    client.post(
        f"/visits/{visit_id}/treatments", json={"name": "Suture", "unit_price": "40.00"}, headers=DOCTOR
    )
    client.post(f"/visits/{visit_id}/complete", headers=DOCTOR)
    paid = client.patch(f"/finance/visits/{visit_id}/payment", json={"payment_status": "paid"}, headers=FINANCE)
    assert paid.json()["paymentStatus"] == "paid"

    search = client.get(
        "/finance/visits",
        params={"doctorName": "jane", "paymentStatus": "paid", "limit": 5},
        headers=FINANCE,
    )
    assert search.status_code == 200
    body = search.json()
    assert (body["total"], body["pages"], body["count"]) == (1, 1, 1)
    assert body["statistics"]["totalRevenue"] == "40.00"
    assert body["items"][0]["patient"]["name"] == "Alice Smith"

    dashboard = client.get("/finance/dashboard", headers=FINANCE).json()
    assert dashboard["overall"]["paidAmount"] == "40.00"
    assert dashboard["overall"]["collectionRate"] == "100.00%"
    assert dashboard["today"]["visits"] == 1

    export = client.get("/finance/export", params={"status": "completed"}, headers=FINANCE).json()
    assert export[0]["treatmentsCount"] == 1

    details = client.get(f"/finance/visits/{visit_id}", headers=FINANCE)
    assert details.json()["doctor"]["specialization"] == "Cardiology"


def test_finance_endpoints_reject_other_roles(client) -> None:
    assert client.get("/finance/dashboard", headers=PATIENT).status_code == 403
    assert client.get("/finance/visits", headers=DOCTOR).status_code == 403


def test_finance_search_validates_paging(client) -> None:
    response = client.get("/finance/visits", params={"limit": 500}, headers=FINANCE)
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "limit"
