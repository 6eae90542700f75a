from datetime import datetime, timedelta, timezone

import httpx

from app.main import app
from app.modules.calendar.service import GoogleCalendarService
from app.modules.email.service import EmailResult
from app.modules.visits import service as visits_service
from app.modules.visits.routes import get_visit_service
from app.modules.visits.service import VisitService, format_property_address, format_visit_datetime
from tests.conftest import ADMIN_ID, USER_ID


def test_format_visit_datetime_in_portuguese():
    assert format_visit_datetime("2025-03-04T15:30:00Z") == ("terça-feira, 4 de março de 2025", "15:30")
    # Lisbon summer time
    assert format_visit_datetime("2025-07-01T09:00:00+00:00")[1] == "10:00"


def test_format_property_address_falls_back_to_country():
    assert format_property_address({"address": "Rua A", "district": "Leiria"}) == "Rua A, Leiria"
    assert format_property_address(None) == "Portugal"


def test_schedule_visit_notifies_admins(client, fake_db, user_headers, admin_headers):
    response = client.post("/api/visits/schedule", json={
        "propertyId": "prop-1", "scheduledAt": "2025-03-04T15:30:00Z", "notes": "Depois do almoço",
    }, headers=user_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["user_id"] == USER_ID
    notification = fake_db.tables["notifications"][0]
    assert notification["user_id"] == ADMIN_ID
    assert notification["type"] == "visit"
    assert "4 de março de 2025 às 15:30" in notification["message"]


def test_schedule_requires_session(client):
    response = client.post("/api/visits/schedule", json={"propertyId": "p", "scheduledAt": "2025-03-04T15:30:00Z"})
    assert response.status_code == 401


def test_my_visits_only_returns_own(client, fake_db, user_headers):
    fake_db.seed(
        "visits",
        {"property_id": "p1", "user_id": USER_ID, "scheduled_at": "2025-03-04T15:30:00+00:00", "status": "pending"},
        {"property_id": "p2", "user_id": "someone-else", "scheduled_at": "2025-03-05T15:30:00+00:00"},
    )

    response = client.get("/api/visits/mine", headers=user_headers)

    assert [v["property_id"] for v in response.json()] == ["p1"]


def test_update_status_rejects_invalid(client, fake_db, admin_headers):
    visit = fake_db.seed("visits", {"property_id": "p", "scheduled_at": "2025-03-04T15:30:00+00:00"})[0]

    response = client.post("/api/visits/status", json={"visitId": visit["id"], "status": "pending"},
                           headers=admin_headers)

    assert response.status_code == 400


def test_cancel_sets_reason_and_timestamp(client, fake_db, admin_headers):
    visit = fake_db.seed("visits", {"property_id": "p", "scheduled_at": "2025-03-04T15:30:00+00:00",
                                    "status": "pending"})[0]

    response = client.post("/api/visits/status", json={
        "visitId": visit["id"], "status": "cancelled", "cancellationReason": "Cliente desistiu",
    }, headers=admin_headers)

    assert response.status_code == 200
    stored = fake_db.tables["visits"][0]
    assert stored["status"] == "cancelled"
    assert stored["cancellation_reason"] == "Cliente desistiu"
    assert stored["cancelled_at"]
    assert fake_db.tables["audit_logs"][0]["new_values"] == {"status": "cancelled"}


def _calendar_transport(requests):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "evt-123"})
    return httpx.MockTransport(handler)


def test_confirm_emails_client_and_creates_event(client, fake_db, admin_headers, monkeypatch):
    sent = []
    monkeypatch.setattr(
        visits_service.email_service, "send_visit_confirmation",
        lambda **kwargs: sent.append(kwargs) or EmailResult(success=True, id="msg-1"),
    )
    requests = []
    calendar = GoogleCalendarService(fake_db, transport=_calendar_transport(requests))
    app.dependency_overrides[get_visit_service] = lambda: VisitService(fake_db, calendar=calendar)

    fake_db.seed("google_tokens", {
        "user_id": ADMIN_ID, "access_token": "ya29.valid", "refresh_token": "1//r",
        "expires_at": (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat(),
    })
    lead = fake_db.seed("leads", {"name": "Ana", "email": "ana@example.com", "phone": "912345678"})[0]
    prop = fake_db.seed("properties", {"title": "Moradia T3", "reference": "COV-ABC123", "district": "Leiria"})[0]
    visit = fake_db.seed("visits", {
        "property_id": prop["id"], "lead_id": lead["id"], "status": "pending",
        "scheduled_at": "2025-03-04T15:30:00+00:00",
    })[0]

    response = client.post("/api/visits/confirm", json={"visitId": visit["id"]}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "confirmed"
    assert body["email_sent"] is True
    assert body["calendar_event_id"] == "evt-123"
    assert sent[0]["client_email"] == "ana@example.com"
    assert sent[0]["visit_time"] == "15:30"
    assert sent[0]["property_address"] == "Leiria"
    assert requests[0].headers["Authorization"] == "Bearer ya29.valid"

    stored = fake_db.tables["visits"][0]
    assert stored["status"] == "confirmed"
    assert stored["google_event_id"] == "evt-123"


def test_confirm_without_calendar_or_email(client, fake_db, admin_headers, monkeypatch):
    def no_email(**kwargs):
        raise AssertionError("no e-mail expected")

    monkeypatch.setattr(visits_service.email_service, "send_visit_confirmation", no_email)
    visit = fake_db.seed("visits", {"property_id": "p", "scheduled_at": "2025-03-04T15:30:00+00:00"})[0]

    response = client.post("/api/visits/confirm", json={"visitId": visit["id"]}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["email_sent"] is False
    assert response.json()["calendar_event_id"] is None


def test_delete_visit(client, fake_db, admin_headers):
    visit = fake_db.seed("visits", {"property_id": "p", "scheduled_at": "2025-03-04T15:30:00+00:00"})[0]

    assert client.delete(f"/api/visits/{visit['id']}", headers=admin_headers).status_code == 200
    assert fake_db.tables["visits"] == []
    assert client.delete(f"/api/visits/{visit['id']}", headers=admin_headers).status_code == 404
