from datetime import datetime, timedelta, timezone

from app.modules.leads.validation import validate_email, validate_phone, sanitize_phone, location_label
from tests.conftest import ADMIN_ID

SELL_PAYLOAD = {
    "propertyType": "moradia",
    "district": "leiria",
    "municipality": "caldas-da-rainha",
    "sellingStage": "ready",
    "estimatedValue": "200k-300k",
    "contactTiming": "morning",
    "phone": "912 345 678",
    "name": "Ana Silva",
}


def test_phone_validation():
    assert validate_phone("912345678")
    assert validate_phone("+351 912 345 678")
    assert validate_phone("00351244123456")
    assert not validate_phone("812345678")
    assert not validate_phone("91234567")


def test_email_validation():
    assert validate_email("ana.silva@example.com")
    assert validate_email("joao+casa@covialvi.pt")
    assert not validate_email("ana@")
    assert not validate_email("ana silva@example.com")
    assert not validate_email("ana@@example.com")
    assert not validate_email("ana@example")


def test_sanitize_phone():
    assert sanitize_phone("912 345 678") == "+351912345678"
    assert sanitize_phone("00351912345678") == "+351912345678"
    assert sanitize_phone("+44 7700 900123") == "+447700900123"


def test_location_label():
    assert location_label("caldas-da-rainha") == "Caldas da Rainha"
    assert location_label("leiria") == "Leiria"
    assert location_label(None) == ""


def test_contact_requires_name_and_email(client):
    response = client.post("/api/contact", json={"name": "Rui"})
    assert response.status_code == 400


def test_contact_creates_property_lead(client, fake_db):
    response = client.post(
        "/api/contact",
        json={
            "name": "Rui Costa",
            "email": "rui@example.com",
            "message": "Quero visitar",
            "propertyId": "prop-1",
            "propertyTitle": "Apartamento T2",
        },
        headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.2"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["leadId"]
    lead = fake_db.tables["leads"][0]
    assert lead["source"] == "property_page"
    assert lead["ip_address"] == "10.0.0.1"
    assert fake_db.tables["audit_logs"][0]["entity_type"] == "lead"


def test_contact_still_succeeds_when_lead_insert_fails(client, fake_db):
    fake_db.failures[("leads", "insert")] = Exception("db down")

    response = client.post("/api/contact", json={"name": "Rui", "email": "rui@example.com"})

    assert response.status_code == 200
    assert response.json()["leadId"] is None


def test_sell_property_validation_errors(client, fake_db):
    response = client.post("/api/leads/sell-property", json={"phone": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert set(body["errors"]) >= {"propertyType", "district", "municipality", "phone"}
    assert "leads" not in fake_db.tables


def test_sell_property_creates_lead_and_notifies_admins(client, fake_db):
    fake_db.seed(
        "profiles",
        {"id": ADMIN_ID, "email": "a@covialvi.pt", "role": "admin", "is_active": True},
        {"id": "inactive", "email": "b@covialvi.pt", "role": "admin", "is_active": False},
        {"id": "client", "email": "c@example.com", "role": "user", "is_active": True},
    )

    response = client.post("/api/leads/sell-property", json=SELL_PAYLOAD)

    assert response.status_code == 201
    lead = fake_db.tables["leads"][0]
    assert lead["phone"] == "+351912345678"
    assert lead["source"] == "homepage_sell_wizard"
    assert lead["email"].startswith("seller_") and lead["email"].endswith("@temp.covialvi.com")
    assert lead["tags"] == ["seller", "homepage_wizard", "ready"]
    assert lead["custom_fields"]["quiz_answers"]["municipality_label"] == "Caldas da Rainha"

    notifications = fake_db.tables["notifications"]
    assert [n["user_id"] for n in notifications] == [ADMIN_ID]
    assert notifications[0]["type"] == "lead"
    assert notifications[0]["link"] == "/admin/crm"
    assert fake_db.tables["audit_logs"][0]["new_values"]["source"] == "homepage_sell_wizard"


def test_duplicate_phone_within_window_is_rejected(client, fake_db):
    recent = (datetime.now(timezone.utc) - timedelta(hours=2)).isoformat()
    fake_db.seed("leads", {"phone": "+351912345678", "email": "x@example.com", "created_at": recent})

    response = client.post("/api/leads/sell-property", json=SELL_PAYLOAD)

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert len(fake_db.tables["leads"]) == 1


def test_old_lead_with_same_phone_is_not_a_duplicate(client, fake_db):
    old = (datetime.now(timezone.utc) - timedelta(hours=30)).isoformat()
    fake_db.seed("leads", {"phone": "+351912345678", "email": "x@example.com", "created_at": old})

    response = client.post("/api/leads/sell-property", json=SELL_PAYLOAD)

    assert response.status_code == 201
    assert len(fake_db.tables["leads"]) == 2


def test_complete_evaluation_requires_contact_details(client):
    payload = {
        "propertyType": "apartamento",
        "district": "leiria",
        "municipality": "leiria",
        "condition": "good",
        "sellingStage": "exploring",
        "phone": "912345678",
    }

    response = client.post("/api/leads/complete-evaluation", json=payload)

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"name", "email"}


def test_complete_evaluation_creates_lead(client, fake_db):
    payload = {
        "propertyType": "apartamento",
        "district": "leiria",
        "municipality": "marinha-grande",
        "condition": "good",
        "sellingStage": "exploring",
        "bedrooms": "3",
        "features": ["garage"],
        "name": "Joana",
        "email": "joana@example.com",
        "phone": "244 123 456",
    }

    response = client.post("/api/leads/complete-evaluation", json=payload)

    assert response.status_code == 201
    lead = fake_db.tables["leads"][0]
    assert lead["source"] == "complete_evaluation"
    assert lead["email"] == "joana@example.com"
    assert lead["phone"] == "+351244123456"
    assert lead["custom_fields"]["property_details"]["features"] == ["garage"]
    assert "Marinha Grande" in lead["message"]
