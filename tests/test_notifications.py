from datetime import datetime
from enum import Enum

from app.modules.audit.service import AuditService, sanitize_values
from app.modules.notifications.service import NotificationService
from tests.conftest import ADMIN_ID, USER_ID


def test_notify_admins_targets_active_admins_only(fake_db):
    fake_db.seed(
        "profiles",
        {"id": "a1", "role": "admin", "is_active": True},
        {"id": "s1", "role": "super_admin", "is_active": True},
        {"id": "a2", "role": "admin", "is_active": False},
        {"id": "u1", "role": "user", "is_active": True},
    )

    created = NotificationService(fake_db).notify_admins(
        type="lead", title="Novo Lead", message="Ana", link="/admin/crm", metadata={"lead_id": "l1"},
    )

    assert created == 2
    rows = fake_db.tables["notifications"]
    assert sorted(r["user_id"] for r in rows) == ["a1", "s1"]
    assert all(r["read"] is False and r["metadata"] == {"lead_id": "l1"} for r in rows)


def test_notify_admins_swallows_failures(fake_db):
    fake_db.seed("profiles", {"id": "a1", "role": "admin", "is_active": True})
    fake_db.failures[("notifications", "insert")] = RuntimeError("db down")

    assert NotificationService(fake_db).notify_admins(type="visit", title="t", message="m") == 0


def test_list_and_mark_read(client, fake_db, user_headers):
    first, _ = fake_db.seed(
        "notifications",
        {"user_id": USER_ID, "type": "visit", "title": "Visita", "message": "Confirmada", "read": False},
        {"user_id": USER_ID, "type": "visit", "title": "Visita", "message": "Antiga", "read": True},
    )
    fake_db.seed("notifications", {"user_id": "other", "type": "lead", "title": "x", "message": "y", "read": False})

    assert len(client.get("/api/notifications", headers=user_headers).json()) == 2
    assert len(client.get("/api/notifications", params={"unread_only": "true"}, headers=user_headers).json()) == 1

    assert client.post(f"/api/notifications/{first['id']}/read", headers=user_headers).status_code == 200
    assert client.post("/api/notifications/read-all", headers=user_headers).json()["updated"] == 0


def test_cannot_mark_someone_elses_notification(client, fake_db, user_headers):
    other = fake_db.seed("notifications", {"user_id": "other", "type": "lead", "title": "x", "message": "y"})[0]

    assert client.post(f"/api/notifications/{other['id']}/read", headers=user_headers).status_code == 404


class Colour(Enum):
    RED = "red"


def test_sanitize_values_makes_json_safe():
    values = sanitize_values({"when": datetime(2025, 3, 4, 12, 0), "colour": Colour.RED, "tags": ("a", "b"), 1: object})

    assert values["when"] == "2025-03-04T12:00:00"
    assert values["colour"] == "red"
    assert values["tags"] == ["a", "b"]
    assert isinstance(values["1"], str)


def test_audit_record_never_raises(fake_db):
    fake_db.failures[("audit_logs", "insert")] = RuntimeError("db down")

    assert AuditService(fake_db).record("update", "property", "p1", user_id=ADMIN_ID) is False


def test_audit_list_filters_by_entity(client, fake_db, admin_headers):
    audit = AuditService(fake_db)
    audit.record("create", "property", "p1", user_id=ADMIN_ID)
    audit.record("status_change", "lead", "l1", user_id=ADMIN_ID)

    response = client.get("/api/audit", params={"entity_type": "lead"}, headers=admin_headers)

    assert response.status_code == 200
    assert [row["entity_id"] for row in response.json()] == ["l1"]
