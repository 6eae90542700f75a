from app.modules.crm.pipeline import PIPELINE_STATUSES
from tests.conftest import ADMIN_ID


def test_board_groups_leads_by_status(client, fake_db, admin_headers):
    fake_db.seed(
        "leads",
        {"name": "Ana", "status": "new"},
        {"name": "Bruno", "status": "contacted"},
        {"name": "Carla", "status": "new"},
        {"name": "Legado", "status": "archived"},
    )

    response = client.get("/api/crm/board", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert [c["status"] for c in body["columns"]] == PIPELINE_STATUSES
    columns = {c["status"]: c for c in body["columns"]}
    assert columns["new"]["count"] == 2
    assert columns["new"]["label"] == "Novo"
    assert columns["contacted"]["count"] == 1
    assert columns["lost"]["leads"] == []
    assert body["total"] == 3


def test_board_requires_admin(client, user_headers):
    assert client.get("/api/crm/board", headers=user_headers).status_code == 403


def test_move_lead_updates_status_and_audits(client, fake_db, admin_headers):
    lead = fake_db.seed("leads", {"name": "Ana", "status": "new"})[0]

    response = client.post(f"/api/crm/leads/{lead['id']}/move", json={"status": "negotiation"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["outcome"] == "moved"
    assert response.json()["from_status"] == "new"
    assert fake_db.tables["leads"][0]["status"] == "negotiation"
    audit = fake_db.tables["audit_logs"][0]
    assert audit["action"] == "status_change"
    assert audit["user_id"] == ADMIN_ID
    assert audit["old_values"] == {"status": "new"}


def test_move_to_same_column_is_unchanged(client, fake_db, admin_headers):
    lead = fake_db.seed("leads", {"name": "Ana", "status": "contacted"})[0]

    response = client.post(f"/api/crm/leads/{lead['id']}/move", json={"status": "contacted"}, headers=admin_headers)

    assert response.json()["outcome"] == "unchanged"
    assert ("leads", "update") not in fake_db.calls
    assert "audit_logs" not in fake_db.tables


def test_move_rejects_unknown_status(client, fake_db, admin_headers):
    lead = fake_db.seed("leads", {"name": "Ana", "status": "new"})[0]

    response = client.post(f"/api/crm/leads/{lead['id']}/move", json={"status": "won"}, headers=admin_headers)

    assert response.status_code == 400


def test_move_missing_lead(client, admin_headers):
    response = client.post("/api/crm/leads/missing/move", json={"status": "lost"}, headers=admin_headers)
    assert response.status_code == 404


def test_move_failure_is_reported_and_status_kept(client, fake_db, admin_headers):
    lead = fake_db.seed("leads", {"name": "Ana", "status": "new"})[0]
    fake_db.failures[("leads", "update")] = RuntimeError("network down")

    response = client.post(f"/api/crm/leads/{lead['id']}/move", json={"status": "closed"}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "failed"
    assert body["error"] == "network down"
    assert fake_db.tables["leads"][0]["status"] == "new"


def test_get_lead_detail(client, fake_db, admin_headers):
    lead = fake_db.seed("leads", {"name": "Ana", "email": "ana@example.com"})[0]

    response = client.get(f"/api/crm/leads/{lead['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["email"] == "ana@example.com"
    assert client.get("/api/crm/leads/missing", headers=admin_headers).status_code == 404
