from tests.conftest import ADMIN_ID, SUPER_ADMIN_ID, USER_ID


def test_super_admin_promotes_user(client, fake_db, super_admin_headers, user_headers):
    response = client.put(f"/api/users/{USER_ID}/role", json={"role": "admin"}, headers=super_admin_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert fake_db.auth.admin.updates == [(USER_ID, {"app_metadata": {"role": "admin"}})]
    audit = fake_db.tables["audit_logs"][0]
    assert audit["action"] == "role_change"
    assert audit["old_values"] == {"role": "user"}
    assert audit["new_values"] == {"role": "admin"}


def test_role_change_takes_effect_on_next_request(client, fake_db, super_admin_headers, user_headers):
    assert client.get("/api/audit", headers=user_headers).status_code == 403

    client.put(f"/api/users/{USER_ID}/role", json={"role": "admin"}, headers=super_admin_headers)
    fake_db.auth.users["user-token"].app_metadata = {"role": "admin"}

    assert client.get("/api/audit", headers=user_headers).status_code == 200


def test_admin_cannot_change_roles(client, admin_headers, user_headers):
    response = client.put(f"/api/users/{USER_ID}/role", json={"role": "admin"}, headers=admin_headers)
    assert response.status_code == 403


def test_super_admin_cannot_demote_self(client, super_admin_headers):
    response = client.put(f"/api/users/{SUPER_ADMIN_ID}/role", json={"role": "user"}, headers=super_admin_headers)
    assert response.status_code == 400


def test_unknown_role_is_rejected(client, super_admin_headers, user_headers):
    response = client.put(f"/api/users/{USER_ID}/role", json={"role": "owner"}, headers=super_admin_headers)
    assert response.status_code == 422


def test_deactivate_user(client, fake_db, admin_headers, user_headers):
    response = client.put(f"/api/users/{USER_ID}/active", json={"is_active": False}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["is_active"] is False
    profile = next(p for p in fake_db.tables["profiles"] if p["id"] == USER_ID)
    assert profile["is_active"] is False


def test_admin_cannot_deactivate_self(client, admin_headers):
    response = client.put(f"/api/users/{ADMIN_ID}/active", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 400


def test_update_own_profile(client, fake_db, user_headers):
    response = client.put("/api/users/me", json={"first_name": "Ana", "phone": "912345678"}, headers=user_headers)

    assert response.status_code == 200
    assert response.json()["first_name"] == "Ana"
    assert response.json()["role"] == "user"


def test_list_users_search(client, fake_db, admin_headers, user_headers):
    response = client.get("/api/users", params={"search": "cliente"}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["email"] == "cliente@example.com"


def test_get_missing_user(client, admin_headers):
    assert client.get("/api/users/nobody", headers=admin_headers).status_code == 404


def test_self_assigned_user_metadata_role_grants_nothing(client, fake_db, user_headers):
    fake_db.auth.users["user-token"].user_metadata = {"role": "super_admin"}

    assert client.get("/api/users", headers=user_headers).status_code == 403
    response = client.put(f"/api/users/{USER_ID}/role", json={"role": "super_admin"}, headers=user_headers)
    assert response.status_code == 403
