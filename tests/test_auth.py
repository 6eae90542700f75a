import time

from app.modules.auth.service import TokenCache
from tests.conftest import ADMIN_ID, USER_ID


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401


def test_me_rejects_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_me_resolves_role_from_claim(client, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == ADMIN_ID
    assert body["role"] == "admin"
    assert body["is_admin"] is True


def test_me_falls_back_to_profile_role(client, fake_db):
    fake_db.add_user("legacy-token", "legacy-admin", "legacy@covialvi.pt", with_profile=False)
    fake_db.seed("profiles", {"id": "legacy-admin", "email": "legacy@covialvi.pt", "role": "super_admin"})

    response = client.get("/api/auth/me", headers={"Authorization": "Bearer legacy-token"})

    assert response.json()["role"] == "super_admin"


def test_session_cookie_is_accepted(client, user_headers):
    client.cookies.set("sb-access-token", "user-token")
    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["id"] == USER_ID


def test_admin_route_forbidden_for_plain_user(client, user_headers):
    response = client.get("/api/audit", headers=user_headers)
    assert response.status_code == 403


def test_security_headers_present(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_register_creates_user_profile(client, fake_db):
    response = client.post("/api/auth/register", json={
        "email": "nova@example.com", "password": "secret123", "first_name": "Nova", "phone": "912345678",
    })

    assert response.status_code == 201
    profile = fake_db.tables["profiles"][0]
    assert profile["id"] == response.json()["user_id"]
    assert profile["role"] == "user"
    assert profile["first_name"] == "Nova"


def test_register_duplicate_email(client, user_headers):
    response = client.post("/api/auth/register", json={"email": "cliente@example.com", "password": "x"})
    assert response.status_code == 400


def test_login_returns_token(client, user_headers):
    ok = client.post("/api/auth/login", json={"email": "cliente@example.com", "password": "correct-horse"})
    bad = client.post("/api/auth/login", json={"email": "cliente@example.com", "password": "wrong"})

    assert ok.json()["access_token"] == "user-token"
    assert bad.status_code == 401


def test_token_cache_expires_and_is_bounded(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr(time, "monotonic", lambda: clock[0])
    cache = TokenCache(ttl_seconds=60, max_size=2)

    cache.put("a", {"id": "1"})
    cache.put("b", {"id": "2"})
    cache.put("c", {"id": "3"})
    assert cache.get("a") == {"id": "1"}
    assert cache.get("c") is None

    clock[0] += 61
    assert cache.get("a") is None
    cache.put("c", {"id": "3"})
    assert cache.get("c") == {"id": "3"}


def test_logout_forgets_cached_user(client, fake_db, user_headers):
    assert client.get("/api/auth/me", headers=user_headers).status_code == 200
    client.post("/api/auth/logout", headers=user_headers)
    del fake_db.auth.users["user-token"]

    assert client.get("/api/auth/me", headers=user_headers).status_code == 401
