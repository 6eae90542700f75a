from tests.conftest import USER_ID


def test_toggle_adds_then_removes(client, fake_db, user_headers):
    first = client.post("/api/favorites", json={"propertyId": "prop-1"}, headers=user_headers)
    assert first.json() == {"favorited": True}
    assert fake_db.tables["favorites"][0]["user_id"] == USER_ID

    second = client.post("/api/favorites", json={"propertyId": "prop-1"}, headers=user_headers)
    assert second.json() == {"favorited": False}
    assert fake_db.tables["favorites"] == []


def test_check_favorite(client, fake_db, user_headers):
    fake_db.seed("favorites", {"user_id": USER_ID, "property_id": "prop-1"})

    assert client.get("/api/favorites", params={"property_id": "prop-1"}, headers=user_headers).json() == {
        "favorited": True
    }
    assert client.get("/api/favorites", params={"property_id": "prop-2"}, headers=user_headers).json() == {
        "favorited": False
    }


def test_favorites_are_per_user(client, fake_db, user_headers):
    fake_db.seed("favorites", {"user_id": "someone-else", "property_id": "prop-1"})

    response = client.post("/api/favorites", json={"propertyId": "prop-1"}, headers=user_headers)

    assert response.json() == {"favorited": True}
    assert len(fake_db.tables["favorites"]) == 2


def test_my_favorites_embed_property(client, fake_db, user_headers):
    prop = fake_db.seed("properties", {"title": "Apartamento T2", "slug": "apartamento-t2"})[0]
    fake_db.seed("favorites", {"user_id": USER_ID, "property_id": prop["id"]})

    response = client.get("/api/favorites/mine", headers=user_headers)

    assert response.status_code == 200
    assert response.json()[0]["properties"]["slug"] == "apartamento-t2"


def test_favorites_require_session(client):
    assert client.post("/api/favorites", json={"propertyId": "prop-1"}).status_code == 401
