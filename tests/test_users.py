"""Tests for user profile sync."""
from conftest import auth


def test_sync_creates_profile(client):
    response = client.post(
        "/api/users/sync",
        json={"email": "alice@example.com", "name": "Alice"},
        headers=auth("user_alice"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "user_alice"
    assert data["email"] == "alice@example.com"
    assert data["imageUrl"] is None


def test_sync_updates_only_supplied_fields(client):
    client.post(
        "/api/users/sync",
        json={"email": "alice@example.com", "name": "Alice"},
        headers=auth("user_alice"),
    )

    response = client.post(
        "/api/users/sync",
        json={"name": "Alice Liddell"},
        headers=auth("user_alice"),
    )

    data = response.json()
    assert data["name"] == "Alice Liddell"
    assert data["email"] == "alice@example.com"


def test_sync_requires_auth(client):
    response = client.post("/api/users/sync", json={"name": "Nobody"})

    assert response.status_code == 401


def test_sync_rejects_unknown_fields(client):
    response = client.post(
        "/api/users/sync",
        json={"id": "user_bob"},
        headers=auth("user_alice"),
    )

    assert response.status_code == 400
    assert response.json()["fields"] == ["id"]
