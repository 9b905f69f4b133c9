"""User API tests — search, public profiles, self-service edits."""

import uuid

import pytest

from conftest import DEFAULT_PASSWORD


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_sorted(client, make_user):
    tag = uuid.uuid4().hex[:6]
    await make_user("Zed", email=f"zed-{tag}@example.com")
    await make_user("Amy", email=f"amy-{tag}@example.com")
    searcher = await make_user("Searcher")

    r = await client.get(
        "/api/v1/users", params={"email": tag.upper()}, headers=searcher["headers"]
    )
    assert r.status_code == 200
    assert [u["name"] for u in r.json()] == ["Amy", "Zed"]
    assert all("password_hash" not in u for u in r.json())


@pytest.mark.asyncio
async def test_search_requires_query(client, alice):
    r = await client.get("/api/v1/users", headers=alice["headers"])
    assert r.status_code == 400
    assert r.json()["detail"] == "email is required"


@pytest.mark.asyncio
async def test_get_public_profile(client, alice, bob):
    r = await client.get(f"/api/v1/users/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 200
    assert r.json()["name"] == "Alice"

    r = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=bob["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_own_profile(client, alice):
    r = await client.put(
        f"/api/v1/users/{alice['id']}",
        json={"name": "Alice B.", "avatar_url": "https://img.example.com/a.png"},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Alice B."
    assert r.json()["avatar_url"] == "https://img.example.com/a.png"


@pytest.mark.asyncio
async def test_cannot_update_someone_else(client, alice, bob):
    r = await client.put(
        f"/api/v1/users/{alice['id']}", json={"name": "pwned"}, headers=bob["headers"]
    )
    assert r.status_code == 404

    r = await client.get(f"/api/v1/users/{alice['id']}", headers=alice["headers"])
    assert r.json()["name"] == "Alice"


@pytest.mark.asyncio
async def test_change_password(client, alice):
    r = await client.post(
        "/api/v1/users/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "new-secret-2"},
        headers=alice["headers"],
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/v1/auth/login", json={"email": alice["email"], "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 401
    r = await client.post(
        "/api/v1/auth/login", json={"email": alice["email"], "password": "new-secret-2"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_change_password_checks_current(client, alice):
    r = await client.post(
        "/api/v1/users/change-password",
        json={"current_password": "wrong-one", "new_password": "new-secret-2"},
        headers=alice["headers"],
    )
    assert r.status_code == 401
