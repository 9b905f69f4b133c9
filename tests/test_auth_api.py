"""Auth API tests — registration, login, logout, session carriers.

Learn: Tests cover:
1. Registration + duplicate prevention (case-insensitive email)
2. Login → token in body + HttpOnly cookie
3. Uniform failure for unknown email vs wrong password
4. /auth/me via Bearer header and via cookie
5. Expired and tampered tokens are treated as anonymous
"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import DEFAULT_PASSWORD, unique_email
from lunay.auth.session import issue_session_token
from lunay.config import settings


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    """Register a new user account; the hash never comes back."""
    email = unique_email("reg")
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": "Test User", "password": "secure_password_123"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == email
    assert user["name"] == "Test User"
    assert "id" in user
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Same email twice (any case) → 400."""
    email = unique_email("dup")
    body = {"email": email, "name": "User 1", "password": "password_123"}

    r1 = await client.post("/api/v1/auth/register", json=body)
    assert r1.status_code == 201

    r2 = await client.post(
        "/api/v1/auth/register", json={**body, "email": email.upper()}
    )
    assert r2.status_code == 400
    assert r2.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_missing_name(client):
    """Missing required field → 400 naming the field."""
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": unique_email("noname"), "password": "password_123"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "name is required"


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": unique_email("short"), "name": "Short", "password": "abc"},
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success_sets_cookie(client):
    """Login returns {user, token, expires_at} and sets the token cookie."""
    email = unique_email("login")
    await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": "Login", "password": DEFAULT_PASSWORD},
    )

    r = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["email"] == email
    assert body["token"]
    assert body["expires_at"]

    cookie = r.headers["set-cookie"]
    assert cookie.startswith(f"token={body['token']}")
    assert "HttpOnly" in cookie
    assert "Max-Age=604800" in cookie
    assert "Path=/" in cookie
    assert "samesite=strict" in cookie.lower()


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client):
    email = unique_email("case")
    await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": "Case", "password": DEFAULT_PASSWORD},
    )
    r = await client.post(
        "/api/v1/auth/login",
        json={"email": email.upper(), "password": DEFAULT_PASSWORD},
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client, alice):
    """Wrong password and unknown email get the exact same response."""
    wrong_password = await client.post(
        "/api/v1/auth/login", json={"email": alice["email"], "password": "nope-nope"}
    )
    unknown_email = await client.post(
        "/api/v1/auth/login",
        json={"email": unique_email("ghost"), "password": "nope-nope"},
    )

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {
        "detail": "Invalid credentials"
    }
    assert "set-cookie" not in wrong_password.headers


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"success": True}
    cookie = r.headers["set-cookie"]
    assert cookie.startswith('token=""') or cookie.startswith("token=;")
    assert "Max-Age=0" in cookie


# ═══════════════════════════════════════════════════════════
# Session carriers
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_bearer_token(client, alice):
    r = await client.get("/api/v1/auth/me", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == alice["id"]
    assert r.json()["email"] == alice["email"]


@pytest.mark.asyncio
async def test_me_with_cookie(client, alice):
    """The browser carrier: the `token` cookie alone is enough."""
    client.cookies.set("token", alice["token"])
    try:
        r = await client.get("/api/v1/auth/me")
    finally:
        client.cookies.clear()
    assert r.status_code == 200
    assert r.json()["id"] == alice["id"]


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
async def test_me_with_expired_token(client, alice):
    """A correctly signed but expired token is anonymous."""
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = issue_session_token(alice["id"], now=issued)
    r = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_with_tampered_token(client, alice):
    header, payload, signature = alice["token"].split(".")
    flipped = ("B" if signature[0] == "A" else "A") + signature[1:]
    token = ".".join([header, payload, flipped])
    r = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_session(client):
    """Every resource router is mounted behind get_current_user."""
    for path in ("/api/v1/workspaces", "/api/v1/agents", "/api/v1/teams"):
        r = await client.get(path)
        assert r.status_code == 401, path


# ═══════════════════════════════════════════════════════════
# Cookie security flag
# ═══════════════════════════════════════════════════════════


async def _login_cookie(client) -> str:
    email = unique_email("cookie")
    await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": "Cookie", "password": DEFAULT_PASSWORD},
    )
    r = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 200
    client.cookies.clear()
    return r.headers["set-cookie"]


@pytest.mark.asyncio
async def test_session_cookie_secure_outside_development(client, monkeypatch):
    """Production cookies are only sent over HTTPS."""
    monkeypatch.setattr(settings, "environment", "production")
    cookie = await _login_cookie(client)
    assert "Secure" in cookie
    assert "HttpOnly" in cookie


@pytest.mark.asyncio
async def test_session_cookie_not_secure_in_development(client, monkeypatch):
    monkeypatch.setattr(settings, "environment", "development")
    cookie = await _login_cookie(client)
    assert "Secure" not in cookie
