"""Tests for middleware — security headers, request IDs, route guard, rate limit.

Learn: Redis isn't running in tests, so the rate limiter normally
skips itself. The rate-limit tests install a small in-memory stand-in
for the two commands it uses (INCR, EXPIRE) and remove it afterwards.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from lunay.cache import set_redis
from lunay.main import app


# ═══════════════════════════════════════════════════════════
# Security headers + request id
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["X-XSS-Protection"] == "1; mode=block"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


# ═══════════════════════════════════════════════════════════
# Route guard
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_protected_page_redirects_to_login(client):
    r = await client.get("/dashboard")
    assert r.status_code == 307
    assert r.headers["location"] == "/auth/login"
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_expired_cookie_counts_as_anonymous(client):
    """A garbage cookie is no session: redirect to login, not a loop."""
    client.cookies.set("token", "not-a-jwt")
    try:
        r = await client.get("/dashboard")
        assert r.headers["location"] == "/auth/login"
        r = await client.get("/auth/login")
        assert r.status_code != 307
    finally:
        client.cookies.clear()


@pytest.mark.asyncio
async def test_signed_in_user_bounced_from_login(client, alice):
    client.cookies.set("token", alice["token"])
    try:
        r = await client.get("/auth/login")
        assert r.status_code == 307
        assert r.headers["location"] == "/dashboard"

        # Protected pages pass through to routing (no page is mounted here)
        r = await client.get("/dashboard")
        assert r.status_code == 404
    finally:
        client.cookies.clear()


@pytest.mark.asyncio
async def test_public_pages_pass_without_session(client):
    for path in ("/", "/subscription", "/try-luna", "/auth/login", "/openapi.json"):
        r = await client.get(path)
        assert r.status_code != 307, path


@pytest.mark.asyncio
async def test_api_paths_never_redirect(client):
    """API callers get a 401 body, not a login redirect."""
    r = await client.get("/api/v1/workspaces")
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Rate limiting
# ═══════════════════════════════════════════════════════════


class CountingRedis:
    """In-memory INCR/EXPIRE/PING, enough for the limiter and health check."""

    def __init__(self, start: int = 0):
        self.start = start
        self.counts: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, self.start) + 1
        return self.counts[key]

    async def expire(self, key: str, seconds: int) -> bool:
        self.ttls[key] = seconds
        return True

    async def ping(self) -> bool:
        return True


@pytest.fixture()
def fake_redis():
    redis = CountingRedis()
    set_redis(redis)
    yield redis
    set_redis(None)


@pytest.mark.asyncio
async def test_rate_limit_headers(client, fake_redis):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert r.headers["X-RateLimit-Remaining"] == "99"
    (key,) = fake_redis.counts
    assert key.startswith("lunay:rl:")
    assert ":api:" in key
    assert fake_redis.ttls[key] == 120


@pytest.mark.asyncio
async def test_rate_limit_exceeded_on_login(client, fake_redis):
    """The login bucket allows 10 per minute; the 11th is a 429."""
    body = {"email": "nobody@example.com", "password": "whatever"}
    for _ in range(10):
        r = await client.post("/api/v1/auth/login", json=body)
        assert r.status_code == 401

    r = await client.post("/api/v1/auth/login", json=body)
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


# ═══════════════════════════════════════════════════════════
# Credential caching
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_response_is_not_cacheable(client, alice):
    r = await client.post(
        "/api/v1/auth/login", json={"email": alice["email"], "password": "secret1"}
    )
    client.cookies.clear()
    assert r.status_code == 200
    assert r.headers["Cache-Control"] == "no-store"
    assert r.headers["Pragma"] == "no-cache"


@pytest.mark.asyncio
async def test_me_is_not_cacheable(client, alice):
    r = await client.get("/api/v1/auth/me", headers=alice["headers"])
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_ordinary_responses_keep_default_caching(client):
    r = await client.get("/api/v1/health")
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_hsts_on_https():
    """HSTS is only sent when the request came over HTTPS."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as https_client:
        r = await https_client.get("/openapi.json")
    assert r.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"
