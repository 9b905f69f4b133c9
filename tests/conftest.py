"""Test fixtures — a fresh SQLite database file per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on a temp-file SQLite database
   (aiosqlite), with every table created from the ORM metadata.
2. The app's get_db and get_session_factory dependencies are
   overridden to use that engine, so services commit for real and
   the team listing can still open its own concurrent sessions.
3. The file lives in pytest's tmp_path — nothing leaks between tests.

Environment is set before lunay is imported, because settings and the
default engine are built at import time.
"""

import os
import tempfile
import uuid

_DEFAULT_DB_DIR = tempfile.mkdtemp(prefix="lunay-tests-")
os.environ.setdefault(
    "LUNAY_DATABASE_URL", f"sqlite+aiosqlite:///{_DEFAULT_DB_DIR}/default.db"
)
os.environ.setdefault("LUNAY_SESSION_SECRET", "test-session-secret-0123456789abcdef")
os.environ.setdefault("LUNAY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LUNAY_ENVIRONMENT", "development")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from lunay.db.engine import build_engine, get_db, get_session_factory  # noqa: E402
from lunay.db.models import Base  # noqa: E402
from lunay.main import app  # noqa: E402

DEFAULT_PASSWORD = "secret1"


@pytest_asyncio.fixture()
async def engine(tmp_path):
    """Per-test engine on its own database file, schema created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'lunay.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Direct session for seeding rows and checking what the API wrote."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with the app's database dependencies overridden.

    Learn: Auth is NOT overridden. Tests sign up and log in through the
    real endpoints and send the token as a Bearer header (see signup()),
    so every request goes through the real session reader and guard.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


async def signup(client, name: str = "Alice", email: str | None = None) -> dict:
    """Register + log in a user. Returns {"id", "email", "token", "headers"}.

    The login cookie is dropped from the client jar so that requests
    only carry the identity passed explicitly in headers.
    """
    email = email or unique_email(name.lower())
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": name, "password": DEFAULT_PASSWORD},
    )
    assert r.status_code == 201, r.text

    r = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 200, r.text
    client.cookies.clear()

    body = r.json()
    return {
        "id": body["user"]["id"],
        "email": email,
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest_asyncio.fixture()
async def make_user(client):
    """Factory fixture: `await make_user("Carol")` → signed-in user dict."""
    async def _make(name: str = "User", email: str | None = None) -> dict:
        return await signup(client, name=name, email=email)

    return _make


@pytest_asyncio.fixture()
async def alice(make_user):
    return await make_user("Alice")


@pytest_asyncio.fixture()
async def bob(make_user):
    return await make_user("Bob")
