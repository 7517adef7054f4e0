"""Test fixtures: a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on an in-memory sqlite database
   (aiosqlite), with tables created straight from the ORM metadata.
2. The app's get_db dependency is overridden to hand out that session,
   so HTTP calls and direct service calls see the same data.
3. Auth is NOT overridden: tests register, log in, and send real
   bearer tokens, so the whole token → identity → guard path runs.

Env vars are set before the app is imported because settings are read
once at import time.
"""

import os

os.environ.setdefault("COURSEREG_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("COURSEREG_JWT_SECRET", "test-secret-key-for-unit-tests-0123456789")
os.environ.setdefault("COURSEREG_BCRYPT_ROUNDS", "4")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coursereg.db.engine import get_db  # noqa: E402
from coursereg.db.models import Base  # noqa: E402
from coursereg.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a throwaway in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with only get_db overridden; auth runs for real."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(client):
    """Register + login; returns auth headers for the new account.

    Usage: headers = await make_user("alice", "TEACHER")
    """

    async def _make(username: str, role: str, password: str = "password") -> dict:
        r = await client.post(
            "/api/v1/auth/register",
            json={"username": username, "password": password, "role": role},
        )
        assert r.status_code == 201, r.text
        r = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _make
