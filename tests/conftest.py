"""Test fixtures — isolated in-memory databases and app clients.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite, StaticPool so
   every connection sees the same database) with the schema created fresh.
2. A fresh app is built per test from a fixed AuthConfig, with get_db
   overridden to yield the test session.
3. Cookies are sent explicitly via the Cookie header. The session cookie is
   Secure and the test client talks plain http, so the client's cookie jar
   never replays it on its own.
"""

from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from yourschools.auth.config import AuthConfig
from yourschools.auth.password import hash_password
from yourschools.auth.tokens import TokenCodec
from yourschools.db.engine import engine_options, get_db
from yourschools.db.models import Base
from yourschools.main import create_app
from yourschools.services.credential_store import CredentialStore

TEST_DB_URL = "sqlite+aiosqlite://"

TEST_AUTH_CONFIG = AuthConfig(
    secret="test-secret-do-not-use-0123456789abcdef",
    token_expiration=timedelta(hours=3),
    session_lifetime=timedelta(hours=3),
)

PASSWORD = "password_123"


def cookie(token: str) -> dict[str, str]:
    return {"Cookie": f"{TEST_AUTH_CONFIG.cookie_name}={token}"}


def cookie_cleared(response) -> bool:
    header = response.headers.get("set-cookie", "")
    return header.startswith(f"{TEST_AUTH_CONFIG.cookie_name}=") and "Max-Age=0" in header


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a fresh in-memory schema."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        **engine_options(TEST_DB_URL),
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def store(db_session):
    return CredentialStore(db_session, session_lifetime=TEST_AUTH_CONFIG.session_lifetime)


@pytest_asyncio.fixture()
async def codec():
    return TokenCodec(TEST_AUTH_CONFIG)


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client against a fresh app whose get_db yields the test session."""
    app = create_app(TEST_AUTH_CONFIG)

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(store):
    """Create a user row directly, bypassing the API."""
    counter = {"n": 0}

    async def _make(username=None, email=None, is_admin=False):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        return await store.create_user(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(PASSWORD),
            is_admin=is_admin,
        )

    return _make
