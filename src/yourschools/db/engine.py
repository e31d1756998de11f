"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
Every credential lookup in the auth core is a single awaited call on the
request's session; timeouts and retries belong to the driver, not to us.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from yourschools.config import settings


def engine_options(database_url: str) -> dict:
    """Pool sizing for server databases; SQLite (local dev) gets driver defaults."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # min 5, max 20 connections
    return {"pool_size": 5, "max_overflow": 15, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **engine_options(settings.database_url),
)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        yield session
