"""
Async database engine, session factory, and ORM base.

Rules enforced:
  • Every DB call goes through AsyncSession.
  • Sessions are request-scoped via FastAPI's Depends(get_db_session).
  • The declarative Base is shared across all models so Alembic can
    auto-detect schema changes from a single metadata object.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hits.core.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    """Driver-specific options; asyncpg gets a per-statement timeout."""
    options: dict[str, Any] = {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
    }
    if url.startswith("postgresql+asyncpg"):
        options["pool_timeout"] = settings.DB_POOL_TIMEOUT_SECONDS
        options["connect_args"] = {
            "command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS,
        }
    return options


def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(url, **_engine_options(url))


# ── Engine ──────────────────────────────────────────────────
# pool_pre_ping: drop stale connections before reuse
# echo: SQL logging — only in debug mode
engine = build_engine(settings.DATABASE_URL)

# ── Session factory ─────────────────────────────────────────
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # avoid lazy-load issues after commit
)


# ── ORM Base ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Shared declarative base for all SQLAlchemy models."""


# ── Dependency ──────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a scoped async session for one request.

    The session is committed by the service layer;
    this generator only guarantees cleanup on exit.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
