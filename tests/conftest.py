"""Pytest configuration and fixtures for the hit counter tests."""

import os

# Settings are read at import time; tests never need a real Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from hits.core.database import Base, get_db_session
from hits.main import app
from hits.models.counter import Counter  # noqa: F401


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine; NullPool gives every session its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hits.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_db(session_factory):
    """Route the app's session dependency to the test database."""

    async def _get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    yield
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture
async def client(override_db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
