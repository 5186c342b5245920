# tests/conftest.py

"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest
from duelrank.config import Settings, get_settings
from duelrank.db.models import Base
from duelrank.db.session import create_session_factory
from duelrank.main import app
from duelrank.store import InMemoryStatsStore, SqlStatsStore, get_store
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts so contention tests finish quickly."""
    return Settings(
        _env_file=None,
        lock_timeout_seconds=1.0,
        update_max_retries=3,
        update_retry_backoff_seconds=0.0,
    )


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh file-backed SQLite database per test.

    A file rather than ``:memory:`` so every pooled connection sees the
    same database.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """A session for inspecting the database directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_store(session_factory, settings: Settings) -> SqlStatsStore:
    return SqlStatsStore(session_factory, settings)


@pytest.fixture
def memory_store(settings: Settings) -> InMemoryStatsStore:
    return InMemoryStatsStore(settings)


@pytest.fixture(params=["memory", "sql"])
def store(request, memory_store: InMemoryStatsStore, sql_store: SqlStatsStore):
    """Runs a test once against each store implementation."""
    return memory_store if request.param == "memory" else sql_store


@pytest.fixture
async def async_client(
    sql_store: SqlStatsStore, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Fixture to provide an async test client for the API."""
    # Point the app at the per-test database and settings
    app.dependency_overrides[get_store] = lambda: sql_store
    app.dependency_overrides[get_settings] = lambda: settings

    transport = ASGITransport(app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up the overrides after the test
    app.dependency_overrides.clear()
