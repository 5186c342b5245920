# src/duelrank/db/session.py

"""Database session management."""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from duelrank.config import Settings, get_settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine with appropriate configuration.

    SQLite doesn't support connection pooling, so we only configure
    pool settings for other databases like PostgreSQL.
    """
    url = settings.database_url

    # SQLite doesn't support connection pooling
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.db_echo)

    # PostgreSQL and other databases get full pool configuration
    return create_async_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=settings.db_pool_recycle,
        echo=settings.db_echo,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: Objects remain accessible after commit.
    return async_sessionmaker(
        bind=bind, autocommit=False, autoflush=False, expire_on_commit=False
    )


# The engine is the core interface to the database.
engine = create_engine_from_settings(get_settings())

AsyncSessionLocal = create_session_factory(engine)

