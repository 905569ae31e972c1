"""
Database connection management.
Handles async SQLAlchemy engine and session creation.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from msgqueue.config import Settings, get_settings
from msgqueue.db.models import Base

logger = logging.getLogger(__name__)

# Process-wide engine used by the API server
_engine: AsyncEngine | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """
    Get or create the async database engine.

    Args:
        settings: Settings used when the engine is first created.

    Returns:
        AsyncEngine: The SQLAlchemy async engine instance.
    """
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        options: dict = {
            "echo": settings.log_level.upper() == "DEBUG",
            "pool_pre_ping": True,
        }
        # SQLite pools take no sizing options
        if not settings.database_url.startswith("sqlite"):
            options["pool_size"] = settings.database_pool_size
            options["max_overflow"] = settings.database_max_overflow
        _engine = create_async_engine(settings.database_url, **options)
    return _engine


def get_test_engine(database_url: str) -> AsyncEngine:
    """
    Create a test database engine with NullPool.

    Args:
        database_url: The database URL for testing.

    Returns:
        AsyncEngine: The test SQLAlchemy async engine instance.
    """
    return create_async_engine(
        database_url,
        poolclass=NullPool,
        echo=False,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create the ``queues`` and ``queue_messages`` tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """
    Connect to the configured database.
    Should be called on application startup.

    Creates the tables first when ``database_create_tables`` is set;
    otherwise the schema is expected to be at the latest Alembic revision.

    Returns:
        The session factory the SQL stores share.
    """
    settings = settings or get_settings()
    engine = get_engine(settings)
    if settings.database_create_tables:
        await create_tables(engine)
    logger.info(
        "Database connection initialized",
        extra={"dialect": engine.dialect.name},
    )
    return create_session_factory(engine)


async def close_db() -> None:
    """
    Close the database connection.
    Should be called on application shutdown.
    """
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database connection closed")


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """
    Open a session that commits on success and rolls back on error.

    Yields:
        AsyncSession: An async database session.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
