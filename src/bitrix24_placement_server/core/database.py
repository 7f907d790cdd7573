"""Database initialization and session management."""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bitrix24_placement_server.models.base import Base

logger = logging.getLogger(__name__)


def create_engine(url: str) -> AsyncEngine:
    """Create database engine.

    Pool sizing only applies to server databases; SQLite uses its default pool.

    Args:
        url: SQLAlchemy async URL, normally `Settings.database_url`

    Returns:
        Async SQLAlchemy engine
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)

    return create_async_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,  # Recycle connections every 5 minutes
    )


def create_session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to `db_engine`."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_database(db_engine: AsyncEngine) -> None:
    """Create the settings tables if they do not exist yet."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")

