"""
Database Connection Module
Handles the hosted PostgreSQL connection using the SQLAlchemy async engine.

The engine is created on first use so development mode, which runs on the
in-memory repositories, never opens a database connection.
"""

import logging
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create (once) the async engine for the hosted store."""
    settings = get_settings()
    url = settings.database_url

    kwargs = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=5, max_overflow=10)

    return create_async_engine(url, **kwargs)


def get_session_maker(engine: Optional[AsyncEngine] = None) -> async_sessionmaker[AsyncSession]:
    """Session factory; objects remain accessible after commit."""
    return async_sessionmaker(
        bind=engine or get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables in the database.
    Called once at application startup in non-development modes.
    """
    # Register the mapped tables on Base.metadata
    import storefront.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


async def dispose_engine() -> None:
    """Close pooled connections if the engine was ever created."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_engine.cache_clear()
