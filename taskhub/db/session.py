"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy.
Production runs on asyncpg; tests point DATABASE_URL at aiosqlite.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from taskhub.core.config import settings
from taskhub.db.base import Base


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keeps loaded tasks usable for realtime emits after commit
)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create all tables registered on the metadata (no migrations)."""
    # Import models so they are registered with the metadata
    import taskhub.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for one request.

    Routers commit explicitly before emitting realtime events; anything
    left pending when the request fails is rolled back here.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager helper for async DB sessions (used by workers and scripts)."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
