"""
Database engine and session management for the authoritative tier
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from geotracker.config import get_settings
from geotracker.models import Base

# Built on first use; close_db() drops both so a worker's next event loop gets a fresh engine
_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker] = None


def database_url() -> str:
    """DATABASE_URL with a plain postgresql:// scheme switched to asyncpg"""
    url = get_settings().DATABASE_URL
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = get_settings()
        url = database_url()
        options = {"echo": settings.DEBUG, "pool_pre_ping": True}
        if url.startswith("sqlite"):
            options["poolclass"] = NullPool
        else:
            options["pool_size"] = settings.DATABASE_POOL_SIZE
            options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
        _engine = create_async_engine(url, **options)
    return _engine


def _get_session_maker() -> async_sessionmaker:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_maker


@asynccontextmanager
async def get_db_context() -> AsyncIterator[AsyncSession]:
    """
    Session scope used by the SQL tier and the campaign/schedule services.

    Commits when the block exits cleanly and rolls back otherwise.
    """
    async with _get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create missing tables"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
