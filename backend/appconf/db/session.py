"""Database engine and session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from appconf.core.config import Settings
from appconf.core.logging import get_logger
from appconf.db.base import Base
from appconf.db import models  # noqa: F401  registers tables on Base.metadata

logger = get_logger(__name__)

_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def normalize_database_url(url: str) -> str:
    """Rewrite plain driver URLs to their asyncio drivers.

    ``DATABASE_URL`` values are often shared with tools that expect
    ``postgres://`` URLs; the engine needs ``postgresql+asyncpg://``.
    """
    for prefix, replacement in _DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or "mode=memory" in url or url.endswith("://"))


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine described by settings.

    Server databases get a bounded pool (``db_pool_size`` connections, no
    overflow) so excess requests wait for a free connection. In-memory SQLite
    shares a single connection so every session sees the same database.
    """
    url = normalize_database_url(settings.database_url)
    kwargs: dict[str, Any] = {"echo": settings.debug}

    if _is_memory_sqlite(url):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    elif url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": 30}
    else:
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = 0
        kwargs["pool_pre_ping"] = True

    return create_async_engine(url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine, *, create_schema: bool = False) -> None:
    """Verify the database is reachable, optionally creating the table.

    Raises:
        Any driver error when no connection can be obtained; the caller treats
        this as an unrecoverable startup failure.
    """
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if create_schema:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("database_schema_ensured")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    The session factory lives on ``app.state`` and is created by the
    application lifespan.

    Yields:
        An async database session.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
