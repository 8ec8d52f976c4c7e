"""Async database engine and session management.

Provides async SQLite connections via SQLModel and aiosqlite.  The schema
is created on first initialisation.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from glossator.config import get_settings
from glossator.db import models  # noqa: F401  registers tables on the metadata

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


@dataclass
class _DatabaseState:
    """Internal state holder for database engine and session factory."""

    engine: AsyncEngine | None = field(default=None)
    session_factory: async_sessionmaker[AsyncSession] | None = field(default=None)


# Module-level state (initialized on startup)
_state = _DatabaseState()


def get_database_url() -> str:
    """Get database URL from Settings.

    Returns:
        SQLAlchemy connection string with the aiosqlite driver.

    Raises:
        ValueError: If DATABASE__URL is empty.
    """
    url = get_settings().database.url
    if not url:
        msg = (
            "DATABASE__URL is not configured. "
            "Set it in your .env file or as an environment variable."
        )
        raise ValueError(msg)
    return url


def get_engine() -> AsyncEngine | None:
    """Get the database engine for direct access.

    Returns:
        The async engine if initialized, None otherwise.
    """
    return _state.engine


async def init_db(url: str | None = None) -> None:
    """Initialize database engine, session factory and schema.

    Args:
        url: Connection string overriding ``DATABASE__URL`` (tests pass a
            temporary file here).
    """
    database_url = url or get_database_url()
    _state.engine = create_async_engine(
        database_url,
        echo=get_settings().database.echo,
    )
    async with _state.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    _state.session_factory = async_sessionmaker(
        _state.engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("Annotation store ready at %s", _state.engine.url)


async def close_db() -> None:
    """Close database connections.

    Disposes of the engine and clears module state.
    """
    if _state.engine:
        await _state.engine.dispose()
        _state.engine = None
        _state.session_factory = None


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async database session.

    Yields a session that auto-commits on success and rolls back on error.
    Exceptions are logged before re-raising.

    Lazily initializes the database engine on first use if not already
    initialized.

    Usage:
        async with get_session() as session:
            note = await session.get(Annotation, annotation_id)

    Yields:
        AsyncSession: Database session for executing queries.
    """
    if _state.session_factory is None:
        await init_db()

    session_factory = _state.session_factory
    assert session_factory is not None  # For type narrowing

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.exception("Database session error, rolling back transaction")
            await session.rollback()
            raise
