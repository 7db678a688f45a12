"""Async engine and session lifecycle for the Habitta store.

One engine per process. The web app disposes it on shutdown; CLI commands
dispose it after each run.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from habitta.config import DBConfig, get_config
from habitta.db.models import Base

_engine: AsyncEngine | None = None
_session_factory: sessionmaker | None = None


def is_sqlite_url(url: str) -> bool:
    return "sqlite" in url.lower()


def engine_options(db_config: DBConfig) -> dict[str, Any]:
    """Keyword arguments for create_async_engine.

    Pool sizing only applies to server databases; aiosqlite uses its own pool.
    """
    options: dict[str, Any] = {"echo": db_config.echo}
    if is_sqlite_url(db_config.url):
        return options

    options["pool_size"] = db_config.pool_size
    options["max_overflow"] = db_config.pool_max_overflow
    options["pool_timeout"] = db_config.pool_timeout
    options["pool_pre_ping"] = True
    options["pool_recycle"] = 3600
    return options


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use.

    Raises:
        KeyError: If DATABASE_URL is not set
    """
    global _engine

    if _engine is None:
        db_config = get_config().db
        _engine = create_async_engine(db_config.url, **engine_options(db_config))

    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory

    if _session_factory is None:
        # Prediction rows are read back after commit for the run summary
        _session_factory = sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)

    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on clean exit.

    Usage:
        async with get_session() as session:
            summary = await run_predictions(session, address_id)

    Any exception rolls the session back and propagates.
    """
    session = get_session_factory()()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(drop: bool = False) -> None:
    """Create every Habitta table, optionally dropping them first."""
    async with get_engine().begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
