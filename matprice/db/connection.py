"""Engine and store sessions for the matprice price database.

Commands open a ``store_session()`` and work on the SqlPriceStore it yields.
The store commits each write itself, so the session scope only has to roll
back whatever is pending when a command fails.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from matprice.config import DBConfig, get_config
from matprice.db.models import Base
from matprice.db.store import SqlPriceStore

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker | None = None


def engine_options(db: DBConfig) -> dict:
    """Keyword arguments for create_async_engine; pool sizing only applies to server databases."""
    options: dict = {"echo": db.echo}
    if not db.url.lower().startswith("sqlite"):
        options.update(
            pool_size=db.pool_size,
            max_overflow=db.pool_max_overflow,
            pool_timeout=db.pool_timeout,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    """Engine for DATABASE_URL, created on first use.

    Raises:
        KeyError: If DATABASE_URL is not configured
    """
    global _engine, _sessions

    if _engine is None:
        db = get_config().db
        _engine = create_async_engine(db.url, **engine_options(db))
        # Records are converted to pydantic models after commit
        _sessions = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


@asynccontextmanager
async def store_session() -> AsyncIterator[SqlPriceStore]:
    """Price store bound to a fresh session, closed on exit.

    Usage:
        async with store_session() as store:
            ledger = PriceLedger(store)
    """
    get_engine()
    session = _sessions()
    try:
        yield SqlPriceStore(session)
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(drop: bool = False) -> None:
    """Create the material, price source and price tables.

    Args:
        drop: Drop the existing tables (and every recorded price) first
    """
    async with get_engine().begin() as conn:
        if drop:
            logger.warning("Dropping price database tables")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Price database schema ready")


async def close_db() -> None:
    """Dispose the engine; the next store_session() reconnects."""
    global _engine, _sessions

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessions = None
