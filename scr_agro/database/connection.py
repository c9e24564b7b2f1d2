"""
Database Connection Management

One process-wide async engine for the backend Postgres database. The
dashboard only reads; sessions still commit so the REPEATABLE READ snapshot
transaction is closed cleanly.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from scr_agro.config import get_settings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Create the engine and verify the database answers.

    Args:
        url: SQLAlchemy URL overriding the configured one (tests, seeding)
    """
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    settings = get_settings()
    target = make_url(url or settings.database.async_url)

    # Connections are opened per snapshot read; nothing is pooled between requests
    engine = create_async_engine(target, echo=settings.database.echo, poolclass=NullPool)

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database unreachable", host=target.host, database=target.database, error=str(e))
        await engine.dispose()
        raise

    _engine = engine
    _session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    logger.info("Database connected", backend=target.get_backend_name(), host=target.host, database=target.database)
    return _engine


async def close_database() -> None:
    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database engine disposed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Session scope: commit on success, roll back and re-raise on error.

    Example:
        async with get_db() as db:
            snapshot = await load_snapshot(db)
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning("Rolling back session", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


async def check_database_health() -> dict:
    """Round-trip latency to the database, or the error preventing it"""
    started = time.perf_counter()
    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "latency_ms": round((time.perf_counter() - started) * 1000, 2)}
