"""
Map Points API: Database Engine & Session Management
=======================================================

What:  Process-wide async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   The engine is created lazily on first use and shared by reference by every
       request; each request gets its own AsyncSession from the shared factory.
       Startup calls connect() to verify reachability; shutdown calls
       dispose_engine() to drain the pool.
Who:   Used by route handlers via FastAPI's dependency injection system,
       by the app lifespan, and by Alembic.
When:  Engine on first access; sessions per request.

Connection Pooling (non-SQLite URLs only):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mappoints.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers models with a single metadata object, which Alembic reads
    for migrations and tests use for create_all().
    """
    pass


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool sizing for server databases; SQLite picks its own pool class."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


def get_engine() -> AsyncEngine:
    """Return the shared engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url, **_engine_options(settings.database_url)
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Return the shared session factory bound to the shared engine.

    expire_on_commit=False keeps attribute values readable after commit,
    so a created Point can be serialized without another round trip.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the shared factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def connect() -> bool:
    """
    Open one connection and run SELECT 1 against the configured database.

    Called once during startup. A failure is logged and reported but does
    not stop the server; requests touching storage will then answer 500
    until the database becomes reachable.
    """
    target = make_url(settings.database_url).render_as_string(hide_password=True)
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database connection error (%s): %s", target, e)
        return False
    logger.info("Connected to database at %s", target)
    return True


async def dispose_engine() -> None:
    """
    Gracefully close all pooled connections and forget the shared engine.

    Called during application shutdown. A later get_engine() builds a new one.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
