# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# Async SQLAlchemy engine for the durable-storage deployment. The demo
# deployment keeps analyses in memory only, so nothing here runs unless
# `persistence_enabled` is set; the engine is therefore created lazily
# rather than at import time.
#
# SESSION LIFECYCLE:
# 1. `get_async_session` (FastAPI dependency) or `session_scope()` (background
#    task) creates a new session
# 2. Caller uses the session
# 3. Session commits on exit; on exception, the transaction is rolled back
# =============================================================================

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from earnings_analyzer.config import settings

_async_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_async_engine() -> AsyncEngine:
    """Lazily create and cache the async engine."""
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
        )
    return _async_engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Lazily create and cache the session factory.

    expire_on_commit=False: attributes stay readable after commit, outside
    of any session.
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory


def configure_engine(engine: AsyncEngine) -> None:
    """Point the module at an existing engine (used by tests)."""
    global _async_engine, _async_session_factory
    _async_engine = engine
    _async_session_factory = None


async def init_models() -> None:
    """Create all tables that do not exist yet."""
    from earnings_analyzer.db.models import Base

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _async_engine, _async_session_factory
    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Self-managed session for code running outside a request (the background
    analysis task). Commits on exit, rolls back on exception.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The session is automatically closed when the request completes.
    If an exception occurs, the transaction is rolled back.
    """
    async with session_scope() as session:
        yield session
