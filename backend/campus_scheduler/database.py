"""
Campus Scheduler — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Builds an async engine with connection pooling and provides a session
       dependency that commits on success and rolls back on error.
Who:   Route handlers (per-request sessions) and background tasks (which
       open their own sessions from the same factory).
When:  Nothing is built at import. create_app() builds the engine and factory
       from its settings and the lifespan disposes the engine; tests hand
       create_app() their own SQLite session factory.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs skip the pool arguments; aiosqlite uses its own pool class.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from campus_scheduler.config import Settings


def build_engine(app_settings: Settings) -> AsyncEngine:
    """Create an async engine for the configured database URL."""
    kwargs = {"echo": app_settings.log_level == "DEBUG"}
    if not app_settings.uses_sqlite:
        kwargs.update(
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_pre_ping=app_settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    bind = create_async_engine(app_settings.database_url, **kwargs)
    if app_settings.uses_sqlite:
        event.listen(bind.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return bind


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite only enforces FOREIGN KEY / ON DELETE CASCADE when enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: ORM objects stay readable after commit,
    # responses are serialized from them after the session closes
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they register with a single
    metadata object (used by Alembic and by the test suite's create_all).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the application's session factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(bind: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool on shutdown."""
    await bind.dispose()
