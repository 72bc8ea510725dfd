"""
Campus Scheduler — Database Wiring Tests
==========================================

What we test:
    ✅ Importing the database module builds no engine
    ✅ create_app() without a session factory owns an engine; the lifespan
       disposes exactly that engine
    ✅ create_app() with a session factory leaves engine disposal to the caller
    ✅ SQLite engines enforce foreign keys
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import text

from campus_scheduler import database, main
from campus_scheduler.database import build_engine


def test_no_engine_at_import():
    assert not hasattr(database, "engine")
    assert not hasattr(database, "async_session_factory")


class TestAppEngine:

    @pytest.mark.asyncio
    async def test_lifespan_disposes_own_engine(self, test_settings, monkeypatch):
        dispose = AsyncMock()
        monkeypatch.setattr(main, "dispose_engine", dispose)
        application = main.create_app(test_settings)
        assert application.state.engine is not None

        async with application.router.lifespan_context(application):
            assert application.state.task_queue.running

        dispose.assert_awaited_once_with(application.state.engine)
        await database.dispose_engine(application.state.engine)

    @pytest.mark.asyncio
    async def test_injected_session_factory_is_not_disposed(
        self, test_settings, session_factory, monkeypatch
    ):
        dispose = AsyncMock()
        monkeypatch.setattr(main, "dispose_engine", dispose)
        application = main.create_app(test_settings, session_factory)

        async with application.router.lifespan_context(application):
            pass

        assert application.state.engine is None
        dispose.assert_not_awaited()


@pytest.mark.asyncio
async def test_sqlite_foreign_keys_enabled(test_settings):
    engine = build_engine(test_settings)
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1
    finally:
        await database.dispose_engine(engine)
