"""
Campus Scheduler — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the test suite.
How:   API tests run the real application against a per-test SQLite file
       (aiosqlite) with the in-memory operation store; unit tests use the
       mocked session.

Fixture Hierarchy:
    test_settings ─▶ session_factory ─▶ app ─▶ client
                                         │
                                         └── task queue workers started/stopped
                                             here (ASGITransport does not run
                                             the lifespan)
    two_workers: same app, queue restarted with two workers
    mock_db_session: AsyncMock standing in for AsyncSession
    schedule / appointment: rows created through the API
"""

import os

# Override settings BEFORE any application import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["OPERATION_STORE_URL"] = "memory://"
os.environ["ASYNC_UPDATE_DELAY_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import campus_scheduler.models  # noqa: E402,F401
from campus_scheduler.config import Settings  # noqa: E402
from campus_scheduler.database import Base, build_engine, build_session_factory  # noqa: E402
from campus_scheduler.main import create_app  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'scheduler.db'}",
        operation_store_url="memory://",
        async_update_delay_seconds=0.0,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def session_factory(test_settings):
    """Fresh schema in a throwaway SQLite file for each test."""
    engine = build_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def app(test_settings, session_factory):
    application = create_app(test_settings, session_factory)
    await application.state.task_queue.start()
    yield application
    await application.state.task_queue.stop()


@pytest_asyncio.fixture
async def two_workers(app):
    """Restart the app's task queue with two workers; returns the queue."""
    queue = app.state.task_queue
    await queue.stop()
    queue.worker_count = 2
    await queue.start()
    return queue


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient routed straight into the app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def mock_db_session():
    """AsyncMock simulating AsyncSession for service-level unit tests."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Seed data
# ══════════════════════════════════════════════════════════════════════════

SCHEDULE_PAYLOAD = {
    "ownerId": "prof-ada",
    "title": "Office hours",
    "location": "Room 204",
    "startTime": "2026-03-02T09:00:00Z",
    "endTime": "2026-03-02T12:00:00Z",
}

APPOINTMENT_PAYLOAD = {
    "userId": "student-1",
    "startTime": "2026-03-02T09:00:00Z",
    "endTime": "2026-03-02T09:30:00Z",
}


@pytest_asyncio.fixture
async def schedule(client):
    response = await client.post("/schedules", json=SCHEDULE_PAYLOAD)
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def appointment(client, schedule):
    response = await client.post(
        "/appointments", json={**APPOINTMENT_PAYLOAD, "scheduleId": schedule["id"]}
    )
    assert response.status_code == 201, response.text
    return response.json()
