"""
What the background paths need, bundled so services stay stateless.

Handlers receive a BackgroundContext through a FastAPI dependency; services
pass it into the task they submit. Background tasks never reuse the request's
session: they open their own from `session_factory`.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue


@dataclass(frozen=True)
class BackgroundContext:
    tracker: OperationTracker
    queue: TaskQueue
    session_factory: async_sessionmaker[AsyncSession]
    # Stand-in for long-running work before an async update is applied
    update_delay_seconds: float = 0.0
