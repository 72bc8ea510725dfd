"""
Campus Scheduler — Appointment Service Unit Tests
===================================================

What:  AppointmentService and CrudService logic with a mocked session, no
       database and no HTTP.

What we test:
    ✅ get() raises NotFoundError for a missing row
    ✅ Sort field whitelist accepts snake_case and camelCase, rejects others
    ✅ accept_async_update(): 404 writes nothing, full queue writes nothing,
       accepted update writes a processing record and queues one task
    ✅ accept_bulk_update(): queues a job without writing a record
    ✅ Time-window rule on partial updates
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from campus_scheduler.exceptions import NotFoundError, ServiceBusyError, ValidationError
from campus_scheduler.schemas.appointment import AppointmentBulkItem, AppointmentUpdate
from campus_scheduler.schemas.operation import OperationStatus
from campus_scheduler.services.appointment_service import AppointmentService
from campus_scheduler.services.background import BackgroundContext
from campus_scheduler.services.operation_store import InMemoryOperationStore
from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue


def _context(queue=None):
    store = InMemoryOperationStore()
    return BackgroundContext(
        tracker=OperationTracker(store),
        queue=queue or TaskQueue(),
        session_factory=MagicMock(),
    ), store


class TestLookupAndSorting:

    def setup_method(self):
        self.service = AppointmentService()

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get(mock_db_session, 42)

        assert exc_info.value.context["resource_id"] == "42"

    def test_sort_column_accepts_both_spellings(self):
        assert self.service._sort_column("start_time").key == "start_time"
        assert self.service._sort_column("startTime").key == "start_time"
        assert self.service._sort_column(None).key == "start_time"

    def test_sort_column_rejects_unknown(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service._sort_column("notes")
        assert exc_info.value.field == "sortBy"

    def test_time_window_rule(self):
        start = datetime(2026, 3, 2, 9, tzinfo=timezone.utc)
        self.service.validate(SimpleNamespace(start_time=start, end_time=start.replace(hour=10)))

        with pytest.raises(ValidationError):
            self.service.validate(SimpleNamespace(start_time=start, end_time=start))


class TestAcceptAsyncUpdate:

    def setup_method(self):
        self.service = AppointmentService()

    @pytest.mark.asyncio
    async def test_missing_appointment_writes_nothing(self, mock_db_session):
        mock_db_session.get.return_value = None
        ctx, store = _context()

        with pytest.raises(NotFoundError):
            await self.service.accept_async_update(
                mock_db_session, 7, AppointmentUpdate(status="cancelled"), ctx
            )

        assert len(store) == 0
        assert ctx.queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_full_queue_writes_nothing(self, mock_db_session):
        mock_db_session.get.return_value = MagicMock(id=7)
        queue = TaskQueue(maxsize=1)

        async def noop():
            return None

        queue.submit("occupied", noop)
        ctx, store = _context(queue)

        with pytest.raises(ServiceBusyError):
            await self.service.accept_async_update(
                mock_db_session, 7, AppointmentUpdate(status="cancelled"), ctx
            )

        assert len(store) == 0
        await queue.stop()

    @pytest.mark.asyncio
    async def test_accepted_update_is_tracked_and_queued(self, mock_db_session):
        mock_db_session.get.return_value = MagicMock(id=7)
        ctx, store = _context()

        operation_id = await self.service.accept_async_update(
            mock_db_session, 7, AppointmentUpdate(notes="room changed"), ctx
        )

        record = await store.get(operation_id)
        assert record.status is OperationStatus.PROCESSING
        assert record.resource_id == "7"
        assert record.data == {"notes": "room changed"}
        assert ctx.queue.is_pending(operation_id)
        await ctx.queue.stop()


class TestAcceptBulkUpdate:

    @pytest.mark.asyncio
    async def test_job_is_queued_without_record(self):
        service = AppointmentService()
        ctx, store = _context()

        job_id = service.accept_bulk_update(
            [AppointmentBulkItem(id=1, status="completed"), AppointmentBulkItem(id=2, notes="x")],
            ctx,
        )

        assert ctx.queue.is_pending(job_id)
        assert len(store) == 0
        await ctx.queue.stop()
