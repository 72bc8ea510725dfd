"""
Campus Scheduler — Operation Tracker Tests
============================================

What we test:
    ✅ begin() writes a processing record carrying the requested payload
    ✅ complete()/fail() move it to a terminal state
    ✅ A terminal record is never overwritten
    ✅ Terminal writes without a prior record (bulk jobs)
"""

import pytest

from campus_scheduler.schemas.operation import OperationStatus
from campus_scheduler.services.operation_store import InMemoryOperationStore
from campus_scheduler.services.operation_tracker import OperationTracker


class TestOperationTracker:

    def setup_method(self):
        self.store = InMemoryOperationStore()
        self.tracker = OperationTracker(self.store)

    @pytest.mark.asyncio
    async def test_begin_writes_processing(self):
        await self.tracker.begin(
            "op-1", resource_type="appointment", resource_id=7, data={"status": "completed"}
        )

        record = await self.tracker.get("op-1")
        assert record.status is OperationStatus.PROCESSING
        assert record.resource_id == "7"
        assert record.operation == "update"
        assert record.data == {"status": "completed"}
        assert record.result is None

    @pytest.mark.asyncio
    async def test_complete_sets_result_and_clears_payload(self):
        await self.tracker.begin("op-1", resource_type="appointment", resource_id=7, data={"a": 1})

        await self.tracker.complete("op-1", {"id": 7, "status": "completed"})

        record = await self.tracker.get("op-1")
        assert record.status is OperationStatus.COMPLETED
        assert record.result == {"id": 7, "status": "completed"}
        assert record.error is None
        assert record.data is None
        assert record.updated_at >= record.created_at

    @pytest.mark.asyncio
    async def test_fail_sets_error(self):
        await self.tracker.begin("op-1", resource_type="appointment", resource_id=7)

        await self.tracker.fail("op-1", "endTime must be after startTime")

        record = await self.tracker.get("op-1")
        assert record.status is OperationStatus.FAILED
        assert record.error == "endTime must be after startTime"
        assert record.result is None

    @pytest.mark.asyncio
    async def test_terminal_record_is_not_overwritten(self):
        await self.tracker.begin("op-1", resource_type="appointment", resource_id=7)
        await self.tracker.complete("op-1", {"id": 7})

        written = await self.tracker.fail("op-1", "late failure")

        assert written is None
        record = await self.tracker.get("op-1")
        assert record.status is OperationStatus.COMPLETED
        assert record.result == {"id": 7}

    @pytest.mark.asyncio
    async def test_terminal_write_without_prior_record(self):
        await self.tracker.complete(
            "job-1", {"updated": 3}, resource_type="appointment", operation="bulk_update"
        )

        record = await self.tracker.get("job-1")
        assert record.status is OperationStatus.COMPLETED
        assert record.operation == "bulk_update"
        assert record.result == {"updated": 3}

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self):
        assert await self.tracker.get("missing") is None
