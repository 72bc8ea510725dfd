"""
Campus Scheduler — Operation Store Tests
==========================================

What we test:
    ✅ get/set/overwrite on the in-memory store
    ✅ Records expire after the TTL (fake clock, no sleeping)
    ✅ Stored records cannot be mutated through returned copies
    ✅ Redis store: key prefix, JSON payload, SET ... EX, ping failure
    ✅ build_operation_store() picks the implementation from the URL
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from campus_scheduler.config import Settings
from campus_scheduler.schemas.operation import OperationRecord, OperationStatus
from campus_scheduler.services.operation_store import (
    InMemoryOperationStore,
    RedisOperationStore,
    build_operation_store,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _record(operation_id: str = "op-1", status=OperationStatus.PROCESSING) -> OperationRecord:
    return OperationRecord(
        operation_id=operation_id,
        status=status,
        resource_type="appointment",
        resource_id="7",
        operation="update",
        data={"notes": "bring laptop"},
    )


class TestInMemoryOperationStore:

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        store = InMemoryOperationStore()
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self):
        store = InMemoryOperationStore()
        await store.set("op-1", _record())

        record = await store.get("op-1")
        assert record.status is OperationStatus.PROCESSING
        assert record.data == {"notes": "bring laptop"}

    @pytest.mark.asyncio
    async def test_set_overwrites(self):
        store = InMemoryOperationStore()
        await store.set("op-1", _record())
        await store.set("op-1", _record(status=OperationStatus.COMPLETED))

        assert (await store.get("op-1")).status is OperationStatus.COMPLETED
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_record_expires_after_ttl(self):
        clock = FakeClock()
        store = InMemoryOperationStore(ttl_seconds=60, clock=clock)
        await store.set("op-1", _record())

        clock.now += 59
        assert await store.get("op-1") is not None

        clock.now += 1
        assert await store.get("op-1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_rewrite_extends_expiry(self):
        clock = FakeClock()
        store = InMemoryOperationStore(ttl_seconds=60, clock=clock)
        await store.set("op-1", _record())
        clock.now += 50
        await store.set("op-1", _record(status=OperationStatus.COMPLETED))
        clock.now += 50

        assert await store.get("op-1") is not None

    @pytest.mark.asyncio
    async def test_sweep_evicts_expired_records(self):
        clock = FakeClock()
        store = InMemoryOperationStore(ttl_seconds=10, clock=clock, sweep_every=2)
        await store.set("old", _record("old"))
        clock.now += 20
        await store.set("new", _record("new"))

        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_returned_record_is_a_copy(self):
        store = InMemoryOperationStore()
        await store.set("op-1", _record())

        record = await store.get("op-1")
        record.data["notes"] = "tampered"

        assert (await store.get("op-1")).data == {"notes": "bring laptop"}

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemoryOperationStore()
        await store.set("op-1", _record())
        await store.delete("op-1")
        assert await store.get("op-1") is None


class TestRedisOperationStore:

    def setup_method(self):
        self.client = AsyncMock()
        self.store = RedisOperationStore(self.client, ttl_seconds=120)

    @pytest.mark.asyncio
    async def test_set_writes_json_with_expiry(self):
        await self.store.set("op-1", _record())

        self.client.set.assert_awaited_once()
        args, kwargs = self.client.set.call_args
        assert args[0] == "operation:op-1"
        assert '"operationId":"op-1"' in args[1]
        assert kwargs["ex"] == 120

    @pytest.mark.asyncio
    async def test_get_parses_stored_json(self):
        self.client.get.return_value = _record().model_dump_json(by_alias=True)

        record = await self.store.get("op-1")

        self.client.get.assert_awaited_once_with("operation:op-1")
        assert record.operation_id == "op-1"
        assert record.resource_type == "appointment"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        self.client.get.return_value = None
        assert await self.store.get("op-1") is None

    @pytest.mark.asyncio
    async def test_ping_failure_reports_unavailable(self):
        self.client.ping.side_effect = RedisConnectionError("refused")
        assert await self.store.ping() is False

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        await self.store.close()
        self.client.aclose.assert_awaited_once()


class TestBuildOperationStore:

    def test_memory_url(self):
        store = build_operation_store(Settings(operation_store_url="memory://"))
        assert isinstance(store, InMemoryOperationStore)

    def test_redis_url(self):
        store = build_operation_store(
            Settings(operation_store_url="redis://localhost:6379/0", operation_ttl_seconds=300)
        )
        assert isinstance(store, RedisOperationStore)
        assert store.ttl_seconds == 300
