"""
Campus Scheduler — Operation Store (Key-Value Contract)
=========================================================

What:  The key-value store behind the operation tracker: `set(id, record)`
       stores or overwrites, `get(id)` returns the record or None.
How:   OperationStore is the abstract contract; two implementations:
         - InMemoryOperationStore: dict + per-key expiry (single process)
         - RedisOperationStore:    redis.asyncio, JSON values, SET ... EX
Who:   OperationTracker (writes), the status routes (reads), health check.
When:  One instance per application, created by the app factory and held on
       app.state; handlers receive it through a dependency.

Expiry:
    Records are volatile. Every record expires `ttl_seconds` after its last
    write. The in-memory store evicts lazily on read and sweeps the whole
    map every `sweep_every` writes; Redis expires keys itself.

Atomicity:
    Neither implementation offers check-and-set. Each operation id has a
    single writer (the request that created it, then its background task).
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as aioredis

from campus_scheduler.config import Settings
from campus_scheduler.schemas.operation import OperationRecord

logger = logging.getLogger(__name__)


class OperationStore(ABC):
    """
    Abstract key-value store for operation records.

    Contract:
        - set() replaces any existing record for the id and resets its expiry
        - get() returns None for unknown or expired ids
        - Storage failures propagate to the caller unchanged
    """

    @abstractmethod
    async def get(self, operation_id: str) -> Optional[OperationRecord]:
        ...

    @abstractmethod
    async def set(self, operation_id: str, record: OperationRecord) -> None:
        ...

    @abstractmethod
    async def delete(self, operation_id: str) -> None:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight availability probe for the health endpoint."""
        ...

    async def close(self) -> None:
        """Release connections on shutdown. Default: nothing to release."""
        return None


class InMemoryOperationStore(OperationStore):
    """
    Process-local store: dict of id → (expires_at, record).

    Records are copied on the way in and out so callers cannot mutate
    stored state behind the store's back.

    Not shared between worker processes; run one process or use Redis.
    """

    def __init__(
        self,
        ttl_seconds: int = 86_400,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0
        self._records: Dict[str, Tuple[float, OperationRecord]] = {}

    async def get(self, operation_id: str) -> Optional[OperationRecord]:
        entry = self._records.get(operation_id)
        if entry is None:
            return None
        expires_at, record = entry
        if expires_at <= self._clock():
            del self._records[operation_id]
            return None
        return record.model_copy(deep=True)

    async def set(self, operation_id: str, record: OperationRecord) -> None:
        self._records[operation_id] = (
            self._clock() + self.ttl_seconds,
            record.model_copy(deep=True),
        )
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self._evict_expired()

    async def delete(self, operation_id: str) -> None:
        self._records.pop(operation_id, None)

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._records)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._records.items() if expires_at <= now]
        for key in expired:
            del self._records[key]
        if expired:
            logger.debug("Evicted %d expired operation records", len(expired))


class RedisOperationStore(OperationStore):
    """
    Redis-backed store. Records are JSON (camelCase) under `operation:<id>`.

    Args:
        client: a redis.asyncio client created with decode_responses=True
        ttl_seconds: expiry applied on every write
    """

    KEY_PREFIX = "operation:"

    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 86_400):
        self._client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 86_400) -> "RedisOperationStore":
        return cls(aioredis.from_url(url, decode_responses=True), ttl_seconds=ttl_seconds)

    def _key(self, operation_id: str) -> str:
        return f"{self.KEY_PREFIX}{operation_id}"

    async def get(self, operation_id: str) -> Optional[OperationRecord]:
        raw = await self._client.get(self._key(operation_id))
        if raw is None:
            return None
        return OperationRecord.model_validate_json(raw)

    async def set(self, operation_id: str, record: OperationRecord) -> None:
        await self._client.set(
            self._key(operation_id),
            record.model_dump_json(by_alias=True),
            ex=self.ttl_seconds,
        )

    async def delete(self, operation_id: str) -> None:
        await self._client.delete(self._key(operation_id))

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except aioredis.RedisError as e:
            logger.warning("Operation store ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_operation_store(app_settings: Settings) -> OperationStore:
    """Select the store implementation from OPERATION_STORE_URL."""
    url = app_settings.operation_store_url
    if url.startswith("memory://"):
        logger.info("Operation store: in-memory (ttl=%ds)", app_settings.operation_ttl_seconds)
        return InMemoryOperationStore(ttl_seconds=app_settings.operation_ttl_seconds)

    logger.info("Operation store: redis (ttl=%ds)", app_settings.operation_ttl_seconds)
    return RedisOperationStore.from_url(url, ttl_seconds=app_settings.operation_ttl_seconds)
