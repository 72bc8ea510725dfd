"""
Campus Scheduler — Task Queue Tests
=====================================

What we test:
    ✅ Tasks run in FIFO order and resolve their futures
    ✅ A raising task resolves its future with the exception; the worker survives
    ✅ Same-resource tasks never overlap, even with several workers
    ✅ A task holding several keys keeps acceptance order on each of them
    ✅ A full queue rejects with ServiceBusyError
    ✅ stop() drops unclaimed tasks
"""

import asyncio

import pytest

from campus_scheduler.exceptions import ServiceBusyError
from campus_scheduler.services.task_queue import TaskQueue


class TestTaskQueue:

    @pytest.mark.asyncio
    async def test_runs_tasks_in_order(self):
        queue = TaskQueue()
        await queue.start()
        seen = []

        async def record(value):
            seen.append(value)
            return value

        futures = [queue.submit(f"t{i}", lambda i=i: record(i)) for i in range(5)]
        results = await asyncio.gather(*futures)
        await queue.stop()

        assert seen == [0, 1, 2, 3, 4]
        assert results == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_exception_resolves_future_and_worker_continues(self):
        queue = TaskQueue()
        await queue.start()

        async def boom():
            raise RuntimeError("boom")

        async def ok():
            return "ok"

        failing = queue.submit("bad", boom)
        succeeding = queue.submit("good", ok)

        with pytest.raises(RuntimeError):
            await failing
        assert await succeeding == "ok"
        await queue.stop()

    @pytest.mark.asyncio
    async def test_pending_until_processed(self):
        queue = TaskQueue()
        release = asyncio.Event()

        async def wait():
            await release.wait()

        queue.submit("t1", wait)
        assert queue.is_pending("t1")
        assert queue.pending_count == 1

        await queue.start()
        release.set()
        await queue.join()
        await queue.stop()

        assert not queue.is_pending("t1")
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_same_resource_tasks_do_not_overlap(self):
        queue = TaskQueue(worker_count=3)
        await queue.start()
        active = 0
        max_active = 0
        order = []

        async def touch(label):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            order.append(label)
            active -= 1

        for label in ("first", "second", "third"):
            queue.submit(label, lambda label=label: touch(label), resource_keys=["appointment:1"])
        await queue.join()
        await queue.stop()

        assert max_active == 1
        assert order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_different_resources_run_concurrently(self):
        queue = TaskQueue(worker_count=2)
        await queue.start()
        both_started = asyncio.Event()
        started = []

        async def touch(label):
            started.append(label)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)

        first = queue.submit("a", lambda: touch("a"), resource_keys=["appointment:1"])
        second = queue.submit("b", lambda: touch("b"), resource_keys=["appointment:2"])
        # Either task times out if they were serialized
        await asyncio.gather(first, second)
        await queue.stop()

        assert sorted(started) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_multi_key_task_keeps_acceptance_order(self):
        queue = TaskQueue(worker_count=3)
        await queue.start()
        order = []

        async def touch(label, delay=0.0):
            await asyncio.sleep(delay)
            order.append(label)

        queue.submit("single", lambda: touch("single", 0.05), resource_keys=["appointment:2"])
        queue.submit("bulk", lambda: touch("bulk"), resource_keys=["appointment:1", "appointment:2"])
        queue.submit("later", lambda: touch("later"), resource_keys=["appointment:1"])
        await queue.join()
        await queue.stop()

        assert order == ["single", "bulk", "later"]
        assert queue._lines == {}

    @pytest.mark.asyncio
    async def test_repeated_key_does_not_block_itself(self):
        queue = TaskQueue()
        await queue.start()

        async def noop():
            return "done"

        future = queue.submit("t1", noop, resource_keys=["appointment:1", "appointment:1"])

        assert await asyncio.wait_for(future, timeout=1) == "done"
        await queue.stop()

    @pytest.mark.asyncio
    async def test_full_queue_rejects(self):
        queue = TaskQueue(maxsize=1, retry_after=7)

        async def noop():
            return None

        queue.submit("t1", noop)
        assert queue.full()

        with pytest.raises(ServiceBusyError) as exc_info:
            queue.submit("t2", noop)

        assert exc_info.value.retry_after == 7
        assert not queue.is_pending("t2")
        await queue.stop()

    @pytest.mark.asyncio
    async def test_stop_drops_unclaimed_tasks(self):
        queue = TaskQueue()

        async def noop():
            return None

        future = queue.submit("t1", noop)
        await queue.stop()

        assert future.cancelled()
        assert queue.pending_count == 0
