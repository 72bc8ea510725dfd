"""
Campus Scheduler — Background Task Queue
==========================================

What:  A bounded in-process queue of background tasks and the worker loops
       that run them.
How:   submit() enqueues a zero-argument coroutine function under a task id
       and returns an asyncio.Future that resolves with the task's result
       (or its exception). Workers claim one task at a time, in FIFO order.
Who:   AppointmentService submits bulk jobs and async updates; the app
       lifespan starts and stops the workers; the status routes ask whether
       a job is still pending.

Per-resource serialization:
    A task may carry resource keys (e.g. "appointment:42"; a bulk job carries
    one per appointment it touches). When a worker claims a task it takes a
    place in each key's line before doing anything else, and the task runs
    only once it is at the front of every line. Claims happen in FIFO order,
    so tasks sharing a key run one at a time and in acceptance order, even
    with several workers. Lines are joined in claim order for every key at
    once, which keeps multi-key tasks from deadlocking one another.

Capacity:
    The queue holds at most `maxsize` unclaimed tasks. submit() on a full
    queue raises ServiceBusyError (→ 503 + Retry-After).

Shutdown:
    stop() cancels the workers. Tasks still queued are dropped and their
    futures cancelled; tracker records they would have written stay as last
    written until they expire.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, List, Tuple

from campus_scheduler.exceptions import ServiceBusyError

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Awaitable[Any]]


@dataclass
class QueuedTask:
    task_id: str
    run: TaskFn
    future: asyncio.Future
    resource_keys: Tuple[str, ...] = ()
    enqueued_at: float = field(default_factory=time.monotonic)


def _consume_outcome(future: asyncio.Future) -> None:
    # Mark exceptions as retrieved; fire-and-forget callers never await them
    if not future.cancelled():
        future.exception()


class TaskQueue:
    """Bounded FIFO queue with worker loops and per-resource ordering."""

    def __init__(self, maxsize: int = 100, worker_count: int = 1, retry_after: int = 5):
        self.maxsize = maxsize
        self.worker_count = worker_count
        self.retry_after = retry_after
        self._queue: asyncio.Queue[QueuedTask] = asyncio.Queue(maxsize=maxsize)
        self._workers: List[asyncio.Task] = []
        self._pending: Dict[str, QueuedTask] = {}
        self._lines: Dict[str, Deque[asyncio.Future]] = {}

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return any(not w.done() for w in self._workers)

    async def start(self) -> None:
        if self.running:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"task-worker-{i}")
            for i in range(self.worker_count)
        ]
        logger.info(
            "Task queue started: %d worker(s), capacity %d",
            self.worker_count, self.maxsize,
        )

    async def stop(self) -> None:
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        dropped = 0
        while not self._queue.empty():
            task = self._queue.get_nowait()
            task.future.cancel()
            self._pending.pop(task.task_id, None)
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.warning("Task queue stopped with %d unclaimed task(s) dropped", dropped)
        else:
            logger.info("Task queue stopped")

    async def join(self) -> None:
        """Wait until every submitted task has been processed."""
        await self._queue.join()

    # ── Submission ────────────────────────────────────────────────────────

    def full(self) -> bool:
        return self._queue.full()

    def is_pending(self, task_id: str) -> bool:
        """True while the task is queued or running."""
        return task_id in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(
        self,
        task_id: str,
        run: TaskFn,
        resource_keys: Iterable[str] = (),
    ) -> asyncio.Future:
        """
        Enqueue a task and return its completion future.

        Tasks sharing any of `resource_keys` run one at a time, in the order
        they were submitted.

        Raises:
            ServiceBusyError: the queue is at capacity
        """
        keys = tuple(dict.fromkeys(resource_keys))
        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_outcome)
        task = QueuedTask(task_id=task_id, run=run, future=future, resource_keys=keys)
        try:
            self._queue.put_nowait(task)
        except asyncio.QueueFull:
            future.cancel()
            logger.warning("Task queue full (%d); rejecting task %s", self.maxsize, task_id)
            raise ServiceBusyError(
                retry_after=self.retry_after,
                context={"task_id": task_id, "capacity": self.maxsize},
            )
        self._pending[task_id] = task
        logger.debug(
            "Task %s queued (keys=%s, depth=%d)",
            task_id, ",".join(keys) or "-", self._queue.qsize(),
        )
        return future

    # ── Workers ───────────────────────────────────────────────────────────

    def _reserve(self, keys: Tuple[str, ...]) -> List[Tuple[str, asyncio.Future]]:
        """Take a place in line for each key; must run before the worker yields."""
        loop = asyncio.get_running_loop()
        turns = []
        for key in keys:
            line = self._lines.setdefault(key, deque())
            turn = loop.create_future()
            if not line:
                turn.set_result(None)
            line.append(turn)
            turns.append((key, turn))
        return turns

    def _release(self, turns: List[Tuple[str, asyncio.Future]]) -> None:
        for key, turn in turns:
            line = self._lines[key]
            line.remove(turn)
            if not line:
                del self._lines[key]
            elif not line[0].done():
                line[0].set_result(None)

    async def _worker(self, index: int) -> None:
        while True:
            task = await self._queue.get()
            turns = self._reserve(task.resource_keys)
            waited_ms = (time.monotonic() - task.enqueued_at) * 1000
            logger.debug("Worker %d claimed task %s after %.1fms", index, task.task_id, waited_ms)
            try:
                for _, turn in turns:
                    await turn
                result = await task.run()
            except asyncio.CancelledError:
                task.future.cancel()
                raise
            except Exception as e:
                logger.error("Task %s raised: %s", task.task_id, str(e), exc_info=True)
                if not task.future.done():
                    task.future.set_exception(e)
            else:
                if not task.future.done():
                    task.future.set_result(result)
            finally:
                self._release(turns)
                self._pending.pop(task.task_id, None)
                self._queue.task_done()
