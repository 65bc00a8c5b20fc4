"""
Queue — producer API, admin API and worker launcher in one object.

Usage
-----
    from datetime import timedelta
    from dueq import Queue, QueueEvent, WorkItem
    from dueq.adapters.index.memory import InMemoryIndex
    from dueq.adapters.locks.memory import InMemoryLockService

    async def send_digest(item: WorkItem) -> timedelta:
        await mailer.send(item.id)
        return timedelta(days=1)              # due again tomorrow

    async with Queue(InMemoryIndex(), InMemoryLockService()) as q:
        q.on(QueueEvent.ERROR, print)
        await q.create("digest", "user-42")   # due now
        q.process("digest", send_digest)
        ...

The producer and admin calls are thin pass-throughs to the due-time index and
raise StoreError directly. Worker loops never raise; they emit events.
"""
from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from datetime import timedelta
from types import TracebackType

from dueq.core.clock import Clock, now_ms
from dueq.core.events import EventHub, Listener, QueueEvent
from dueq.core.lease import LockCoordinator
from dueq.core.worker import Handler, JobProcessor
from dueq.domain.errors import ConfigError
from dueq.domain.models import TypeStats
from dueq.ports.index import DueIndexPort
from dueq.ports.locks import LockServicePort


@dataclasses.dataclass
class Queue:
    """
    Parameters
    ----------
    index        : due-time index (required)
    locks        : lock service (required)
    prefix       : namespace for lock keys; match the index prefix
    default_wait : reschedule delay after a job finishes without an offset
    lock_time    : lease granted to a worker per claim
    clock        : epoch-millisecond clock, injectable for tests
    on_close     : awaited once by close() after the workers stop; create_queue()
                   uses it to close the Redis client it created
    """

    index: DueIndexPort
    locks: LockServicePort
    prefix: str = "dueq"
    default_wait: timedelta = timedelta(minutes=10)
    lock_time: timedelta = timedelta(minutes=5)
    clock: Clock = now_ms
    on_close: Callable[[], Awaitable[None]] | None = dataclasses.field(
        default=None, repr=False
    )

    events: EventHub = dataclasses.field(default_factory=EventHub, init=False, repr=False)
    _coordinator: LockCoordinator = dataclasses.field(init=False, repr=False)
    _tasks: set[asyncio.Task[None]] = dataclasses.field(
        default_factory=set, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.index is None:
            raise ConfigError("Missing due-time index (store client) for Queue")
        if self.locks is None:
            raise ConfigError("Missing lock service for Queue")
        for name in ("default_wait", "lock_time"):
            if getattr(self, name) <= timedelta(0):
                raise ConfigError(f"{name} must be a positive duration")
        self._coordinator = LockCoordinator(
            service=self.locks, lease_duration=self.lock_time
        )

    async def __aenter__(self) -> Queue:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Producer / admin operations                                          #
    # ------------------------------------------------------------------ #

    async def create(self, job_type: str, job_id: str) -> None:
        """Schedule a job to be due immediately."""
        await self.update(job_type, job_id, self.clock())

    async def update(self, job_type: str, job_id: str, ready_at: int) -> None:
        """Set (or create) a job's ready_at in epoch milliseconds."""
        await self.index.schedule(job_type, job_id, ready_at)

    async def exists(self, job_type: str, job_id: str) -> bool:
        return await self.index.get(job_type, job_id) is not None

    async def get(self, job_type: str, job_id: str) -> int | None:
        return await self.index.get(job_type, job_id)

    async def list_jobs(self, job_type: str) -> list[str]:
        """Job ids of one type, soonest first."""
        return await self.index.members(job_type)

    async def remove(self, job_type: str, job_id: str) -> None:
        await self.index.remove(job_type, job_id)

    async def stats(self) -> list[TypeStats]:
        return await self.index.stats()

    # ------------------------------------------------------------------ #
    # Events                                                               #
    # ------------------------------------------------------------------ #

    def on(self, event: QueueEvent | str, listener: Listener) -> None:
        self.events.on(event, listener)

    def off(self, event: QueueEvent | str, listener: Listener) -> None:
        self.events.off(event, listener)

    # ------------------------------------------------------------------ #
    # Workers                                                              #
    # ------------------------------------------------------------------ #

    def processor(self, job_type: str, handler: Handler) -> JobProcessor:
        """Build (but do not start) the worker loop for job_type."""
        return JobProcessor(
            job_type=job_type,
            handler=handler,
            index=self.index,
            coordinator=self._coordinator,
            events=self.events,
            prefix=self.prefix,
            default_wait=self.default_wait,
            clock=self.clock,
        )

    def process(self, job_type: str, handler: Handler) -> asyncio.Task[None]:
        """Start a worker loop for job_type on the running event loop."""
        task = asyncio.create_task(
            self.processor(job_type, handler).run(), name=f"dueq-worker-{job_type}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        """Cancel every worker loop started by process(), wait for them, then run on_close."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self.on_close is not None:
            on_close, self.on_close = self.on_close, None
            await on_close()
