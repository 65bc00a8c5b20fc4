"""
dueq — delayed and recurring jobs on an ordered store plus a distributed lock.

Every job is a (type, id) pair with a ready_at timestamp (epoch ms) in a
per-type sorted set. Worker loops poll for the earliest due job, push its
ready_at two minutes ahead (the reservation), take a lease on
"{prefix}:{type}:locks:{id}", run your handler, then unlock and reschedule the
job for now + offset (or default_wait). Jobs recur until removed.

Quick start
-----------
    import asyncio
    from datetime import timedelta
    from dueq import Queue, QueueEvent, WorkItem
    from dueq.adapters.index.memory import InMemoryIndex
    from dueq.adapters.locks.memory import InMemoryLockService

    async def refresh_feed(item: WorkItem) -> timedelta:
        print(f"Refreshing {item.id}, due since {item.timestamp}")
        return timedelta(minutes=30)

    async def main():
        async with Queue(InMemoryIndex(), InMemoryLockService()) as q:
            q.on(QueueEvent.ERROR, print)
            q.on(QueueEvent.JOB_ERROR, print)
            await q.create("feed", "hn-frontpage")
            q.process("feed", refresh_feed)
            await asyncio.sleep(5)

    asyncio.run(main())

For Redis use dueq.factory.create_queue(), configured with DUEQ_* variables.

Architecture
------------
Follows the Ports & Adapters pattern:
  domain/   — value types (DueJob, TypeStats, Outcome) and errors
  ports/    — Protocol interfaces (DueIndexPort, LockServicePort)
  core/     — business logic (Queue, JobProcessor, LockCoordinator, LeaseKeeper)
  adapters/ — in-memory and Redis implementations of the ports
"""
from __future__ import annotations

from dueq.adapters.index.memory import InMemoryIndex
from dueq.adapters.locks.memory import InMemoryLockService
from dueq.core.events import EventHub, QueueEvent
from dueq.core.keepalive import LeaseKeeper
from dueq.core.lease import Lease, LockCoordinator
from dueq.core.queue import Queue
from dueq.core.worker import (
    IDLE_BACKOFF,
    RESERVATION_HORIZON,
    JobProcessor,
    TickOutcome,
    WorkItem,
)
from dueq.domain.errors import (
    ConfigError,
    DueQError,
    LockError,
    ProcessingError,
    StoreError,
)
from dueq.domain.models import DueJob, Outcome, TypeStats
from dueq.ports.index import DueIndexPort
from dueq.ports.locks import LockHandle, LockServicePort

__all__ = [
    # Domain models
    "DueJob",
    "Outcome",
    "TypeStats",
    # Errors
    "DueQError",
    "ConfigError",
    "LockError",
    "ProcessingError",
    "StoreError",
    # Ports (for typing custom adapters)
    "DueIndexPort",
    "LockHandle",
    "LockServicePort",
    # High-level API
    "Queue",
    "QueueEvent",
    "EventHub",
    "JobProcessor",
    "TickOutcome",
    "WorkItem",
    "Lease",
    "LockCoordinator",
    "LeaseKeeper",
    "IDLE_BACKOFF",
    "RESERVATION_HORIZON",
    # Built-in in-memory adapters
    "InMemoryIndex",
    "InMemoryLockService",
]
