"""
JobProcessor — the per-type worker loop.

Each tick walks one job through:

  FETCHING     next_due(type, now)                    nothing due → IDLE (sleep 1 s)
  RESERVING    schedule(type, id, now + 2 min)        hides the job from other pollers
  LOCKING      acquire("{prefix}:{type}:locks:{id}")  at most one worker per job
  DISPATCHING  await handler(item)                    → Outcome(error, offset)
  FINALIZING   item.unlock(); schedule(type, id, now + (offset or default_wait))

Failure policy
--------------
Store and lock failures are emitted as QueueEvent.ERROR and the next tick
starts immediately; only an empty fetch waits. Two workers can fetch the same
due job, but the RESERVING write plus the lock mean only one processes it: the
loser emits a lock error and walks away, leaving the job reserved until the
horizon passes. Handler failures are emitted as QueueEvent.JOB_ERROR and the
job is finalized like any other: unlocked and rescheduled.

The loop never exits on its own. Cancel the task to stop it.
"""
from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from datetime import timedelta
from enum import Enum

from dueq.core.clock import Clock, now_ms, to_ms
from dueq.core.events import EventHub, QueueEvent
from dueq.core.keepalive import LeaseKeeper
from dueq.core.lease import Lease, LockCoordinator
from dueq.domain.errors import DueQError, LockError, ProcessingError, StoreError
from dueq.domain.models import Outcome
from dueq.observability.logging import get_logger
from dueq.ports.index import DueIndexPort

logger = get_logger(__name__)

RESERVATION_HORIZON = timedelta(minutes=2)
IDLE_BACKOFF = timedelta(seconds=1)


@dataclasses.dataclass
class WorkItem:
    """
    The job handed to a handler.

    type      — job type
    id        — job id
    timestamp — ready_at (epoch ms) observed when the job was fetched
    """

    type: str
    id: str
    timestamp: int
    lease: Lease = dataclasses.field(repr=False)

    @property
    def locked(self) -> bool:
        return self.lease.held

    async def extend(self, duration: timedelta | None = None) -> None:
        """Extend the lock; must happen before the current lease runs out."""
        await self.lease.extend(duration)

    async def unlock(self) -> None:
        """
        Release the lock early. Idempotent.

        Another worker can only pick the job up once its ready_at passes, so
        unlocking early is safe but rarely useful.
        """
        await self.lease.release()

    def keep_alive(
        self,
        interval: timedelta = timedelta(seconds=60),
        extend_by: timedelta | None = None,
    ) -> LeaseKeeper:
        return LeaseKeeper(target=self, interval=interval, extend_by=extend_by)


HandlerResult = Outcome | timedelta | None
Handler = Callable[[WorkItem], Awaitable[HandlerResult]]


class TickOutcome(str, Enum):
    """How a single tick ended."""

    IDLE = "idle"
    FETCH_FAILED = "fetch_failed"
    RESERVE_FAILED = "reserve_failed"
    LOCK_FAILED = "lock_failed"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclasses.dataclass
class JobProcessor:
    """
    Runs the claim/process/reschedule cycle for one job type.

    Parameters
    ----------
    job_type     : the index this loop polls
    handler      : async callable taking a WorkItem; returns None, a timedelta
                   offset, or an Outcome. Raising counts as Outcome(error=exc).
    index        : any DueIndexPort implementation
    coordinator  : LockCoordinator whose lease_duration is the queue's lock_time
    events       : where errors are reported
    prefix       : namespace for lock keys
    default_wait : reschedule delay when the handler gives no offset
    clock        : epoch-millisecond clock
    """

    job_type: str
    handler: Handler
    index: DueIndexPort
    coordinator: LockCoordinator
    events: EventHub = dataclasses.field(default_factory=EventHub)
    prefix: str = "dueq"
    default_wait: timedelta = timedelta(minutes=10)
    clock: Clock = now_ms
    idle_backoff: timedelta = IDLE_BACKOFF

    def lock_key(self, job_id: str) -> str:
        return f"{self.prefix}:{self.job_type}:locks:{job_id}"

    async def run(self) -> None:
        """Tick forever."""
        logger.info("worker.started", job_type=self.job_type)
        while True:
            outcome = await self.tick()
            if outcome is TickOutcome.IDLE:
                await asyncio.sleep(self.idle_backoff.total_seconds())
            else:
                await asyncio.sleep(0)

    async def tick(self) -> TickOutcome:
        """Run one FETCHING → FINALIZING cycle."""
        try:
            job = await self.index.next_due(self.job_type, self.clock())
        except Exception as exc:
            await self._error(
                StoreError(f"Failed to fetch member from {self.job_type}", exc)
            )
            return TickOutcome.FETCH_FAILED
        if job is None:
            return TickOutcome.IDLE

        name = f"{self.job_type}:{job.id}"

        try:
            await self.index.schedule(
                self.job_type, job.id, self.clock() + to_ms(RESERVATION_HORIZON)
            )
        except Exception as exc:
            await self._error(StoreError(f"Failed to reserve {name}", exc))
            return TickOutcome.RESERVE_FAILED

        try:
            lease = await self.coordinator.acquire(self.lock_key(job.id))
        except Exception as exc:
            await self._error(LockError(f"Failed to lock {name}", exc))
            return TickOutcome.LOCK_FAILED

        item = WorkItem(type=self.job_type, id=job.id, timestamp=job.ready_at, lease=lease)
        logger.debug("job.claimed", job_type=self.job_type, job_id=job.id)

        try:
            outcome = await self._dispatch(item)
        except asyncio.CancelledError:
            await self._abandon(item)
            raise

        if outcome.error is not None:
            error = ProcessingError(self.job_type, job.id, outcome.error)
            logger.warning("job.failed", job_type=self.job_type, job_id=job.id, error=str(error))
            await self.events.emit(QueueEvent.JOB_ERROR, error)

        await self._finalize(item, outcome)
        return TickOutcome.COMPLETED if outcome.ok else TickOutcome.FAILED

    async def _dispatch(self, item: WorkItem) -> Outcome:
        try:
            result = await self.handler(item)
        except Exception as exc:
            return Outcome.failure(exc)

        match result:
            case None:
                return Outcome.success()
            case Outcome():
                return result
            case timedelta():
                return Outcome.success(offset=result)
            case _:
                return Outcome.failure(
                    TypeError(
                        "handler must return None, a timedelta or an Outcome, "
                        f"got {type(result).__name__}"
                    )
                )

    async def _finalize(self, item: WorkItem, outcome: Outcome) -> None:
        """Unlock, then reschedule. Neither failure stops the other."""
        name = f"{item.type}:{item.id}"

        try:
            await item.unlock()
        except Exception as exc:
            await self._error(LockError(f"Failed to unlock {name}", exc))

        wait = self.default_wait if outcome.offset is None else outcome.offset
        try:
            await self.index.schedule(item.type, item.id, self.clock() + to_ms(wait))
        except Exception as exc:
            await self._error(StoreError(f"Failed to update the time for {name}", exc))
            return

        logger.debug(
            "job.rescheduled", job_type=item.type, job_id=item.id, wait=wait.total_seconds()
        )

    async def _abandon(self, item: WorkItem) -> None:
        """Give the lock back when the loop is cancelled mid-job."""
        try:
            await item.unlock()
        except Exception:
            logger.exception("job.abandon_failed", job_type=item.type, job_id=item.id)

    async def _error(self, error: DueQError) -> None:
        logger.warning("worker.error", job_type=self.job_type, error=str(error))
        await self.events.emit(QueueEvent.ERROR, error)
