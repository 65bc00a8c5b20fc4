"""
LeaseKeeper — async context manager that keeps a job's lease alive.

A handler whose work may outlast the queue's lock_time wraps the slow part in
a LeaseKeeper, which extends the lease in the background:

    async def handler(item: WorkItem) -> None:
        async with item.keep_alive(interval=timedelta(minutes=1)):
            await transcode(item.id)

The lease and the reservation horizon are independent timers. Keeping the lease
alive does not push the job's ready_at; a job that holds its lease past the
two-minute reservation may be fetched by another worker, which will then fail
to lock it and move on.

Once the lease is lost (LockError) the keeper stops quietly. Any other error
from extend() is re-raised when the context exits.
"""
from __future__ import annotations

import asyncio
import dataclasses
from datetime import timedelta
from types import TracebackType
from typing import Protocol

from dueq.domain.errors import LockError
from dueq.observability.logging import get_logger

logger = get_logger(__name__)


class _Extendable(Protocol):
    """Structural Protocol — anything with an async extend(duration) method."""

    async def extend(self, duration: timedelta | None = None) -> None: ...


@dataclasses.dataclass
class LeaseKeeper:
    """
    Extends a lease every `interval`.

    Parameters
    ----------
    target    : WorkItem or Lease to extend
    interval  : time between extensions; keep it well under the lease
    extend_by : new lease length on each extension (None → the current lease)
    """

    target: _Extendable
    interval: timedelta = timedelta(seconds=60)
    extend_by: timedelta | None = None

    _task: asyncio.Task[None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )

    async def __aenter__(self) -> LeaseKeeper:
        self._task = asyncio.create_task(self._keep(), name="dueq-lease-keeper")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _keep(self) -> None:
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            try:
                await self.target.extend(self.extend_by)
            except LockError as exc:
                logger.warning("lease.lost", error=str(exc))
                return
