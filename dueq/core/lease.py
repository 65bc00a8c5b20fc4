"""
LockCoordinator — turns "claim this job" into a lease from the lock service.

The coordinator binds a default lease duration and wraps whatever the service
returns in a Lease, whose release() is idempotent:

    lease = await coordinator.acquire("dueq:email:locks:42")
    await lease.extend(timedelta(minutes=5))
    await lease.release()
    await lease.release()   # no-op, the service is not contacted again

No retries happen here. A refused acquire raises LockError immediately; the
worker loop owns the retry policy.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Awaitable
from datetime import timedelta
from typing import TypeVar

from dueq.domain.errors import LockError
from dueq.ports.locks import LockHandle, LockServicePort

T = TypeVar("T")


@dataclasses.dataclass
class Lease:
    """A held lock plus the bookkeeping that makes release() idempotent."""

    handle: LockHandle
    duration: timedelta

    _held: bool = dataclasses.field(default=True, init=False)

    @property
    def key(self) -> str:
        return self.handle.key

    @property
    def held(self) -> bool:
        return self._held

    async def extend(self, duration: timedelta | None = None) -> None:
        """
        Reset the remaining lease to `duration` (default: the original lease).

        Raises LockError once released, or if the service reports the lease lapsed.
        """
        if not self._held:
            raise LockError(f"Lease on {self.key!r} was already released")
        if duration is None:
            duration = self.duration
        await _call("extend", self.key, self.handle.extend(duration))
        self.duration = duration

    async def release(self) -> None:
        """Release once; later calls return without contacting the service."""
        if not self._held:
            return
        await _call("release", self.key, self.handle.release())
        self._held = False


@dataclasses.dataclass
class LockCoordinator:
    """
    Parameters
    ----------
    service        : any LockServicePort implementation
    lease_duration : lease granted when acquire() is called without one
    """

    service: LockServicePort
    lease_duration: timedelta = timedelta(minutes=5)

    async def acquire(self, key: str, lease: timedelta | None = None) -> Lease:
        if lease is None:
            lease = self.lease_duration
        handle = await _call("acquire", key, self.service.acquire(key, lease))
        return Lease(handle=handle, duration=lease)


async def _call(action: str, key: str, awaitable: Awaitable[T]) -> T:
    """Await a lock-service call, re-raising foreign failures as LockError."""
    try:
        return await awaitable
    except LockError:
        raise
    except Exception as exc:
        raise LockError(f"Failed to {action} {key!r}", exc) from exc
