"""
InMemoryLockService — lease-based locks held in process memory.

Each acquire() mints a random token and records (token, expires_at) for the
key. A key whose lease has run out is free to be acquired again; the old
holder's extend() and release() then fail with LockError, exactly as with a
real distributed lock.

The clock is injectable (seconds, monotonic) so tests can expire leases
without sleeping. NOT safe across processes.
"""
from __future__ import annotations

import asyncio
import dataclasses
import time
import uuid
from collections.abc import Callable
from datetime import timedelta

from dueq.domain.errors import LockError


@dataclasses.dataclass
class _Lease:
    token: str
    expires_at: float


@dataclasses.dataclass
class InMemoryLockService:
    """
    Parameters
    ----------
    clock : returns the current time in seconds (default time.monotonic)
    """

    clock: Callable[[], float] = time.monotonic

    def __post_init__(self) -> None:
        self._leases: dict[str, _Lease] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    async def acquire(self, key: str, lease: timedelta) -> InMemoryLockHandle:
        async with self._lock:
            now = self.clock()
            current = self._leases.get(key)
            if current is not None and current.expires_at > now:
                raise LockError(f"Resource {key!r} is already locked")
            token = uuid.uuid4().hex
            self._leases[key] = _Lease(token, now + lease.total_seconds())
            return InMemoryLockHandle(service=self, key=key, token=token)

    def is_locked(self, key: str) -> bool:
        """True while a non-expired lease exists for key."""
        current = self._leases.get(key)
        return current is not None and current.expires_at > self.clock()

    async def _extend(self, key: str, token: str, lease: timedelta) -> None:
        async with self._lock:
            current = self._owned(key, token)
            current.expires_at = self.clock() + lease.total_seconds()

    async def _release(self, key: str, token: str) -> None:
        async with self._lock:
            self._owned(key, token)
            del self._leases[key]

    def _owned(self, key: str, token: str) -> _Lease:
        current = self._leases.get(key)
        if current is None or current.token != token:
            raise LockError(f"Lease on {key!r} is no longer owned")
        if current.expires_at <= self.clock():
            raise LockError(f"Lease on {key!r} has expired")
        return current


@dataclasses.dataclass
class InMemoryLockHandle:
    """LockHandle returned by InMemoryLockService.acquire()."""

    service: InMemoryLockService
    key: str
    token: str

    async def extend(self, lease: timedelta) -> None:
        await self.service._extend(self.key, self.token, lease)

    async def release(self) -> None:
        await self.service._release(self.key, self.token)
