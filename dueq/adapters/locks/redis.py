"""
RedisLockService — leases on a Redis key via redis.asyncio.lock.Lock.

Acquire is SET key token NX PX lease; extend and release are Lua scripts that
first check the stored token, so a worker whose lease lapsed (and whose key was
taken over by another worker) cannot extend or delete someone else's lock.

Acquisition never blocks: if the key is held, LockError is raised at once and
the caller decides when to try again.

This is a single-instance lock. Quorum across several independent Redis
nodes is the concern of the lock service, not of this adapter.
"""
from __future__ import annotations

import dataclasses
from datetime import timedelta
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from dueq.domain.errors import LockError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.lock import Lock


@dataclasses.dataclass
class RedisLockService:
    """
    Parameters
    ----------
    client : redis.asyncio.Redis connection
    """

    client: Redis

    async def acquire(self, key: str, lease: timedelta) -> RedisLockHandle:
        lock = self.client.lock(
            key,
            timeout=lease.total_seconds(),
            blocking=False,
            thread_local=False,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise LockError(f"Failed to acquire {key!r}", exc) from exc
        if not acquired:
            raise LockError(f"Resource {key!r} is already locked")
        return RedisLockHandle(key=key, lock=lock)


@dataclasses.dataclass
class RedisLockHandle:
    """LockHandle wrapping a held redis.asyncio Lock."""

    key: str
    lock: Lock

    async def extend(self, lease: timedelta) -> None:
        try:
            await self.lock.extend(lease.total_seconds(), replace_ttl=True)
        except RedisError as exc:
            raise LockError(f"Failed to extend {self.key!r}", exc) from exc

    async def release(self) -> None:
        try:
            await self.lock.release()
        except RedisError as exc:
            raise LockError(f"Failed to release {self.key!r}", exc) from exc
