"""
LockServicePort — the distributed mutual-exclusion service.

acquire(key, lease)
  - succeeds → returns a LockHandle bound to that lease
  - fails    → raises LockError (contention, unavailable service, ...)
  No retries happen at this layer.

LockHandle.extend(lease)
  Only valid while the lease is still held. A lapsed lease cannot be revived;
  callers must extend well before expiry.

LockHandle.release()
  Gives the lease back early. Raises LockError if it is no longer owned.

At most one valid lease per key is the service's guarantee, not dueq's.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class LockHandle(Protocol):
    """A held lease on one key."""

    key: str

    async def extend(self, lease: timedelta) -> None:
        """Reset the remaining lease time to `lease`."""
        ...

    async def release(self) -> None:
        """Release the lease."""
        ...


@runtime_checkable
class LockServicePort(Protocol):
    """
    Implementing adapters (built-in):
      - InMemoryLockService — monotonic-clock leases, single process
      - RedisLockService    — redis.asyncio.lock.Lock (SET NX PX + Lua)
    """

    async def acquire(self, key: str, lease: timedelta) -> LockHandle:
        """Obtain exclusive ownership of `key` for `lease`."""
        ...
