"""
DueIndexPort — the ordered store behind the queue.

Any object satisfying this structural Protocol can act as the due-time index.
No base class or registration is required.

Key layout (for key-value backends)
-----------------------------------
    {prefix}:{type}  ordered set, member = job id, score = ready_at (epoch ms)
    {prefix}:list    unordered set of every job type seen by schedule()

Atomicity contract
------------------
Each method is one atomic unit against the store. There is no cross-call
transaction; the worker loop is written with that in mind.

  schedule  upsert + registry add, never separately observable
  remove    delete + "drop type from registry if now empty", one step
  next_due  id and score read together
  stats     NOT atomic across types (eventually consistent)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dueq.domain.models import DueJob, TypeStats


@runtime_checkable
class DueIndexPort(Protocol):
    """
    Minimal interface required by dueq core.

    Implementing adapters (built-in):
      - InMemoryIndex — asyncio.Lock-based, for testing
      - RedisIndex    — sorted sets + a registry set on redis.asyncio

    Adapters raise StoreError for backend failures.
    """

    async def schedule(self, job_type: str, job_id: str, ready_at: int) -> None:
        """Upsert ready_at for (job_type, job_id) and record job_type in the registry."""
        ...

    async def get(self, job_type: str, job_id: str) -> int | None:
        """Return ready_at, or None when the job is not indexed."""
        ...

    async def members(self, job_type: str) -> list[str]:
        """All ids of job_type, ascending by ready_at then id."""
        ...

    async def remove(self, job_type: str, job_id: str) -> None:
        """Delete the entry; drop job_type from the registry if it is now empty."""
        ...

    async def next_due(self, job_type: str, now: int) -> DueJob | None:
        """The entry with the smallest ready_at <= now, or None."""
        ...

    async def stats(self) -> list[TypeStats]:
        """Per-type cardinality for every registered type."""
        ...
