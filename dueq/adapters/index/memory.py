"""
InMemoryIndex — asyncio.Lock-based due-time index for testing and development.

Keeps one dict per job type (id → ready_at) plus a registry set of types.
Every operation holds a single asyncio.Lock, which gives the same per-call
atomicity as the MULTI/EXEC and Lua paths of the Redis adapter.

Zero external dependencies. Safe for multiple concurrent coroutines in a
single event loop. NOT safe across processes or threads.
"""
from __future__ import annotations

import asyncio
import dataclasses

from dueq.domain.models import DueJob, TypeStats


@dataclasses.dataclass
class InMemoryIndex:
    """In-process due-time index."""

    def __post_init__(self) -> None:
        self._entries: dict[str, dict[str, int]] = {}
        self._registry: set[str] = set()
        self._lock: asyncio.Lock = asyncio.Lock()

    async def schedule(self, job_type: str, job_id: str, ready_at: int) -> None:
        async with self._lock:
            self._entries.setdefault(job_type, {})[job_id] = int(ready_at)
            self._registry.add(job_type)

    async def get(self, job_type: str, job_id: str) -> int | None:
        async with self._lock:
            return self._entries.get(job_type, {}).get(job_id)

    async def members(self, job_type: str) -> list[str]:
        async with self._lock:
            entries = self._entries.get(job_type, {})
            return [job_id for job_id, _ in sorted(entries.items(), key=_by_score)]

    async def remove(self, job_type: str, job_id: str) -> None:
        async with self._lock:
            entries = self._entries.get(job_type)
            if entries is None:
                return
            entries.pop(job_id, None)
            if not entries:
                del self._entries[job_type]
                self._registry.discard(job_type)

    async def next_due(self, job_type: str, now: int) -> DueJob | None:
        async with self._lock:
            due = [
                item
                for item in self._entries.get(job_type, {}).items()
                if item[1] <= now
            ]
            if not due:
                return None
            job_id, ready_at = min(due, key=_by_score)
            return DueJob(type=job_type, id=job_id, ready_at=ready_at)

    async def stats(self) -> list[TypeStats]:
        async with self._lock:
            return [
                TypeStats(type=job_type, count=len(self._entries.get(job_type, {})))
                for job_type in sorted(self._registry)
            ]


def _by_score(item: tuple[str, int]) -> tuple[int, str]:
    """Sort key matching sorted-set order: score, then member."""
    job_id, ready_at = item
    return ready_at, job_id
