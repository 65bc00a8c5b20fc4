"""
RedisIndex — due-time index on Redis sorted sets via redis.asyncio.

Keys
----
    {prefix}:{type}   ZSET  member = job id, score = ready_at (epoch ms)
    {prefix}:list     SET   registry of job types

Commands
--------
    schedule  MULTI  ZADD {prefix}:{type} ready_at id ; SADD {prefix}:list type  EXEC
    get       ZSCORE {prefix}:{type} id
    members   ZRANGE {prefix}:{type} 0 -1
    remove    EVAL   ZREM + (ZCARD == 0 → SREM)         (one script, atomic)
    next_due  ZRANGEBYSCORE {prefix}:{type} -inf now WITHSCORES LIMIT 0 1
    stats     SMEMBERS {prefix}:list, then pipelined ZCARD per type

The client may be created with or without decode_responses; replies are
decoded here either way. Every RedisError is re-raised as StoreError.
"""
from __future__ import annotations

import contextlib
import dataclasses
from collections.abc import Iterator
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from dueq.domain.errors import StoreError
from dueq.domain.models import DueJob, TypeStats

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.commands.core import AsyncScript

# KEYS[1] = {prefix}:{type}, KEYS[2] = {prefix}:list, ARGV[1] = id, ARGV[2] = type
_REMOVE_SCRIPT = """
redis.call("ZREM", KEYS[1], ARGV[1])
if redis.call("ZCARD", KEYS[1]) == 0 then
  redis.call("SREM", KEYS[2], ARGV[2])
  return 1
end
return 0
"""


@dataclasses.dataclass
class RedisIndex:
    """
    Redis-backed due-time index.

    Parameters
    ----------
    client : redis.asyncio.Redis connection (shared with the lock service is fine)
    prefix : key namespace, e.g. "dueq" → "dueq:email", "dueq:list"
    """

    client: Redis
    prefix: str = "dueq"

    _remove_script: AsyncScript = dataclasses.field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.prefix = self.prefix.rstrip(":")
        self._remove_script = self.client.register_script(_REMOVE_SCRIPT)

    @property
    def registry_key(self) -> str:
        return f"{self.prefix}:list"

    def key(self, job_type: str) -> str:
        return f"{self.prefix}:{job_type}"

    async def schedule(self, job_type: str, job_id: str, ready_at: int) -> None:
        with _translate("ZADD/SADD"):
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.zadd(self.key(job_type), {job_id: int(ready_at)})
                # the registry add keeps update-before-create working
                pipe.sadd(self.registry_key, job_type)
                await pipe.execute()

    async def get(self, job_type: str, job_id: str) -> int | None:
        with _translate("ZSCORE"):
            score = await self.client.zscore(self.key(job_type), job_id)
        return None if score is None else int(score)

    async def members(self, job_type: str) -> list[str]:
        with _translate("ZRANGE"):
            raw = await self.client.zrange(self.key(job_type), 0, -1)
        return [_text(member) for member in raw]

    async def remove(self, job_type: str, job_id: str) -> None:
        with _translate("ZREM"):
            await self._remove_script(
                keys=[self.key(job_type), self.registry_key],
                args=[job_id, job_type],
            )

    async def next_due(self, job_type: str, now: int) -> DueJob | None:
        with _translate("ZRANGEBYSCORE"):
            rows = await self.client.zrangebyscore(
                self.key(job_type),
                "-inf",
                int(now),
                start=0,
                num=1,
                withscores=True,
            )
        if not rows:
            return None
        member, score = rows[0]
        return DueJob(type=job_type, id=_text(member), ready_at=score)

    async def stats(self) -> list[TypeStats]:
        with _translate("SMEMBERS"):
            types = sorted(_text(t) for t in await self.client.smembers(self.registry_key))
        if not types:
            return []

        # Counts are read after the registry; types may come and go in between.
        with _translate("ZCARD"):
            async with self.client.pipeline(transaction=False) as pipe:
                for job_type in types:
                    pipe.zcard(self.key(job_type))
                counts = await pipe.execute()

        return [
            TypeStats(type=job_type, count=int(count or 0))
            for job_type, count in zip(types, counts)
        ]


@contextlib.contextmanager
def _translate(command: str) -> Iterator[None]:
    """Re-raise RedisError as StoreError naming the failed command."""
    try:
        yield
    except RedisError as exc:
        raise StoreError(f"Redis {command} failed", exc) from exc


def _text(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value
