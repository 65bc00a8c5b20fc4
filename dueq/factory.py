"""
create_queue — build a Redis-backed Queue from Settings.

    from dueq.factory import create_queue

    queue = create_queue()                       # DUEQ_* environment
    queue = create_queue(client=existing_redis)  # reuse a connection

The same client serves the index and the lock service. Use the queue as an
async context manager (or call close()) so a client created here is closed.
"""
from __future__ import annotations

from redis.asyncio import Redis

from dueq.adapters.index.redis import RedisIndex
from dueq.adapters.locks.redis import RedisLockService
from dueq.config import Settings, get_settings
from dueq.core.queue import Queue
from dueq.domain.errors import ConfigError


def create_queue(
    settings: Settings | None = None,
    *,
    client: Redis | None = None,
) -> Queue:
    """
    Build a Queue on Redis.

    A client built here from redis_url is owned by the queue and closed by
    Queue.close(). A client passed in stays the caller's to close.

    Raises ConfigError when no client is given and redis_url is unusable.
    """
    settings = settings or get_settings()

    on_close = None
    if client is None:
        if not settings.redis_url:
            raise ConfigError("Missing redis_url and no Redis client was given")
        try:
            client = Redis.from_url(settings.redis_url)
        except ValueError as exc:
            raise ConfigError(f"Invalid redis_url {settings.redis_url!r}: {exc}") from exc
        on_close = client.aclose

    return Queue(
        index=RedisIndex(client=client, prefix=settings.prefix),
        locks=RedisLockService(client=client),
        prefix=settings.prefix,
        default_wait=settings.default_wait,
        lock_time=settings.lock_time,
        on_close=on_close,
    )
