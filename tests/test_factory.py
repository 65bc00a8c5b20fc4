from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.asyncio import Redis

from dueq.adapters.index.redis import RedisIndex
from dueq.adapters.locks.redis import RedisLockService
from dueq.config import Settings
from dueq.domain.errors import ConfigError
from dueq.factory import create_queue


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_wires_redis_adapters_to_given_client():
    client = MagicMock()
    queue = create_queue(
        _settings(prefix="jobs", default_wait=timedelta(minutes=1)), client=client
    )

    assert isinstance(queue.index, RedisIndex)
    assert isinstance(queue.locks, RedisLockService)
    assert queue.index.client is client
    assert queue.locks.client is client
    assert queue.index.prefix == "jobs"
    assert queue.prefix == "jobs"
    assert queue.default_wait == timedelta(minutes=1)
    assert queue.lock_time == timedelta(minutes=5)


def test_empty_redis_url_raises_config_error():
    with pytest.raises(ConfigError, match="redis_url"):
        create_queue(_settings(redis_url=""))


def test_bad_redis_url_raises_config_error():
    with pytest.raises(ConfigError, match="Invalid redis_url"):
        create_queue(_settings(redis_url="ftp://example.com"))


async def test_client_built_from_url_is_closed_with_the_queue():
    with patch.object(Redis, "aclose", new_callable=AsyncMock) as aclose:
        queue = create_queue(_settings(redis_url="redis://localhost:6399/3"))
        assert queue.locks.client is queue.index.client
        async with queue:
            pass
        await queue.close()

    aclose.assert_awaited_once()


async def test_given_client_is_left_open():
    client = MagicMock()
    client.aclose = AsyncMock()

    async with create_queue(_settings(), client=client) as queue:
        assert queue.on_close is None

    client.aclose.assert_not_awaited()
