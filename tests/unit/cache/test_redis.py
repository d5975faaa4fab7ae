"""Unit tests for Redis connection management.

Tests cover:
- Client initialization and failure
- Client access before initialization
- Health checks
- Shutdown
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis.asyncio as redis

import openid_connect.cache.redis as redis_module
from openid_connect.cache.redis import (
    check_redis_health,
    close_redis,
    get_redis_client,
    init_redis,
)
from openid_connect.core.config import Settings


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _reset_globals() -> Generator[None]:
    redis_module._pool = None
    redis_module._client = None
    yield
    redis_module._pool = None
    redis_module._client = None


class TestInitRedis:
    """Tests for init_redis."""

    async def test_creates_client_and_pings(self):
        settings = Settings(redis={"host": "cache", "port": 6380})
        client = AsyncMock()

        with (
            patch.object(redis_module.ConnectionPool, "from_url") as from_url,
            patch.object(redis_module.redis, "Redis", return_value=client),
        ):
            result = await init_redis(settings)

        assert result is client
        assert get_redis_client() is client
        assert from_url.call_args.args[0] == "redis://cache:6380/0"
        client.ping.assert_awaited_once()

    async def test_connection_error_propagates(self):
        client = AsyncMock()
        client.ping.side_effect = redis.ConnectionError("refused")

        with (
            patch.object(redis_module.ConnectionPool, "from_url"),
            patch.object(redis_module.redis, "Redis", return_value=client),
            pytest.raises(redis.ConnectionError),
        ):
            await init_redis(Settings())


class TestGetRedisClient:
    """Tests for get_redis_client."""

    def test_raises_when_not_initialized(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            get_redis_client()


class TestCheckRedisHealth:
    """Tests for check_redis_health."""

    async def test_empty_when_unused(self):
        assert await check_redis_health() == {}

    async def test_healthy(self):
        redis_module._client = AsyncMock()

        assert await check_redis_health() == {"redis": "healthy"}

    async def test_unhealthy(self):
        client = AsyncMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        redis_module._client = client

        assert await check_redis_health() == {"redis": "unhealthy"}


class TestCloseRedis:
    """Tests for close_redis."""

    async def test_closes_client_and_pool(self):
        client = AsyncMock()
        pool = MagicMock()
        pool.disconnect = AsyncMock()
        redis_module._client = client
        redis_module._pool = pool

        await close_redis()

        client.aclose.assert_awaited_once()
        pool.disconnect.assert_awaited_once()
        assert redis_module._client is None
        assert redis_module._pool is None

    async def test_noop_when_not_initialized(self):
        await close_redis()

        assert redis_module._client is None
