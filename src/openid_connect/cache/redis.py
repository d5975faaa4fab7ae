"""Redis client and connection pool management.

Redis backs the shared login attempt store when the service runs with more
than one worker. The pool is created during application startup and closed
on shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from openid_connect.core.config import Settings

logger = get_logger(__name__)

# Global connection pool and client
_pool: ConnectionPool[Any] | None = None
_client: Redis[Any] | None = None


async def init_redis(settings: Settings) -> Redis[Any]:
    """Initialize the Redis connection pool.

    Should be called during application startup (lifespan).
    """
    global _pool, _client  # noqa: PLW0603

    logger.info(
        "Initializing Redis connection",
        host=settings.redis.host,
        port=settings.redis.port,
    )

    _pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis.max_connections,
        decode_responses=True,
    )
    _client = redis.Redis(connection_pool=_pool)

    try:
        await _client.ping()
        logger.info("Redis connection established successfully")
    except redis.ConnectionError:
        logger.exception("Failed to connect to Redis")
        raise

    return _client


async def close_redis() -> None:
    """Close the Redis connection pool.

    Should be called during application shutdown (lifespan).
    """
    global _pool, _client  # noqa: PLW0603

    if _client is None and _pool is None:
        return

    logger.info("Closing Redis connection")

    if _client:
        await _client.aclose()
        _client = None

    if _pool:
        await _pool.disconnect()
        _pool = None

    logger.info("Redis connection closed")


def get_redis_client() -> Redis[Any]:
    """Get the Redis client.

    Raises:
        RuntimeError: If Redis is not initialized.
    """
    if _client is None:
        msg = "Redis client not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def check_redis_health() -> dict[str, str]:
    """Check health of the Redis connection.

    Returns:
        Dictionary with the health status, empty if Redis is not in use.
    """
    if _client is None:
        return {}
    try:
        await _client.ping()
    except redis.RedisError:
        return {"redis": "unhealthy"}
    return {"redis": "healthy"}
