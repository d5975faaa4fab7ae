"""Redis connection management and rate limiting."""

from openid_connect.cache.rate_limit import limiter, rate_limit_login, setup_rate_limiting
from openid_connect.cache.redis import (
    check_redis_health,
    close_redis,
    get_redis_client,
    init_redis,
)


__all__ = [
    "check_redis_health",
    "close_redis",
    "get_redis_client",
    "init_redis",
    "limiter",
    "rate_limit_login",
    "setup_rate_limiting",
]
