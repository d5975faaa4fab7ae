"""Rate limiting using SlowAPI.

This module provides:
- Rate limiter configuration
- IP-based limits for the login and callback endpoints
- Rate limit exception handler
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from openid_connect.core.config import get_settings
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request

logger = get_logger(__name__)


def _get_login_rate_limit_key(request: Request) -> str:
    """Rate limit key for login endpoints: always the client address."""
    return f"login:{get_remote_address(request)}"


def create_limiter() -> Limiter:
    """Create and configure the rate limiter."""
    settings = get_settings()

    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limiting.default],
        storage_uri=settings.rate_limiting.storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limiting.enabled,
    )


# Global limiter instance
limiter = create_limiter()


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle rate limit exceeded exceptions."""
    assert isinstance(exc, RateLimitExceeded)
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        method=request.method,
        client_ip=get_remote_address(request),
        limit=str(exc.detail),
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(exc.detail)},
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """Configure rate limiting for the FastAPI application."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    logger.info("Rate limiting configured", enabled=limiter.enabled)


def rate_limit_login() -> Any:
    """Apply the login rate limit (IP-based).

    Example:
        @router.get("/login/{provider_id}")
        @rate_limit_login()
        async def login(request: Request, provider_id: str):
            ...
    """
    return limiter.limit(
        lambda: get_settings().rate_limiting.login,
        key_func=_get_login_rate_limit_key,
    )
