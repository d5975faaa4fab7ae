"""Application factory for creating FastAPI instances.

This module provides the create_app factory function that:
- Configures the FastAPI application with appropriate settings
- Sets up middleware stack in the correct order
- Registers exception handlers
- Mounts API routers
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from openid_connect.api.v1.router import router as v1_router
from openid_connect.cache.rate_limit import setup_rate_limiting
from openid_connect.core.config import Settings, get_settings
from openid_connect.core.events import lifespan
from openid_connect.core.exceptions import setup_exception_handlers
from openid_connect.core.middleware import (
    LoggingMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from openid_connect.observability.metrics import setup_metrics
from openid_connect.observability.tracing import setup_tracing


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    prefix = settings.api.v1_prefix
    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="OpenID Connect login: provider redirect, callback and session binding",
        lifespan=lifespan,
        docs_url=f"{prefix}/docs" if settings.is_non_production else None,
        redoc_url=None,
        openapi_url=f"{prefix}/openapi.json" if settings.is_non_production else None,
        debug=settings.app.debug,
    )

    # Store settings in app state for access in routes and lifespan
    app.state.settings = settings

    setup_rate_limiting(app)
    setup_exception_handlers(app)
    _setup_middleware(app, settings)
    app.include_router(v1_router, prefix=prefix)

    # Observability after routes are mounted
    setup_tracing(app, settings)
    setup_metrics(app, settings)

    return app


def _setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack.

    Middleware is executed in reverse order of addition. Order from the
    request perspective:
    1. SecurityHeadersMiddleware
    2. RequestIDMiddleware
    3. LoggingMiddleware
    4. CORSMiddleware
    """
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    prefix = settings.api.v1_prefix
    app.add_middleware(
        LoggingMiddleware,
        exclude_paths={f"{prefix}/health", f"{prefix}/ready", f"{prefix}/metrics", "/favicon.ico"},
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
