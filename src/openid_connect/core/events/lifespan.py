"""Application lifespan event handlers.

Startup builds the login components from settings and stores them on
``app.state``; shutdown releases HTTP, Redis and database connections.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from openid_connect.auth.attempts import InMemoryAttemptStore, RedisAttemptStore
from openid_connect.auth.binder import SessionBinder
from openid_connect.auth.claims import ClaimsMapper
from openid_connect.auth.client.discovery import apply_discovery
from openid_connect.auth.client.token_exchange import TokenExchangeClient
from openid_connect.auth.flow import AuthorizationFlowController
from openid_connect.auth.providers.factory import ProviderClients
from openid_connect.auth.registry import ProviderRegistry
from openid_connect.auth.service import LoginService
from openid_connect.auth.session import create_session_manager
from openid_connect.cache.redis import close_redis, init_redis
from openid_connect.core.config import AttemptStoreBackend, LinkStoreBackend
from openid_connect.database.connection import close_database_pool, ensure_schema, init_database_pool
from openid_connect.database.repositories import PostgresUserLinkRepository, PostgresUserStore
from openid_connect.observability.logging import get_logger, setup_logging
from openid_connect.observability.tracing import shutdown_tracing
from openid_connect.users.memory import InMemoryUserLinkRepository, InMemoryUserStore


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

    from openid_connect.auth.attempts import AttemptStore
    from openid_connect.auth.session import SessionManager
    from openid_connect.core.config import Settings
    from openid_connect.users.protocol import UserLinkRepository, UserStore

logger = get_logger(__name__)


async def _startup(app: FastAPI, settings: Settings) -> None:
    """Initialize all application services during startup."""
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
    )

    oidc = settings.openid_connect
    registry = ProviderRegistry.from_settings(settings)

    token_client = TokenExchangeClient(
        registry,
        timeout=oidc.http_timeout,
        clock_skew=oidc.clock_skew,
        jwks_cache_ttl=oidc.jwks_cache_ttl,
        jwks_min_refresh_interval=oidc.jwks_min_refresh_interval,
    )
    await token_client.initialize()
    await apply_discovery(registry, settings, token_client)

    sessions = create_session_manager(settings)
    attempt_store = await _init_attempt_store(settings)
    links, users = await _init_user_storage(settings, sessions)

    clients = ProviderClients(token_client)
    flow = AuthorizationFlowController(
        registry,
        attempt_store,
        clients,
        settings.callback_url,
        attempt_ttl=oidc.attempt_ttl,
    )
    binder = SessionBinder(links, users, always_save_userinfo=oidc.always_save_userinfo)

    app.state.registry = registry
    app.state.token_client = token_client
    app.state.session_manager = sessions
    app.state.user_store = users
    app.state.login_service = LoginService(
        registry,
        flow,
        clients,
        ClaimsMapper(user_pictures=oidc.user_pictures),
        binder,
        users,
        mapping_table=oidc.userinfo_mapping,
        post_login_redirect=oidc.post_login_redirect,
    )

    logger.info(
        "Application startup complete",
        providers=[provider.id for provider in registry.list_enabled()],
        attempt_store=oidc.attempt_store.value,
        link_store=oidc.link_store.value,
    )


async def _init_attempt_store(settings: Settings) -> AttemptStore:
    if settings.openid_connect.attempt_store == AttemptStoreBackend.REDIS:
        return RedisAttemptStore(await init_redis(settings))
    if not settings.is_non_production:
        logger.warning("In-memory attempt store only works with a single worker")
    return InMemoryAttemptStore()


async def _init_user_storage(
    settings: Settings,
    sessions: SessionManager,
) -> tuple[UserLinkRepository, UserStore]:
    if settings.openid_connect.link_store == LinkStoreBackend.POSTGRES:
        pool = await init_database_pool(settings)
        await ensure_schema(pool)
        return PostgresUserLinkRepository(pool), PostgresUserStore(sessions, pool)
    return InMemoryUserLinkRepository(), InMemoryUserStore(sessions)


async def _shutdown(app: FastAPI) -> None:
    """Shutdown all application services."""
    logger.info("Shutting down application")

    token_client: TokenExchangeClient | None = getattr(app.state, "token_client", None)
    if token_client is not None:
        await token_client.shutdown()

    shutdown_tracing()
    await close_redis()
    await close_database_pool()

    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Settings are read from ``app.state.settings``, which the application
    factory sets.
    """
    await _startup(app, app.state.settings)
    try:
        yield
    finally:
        await _shutdown(app)
