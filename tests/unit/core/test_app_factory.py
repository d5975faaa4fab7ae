"""Unit tests for the application factory and lifespan.

Tests cover:
- Settings stored on application state
- Documentation endpoints per environment
- Startup wiring and shutdown of login components
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from openid_connect.auth.attempts import InMemoryAttemptStore, RedisAttemptStore
from openid_connect.auth.service import LoginService
from openid_connect.core.config import Settings
from openid_connect.core.events.lifespan import _init_attempt_store
from openid_connect.factory import create_app
from openid_connect.users.memory import InMemoryUserStore


pytestmark = pytest.mark.unit

PREFIX = "/api/v1/openid-connect"


class TestCreateApp:
    """Tests for create_app."""

    def test_stores_settings_in_state(self, test_settings: Settings):
        app = create_app(test_settings)

        assert app.state.settings is test_settings
        assert app.title == "OpenID Connect Login Service"

    def test_docs_enabled_outside_production(self, test_settings: Settings):
        app = create_app(test_settings)

        assert app.docs_url == f"{PREFIX}/docs"
        assert app.openapi_url == f"{PREFIX}/openapi.json"

    def test_docs_disabled_in_production(self):
        app = create_app(Settings(APP_ENV="production"))

        assert app.docs_url is None
        assert app.openapi_url is None

    def test_routes_mounted_under_prefix(self, test_settings: Settings):
        paths = {route.path for route in create_app(test_settings).routes}

        assert f"{PREFIX}/login/{{provider_id}}" in paths
        assert f"{PREFIX}/callback/{{provider_id}}" in paths
        assert f"{PREFIX}/health" in paths


class TestLifespan:
    """Tests for startup and shutdown."""

    def test_startup_wires_login_components(self, test_settings: Settings):
        app = create_app(test_settings)

        with TestClient(app):
            assert isinstance(app.state.login_service, LoginService)
            assert isinstance(app.state.user_store, InMemoryUserStore)
            assert [p.id for p in app.state.registry.list_enabled()] == ["google", "github"]

    def test_shutdown_closes_token_client(self, test_settings: Settings):
        app = create_app(test_settings)

        with TestClient(app):
            token_client = app.state.token_client
            shutdown = AsyncMock(wraps=token_client.shutdown)
            token_client.shutdown = shutdown

        shutdown.assert_awaited_once()


class TestInitAttemptStore:
    """Tests for attempt store selection."""

    async def test_memory_by_default(self, test_settings: Settings):
        assert isinstance(await _init_attempt_store(test_settings), InMemoryAttemptStore)

    async def test_redis_backend(self):
        settings = Settings(openid_connect={"attempt_store": "redis"})

        with patch(
            "openid_connect.core.events.lifespan.init_redis",
            new=AsyncMock(),
        ) as init_redis:
            store = await _init_attempt_store(settings)

        assert isinstance(store, RedisAttemptStore)
        init_redis.assert_awaited_once_with(settings)
