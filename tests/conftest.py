"""Shared test configuration for the OpenID Connect login service tests.

The test environment is selected before any application module is imported,
so the module-level rate limiter and cached settings see the test overrides
from ``config/environments/test``.
"""

from __future__ import annotations

import os


os.environ["APP_ENV"] = "test"
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-minimum-32-characters")

import pytest  # noqa: E402

from openid_connect.core.config import Settings, get_settings  # noqa: E402


@pytest.fixture
def test_settings() -> Settings:
    """Settings for the test environment with Google and GitHub enabled."""
    return Settings(
        APP_ENV="test",
        openid_connect={
            "providers": [
                {"id": "google", "family": "google", "client_id": "google-client"},
                {"id": "github", "family": "github", "client_id": "github-client"},
            ],
            "clients_enabled": ["google", "github"],
            "public_url": "http://testserver",
        },
        OIDC_CLIENT_SECRETS={"google": "google-secret", "github": "github-secret"},
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Make sure no test sees settings cached by another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
