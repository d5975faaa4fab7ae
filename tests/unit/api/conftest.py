"""API test fixtures.

The application is created from the test settings and started with its
real lifespan; provider endpoints are mocked with respx.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from openid_connect.factory import create_app
from tests.factories.providers import GOOGLE_JWKS_URI


if TYPE_CHECKING:
    from collections.abc import Generator

    from openid_connect.core.config import Settings

pytestmark = pytest.mark.unit

GOOGLE_USERINFO = "https://openidconnect.googleapis.com/v1/userinfo"


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient]:
    """Test client running the application lifespan."""
    app = create_app(test_settings)
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def google_endpoints(jwks_document: dict[str, Any]) -> Generator[respx.MockRouter]:
    """Mock Google's JWKS and userinfo endpoints."""
    with respx.mock(assert_all_called=False) as mock:
        mock.get(GOOGLE_JWKS_URI).mock(return_value=httpx.Response(200, json=jwks_document))
        mock.get(GOOGLE_USERINFO).mock(
            return_value=httpx.Response(200, json={"sub": "u1", "email": "a@b.com"})
        )
        yield mock


@pytest.fixture
def current_claims(id_token_claims: dict[str, Any]) -> dict[str, Any]:
    """ID token claims valid against the real clock."""
    now = int(time.time())
    return dict(id_token_claims, iat=now, exp=now + 3600)
