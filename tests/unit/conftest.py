"""Unit test configuration.

Unit tests should be fast and isolated - no external dependencies. Provider
endpoints are mocked with respx and ID tokens are signed with a throwaway
RSA key published through a mocked JWKS endpoint.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from openid_connect.auth.attempts import InMemoryAttemptStore
from openid_connect.auth.client.token_exchange import TokenExchangeClient
from openid_connect.auth.flow import AuthorizationFlowController
from openid_connect.auth.providers.factory import ProviderClients
from openid_connect.auth.providers.models import ProviderConfig
from openid_connect.auth.registry import ProviderRegistry
from openid_connect.auth.session import SessionManager
from tests.factories.providers import FIXED_NOW, ProviderConfigFactory


# Mark all tests in this directory as unit tests
pytestmark = pytest.mark.unit

SIGNING_KID = "test-key-1"
CALLBACK_BASE = "http://testserver/api/v1/openid-connect/callback"


# =============================================================================
# Signing keys
# =============================================================================


@pytest.fixture(scope="session")
def rsa_private_pem() -> bytes:
    """PEM-encoded RSA private key used to sign test ID tokens."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def public_jwk(rsa_private_pem: bytes) -> dict[str, Any]:
    """Public half of the signing key as a JWK."""
    public = jwk.construct(rsa_private_pem, "RS256").public_key().to_dict()
    public.update({"kid": SIGNING_KID, "use": "sig"})
    return public


@pytest.fixture
def jwks_document(public_jwk: dict[str, Any]) -> dict[str, Any]:
    return {"keys": [public_jwk]}


@pytest.fixture
def id_token_claims() -> dict[str, Any]:
    """Valid claims for the default attempt and provider at FIXED_NOW."""
    return {
        "iss": "https://accounts.google.com",
        "aud": "google-client",
        "sub": "u1",
        "email": "a@b.com",
        "nonce": "nonce-123",
        "iat": int(FIXED_NOW.timestamp()),
        "exp": int((FIXED_NOW + timedelta(hours=1)).timestamp()),
    }


@pytest.fixture
def mint_id_token(rsa_private_pem: bytes) -> Callable[..., str]:
    """Return a helper that signs claims as an RS256 ID token."""

    def _mint(claims: dict[str, Any], *, kid: str | None = SIGNING_KID) -> str:
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(claims, rsa_private_pem, algorithm="RS256", headers=headers)

    return _mint


# =============================================================================
# Login components
# =============================================================================


@pytest.fixture
def google_provider() -> ProviderConfig:
    return ProviderConfigFactory.build()


@pytest.fixture
def github_provider() -> ProviderConfig:
    return ProviderConfigFactory.github()


@pytest.fixture
def registry(google_provider: ProviderConfig, github_provider: ProviderConfig) -> ProviderRegistry:
    return ProviderRegistry([google_provider, github_provider])


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
async def token_client(registry: ProviderRegistry, fixed_clock):
    """Token exchange client on a fixed clock, closed after the test."""
    client = TokenExchangeClient(registry, clock=fixed_clock)
    await client.initialize()
    yield client
    await client.shutdown()


@pytest.fixture
def attempt_store() -> InMemoryAttemptStore:
    return InMemoryAttemptStore()


@pytest.fixture
def flow(
    registry: ProviderRegistry,
    attempt_store: InMemoryAttemptStore,
    token_client: TokenExchangeClient,
    fixed_clock,
) -> AuthorizationFlowController:
    return AuthorizationFlowController(
        registry,
        attempt_store,
        ProviderClients(token_client),
        lambda provider_id: f"{CALLBACK_BASE}/{provider_id}",
        clock=fixed_clock,
    )


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager("test-session-secret-minimum-32-characters")
