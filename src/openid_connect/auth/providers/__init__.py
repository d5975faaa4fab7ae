"""Provider families package.

This package provides the provider families that implement the
ProviderClient protocol. The factory module selects a family by the
``family`` key of a provider's configuration.

Available families:
- StandardOIDCProvider: Any OpenID Connect provider (``generic``)
- GoogleProvider: Google accounts (``google``)
- GitHubProvider: GitHub OAuth apps, no ID token (``github``)

Usage:
    from openid_connect.auth.providers import ProviderClients

    clients = ProviderClients(token_client)
    url = clients.for_provider(provider).build_authorization_url(provider, attempt, challenge)
"""

from openid_connect.auth.providers.exceptions import (
    ClaimMismatchError,
    ConfigurationError,
    InvalidStateError,
    MalformedCallbackError,
    NetworkError,
    OpenIDConnectError,
    ProviderDeniedError,
    ProviderNotFoundError,
    SignatureInvalidError,
    TokenEndpointError,
    TokenExpiredError,
)
from openid_connect.auth.providers.factory import (
    PROVIDER_FAMILIES,
    ProviderClients,
    create_provider_client,
)
from openid_connect.auth.providers.generic import StandardOIDCProvider
from openid_connect.auth.providers.github import GitHubProvider
from openid_connect.auth.providers.google import GoogleProvider
from openid_connect.auth.providers.models import ProviderConfig, TokenSet, VerifiedClaims
from openid_connect.auth.providers.protocol import ProviderClient


__all__ = [
    "PROVIDER_FAMILIES",
    "ClaimMismatchError",
    "ConfigurationError",
    "GitHubProvider",
    "GoogleProvider",
    "InvalidStateError",
    "MalformedCallbackError",
    "NetworkError",
    "OpenIDConnectError",
    "ProviderClient",
    "ProviderClients",
    "ProviderConfig",
    "ProviderDeniedError",
    "ProviderNotFoundError",
    "SignatureInvalidError",
    "StandardOIDCProvider",
    "TokenEndpointError",
    "TokenExpiredError",
    "TokenSet",
    "VerifiedClaims",
    "create_provider_client",
]
