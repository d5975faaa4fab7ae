"""Provider family factory.

Families are looked up by the ``family`` key of a provider's configuration.
There is no runtime discovery: adding a family means adding it to
:data:`PROVIDER_FAMILIES`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from openid_connect.auth.providers.exceptions import ConfigurationError
from openid_connect.auth.providers.generic import StandardOIDCProvider
from openid_connect.auth.providers.github import GitHubProvider
from openid_connect.auth.providers.google import GoogleProvider
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.auth.client.token_exchange import TokenExchangeClient
    from openid_connect.auth.providers.models import ProviderConfig
    from openid_connect.auth.providers.protocol import ProviderClient

logger = get_logger(__name__)

PROVIDER_FAMILIES: dict[str, type[StandardOIDCProvider]] = {
    "generic": StandardOIDCProvider,
    "google": GoogleProvider,
    "github": GitHubProvider,
}


def create_provider_client(family: str, tokens: TokenExchangeClient) -> ProviderClient:
    """Create the client implementing ``family``.

    Raises:
        ConfigurationError: If the family is unknown.
    """
    try:
        client_cls = PROVIDER_FAMILIES[family]
    except KeyError:
        msg = f"Unknown provider family: {family}"
        raise ConfigurationError(msg) from None
    logger.debug("Creating provider client", family=family)
    return client_cls(tokens)


class ProviderClients:
    """Lazily created provider clients, one per family."""

    def __init__(self, tokens: TokenExchangeClient) -> None:
        self.tokens = tokens
        self._clients: dict[str, ProviderClient] = {}

    def for_provider(self, provider: ProviderConfig) -> ProviderClient:
        client = self._clients.get(provider.family)
        if client is None:
            client = create_provider_client(provider.family, self.tokens)
            self._clients[provider.family] = client
        return client
