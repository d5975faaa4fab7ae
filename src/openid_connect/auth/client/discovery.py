"""OpenID Connect discovery.

Fills endpoints a provider leaves unconfigured from its
``/.well-known/openid-configuration`` document. Explicitly configured
values always win over discovered ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openid_connect.auth.providers.exceptions import NetworkError
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.auth.client.token_exchange import TokenExchangeClient
    from openid_connect.auth.providers.models import ProviderConfig
    from openid_connect.auth.registry import ProviderRegistry
    from openid_connect.core.config import Settings

logger = get_logger(__name__)

DISCOVERED_FIELDS = (
    "issuer",
    "authorization_endpoint",
    "token_endpoint",
    "userinfo_endpoint",
    "jwks_uri",
)


def merge_discovery(provider: ProviderConfig, document: dict[str, Any]) -> ProviderConfig:
    """Return ``provider`` with unset endpoints taken from ``document``."""
    update = {
        name: document[name]
        for name in DISCOVERED_FIELDS
        if not getattr(provider, name) and isinstance(document.get(name), str)
    }
    if not update:
        return provider
    return provider.model_copy(update=update)


async def apply_discovery(
    registry: ProviderRegistry,
    settings: Settings,
    client: TokenExchangeClient,
) -> None:
    """Resolve discovery documents and swap the results into ``registry``.

    A provider whose document cannot be fetched keeps its configured values;
    the failure is logged and the provider is left as configured.
    """
    urls = {
        provider.id: provider.discovery_url
        for provider in settings.openid_connect.providers
        if provider.discovery_url
    }
    if not urls:
        return

    resolved = []
    for provider in registry.list_all():
        url = urls.get(provider.id)
        if url is None:
            resolved.append(provider)
            continue
        try:
            document = await client.fetch_json(url)
        except NetworkError as e:
            logger.warning("OIDC discovery failed", provider_id=provider.id, error=str(e))
            resolved.append(provider)
            continue
        if not isinstance(document, dict):
            logger.warning("OIDC discovery document is not an object", provider_id=provider.id)
            resolved.append(provider)
            continue
        resolved.append(merge_discovery(provider, document))
        logger.info("OIDC discovery applied", provider_id=provider.id, url=url)

    registry.replace(resolved)
