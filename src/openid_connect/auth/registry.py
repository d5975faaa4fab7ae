"""Provider registry.

Holds the configured providers. Reads are lock-free; an administrative
update builds a complete new mapping and swaps the reference in one
assignment, so a concurrent login never observes a half-applied update.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import SecretStr

from openid_connect.auth.providers.exceptions import ProviderNotFoundError
from openid_connect.auth.providers.models import ProviderConfig
from openid_connect.auth.providers.presets import preset_for
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from openid_connect.core.config import ProviderSettings, Settings

logger = get_logger(__name__)


class ProviderRegistry:
    """Read-mostly store of :class:`ProviderConfig` keyed by provider id."""

    def __init__(self, providers: Iterable[ProviderConfig] = ()) -> None:
        self._providers: Mapping[str, ProviderConfig] = self._build(providers)

    @staticmethod
    def _build(providers: Iterable[ProviderConfig]) -> Mapping[str, ProviderConfig]:
        mapping: dict[str, ProviderConfig] = {}
        for provider in providers:
            if provider.id in mapping:
                msg = f"Duplicate provider id: {provider.id}"
                raise ValueError(msg)
            mapping[provider.id] = provider
        return MappingProxyType(mapping)

    def get(self, provider_id: str) -> ProviderConfig:
        """Return the provider configuration for ``provider_id``.

        Raises:
            ProviderNotFoundError: If no such provider is configured.
        """
        try:
            return self._providers[provider_id]
        except KeyError:
            raise ProviderNotFoundError(provider_id) from None

    def list_enabled(self) -> list[ProviderConfig]:
        """Return enabled providers in configuration order."""
        return [provider for provider in self._providers.values() if provider.enabled]

    def list_all(self) -> list[ProviderConfig]:
        return list(self._providers.values())

    def replace(self, providers: Iterable[ProviderConfig]) -> None:
        """Atomically replace the whole provider set."""
        self._providers = self._build(providers)
        logger.info(
            "Provider registry updated",
            providers=sorted(self._providers),
            enabled=[p.id for p in self.list_enabled()],
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderRegistry:
        """Build a registry from application settings."""
        oidc = settings.openid_connect
        enabled = set(oidc.clients_enabled)
        return cls(
            build_provider_config(
                provider,
                client_secret=settings.OIDC_CLIENT_SECRETS.get(provider.id, ""),
                enabled=provider.id in enabled,
            )
            for provider in oidc.providers
        )


def build_provider_config(
    provider: ProviderSettings,
    *,
    client_secret: str,
    enabled: bool,
) -> ProviderConfig:
    """Merge configured values over the family preset into a ProviderConfig."""
    values = preset_for(provider.family)
    configured = provider.model_dump(
        exclude={"discovery_url"},
        exclude_none=True,
        exclude_unset=True,
    )
    values.update(configured)
    values.setdefault("label", provider.id)
    if not values["label"]:
        values["label"] = provider.id
    values["family"] = provider.family
    values["scopes"] = frozenset(values.get("scopes", provider.scopes))
    values["client_secret"] = SecretStr(client_secret)
    values["enabled"] = enabled
    return ProviderConfig(**values)
