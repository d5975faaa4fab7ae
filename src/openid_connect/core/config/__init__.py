"""Configuration module with YAML and environment variable support."""

from .settings import (
    AttemptStoreBackend,
    LinkStoreBackend,
    OpenIDConnectSettings,
    ProviderSettings,
    Settings,
    get_settings,
)


__all__ = [
    "AttemptStoreBackend",
    "LinkStoreBackend",
    "OpenIDConnectSettings",
    "ProviderSettings",
    "Settings",
    "get_settings",
]
