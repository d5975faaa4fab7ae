"""HTTP clients for provider endpoints."""

from openid_connect.auth.client.discovery import apply_discovery, merge_discovery
from openid_connect.auth.client.jwks import JWKSCache
from openid_connect.auth.client.token_exchange import TokenExchangeClient


__all__ = [
    "JWKSCache",
    "TokenExchangeClient",
    "apply_discovery",
    "merge_discovery",
]
