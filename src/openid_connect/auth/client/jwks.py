"""JSON Web Key Set cache.

Signing keys are fetched from a provider's ``jwks_uri`` and cached per URI.
A token signed with a key id the cache has not seen triggers one refetch,
so keys rotated by the provider are picked up without waiting for the TTL.
Refetches for unknown key ids are rate limited to keep a flood of forged
tokens from turning into a flood of requests to the provider.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from openid_connect.auth.providers.exceptions import SignatureInvalidError
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger(__name__)


@dataclass
class _KeySet:
    keys: list[dict[str, Any]]
    fetched_at: float
    by_kid: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.by_kid = {key["kid"]: key for key in self.keys if "kid" in key}

    def find(self, kid: str | None) -> dict[str, Any] | None:
        if kid is not None:
            return self.by_kid.get(kid)
        # Without a kid the choice is only unambiguous for a single key
        if len(self.keys) == 1:
            return self.keys[0]
        return None


class JWKSCache:
    """Per-URI cache of signing keys with rotation-aware refresh.

    Attributes:
        ttl: Seconds a fetched key set is served without refetching.
        min_refresh_interval: Minimum seconds between refetches triggered
            by an unknown key id.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[Any]],
        *,
        ttl: int = 3600,
        min_refresh_interval: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self.ttl = ttl
        self.min_refresh_interval = min_refresh_interval
        self._clock = clock
        self._entries: dict[str, _KeySet] = {}

    async def get_key(self, jwks_uri: str, kid: str | None) -> dict[str, Any]:
        """Return the signing key for ``kid`` published at ``jwks_uri``.

        Raises:
            SignatureInvalidError: If no published key matches.
            NetworkError: If the key set cannot be fetched.
        """
        now = self._clock()
        entry = self._entries.get(jwks_uri)
        refreshed = False

        if entry is None or now - entry.fetched_at >= self.ttl:
            entry = await self._refresh(jwks_uri)
            refreshed = True

        key = entry.find(kid)
        if (
            key is None
            and not refreshed
            and now - entry.fetched_at >= self.min_refresh_interval
        ):
            logger.info("Unknown signing key id, refreshing JWKS", jwks_uri=jwks_uri, kid=kid)
            entry = await self._refresh(jwks_uri)
            key = entry.find(kid)

        if key is None:
            msg = f"No published signing key matches kid {kid!r}"
            raise SignatureInvalidError(msg)
        return key

    async def _refresh(self, jwks_uri: str) -> _KeySet:
        document = await self._fetch(jwks_uri)
        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list):
            msg = "JWKS document has no 'keys' list"
            raise SignatureInvalidError(msg)

        signing_keys = [
            key for key in keys if isinstance(key, dict) and key.get("use", "sig") == "sig"
        ]
        entry = _KeySet(keys=signing_keys, fetched_at=self._clock())
        self._entries[jwks_uri] = entry
        logger.debug("JWKS fetched", jwks_uri=jwks_uri, keys=len(signing_keys))
        return entry

    def clear(self) -> None:
        self._entries.clear()
