"""Pending login attempts and their stores.

An :class:`AuthAttempt` lives from the authorization redirect until the
provider calls back. Stores guarantee at-most-once consumption: ``consume``
removes and returns the attempt in one atomic step, so two callbacks
carrying the same state can never both succeed.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)


class AuthAttempt(BaseModel):
    """State carried across the authorization redirect.

    Attributes:
        state: Random single-use token, also the store key.
        nonce: Random value bound into the ID token.
        pkce_verifier: PKCE code verifier, when the provider uses PKCE.
        provider_id: Provider the login was started for.
        redirect_uri: Redirect URI sent in the authorization request.
        destination: Site-relative path to return to after login.
        created_at: When the attempt was started.
        expires_at: After this instant the callback is rejected.
    """

    state: str = Field(..., repr=False)
    nonce: str = Field(..., repr=False)
    pkce_verifier: str | None = Field(default=None, repr=False)
    provider_id: str
    redirect_uri: str
    destination: str | None = None
    created_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@runtime_checkable
class AttemptStore(Protocol):
    """Storage for pending attempts with atomic consume semantics."""

    async def save(self, attempt: AuthAttempt, ttl_seconds: int) -> None:
        """Store ``attempt`` keyed by its state for ``ttl_seconds``."""
        ...

    async def consume(self, state: str) -> AuthAttempt | None:
        """Remove and return the attempt for ``state``, or None if absent."""
        ...


class InMemoryAttemptStore:
    """Process-local attempt store.

    Suitable for a single worker. ``consume`` performs no awaits between
    lookup and removal, which makes it atomic on the event loop.
    """

    def __init__(self) -> None:
        self._attempts: dict[str, AuthAttempt] = {}

    async def save(self, attempt: AuthAttempt, ttl_seconds: int) -> None:  # noqa: ARG002
        self._purge_expired(attempt.created_at)
        if attempt.state in self._attempts:
            msg = "State collision"
            raise ValueError(msg)
        self._attempts[attempt.state] = attempt

    async def consume(self, state: str) -> AuthAttempt | None:
        return self._attempts.pop(state, None)

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, value in self._attempts.items() if value.is_expired(now)]
        for key in expired:
            del self._attempts[key]
        if expired:
            logger.debug("Purged expired login attempts", count=len(expired))

    def __len__(self) -> int:
        return len(self._attempts)


class RedisAttemptStore:
    """Attempt store shared between workers through Redis.

    ``save`` uses ``SET NX EX`` so an attempt can never overwrite another,
    ``consume`` uses ``GETDEL`` (Redis 6.2+) so lookup and invalidation are
    a single server-side operation.
    """

    def __init__(self, client: Redis[Any], key_prefix: str = "oidc:attempt:") -> None:
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, state: str) -> str:
        return f"{self.key_prefix}{state}"

    async def save(self, attempt: AuthAttempt, ttl_seconds: int) -> None:
        stored = await self.client.set(
            self._key(attempt.state),
            attempt.model_dump_json(),
            ex=ttl_seconds,
            nx=True,
        )
        if not stored:
            msg = "State collision"
            raise ValueError(msg)

    async def consume(self, state: str) -> AuthAttempt | None:
        raw = await self.client.getdel(self._key(state))
        if raw is None:
            return None
        return AuthAttempt.model_validate_json(raw)
