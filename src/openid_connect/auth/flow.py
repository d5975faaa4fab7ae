"""Authorization flow controller.

Starts login attempts and validates provider callbacks. The controller never
talks to the network: it produces the authorization URL and, on callback,
hands back the consumed attempt for the token exchange.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from openid_connect.auth.attempts import AuthAttempt
from openid_connect.auth.providers.exceptions import (
    ConfigurationError,
    InvalidStateError,
    MalformedCallbackError,
    ProviderDeniedError,
)
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable

    from openid_connect.auth.attempts import AttemptStore
    from openid_connect.auth.providers.factory import ProviderClients
    from openid_connect.auth.providers.models import ProviderConfig
    from openid_connect.auth.registry import ProviderRegistry

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


def generate_pkce_pair(token_factory: Callable[[int], str] = secrets.token_urlsafe) -> tuple[str, str]:
    """Generate a PKCE code_verifier and code_challenge (S256).

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    # RFC 7636: 43-128 characters from unreserved character set
    code_verifier = token_factory(64)[:128]
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return code_verifier, code_challenge


def safe_destination(destination: str | None) -> str | None:
    """Return ``destination`` if it is a site-relative path, else None."""
    if not destination or not destination.startswith("/"):
        return None
    if destination.startswith("//") or "\\" in destination:
        return None
    parts = urlsplit(destination)
    if parts.scheme or parts.netloc:
        return None
    return destination


class AuthorizationFlowController:
    """Begins login attempts and validates callbacks.

    Attributes:
        registry: Configured providers.
        store: Pending attempt store.
        clients: Provider family clients.
        attempt_ttl: Seconds an attempt stays valid.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        store: AttemptStore,
        clients: ProviderClients,
        redirect_uri_for: Callable[[str], str],
        *,
        attempt_ttl: int = 600,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ) -> None:
        self.registry = registry
        self.store = store
        self.clients = clients
        self.attempt_ttl = attempt_ttl
        self._redirect_uri_for = redirect_uri_for
        self._clock = clock
        self._token_factory = token_factory

    def _check_configuration(self, provider: ProviderConfig) -> None:
        if not provider.enabled:
            msg = f"Provider {provider.id} is not enabled"
            raise ConfigurationError(msg)
        missing = [
            name
            for name, value in (
                ("client_id", provider.client_id),
                ("client_secret", provider.client_secret.get_secret_value()),
                ("authorization_endpoint", provider.authorization_endpoint),
                ("token_endpoint", provider.token_endpoint),
            )
            if not value
        ]
        if missing:
            msg = f"Provider {provider.id} is missing {', '.join(missing)}"
            raise ConfigurationError(msg)

    async def begin_login(
        self,
        provider_id: str,
        destination: str | None = None,
    ) -> tuple[str, AuthAttempt]:
        """Start a login attempt.

        Args:
            provider_id: Configured provider to log in with.
            destination: Site-relative path to return to afterwards.

        Returns:
            The authorization URL and the stored attempt.

        Raises:
            ProviderNotFoundError: If the provider is not configured.
            ConfigurationError: If the provider is disabled or incomplete.
        """
        provider = self.registry.get(provider_id)
        self._check_configuration(provider)
        client = self.clients.for_provider(provider)

        code_verifier: str | None = None
        code_challenge: str | None = None
        if provider.use_pkce:
            code_verifier, code_challenge = generate_pkce_pair(self._token_factory)

        now = self._clock()
        kept_destination = safe_destination(destination)
        if destination and kept_destination is None:
            logger.info("Dropping non-relative login destination", provider_id=provider_id)

        attempt = AuthAttempt(
            state=self._token_factory(32),
            nonce=self._token_factory(32),
            pkce_verifier=code_verifier,
            provider_id=provider.id,
            redirect_uri=self._redirect_uri_for(provider.id),
            destination=kept_destination,
            created_at=now,
            expires_at=now + timedelta(seconds=self.attempt_ttl),
        )
        await self.store.save(attempt, self.attempt_ttl)

        url = client.build_authorization_url(provider, attempt, code_challenge)
        logger.info("Login attempt started", provider_id=provider.id, pkce=provider.use_pkce)
        return url, attempt

    async def handle_callback(
        self,
        provider_id: str,
        state: str | None,
        code: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> AuthAttempt:
        """Validate a provider callback and consume its attempt.

        The attempt is removed from the store before any other check, so it
        can never be used again whatever the outcome.

        Returns:
            The consumed attempt, ready for the token exchange.

        Raises:
            MalformedCallbackError: If ``state`` or ``code`` is missing.
            InvalidStateError: If the state is unknown, expired, or belongs
                to another provider.
            ProviderDeniedError: If the provider reported an error.
        """
        if not state:
            msg = "Callback has no state parameter"
            raise MalformedCallbackError(msg)

        attempt = await self.store.consume(state)
        if attempt is None:
            msg = "Unknown or already used state"
            raise InvalidStateError(msg)
        if attempt.is_expired(self._clock()):
            msg = "Login attempt has expired"
            raise InvalidStateError(msg)
        if attempt.provider_id != provider_id:
            logger.warning(
                "Callback provider does not match login attempt",
                provider_id=provider_id,
                attempt_provider_id=attempt.provider_id,
            )
            msg = "State belongs to a different provider"
            raise InvalidStateError(msg)

        if error:
            raise ProviderDeniedError(error, error_description)
        if not code:
            msg = "Callback has no code parameter"
            raise MalformedCallbackError(msg)

        return attempt
