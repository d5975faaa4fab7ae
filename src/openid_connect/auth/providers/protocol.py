"""Provider family protocol definition.

This module defines the ProviderClient protocol that every provider family
implements. A family is selected by the ``family`` key of a provider's
configuration; families differ in how they build the authorization URL and
how they turn a token response into verified identity claims.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from openid_connect.auth.attempts import AuthAttempt
    from openid_connect.auth.providers.models import ProviderConfig, TokenSet, VerifiedClaims


@runtime_checkable
class ProviderClient(Protocol):
    """Protocol for provider families.

    Example implementation:
        class MyProvider:
            @property
            def family(self) -> str:
                return "my_family"

            def build_authorization_url(self, provider, attempt, code_challenge):
                ...

            async def exchange_token(self, provider, attempt, code):
                ...

            async def verify_token(self, provider, tokens, attempt):
                ...
    """

    @property
    def family(self) -> str:
        """Return the family name used in provider configuration."""
        ...

    def build_authorization_url(
        self,
        provider: ProviderConfig,
        attempt: AuthAttempt,
        code_challenge: str | None,
    ) -> str:
        """Build the URL the browser is redirected to.

        Args:
            provider: Provider configuration.
            attempt: The attempt being started.
            code_challenge: S256 PKCE challenge, or None without PKCE.
        """
        ...

    async def exchange_token(
        self,
        provider: ProviderConfig,
        attempt: AuthAttempt,
        code: str,
    ) -> TokenSet:
        """Exchange the authorization code for tokens.

        Raises:
            TokenEndpointError: If the token endpoint rejects the code.
            NetworkError: If the endpoint cannot be reached.
        """
        ...

    async def verify_token(
        self,
        provider: ProviderConfig,
        tokens: TokenSet,
        attempt: AuthAttempt,
    ) -> VerifiedClaims:
        """Verify the tokens and return the asserted identity.

        Raises:
            SignatureInvalidError: If the ID token signature is invalid.
            ClaimMismatchError: If a claim check fails.
            TokenExpiredError: If the ID token has expired.
        """
        ...
