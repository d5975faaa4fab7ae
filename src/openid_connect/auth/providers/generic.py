"""Standard OpenID Connect provider family."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from openid_connect.auth.providers.exceptions import ClaimMismatchError
from openid_connect.auth.providers.models import VerifiedClaims
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.auth.attempts import AuthAttempt
    from openid_connect.auth.client.token_exchange import TokenExchangeClient
    from openid_connect.auth.providers.models import ProviderConfig, TokenSet

logger = get_logger(__name__)

# Userinfo never overrides the claims the ID token signature covers
PROTECTED_CLAIMS = frozenset({"iss", "sub", "aud", "azp", "nonce", "exp", "iat"})


class StandardOIDCProvider:
    """Authorization code flow with a signed ID token.

    Subclasses adjust the authorization parameters, the accepted issuers,
    or the way identity claims are obtained.

    Attributes:
        tokens: Client used for every provider request.
        fetch_userinfo: Whether to merge the userinfo document into the
            verified claims when the provider has a userinfo endpoint.
    """

    requires_id_token = True

    def __init__(self, tokens: TokenExchangeClient, *, fetch_userinfo: bool = True) -> None:
        self.tokens = tokens
        self.fetch_userinfo = fetch_userinfo

    @property
    def family(self) -> str:
        return "generic"

    def authorization_params(
        self,
        provider: ProviderConfig,
        attempt: AuthAttempt,
        code_challenge: str | None,
    ) -> dict[str, str]:
        params = {
            "client_id": provider.client_id,
            "response_type": "code",
            "scope": provider.scope_string,
            "redirect_uri": attempt.redirect_uri,
            "state": attempt.state,
            "nonce": attempt.nonce,
        }
        if code_challenge is not None:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        return params

    def accepted_issuers(self, provider: ProviderConfig) -> set[str]:
        return {provider.issuer} if provider.issuer else set()

    def build_authorization_url(
        self,
        provider: ProviderConfig,
        attempt: AuthAttempt,
        code_challenge: str | None,
    ) -> str:
        query = urlencode(self.authorization_params(provider, attempt, code_challenge))
        separator = "&" if "?" in provider.authorization_endpoint else "?"
        return f"{provider.authorization_endpoint}{separator}{query}"

    async def exchange_token(
        self,
        provider: ProviderConfig,  # noqa: ARG002
        attempt: AuthAttempt,
        code: str,
    ) -> TokenSet:
        return await self.tokens.exchange(
            attempt,
            code,
            require_id_token=self.requires_id_token,
        )

    async def verify_token(
        self,
        provider: ProviderConfig,
        tokens: TokenSet,
        attempt: AuthAttempt,
    ) -> VerifiedClaims:
        verified = await self.tokens.verify(
            tokens,
            attempt,
            accepted_issuers=self.accepted_issuers(provider),
        )
        if not (self.fetch_userinfo and provider.userinfo_endpoint):
            return verified

        userinfo = await self.tokens.fetch_userinfo(provider, tokens.access_token)
        return self.merge_userinfo(verified, userinfo)

    @staticmethod
    def merge_userinfo(verified: VerifiedClaims, userinfo: Any) -> VerifiedClaims:
        """Merge a userinfo document into verified ID token claims.

        Raises:
            ClaimMismatchError: If the userinfo subject differs from the
                ID token subject.
        """
        if not isinstance(userinfo, dict):
            logger.warning("Ignoring non-object userinfo response", provider_id=verified.provider_id)
            return verified
        if str(userinfo.get("sub")) != verified.subject:
            raise ClaimMismatchError("sub", "Userinfo subject does not match the ID token")

        claims = dict(verified.claims)
        claims.update(
            {key: value for key, value in userinfo.items() if key not in PROTECTED_CLAIMS}
        )
        return verified.model_copy(update={"claims": claims})
