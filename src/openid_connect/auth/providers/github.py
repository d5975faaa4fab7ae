"""GitHub provider family.

GitHub implements plain OAuth2: the token response has no ID token, so the
identity is read from the REST API with the access token. The subject is
the numeric account id, which unlike the login name never changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openid_connect.auth.providers.exceptions import ClaimMismatchError
from openid_connect.auth.providers.generic import StandardOIDCProvider
from openid_connect.auth.providers.models import VerifiedClaims
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.auth.attempts import AuthAttempt
    from openid_connect.auth.providers.models import ProviderConfig, TokenSet

logger = get_logger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_ISSUER = "https://github.com"


class GitHubProvider(StandardOIDCProvider):
    """GitHub OAuth apps."""

    requires_id_token = False

    @property
    def family(self) -> str:
        return "github"

    def authorization_params(
        self,
        provider: ProviderConfig,
        attempt: AuthAttempt,
        code_challenge: str | None,
    ) -> dict[str, str]:
        params = super().authorization_params(provider, attempt, code_challenge)
        params.pop("nonce")
        params.pop("response_type")
        return params

    async def verify_token(
        self,
        provider: ProviderConfig,
        tokens: TokenSet,
        attempt: AuthAttempt,  # noqa: ARG002
    ) -> VerifiedClaims:
        user = await self.tokens.fetch_userinfo(provider, tokens.access_token, accept=GITHUB_ACCEPT)
        if not isinstance(user, dict) or user.get("id") is None:
            raise ClaimMismatchError("sub", "GitHub user response has no id")

        claims: dict[str, Any] = {
            "sub": str(user["id"]),
            "preferred_username": user.get("login"),
            "name": user.get("name"),
            "email": user.get("email"),
            "picture": user.get("avatar_url"),
            "profile": user.get("html_url"),
        }
        if not claims["email"]:
            claims.update(await self._primary_email(provider, tokens.access_token))

        return VerifiedClaims(
            provider_id=provider.id,
            subject=claims["sub"],
            issuer=provider.issuer or GITHUB_ISSUER,
            claims={key: value for key, value in claims.items() if value is not None},
        )

    async def _primary_email(self, provider: ProviderConfig, access_token: str) -> dict[str, Any]:
        """Look up the primary verified address when the profile email is private."""
        url = f"{provider.userinfo_endpoint}/emails"
        emails = await self.tokens.fetch_userinfo(provider, access_token, url=url, accept=GITHUB_ACCEPT)
        for entry in emails if isinstance(emails, list) else []:
            if isinstance(entry, dict) and entry.get("primary") and entry.get("verified"):
                return {"email": entry.get("email"), "email_verified": True}
        logger.debug("No primary verified GitHub email", provider_id=provider.id)
        return {}
