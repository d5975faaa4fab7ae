"""Provider data models.

This module defines the provider configuration and the values that flow
through a single login attempt once the callback has been accepted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ProviderConfig(BaseModel):
    """Configuration of one OpenID Connect provider.

    Owned by the provider registry. Instances are immutable, so a login
    attempt always sees one consistent configuration even while an
    administrator replaces the registry contents.

    Attributes:
        id: Unique provider id used in URLs (e.g. ``google``).
        label: Human-readable name for login links.
        family: Provider family selecting the client implementation.
        client_id: OAuth2 client id registered with the provider.
        client_secret: OAuth2 client secret. Masked in ``repr`` and logs.
        authorization_endpoint: Where the browser is redirected to log in.
        token_endpoint: Where the authorization code is exchanged.
        userinfo_endpoint: Optional userinfo endpoint.
        jwks_uri: Published signing keys; required for asymmetric ID tokens.
        issuer: Expected ``iss`` claim of ID tokens.
        scopes: Requested scopes.
        use_pkce: Whether to send a PKCE challenge.
        enabled: Whether administrators enabled the provider.
    """

    id: str
    label: str = ""
    family: str = "generic"
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    issuer: str | None = None
    scopes: frozenset[str] = frozenset({"openid"})
    use_pkce: bool = True
    enabled: bool = False

    model_config = {"frozen": True}

    @property
    def scope_string(self) -> str:
        """Space-separated scopes with ``openid`` first, the rest sorted."""
        rest = sorted(scope for scope in self.scopes if scope != "openid")
        ordered = (["openid"] if "openid" in self.scopes else []) + rest
        return " ".join(ordered)


class TokenSet(BaseModel):
    """Tokens returned by the token endpoint for one exchange.

    Transient: lives only for the duration of the callback request. Token
    values are excluded from ``repr`` so they never reach a log line.
    """

    access_token: str = Field(..., repr=False)
    id_token: str | None = Field(default=None, repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    token_type: str = "Bearer"
    scope: str | None = None
    expires_at: datetime | None = None

    model_config = {"frozen": True}


class VerifiedClaims(BaseModel):
    """Identity claims that passed signature, issuer, audience and nonce checks.

    Attributes:
        provider_id: Provider that asserted the claims.
        subject: Stable external identifier (``sub``).
        issuer: Issuer that signed the claims.
        claims: All verified claims, merged with userinfo when fetched.
    """

    provider_id: str
    subject: str
    issuer: str
    claims: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}
