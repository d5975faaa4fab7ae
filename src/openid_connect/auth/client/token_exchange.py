"""HTTP client for provider token, userinfo and key endpoints.

This module exchanges authorization codes for tokens and verifies the
returned ID token: signature against the provider's published keys (or the
client secret for HMAC algorithms), then issuer, audience, nonce and time
claims against the attempt that started the login.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx
from jose import jwt
from jose.exceptions import JOSEError, JWTError

from openid_connect.auth.client.jwks import JWKSCache
from openid_connect.auth.providers.exceptions import (
    ClaimMismatchError,
    ConfigurationError,
    NetworkError,
    SignatureInvalidError,
    TokenEndpointError,
    TokenExpiredError,
)
from openid_connect.auth.providers.models import TokenSet, VerifiedClaims
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from openid_connect.auth.attempts import AuthAttempt
    from openid_connect.auth.providers.models import ProviderConfig
    from openid_connect.auth.registry import ProviderRegistry

logger = get_logger(__name__)

ASYMMETRIC_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)
HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

# JWK key type each asymmetric algorithm family signs with
_KEY_TYPES = {"RS": "RSA", "PS": "RSA", "ES": "EC"}

# Claims are checked below against the injected clock
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_aud": False,
    "verify_iat": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
    "verify_at_hash": False,
}


def utcnow() -> datetime:
    return datetime.now(UTC)


class TokenExchangeClient:
    """Async HTTP client for the provider side of the authorization code flow.

    Provides methods for:
    - Authorization code exchange at the token endpoint
    - ID token verification (signature and claims)
    - Userinfo endpoint access
    - Plain JSON document retrieval (JWKS, discovery)

    Transport failures and timeouts are retried once before surfacing as
    :class:`NetworkError`. Nothing is mutated between the two attempts.

    Attributes:
        registry: Provider registry the attempts are resolved against.
        timeout: HTTP request timeout in seconds.
        clock_skew: Tolerance in seconds for ``exp`` and ``iat`` checks.
        max_attempts: Total attempts per provider request.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        timeout: float = 10.0,
        clock_skew: int = 60,
        jwks_cache_ttl: int = 3600,
        jwks_min_refresh_interval: int = 60,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = 2,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self.clock_skew = clock_skew
        self.max_attempts = max_attempts
        self._clock = clock
        self._http_client: httpx.AsyncClient | None = None
        self.jwks = JWKSCache(
            self.fetch_json,
            ttl=jwks_cache_ttl,
            min_refresh_interval=jwks_min_refresh_interval,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client with connection pooling."""
        if self._http_client is not None:
            return

        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
            ),
        )
        logger.info("TokenExchangeClient initialized", timeout=self.timeout)

    async def shutdown(self) -> None:
        """Close the HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug("TokenExchangeClient shutdown")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._http_client is None:
            await self.initialize()

        assert self._http_client is not None

        last_error: httpx.TransportError | None = None
        for attempt_number in range(1, self.max_attempts + 1):
            try:
                return await self._http_client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    "Provider request failed",
                    url=url,
                    attempt=attempt_number,
                    error_type=type(e).__name__,
                )

        msg = f"Provider endpoint unreachable: {url}"
        raise NetworkError(msg) from last_error

    async def exchange(
        self,
        attempt: AuthAttempt,
        code: str,
        *,
        require_id_token: bool = True,
    ) -> TokenSet:
        """Exchange an authorization code at the provider's token endpoint.

        Args:
            attempt: The consumed attempt the code belongs to.
            code: Authorization code from the callback.
            require_id_token: Whether a response without ``id_token`` fails.

        Returns:
            The tokens issued for the code.

        Raises:
            TokenEndpointError: If the endpoint rejects the exchange or the
                response lacks required tokens.
            NetworkError: If the endpoint cannot be reached.
        """
        provider = self.registry.get(attempt.provider_id)

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": attempt.redirect_uri,
            "client_id": provider.client_id,
            "client_secret": provider.client_secret.get_secret_value(),
        }
        if attempt.pkce_verifier:
            data["code_verifier"] = attempt.pkce_verifier

        response = await self._send(
            "POST",
            provider.token_endpoint,
            data=data,
            headers={"Accept": "application/json"},
        )

        payload = _json_or_none(response)
        oauth_error = payload.get("error") if isinstance(payload, dict) else None

        # Some providers answer 200 with an OAuth error body
        if response.is_error or oauth_error:
            logger.warning(
                "Token endpoint rejected code exchange",
                provider_id=provider.id,
                status_code=response.status_code,
                oauth_error=oauth_error,
            )
            msg = f"Token endpoint returned {response.status_code}"
            if oauth_error:
                msg += f" ({oauth_error})"
            raise TokenEndpointError(msg, status=response.status_code, error=oauth_error)

        if not isinstance(payload, dict):
            msg = "Token endpoint returned a non-JSON body"
            raise TokenEndpointError(msg, status=response.status_code)

        if not payload.get("access_token"):
            msg = "Token response has no access_token"
            raise TokenEndpointError(msg, status=response.status_code)
        if require_id_token and not payload.get("id_token"):
            msg = "Token response has no id_token"
            raise TokenEndpointError(msg, status=response.status_code)

        expires_at = None
        expires_in = payload.get("expires_in")
        if isinstance(expires_in, int | float) or (isinstance(expires_in, str) and expires_in.isdigit()):
            expires_at = self._clock() + timedelta(seconds=int(expires_in))

        logger.debug("Authorization code exchanged", provider_id=provider.id)
        return TokenSet(
            access_token=payload["access_token"],
            id_token=payload.get("id_token"),
            refresh_token=payload.get("refresh_token"),
            token_type=payload.get("token_type", "Bearer"),
            scope=payload.get("scope"),
            expires_at=expires_at,
        )

    async def verify(
        self,
        tokens: TokenSet,
        attempt: AuthAttempt,
        *,
        accepted_issuers: Iterable[str] | None = None,
    ) -> VerifiedClaims:
        """Verify the ID token of ``tokens`` for ``attempt``.

        Args:
            tokens: Tokens returned by :meth:`exchange`.
            attempt: The attempt whose nonce the token must carry.
            accepted_issuers: Issuer values to accept. Defaults to the
                provider's configured issuer.

        Returns:
            The verified claims.

        Raises:
            SignatureInvalidError: If the signature cannot be verified.
            ClaimMismatchError: If ``iss``, ``aud``, ``azp``, ``nonce``,
                ``sub`` or ``iat`` fail validation.
            TokenExpiredError: If the token expired beyond clock skew.
        """
        provider = self.registry.get(attempt.provider_id)
        if not tokens.id_token:
            msg = "No ID token to verify"
            raise SignatureInvalidError(msg)

        claims = await self._decode(tokens.id_token, provider)

        issuers = set(accepted_issuers) if accepted_issuers is not None else set()
        if not issuers and provider.issuer:
            issuers.add(provider.issuer)
        self._check_claims(claims, provider, attempt, issuers)

        logger.debug("ID token verified", provider_id=provider.id)
        return VerifiedClaims(
            provider_id=provider.id,
            subject=str(claims["sub"]),
            issuer=claims["iss"],
            claims=claims,
        )

    async def _decode(self, id_token: str, provider: ProviderConfig) -> dict[str, Any]:
        try:
            header = jwt.get_unverified_header(id_token)
        except JWTError as e:
            msg = "ID token is not a well-formed JWS"
            raise SignatureInvalidError(msg) from e

        algorithm = header.get("alg")
        key: dict[str, Any] | str
        if algorithm in HMAC_ALGORITHMS:
            key = provider.client_secret.get_secret_value()
            if not key:
                msg = f"Provider {provider.id} has no client secret to verify {algorithm} tokens"
                raise ConfigurationError(msg)
        elif algorithm in ASYMMETRIC_ALGORITHMS:
            if not provider.jwks_uri:
                msg = f"Provider {provider.id} has no jwks_uri"
                raise ConfigurationError(msg)
            key = await self.jwks.get_key(provider.jwks_uri, header.get("kid"))
            _check_key_type(key, algorithm)
        else:
            msg = f"Unsupported ID token algorithm: {algorithm}"
            raise SignatureInvalidError(msg)

        try:
            claims = jwt.decode(
                id_token,
                key,
                algorithms=[algorithm],
                options=_DECODE_OPTIONS,
            )
        except JOSEError as e:
            logger.warning(
                "ID token signature verification failed",
                provider_id=provider.id,
                algorithm=algorithm,
                kid=header.get("kid"),
            )
            msg = "ID token signature verification failed"
            raise SignatureInvalidError(msg) from e

        if not isinstance(claims, dict):
            msg = "ID token payload is not a JSON object"
            raise SignatureInvalidError(msg)
        return claims

    def _check_claims(
        self,
        claims: dict[str, Any],
        provider: ProviderConfig,
        attempt: AuthAttempt,
        issuers: set[str],
    ) -> None:
        issuer = claims.get("iss")
        if not isinstance(issuer, str) or issuer not in issuers:
            msg = f"Unexpected issuer: {issuer!r}"
            raise ClaimMismatchError("iss", msg)

        audiences = _audiences(claims.get("aud"))
        if provider.client_id not in audiences:
            raise ClaimMismatchError("aud", "ID token audience does not include client_id")
        azp = claims.get("azp")
        if (len(audiences) > 1 or azp is not None) and azp != provider.client_id:
            raise ClaimMismatchError("azp", "ID token authorized party is not client_id")

        if claims.get("nonce") != attempt.nonce:
            raise ClaimMismatchError("nonce", "ID token nonce does not match the login attempt")

        if not claims.get("sub"):
            raise ClaimMismatchError("sub", "ID token has no subject")

        now = self._clock().timestamp()
        exp = claims.get("exp")
        if not isinstance(exp, int | float):
            raise ClaimMismatchError("exp", "ID token has no numeric expiry")
        if now > exp + self.clock_skew:
            msg = "ID token has expired"
            raise TokenExpiredError(msg)

        iat = claims.get("iat")
        if iat is not None and (not isinstance(iat, int | float) or iat > now + self.clock_skew):
            raise ClaimMismatchError("iat", "ID token issued in the future")

    async def fetch_userinfo(
        self,
        provider: ProviderConfig,
        access_token: str,
        *,
        url: str | None = None,
        accept: str = "application/json",
    ) -> Any:
        """Fetch the userinfo document (or another bearer-protected resource).

        Args:
            provider: Provider the access token was issued by.
            access_token: Bearer token for the request.
            url: Resource URL. Defaults to ``provider.userinfo_endpoint``.
            accept: ``Accept`` header value.

        Raises:
            ConfigurationError: If no URL is available.
            TokenEndpointError: If the endpoint rejects the token.
            NetworkError: If the endpoint cannot be reached.
        """
        target = url or provider.userinfo_endpoint
        if not target:
            msg = f"Provider {provider.id} has no userinfo endpoint"
            raise ConfigurationError(msg)

        response = await self._send(
            "GET",
            target,
            headers={"Authorization": f"Bearer {access_token}", "Accept": accept},
        )
        if response.is_error:
            logger.warning(
                "Userinfo request rejected",
                provider_id=provider.id,
                status_code=response.status_code,
            )
            msg = f"Userinfo endpoint returned {response.status_code}"
            raise TokenEndpointError(msg, status=response.status_code)

        payload = _json_or_none(response)
        if payload is None:
            msg = "Userinfo endpoint returned a non-JSON body"
            raise TokenEndpointError(msg, status=response.status_code)
        return payload

    async def fetch_json(self, url: str) -> Any:
        """GET a public JSON document such as a JWKS or discovery document.

        Raises:
            NetworkError: If the document cannot be retrieved.
        """
        response = await self._send("GET", url, headers={"Accept": "application/json"})
        if response.is_error:
            msg = f"GET {url} returned {response.status_code}"
            raise NetworkError(msg)

        payload = _json_or_none(response)
        if payload is None:
            msg = f"GET {url} returned a non-JSON body"
            raise NetworkError(msg)
        return payload


def _check_key_type(key: dict[str, Any], algorithm: str) -> None:
    """Reject a published key that cannot have produced an ``algorithm`` signature."""
    expected = _KEY_TYPES[algorithm[:2]]
    if key.get("kty") != expected or key.get("alg", algorithm) != algorithm:
        msg = f"Signing key does not fit algorithm {algorithm}"
        raise SignatureInvalidError(msg)


def _audiences(audience: Any) -> list[str]:
    if isinstance(audience, str):
        return [audience]
    if isinstance(audience, list) and all(isinstance(value, str) for value in audience):
        return audience
    raise ClaimMismatchError("aud", "ID token audience is not a string or list of strings")


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
