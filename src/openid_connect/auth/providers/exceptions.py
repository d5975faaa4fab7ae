"""OpenID Connect login exceptions.

Every failure of a login attempt raises a subclass of
:class:`OpenIDConnectError`. The request boundary turns these into a generic
failure page; ``error_code`` and ``status_code`` drive the logged diagnostic
and the HTTP status, the message text is never shown to the end user.
"""

from __future__ import annotations


class OpenIDConnectError(Exception):
    """Base exception for login flow errors."""

    error_code = "login_failed"
    status_code = 400


class ProviderNotFoundError(OpenIDConnectError):
    """Raised when a provider id is not configured."""

    error_code = "provider_not_found"
    status_code = 404

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class ConfigurationError(OpenIDConnectError):
    """Raised when a provider is disabled or misconfigured."""

    error_code = "provider_misconfigured"
    status_code = 503


class MalformedCallbackError(OpenIDConnectError):
    """Raised when the callback lacks required parameters."""

    error_code = "malformed_callback"


class InvalidStateError(OpenIDConnectError):
    """Raised when the callback state is unknown, expired or mismatched."""

    error_code = "invalid_state"


class ProviderDeniedError(OpenIDConnectError):
    """Raised when the provider redirects back with an ``error`` parameter."""

    error_code = "provider_denied"
    status_code = 403

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        msg = f"Provider returned error: {error}"
        if description:
            msg += f" ({description})"
        super().__init__(msg)


class NetworkError(OpenIDConnectError):
    """Raised when a provider endpoint cannot be reached in time."""

    error_code = "network_error"
    status_code = 502


class TokenEndpointError(OpenIDConnectError):
    """Raised when the token endpoint answers with a failure."""

    error_code = "token_endpoint_error"
    status_code = 502

    def __init__(self, message: str, status: int | None = None, error: str | None = None) -> None:
        self.status = status
        self.error = error
        super().__init__(message)


class SignatureInvalidError(OpenIDConnectError):
    """Raised when the ID token signature cannot be verified."""

    error_code = "signature_invalid"
    status_code = 401


class ClaimMismatchError(OpenIDConnectError):
    """Raised when an ID token claim fails validation.

    Attributes:
        check: Name of the failed check (``iss``, ``aud``, ``azp``,
            ``nonce``, ``sub``, ``iat``).
    """

    error_code = "claim_mismatch"
    status_code = 401

    def __init__(self, check: str, message: str | None = None) -> None:
        self.check = check
        super().__init__(message or f"ID token claim check failed: {check}")


class TokenExpiredError(OpenIDConnectError):
    """Raised when the ID token is past its expiry (beyond clock skew)."""

    error_code = "token_expired"
    status_code = 401
