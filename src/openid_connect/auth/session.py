"""Local session tokens.

A successful login ends with a signed session token for the local user,
stored in an HTTP-only cookie.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import BaseModel, ValidationError

from openid_connect.auth.providers.exceptions import ConfigurationError
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.core.config import Settings

logger = get_logger(__name__)

SESSION_TOKEN_TYPE = "session"  # noqa: S105 - not a password


class SessionPayload(BaseModel):
    """Session token payload model."""

    sub: str  # Local user id
    exp: datetime
    iat: datetime
    jti: str
    type: str = SESSION_TOKEN_TYPE


class SessionError(Exception):
    """Base exception for session token errors."""


class SessionExpiredError(SessionError):
    """Raised when a session token has expired."""


class SessionInvalidError(SessionError):
    """Raised when a session token is invalid."""


class SessionManager:
    """Issues and validates session tokens.

    Attributes:
        ttl: Lifetime of issued tokens.
        algorithm: HMAC algorithm used for signing.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=8),
    ) -> None:
        if not secret_key:
            msg = "Session secret key must not be empty"
            raise ValueError(msg)
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, local_user_id: str) -> str:
        """Create a session token for ``local_user_id``."""
        now = datetime.now(UTC)
        payload = {
            "sub": local_user_id,
            "exp": now + self.ttl,
            "iat": now,
            "jti": uuid.uuid4().hex,
            "type": SESSION_TOKEN_TYPE,
        }
        logger.debug("Session issued", local_user_id=local_user_id)
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> SessionPayload:
        """Decode and validate a session token.

        Raises:
            SessionExpiredError: If the token has expired.
            SessionInvalidError: If the token is invalid.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            msg = "Session has expired"
            raise SessionExpiredError(msg) from e
        except JWTError as e:
            msg = f"Invalid session token: {e}"
            raise SessionInvalidError(msg) from e

        if payload.get("type") != SESSION_TOKEN_TYPE:
            msg = "Not a session token"
            raise SessionInvalidError(msg)

        try:
            return SessionPayload(**payload)
        except ValidationError as e:
            msg = "Malformed session token payload"
            raise SessionInvalidError(msg) from e


# Fixed development secret - safe for local dev, blocked in production
_DEV_SESSION_SECRET = "insecure-dev-session-key-do-not-use-in-production"  # noqa: S105


def create_session_manager(settings: Settings) -> SessionManager:
    """Create the session manager, validating the secret in production.

    Raises:
        ConfigurationError: If ``SESSION_SECRET_KEY`` is unset in production.
    """
    secret = settings.SESSION_SECRET_KEY
    if not secret:
        if settings.is_production:
            msg = "SESSION_SECRET_KEY must be set in production"
            raise ConfigurationError(msg)
        logger.warning("Using insecure development session secret - do not use in production")
        secret = _DEV_SESSION_SECRET

    return SessionManager(
        secret,
        algorithm=settings.session.algorithm,
        ttl=timedelta(minutes=settings.session.ttl_minutes),
    )
