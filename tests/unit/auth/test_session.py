"""Unit tests for local session tokens.

Tests cover:
- Token issuance and decoding
- Expiration
- Tampered and foreign tokens
- Production secret validation
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time
from jose import jwt

from openid_connect.auth.providers.exceptions import ConfigurationError
from openid_connect.auth.session import (
    SessionExpiredError,
    SessionInvalidError,
    SessionManager,
    create_session_manager,
)
from openid_connect.core.config import Settings


pytestmark = pytest.mark.unit

SECRET = "test-session-secret-minimum-32-characters"


class TestSessionManager:
    """Tests for issuing and decoding session tokens."""

    def test_round_trip_subject(self, session_manager) -> None:
        token = session_manager.issue("user-1")

        payload = session_manager.decode(token)

        assert payload.sub == "user-1"
        assert payload.type == "session"
        assert payload.jti

    def test_unique_token_ids(self, session_manager) -> None:
        first = session_manager.decode(session_manager.issue("user-1"))
        second = session_manager.decode(session_manager.issue("user-1"))

        assert first.jti != second.jti

    def test_expiration_uses_ttl(self) -> None:
        manager = SessionManager(SECRET, ttl=timedelta(minutes=30))

        with freeze_time("2026-03-02 12:00:00"):
            payload = manager.decode(manager.issue("user-1"))

        assert payload.exp == datetime(2026, 3, 2, 12, 30, tzinfo=UTC)

    def test_expired_token(self) -> None:
        manager = SessionManager(SECRET, ttl=timedelta(minutes=30))

        with freeze_time("2026-03-02 12:00:00"):
            token = manager.issue("user-1")

        with freeze_time("2026-03-02 13:00:00"), pytest.raises(SessionExpiredError):
            manager.decode(token)

    def test_wrong_secret(self, session_manager) -> None:
        token = SessionManager("another-secret-minimum-32-characters-x").issue("user-1")

        with pytest.raises(SessionInvalidError):
            session_manager.decode(token)

    def test_non_session_token(self, session_manager) -> None:
        """A token signed with the same key but another type is refused."""
        token = jwt.encode(
            {"sub": "user-1", "type": "access", "exp": datetime.now(UTC) + timedelta(hours=1)},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(SessionInvalidError, match="Not a session token"):
            session_manager.decode(token)

    def test_malformed_payload(self, session_manager) -> None:
        token = jwt.encode({"type": "session"}, SECRET, algorithm="HS256")

        with pytest.raises(SessionInvalidError, match="Malformed"):
            session_manager.decode(token)

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            SessionManager("")


class TestCreateSessionManager:
    """Tests for building the session manager from settings."""

    def test_uses_configured_secret(self) -> None:
        settings = Settings(SESSION_SECRET_KEY=SECRET, session={"ttl_minutes": 15})

        manager = create_session_manager(settings)

        assert manager.ttl == timedelta(minutes=15)
        assert manager.decode(SessionManager(SECRET).issue("u")).sub == "u"

    def test_development_falls_back_to_dev_secret(self) -> None:
        settings = Settings(APP_ENV="development", SESSION_SECRET_KEY="")

        manager = create_session_manager(settings)

        assert manager.decode(manager.issue("u")).sub == "u"

    def test_production_requires_secret(self) -> None:
        settings = Settings(APP_ENV="production", SESSION_SECRET_KEY="")

        with pytest.raises(ConfigurationError, match="SESSION_SECRET_KEY"):
            create_session_manager(settings)
