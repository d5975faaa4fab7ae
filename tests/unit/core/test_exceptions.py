"""Unit tests for exception handling.

Tests cover:
- Login failure page rendering
- Exception handlers for login errors and application errors
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from openid_connect.auth.providers.exceptions import (
    InvalidStateError,
    ProviderDeniedError,
    SignatureInvalidError,
)
from openid_connect.core.exceptions import (
    ServiceUnavailableException,
    UnauthorizedException,
    render_login_failure,
    setup_exception_handlers,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def error_client() -> TestClient:
    """App whose routes raise the exceptions under test."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/callback/{provider_id}")
    async def callback(request: Request, provider_id: str, kind: str) -> None:
        request.state.request_id = "req-42"
        if kind == "denied":
            raise ProviderDeniedError("access_denied", "User said no")
        if kind == "state":
            raise InvalidStateError("Unknown state")
        raise SignatureInvalidError("Bad signature")

    @app.get("/session")
    async def session() -> None:
        raise UnauthorizedException

    @app.get("/unavailable")
    async def unavailable() -> None:
        raise ServiceUnavailableException

    @app.get("/boom")
    async def boom() -> None:
        msg = "unexpected"
        raise RuntimeError(msg)

    @app.get("/items/{item_id}")
    async def item(item_id: int) -> dict[str, int]:
        return {"item_id": item_id}

    return TestClient(app, raise_server_exceptions=False)


class TestRenderLoginFailure:
    """Tests for the generic failure page."""

    def test_includes_reference(self):
        page = render_login_failure("abc-123")

        assert "Login failed" in page
        assert "Reference: abc-123" in page

    def test_without_request_id(self):
        assert "Reference" not in render_login_failure(None)

    def test_escapes_values(self):
        page = render_login_failure("<script>", home='/"x')

        assert "<script>" not in page
        assert "&lt;script&gt;" in page
        assert 'href="/&quot;x"' in page


class TestLoginExceptionHandler:
    """Tests for the login error handler."""

    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [("denied", 403), ("state", 400), ("signature", 401)],
    )
    def test_renders_generic_page(self, error_client, kind, status_code):
        response = error_client.get("/callback/google", params={"kind": kind})

        assert response.status_code == status_code
        assert response.headers["content-type"].startswith("text/html")
        assert "Reference: req-42" in response.text

    def test_hides_failure_details(self, error_client):
        response = error_client.get("/callback/google", params={"kind": "denied"})

        assert "access_denied" not in response.text
        assert "User said no" not in response.text


class TestAppExceptionHandlers:
    """Tests for the JSON error handlers."""

    def test_unauthorized(self, error_client):
        response = error_client.get("/session")

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"

    def test_service_unavailable(self, error_client):
        response = error_client.get("/unavailable")

        assert response.status_code == 503
        assert response.json()["error"] == "SERVICE_UNAVAILABLE"

    def test_not_found(self, error_client):
        response = error_client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "HTTP_ERROR"

    def test_validation_error(self, error_client):
        response = error_client.get("/items/abc")

        body = response.json()
        assert response.status_code == 422
        assert body["error"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "path.item_id"

    def test_unhandled_exception(self, error_client):
        response = error_client.get("/boom")

        assert response.status_code == 500
        assert response.json()["message"] == "An unexpected error occurred"
