"""FastAPI dependencies for service access.

Services are built during application startup and stored in ``app.state``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from openid_connect.core.exceptions import ServiceUnavailableException


if TYPE_CHECKING:
    from openid_connect.auth.registry import ProviderRegistry
    from openid_connect.auth.service import LoginService
    from openid_connect.auth.session import SessionManager
    from openid_connect.core.config import Settings
    from openid_connect.users.protocol import UserStore


def _from_state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        msg = f"{name} not available"
        raise ServiceUnavailableException(msg)
    return value


async def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return _from_state(request, "settings")  # type: ignore[return-value]


async def get_registry(request: Request) -> ProviderRegistry:
    return _from_state(request, "registry")  # type: ignore[return-value]


async def get_login_service(request: Request) -> LoginService:
    """Get the login service from app state.

    Raises:
        ServiceUnavailableException: 503 if startup did not complete.
    """
    return _from_state(request, "login_service")  # type: ignore[return-value]


async def get_session_manager(request: Request) -> SessionManager:
    return _from_state(request, "session_manager")  # type: ignore[return-value]


async def get_user_store(request: Request) -> UserStore:
    return _from_state(request, "user_store")  # type: ignore[return-value]
