"""Login endpoints.

Start a login with a provider, receive the provider callback, and inspect
or end the resulting session. Failures of a login attempt are rendered as a
generic HTML page by the exception handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from openid_connect.api.dependencies import (
    get_app_settings,
    get_login_service,
    get_registry,
    get_session_manager,
    get_user_store,
)
from openid_connect.auth.registry import ProviderRegistry
from openid_connect.auth.service import LoginService
from openid_connect.auth.session import SessionError, SessionManager
from openid_connect.cache.rate_limit import rate_limit_login
from openid_connect.core.config import Settings
from openid_connect.core.exceptions import UnauthorizedException
from openid_connect.schemas.login import ProvidersResponse, ProviderSummary, SessionResponse
from openid_connect.users.protocol import UserStore


router = APIRouter(tags=["Login"])


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    summary="List login providers",
)
async def list_providers(
    registry: Annotated[ProviderRegistry, Depends(get_registry)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ProvidersResponse:
    """List the enabled providers for rendering login links."""
    prefix = settings.api.v1_prefix
    return ProvidersResponse(
        providers=[
            ProviderSummary(
                id=provider.id,
                label=provider.label,
                login_url=f"{prefix}/login/{provider.id}",
            )
            for provider in registry.list_enabled()
        ]
    )


@router.get(
    "/login/{provider_id}",
    status_code=status.HTTP_302_FOUND,
    summary="Start a login",
    response_class=RedirectResponse,
)
@rate_limit_login()
async def login(
    request: Request,  # noqa: ARG001 - required by the rate limiter
    provider_id: str,
    service: Annotated[LoginService, Depends(get_login_service)],
    destination: Annotated[str | None, Query(max_length=2048)] = None,
) -> RedirectResponse:
    """Redirect the browser to the provider's authorization endpoint."""
    url = await service.begin(provider_id, destination)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/callback/{provider_id}",
    status_code=status.HTTP_302_FOUND,
    summary="Provider callback",
    response_class=RedirectResponse,
)
@rate_limit_login()
async def callback(
    request: Request,  # noqa: ARG001 - required by the rate limiter
    provider_id: str,
    service: Annotated[LoginService, Depends(get_login_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    state: str | None = None,
    code: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> RedirectResponse:
    """Complete the login, set the session cookie and go to the destination."""
    result = await service.complete(provider_id, state, code, error, error_description)

    response = RedirectResponse(result.destination, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        settings.session.cookie_name,
        result.session_token,
        max_age=settings.session.ttl_minutes * 60,
        httponly=True,
        secure=settings.session.secure_cookie,
        samesite="lax",
    )
    return response


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
)
async def current_session(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    users: Annotated[UserStore, Depends(get_user_store)],
) -> SessionResponse:
    """Return the local user behind the session cookie."""
    token = request.cookies.get(settings.session.cookie_name)
    if not token:
        raise UnauthorizedException

    try:
        payload = sessions.decode(token)
    except SessionError as e:
        msg = "Session expired or invalid"
        raise UnauthorizedException(msg) from e

    attributes = await users.get_user(payload.sub)
    if attributes is None:
        msg = "Session user no longer exists"
        raise UnauthorizedException(msg)

    return SessionResponse(
        local_user_id=payload.sub,
        attributes=attributes,
        expires_at=payload.exp,
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
)
async def logout(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Response:
    """Clear the session cookie."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(
        settings.session.cookie_name,
        httponly=True,
        secure=settings.session.secure_cookie,
        samesite="lax",
    )
    return response
