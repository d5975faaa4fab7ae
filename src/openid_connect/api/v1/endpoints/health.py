"""Health check endpoints.

Provides liveness and readiness probes for Kubernetes and load balancers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse

from openid_connect.api.dependencies import get_app_settings
from openid_connect.cache.redis import check_redis_health
from openid_connect.core.config import Settings
from openid_connect.database.connection import check_database_health
from openid_connect.schemas.health import HealthResponse, ReadinessResponse


router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """Check if the service is alive. External dependencies are not checked."""
    return HealthResponse(
        status="healthy",
        version=settings.app.version,
        environment=settings.APP_ENV,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ORJSONResponse:
    """Check if the service is ready: startup completed and stores reachable."""
    dependencies: dict[str, str] = {
        "login_service": "healthy"
        if getattr(request.app.state, "login_service", None) is not None
        else "not_initialized",
    }
    dependencies.update(await check_redis_health())
    dependencies.update(await check_database_health())

    ready = all(value == "healthy" for value in dependencies.values())
    body = ReadinessResponse(
        status="ready" if ready else "degraded",
        version=settings.app.version,
        environment=settings.APP_ENV,
        dependencies=dependencies,
    )
    return ORJSONResponse(
        body.model_dump(mode="json"),
        status_code=200 if ready else 503,
    )
