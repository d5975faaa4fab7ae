"""API request and response schemas."""

from openid_connect.schemas.health import HealthResponse, ReadinessResponse
from openid_connect.schemas.login import ProvidersResponse, ProviderSummary, SessionResponse


__all__ = [
    "HealthResponse",
    "ProviderSummary",
    "ProvidersResponse",
    "ReadinessResponse",
    "SessionResponse",
]
