"""Login API response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ProviderSummary(BaseModel):
    """An enabled provider, as needed to render a login link."""

    id: str = Field(..., description="Provider id used in login URLs", examples=["google"])
    label: str = Field(..., description="Human-readable provider name", examples=["Google"])
    login_url: str = Field(..., description="Path that starts a login with this provider")


class ProvidersResponse(BaseModel):
    """Enabled providers in configuration order."""

    providers: list[ProviderSummary]


class SessionResponse(BaseModel):
    """The user behind the current session cookie."""

    local_user_id: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime
