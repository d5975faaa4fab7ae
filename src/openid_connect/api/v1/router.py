"""API v1 router aggregating all endpoint routers.

All endpoints are mounted under the configured ``api.v1_prefix``
(``/api/v1/openid-connect`` by default).
"""

from __future__ import annotations

from fastapi import APIRouter

from openid_connect.api.v1.endpoints import health, login


router = APIRouter()

router.include_router(health.router)
router.include_router(login.router)
