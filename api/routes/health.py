"""
Health check endpoints.

Provides endpoints for monitoring and load balancer health checks.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings, get_storage
from core.config import Settings
from core.logging import get_logger
from core.storage.base import BaseStorage


logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Basic health check.

    Returns 200 if the service is running.
    Used by load balancers and orchestration systems.
    """
    return {
        "status": "healthy",
        "service": "moontv-server",
    }


@router.get("/ready")
async def readiness_check(
    settings: Settings = Depends(get_app_settings),
    storage: Optional[BaseStorage] = Depends(get_storage),
) -> dict:
    """
    Readiness check.

    Reports which storage backend is wired in. Does not contact the
    backend; use the debug endpoint for connectivity.
    """
    if settings.is_local_storage:
        storage_check = "not_required"
    elif storage is None:
        storage_check = "missing"
    else:
        storage_check = "ok"

    return {
        "status": "ready" if storage_check != "missing" else "degraded",
        "checks": {
            "storage": storage_check,
        },
        "storage_type": settings.storage_type,
    }
