"""
Environment diagnostics endpoint.

Only for development and troubleshooting: outside development mode the
caller must supply the shared DEBUG_KEY as the `key` query parameter.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_app_settings, get_storage
from api.schemas.register import DebugEnvResponse, ErrorResponse, ValidationReport
from core.config import Settings
from core.logging import get_logger
from core.storage.base import BaseStorage
from core.validation import (
    get_environment_summary,
    validate_cloudflare_environment,
    validate_environment,
)


logger = get_logger(__name__)
router = APIRouter(prefix="/api/debug", tags=["Debug"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

PROBE_USERNAME = "__test_user__"


def _is_authorized(settings: Settings, provided_key: Optional[str]) -> bool:
    if settings.is_development:
        return True
    return bool(settings.debug_key) and settings.debug_key == provided_key


async def _probe_upstash(settings: Settings, storage: Optional[BaseStorage]) -> str:
    if settings.storage_type != "upstash":
        return "unknown"
    if storage is None:
        return "connection_failed: storage not initialized"
    try:
        await storage.check_user_exist(PROBE_USERNAME)
    except Exception as e:
        return f"connection_failed: {e}"
    return "connected"


@router.get(
    "/env",
    response_model=DebugEnvResponse,
    responses={403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def debug_env(
    request: Request,
    key: Optional[str] = Query(default=None, description="Shared debug key"),
    settings: Settings = Depends(get_app_settings),
    storage: Optional[BaseStorage] = Depends(get_storage),
) -> JSONResponse:
    """
    Report environment validation, a secret-free environment summary,
    storage connectivity and the proxy headers of this request.
    """
    if not _is_authorized(settings, key):
        logger.warning("Debug endpoint access denied", client=request.client.host if request.client else None)
        return JSONResponse(status_code=403, content={"error": "Access denied"})

    logger.info("Environment debug request")

    try:
        validation = validate_environment(settings)
        is_cloudflare = validate_cloudflare_environment(settings, request.headers)
        summary = get_environment_summary(settings)
        summary["upstash_status"] = await _probe_upstash(settings, storage)

        report = DebugEnvResponse(
            timestamp=datetime.now(timezone.utc).isoformat(),
            validation=ValidationReport(**validation.to_dict()),
            environment=summary,
            headers={
                "user_agent": request.headers.get("user-agent"),
                "cf_ray": request.headers.get("cf-ray"),
                "cf_connecting_ip": request.headers.get("cf-connecting-ip"),
                "x_forwarded_for": request.headers.get("x-forwarded-for"),
            },
            cloudflare_detection={
                "cf_ray_header": bool(request.headers.get("cf-ray")),
                "is_cloudflare": is_cloudflare,
            },
        )
    except Exception as e:
        logger.error("Environment debug check failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Environment check failed",
                "message": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    logger.info(
        "Environment debug report",
        valid=report.validation.valid,
        storage_type=settings.storage_type,
        upstash_status=summary["upstash_status"],
    )
    return JSONResponse(content=report.model_dump(), headers=NO_CACHE_HEADERS)
