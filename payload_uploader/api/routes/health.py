"""
Health check endpoints.

/health is a liveness check only. /health/ready also reports whether the
configuration is usable, without calling S3.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    problems: list[str] = []


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "region": settings.bucket_region,
            "compress_payload": settings.compress_payload,
            "mock_mode": settings.storage_mock_mode,
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(settings: SettingsDep, response: Response) -> ReadinessResponse:
    problems = settings.validate_required_fields()

    if problems:
        logger.warning("Readiness check failed", extra={"problems": problems})
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not_ready", version=__version__, problems=problems)

    return ReadinessResponse(status="ready", version=__version__)
