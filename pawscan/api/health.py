"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pawscan.catalog.factory import get_product_gateway
from pawscan.catalog.gateway import ProductGateway
from pawscan.domain.exceptions import StorageError
from pawscan.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()

SERVICE_NAME = "pawscan-api"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    storage: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=settings.api_version,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(
    gateway: Annotated[ProductGateway, Depends(get_product_gateway)],
) -> ReadinessResponse | JSONResponse:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status; 503 when storage is unreachable.
    """
    try:
        await gateway.ping()
    except StorageError as e:
        logger.warning("Storage not reachable", error=e.message, **e.details)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "storage": "unreachable"},
        )
    return ReadinessResponse(status="ready", storage="ok")
