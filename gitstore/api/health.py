"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from gitstore.dependencies import get_health_service
from gitstore.models.health import HealthCheckResponse
from gitstore.services.health import HealthCheckService

router = APIRouter(tags=["health"])


@router.get("/ping")
async def ping() -> dict[str, str]:
    """Liveness ping kept for existing clients."""
    return {"status": "ok"}


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Simple health check for liveness probe.

    Returns 200 if service is running. Does not touch the content store.
    """
    return {"status": "ok"}


@router.get("/health/ready", response_model=HealthCheckResponse)
async def health_ready(
    response: Response,
    health_service: HealthCheckService = Depends(get_health_service),
) -> HealthCheckResponse:
    """
    Readiness check with content store verification.

    Returns:
        - 200 if the content store is healthy or degraded (rate limited)
        - 503 if the content store is unreachable
    """
    health_check = await health_service.check_health()

    if not health_check.is_ready():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return health_check
