"""Health check endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from app.database.connection import db_healthcheck
from app.schemas.common import HealthResponse
from app.services.indicator_listing import get_listing_cache


router = APIRouter(prefix="/health")

logger = get_logger("health")


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check() -> HealthResponse:
    """
    Perform health check on API and dependencies.

    Returns overall health status and individual service checks. The cache is
    only checked when the Valkey backend is configured.
    """
    checks = {"database": await db_healthcheck()}
    if settings.cache_backend == "valkey":
        checks["cache"] = await get_listing_cache().ping()

    # Determine overall status
    if all(checks.values()):
        status = "healthy"
    elif checks["database"]:
        status = "degraded"  # DB ok but cache down
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the API is ready to accept traffic.",
)
async def readiness_check() -> dict:
    """
    Kubernetes-style readiness probe.

    Returns 200 if ready, useful for load balancer health checks.
    """
    if not await db_healthcheck():
        raise ExternalServiceError("Database not ready", error_code="NOT_READY")
    return {"status": "ready"}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the API process is alive.",
)
async def liveness_check() -> dict:
    """
    Kubernetes-style liveness probe.

    Simple check that the process is running.
    """
    return {"status": "alive"}
