"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from shared.observability import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="Basic health check endpoint.",
)
async def health():
    """Basic health check."""
    return {"status": "healthy", "service": "registry-controller"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if service is ready to receive traffic.",
)
async def ready(request: Request):
    """Readiness check.

    Verifies Redis and the Kubernetes API are reachable.
    """
    checks = {
        "redis": False,
        "kubernetes": False,
    }

    # Check Redis
    try:
        redis = request.app.state.redis
        health_result = await redis.health_check()
        checks["redis"] = health_result.get("status") == "healthy"
    except Exception as e:
        logger.warning("Redis readiness check failed", error=str(e))

    # Check Kubernetes API
    try:
        cluster = request.app.state.cluster
        health_result = await cluster.health_check()
        checks["kubernetes"] = health_result.get("status") == "healthy"
    except Exception as e:
        logger.warning("Kubernetes readiness check failed", error=str(e))

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
    }
