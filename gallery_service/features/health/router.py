"""Health check API endpoints.

- ``/health``: readiness, including a HEAD on the gallery bucket
- ``/health/live``: liveness, no dependency checks
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging

from fastapi import APIRouter, Request, Response, status

from .schemas import HealthResponse, LivenessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "",
    response_model=HealthResponse,
    responses={503: {"description": "Object store unreachable"}},
    summary="Health check including the object store",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """Report healthy when the object store answers for the bucket, 503 otherwise."""
    store = getattr(request.app.state, "object_store", None)
    storage_ok = False
    if store is not None:
        try:
            storage_ok = await store.health_check()
        except Exception as e:
            logger.warning("Storage health check failed", extra={"error": str(e)})

    if not storage_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if storage_ok else "unhealthy",
        timestamp=datetime.now(UTC),
        service=request.app.state.service_name,
        version=request.app.version,
        checks={"storage": storage_ok},
    )


@router.get("/live", response_model=LivenessResponse, summary="Liveness check")
async def liveness(request: Request) -> LivenessResponse:
    return LivenessResponse(
        timestamp=datetime.now(UTC),
        service=request.app.state.service_name,
    )
