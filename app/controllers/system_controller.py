# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints: health, readiness, metrics.
Pure HTTP layer: no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from app.core.config import settings
from app.core.dependencies import get_batch_service, get_store

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": get_store().backend_name,
        "commits_in_flight": get_batch_service().in_flight_count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe: verifies the scheduling store answers."""
    store = get_store()
    if not store.ping():
        raise HTTPException(status_code=503, detail=f"Backend '{store.backend_name}' unavailable")
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "backend": store.backend_name,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
