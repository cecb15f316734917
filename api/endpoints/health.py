"""
Health and Metrics Endpoints

@.architecture
Incoming: api/router.py, Load Balancers, Prometheus --- {HTTP requests to /health, /metrics}
Processing: health_check(), metrics() --- {2 jobs: health_monitoring, metrics_export}
Outgoing: data/storage/local.py, monitoring/metrics.py --- {health JSON with storage stats, Prometheus text}
"""

import time

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from api.dependencies import get_settings, get_storage
from config.settings import Settings
from data.storage import LocalFileStorage
from monitoring import get_logger, get_registry

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health check",
    description="Status, uptime and storage usage"
)
def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
    storage: LocalFileStorage = Depends(get_storage)
) -> JSONResponse:
    """
    Health check.

    Reports "degraded" (still 200) when the storage root cannot be scanned.
    """
    body = {
        "status": "ok",
        "timestamp": time.time(),
        "uptime_seconds": time.time() - request.app.state.started_at,
        "version": settings.app_version,
    }
    try:
        body["storage"] = storage.get_storage_stats()
    except OSError as e:
        logger.warning(f"Storage root unavailable: {e}")
        body["status"] = "degraded"
        body["storage"] = None
    return JSONResponse(body)


@router.get("/metrics", summary="Prometheus metrics", response_class=PlainTextResponse)
def metrics(settings: Settings = Depends(get_settings)) -> PlainTextResponse:
    if not settings.monitoring.metrics_enabled:
        raise HTTPException(status_code=404)
    return PlainTextResponse(
        get_registry().export_prometheus(),
        media_type="text/plain; version=0.0.4"
    )
