"""Health check routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
async def root(settings: Settings = Depends(get_settings)):
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version
    )


@router.get("/health", response_model=dict)
async def health_check(settings: Settings = Depends(get_settings)):
    """Liveness plus the analytics defaults this instance serves with."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.env,
        "analytics": {
            "anomaly_z_threshold": settings.anomaly_z_threshold,
            "anomaly_lookback_days": settings.anomaly_lookback_days,
            "forecast_min_history": settings.forecast_min_history,
            "forecast_max_horizon": settings.forecast_max_horizon,
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
