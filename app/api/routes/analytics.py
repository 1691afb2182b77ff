"""Analytics routes: anomalies, forecasts, insights and alerts.

Authentication, tenant access checks and rate limiting happen upstream; these
handlers only validate parameters and shape the feeds.
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_analytics_service
from app.schemas.analytics import (
    AlertFeed,
    AlertRequest,
    AnomalyFeed,
    AnomalyRequest,
    ForecastFeed,
    ForecastRequest,
    InsightFeed,
    InsightRequest,
)
from app.services.analytics_service import AnalyticsService

router = APIRouter()


@router.post("/anomalies", response_model=AnomalyFeed, response_model_exclude_none=False)
def detect_anomalies(
    request: AnomalyRequest,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Flag unusual days among the most recent week of metrics.

    Fewer than a week of records yields an empty feed with a ``message``.
    """
    return service.anomaly_feed(
        merchant_id=request.merchant_id,
        records=request.records,
        threshold=request.threshold,
        lookback_days=request.lookback_days
    )


@router.post("/forecast", response_model=ForecastFeed)
def forecast_metric(
    request: ForecastRequest,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Forecast one metric; ``days`` is clamped to the configured maximum horizon."""
    return service.forecast_feed(
        merchant_id=request.merchant_id,
        records=request.records,
        metric=request.metric,
        days=request.days
    )


@router.post("/insights", response_model=InsightFeed)
def detect_insights(
    request: InsightRequest,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Self-trend and competitor comparison insights."""
    return service.insight_feed(
        merchant_id=request.merchant_id,
        current=request.current,
        records=request.records,
        competitors=request.competitors
    )


@router.post("/alerts", response_model=AlertFeed)
def build_alerts(
    request: AlertRequest,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Alert payloads for the notification dispatcher."""
    return service.alert_feed(
        merchant_id=request.merchant_id,
        merchant_name=request.merchant_name,
        records=request.records,
        threshold=request.threshold,
        lookback_days=request.lookback_days
    )
