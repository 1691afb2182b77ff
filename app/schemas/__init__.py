"""Pydantic schemas for request/response validation."""

from .health import HealthResponse
from .analytics import (
    AlertFeed,
    AlertRequest,
    AnomalyFeed,
    AnomalyRequest,
    ForecastFeed,
    ForecastRequest,
    InsightFeed,
    InsightRequest,
)

__all__ = [
    "HealthResponse",
    "AlertFeed",
    "AlertRequest",
    "AnomalyFeed",
    "AnomalyRequest",
    "ForecastFeed",
    "ForecastRequest",
    "InsightFeed",
    "InsightRequest",
]
