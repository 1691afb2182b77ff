"""Pydantic schemas for the analytics feeds."""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.analytics import DailyMetricRecord, MetricKind


class AnomalyRequest(BaseModel):
    """Daily records for one merchant plus optional detection overrides."""
    merchant_id: str
    records: List[DailyMetricRecord]
    threshold: Optional[float] = Field(default=None, gt=0, description="Z-score threshold")
    lookback_days: Optional[int] = Field(default=None, ge=1, description="Baseline window in days")


class AnomalyItem(BaseModel):
    metric: MetricKind
    type: str  # spike | drop
    severity: str  # medium | high
    date: date
    value: float
    expected_value: float
    deviation_percent: Optional[float] = None
    z_score: float


class AnomalyFeed(BaseModel):
    """Anomaly feed consumed by dashboards and the public API."""
    merchant_id: str
    threshold_z_score: float
    lookback_days: int
    anomaly_count: int
    anomalies: List[AnomalyItem]
    message: Optional[str] = None


class ForecastRequest(BaseModel):
    merchant_id: str
    metric: MetricKind = MetricKind.TRANSACTIONS
    days: Optional[int] = Field(default=None, description="Forecast horizon; clamped to the maximum")
    records: List[DailyMetricRecord]


class ConfidenceInterval(BaseModel):
    lower: float
    upper: float


class ForecastItem(BaseModel):
    date: date
    predicted_value: float
    confidence_interval: ConfidenceInterval


class ForecastAccuracyOut(BaseModel):
    mape: Optional[float] = None
    rmse: float


class ForecastFeed(BaseModel):
    merchant_id: str
    metric: MetricKind
    methodology: str
    accuracy: ForecastAccuracyOut
    forecast: List[ForecastItem]


class CompetitorIn(BaseModel):
    """Peer merchant with optional daily history for growth comparison."""
    name: str
    is_you: bool = False
    rank: Optional[int] = None
    transactions: float = 0
    revenue: float = 0
    customers: float = 0
    cashback_percent: float = 0
    records: List[DailyMetricRecord] = Field(default_factory=list)


class MerchantIn(BaseModel):
    name: str = "merchant"
    transactions: float = 0
    revenue: float = 0
    customers: float = 0
    cashback_paid: float = 0
    cashback_percent: float = 0


class InsightRequest(BaseModel):
    merchant_id: str
    current: MerchantIn
    records: List[DailyMetricRecord] = Field(default_factory=list)
    competitors: List[CompetitorIn] = Field(default_factory=list)


class InsightItem(BaseModel):
    type: str
    title: str
    description: str
    metric: str
    severity: str
    supporting_values: Dict[str, float]
    recommendations: List[str]


class InsightFeed(BaseModel):
    merchant_id: str
    insight_count: int
    insights: List[InsightItem]


class AlertRequest(AnomalyRequest):
    merchant_name: str


class AlertItem(BaseModel):
    metric: MetricKind
    date: date
    severity: str
    title: str
    message: str
    current_value: float
    expected_value: float
    channels: List[str]


class AlertFeed(BaseModel):
    merchant_id: str
    alert_count: int
    alerts: List[AlertItem]
