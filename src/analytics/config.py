"""Per-call configuration for the analytics engines.

Every engine receives its thresholds and windows explicitly, so two calls with
the same input and the same config always produce the same result.
"""

from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base_models import MetricKind


class AnomalyConfig(BaseModel):
    """Z-score anomaly detection settings."""

    model_config = ConfigDict(frozen=True)

    recent_window: int = Field(default=7, ge=1, description="Trailing days tested for anomalies")
    baseline_window: int = Field(default=90, ge=1, description="Trailing days used for the baseline")
    z_threshold: float = Field(default=2.0, gt=0, description="|z| above this is anomalous")
    high_severity_z: float = Field(default=3.0, gt=0, description="|z| above this is high severity")
    metrics: Tuple[MetricKind, ...] = Field(default=tuple(MetricKind))

    @model_validator(mode="after")
    def _check_windows(self) -> "AnomalyConfig":
        if self.recent_window > self.baseline_window:
            raise ValueError("recent_window cannot exceed baseline_window")
        return self


class ForecastConfig(BaseModel):
    """Trend + seasonal forecasting settings."""

    model_config = ConfigDict(frozen=True)

    min_history: int = Field(default=14, description="Minimum points required to forecast")
    max_horizon: int = Field(default=30, description="Largest allowed days_ahead")
    confidence_level: float = Field(default=0.95, description="Two-sided interval coverage")
    holdout_fraction: float = Field(default=0.2, description="Trailing share withheld for backtesting")
    smoothing_window: int = Field(default=7, description="Centered moving average width")
    seasonality_period: int = Field(default=7, description="Candidate seasonal period (weekly)")
    seasonality_threshold: float = Field(
        default=0.3,
        description="Lag autocorrelation needed to apply seasonal indices"
    )


class InsightConfig(BaseModel):
    """Thresholds for narrative insight detection."""

    model_config = ConfigDict(frozen=True)

    window: int = Field(default=7, ge=1, description="Days in the recent and prior comparison windows")
    growth_threshold: float = Field(default=0.10, gt=0, description="Relative change treated as sustained")
    divergence_threshold: float = Field(
        default=10.0,
        gt=0,
        description="Growth gap vs peers (percentage points) treated as divergence"
    )
    basket_threshold: float = Field(default=0.10, gt=0)
    cac_growth_threshold: float = Field(
        default=0.20,
        gt=0,
        description="Rise in cashback per customer treated as costlier acquisition"
    )
    cashback_gap_points: float = Field(default=1.0, gt=0)
    low_roi: float = 2.0
    high_roi: float = 4.0
    target_roi: float = 3.0
    cashback_ratio_limit: float = 0.15
    customer_gap_ratio: float = 0.5
    max_insights: int = Field(default=10, ge=1)
