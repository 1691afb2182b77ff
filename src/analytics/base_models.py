"""Base models for the retail analytics core."""

import math
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MetricKind(str, Enum):
    """Daily metrics tracked per merchant."""
    TRANSACTIONS = "transactions"
    REVENUE = "revenue"
    CUSTOMERS = "customers"
    CASHBACK = "cashback"

    @classmethod
    def from_string(cls, value: str) -> "MetricKind":
        """Resolve a metric identifier at the system boundary."""
        from .exceptions import InvalidParametersError

        normalized = (value or "").strip().lower()
        if normalized == "cashback_paid":
            normalized = "cashback"
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidParametersError(
                f"Invalid metric '{value}'. Valid metrics: {valid}"
            ) from None

    @property
    def label(self) -> str:
        return _METRIC_LABELS[self]


_METRIC_LABELS = {
    MetricKind.TRANSACTIONS: "transactions",
    MetricKind.REVENUE: "revenue",
    MetricKind.CUSTOMERS: "unique customers",
    MetricKind.CASHBACK: "cashback paid",
}


class ConfidenceLevel(str, Enum):
    """Confidence level for analysis results."""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class ValidationReport(BaseModel):
    """Report on statistical validation of an analysis input."""

    model_config = ConfigDict(frozen=True)

    # Overall assessment
    is_valid: bool = Field(description="Whether analysis passes validation")
    confidence_level: ConfidenceLevel = Field(description="Overall confidence")
    confidence_score: float = Field(ge=0, le=1, description="Numeric confidence (0-1)")

    # Sample size validation
    sample_size: int
    min_required_sample: int
    sample_size_adequate: bool

    # Assumption tests (specific to analysis type)
    assumptions_tested: Dict[str, bool] = Field(
        default_factory=dict,
        description="Results of assumption tests (e.g., stationarity, normality)"
    )

    # Warnings and issues
    warnings: Tuple[str, ...] = ()
    critical_issues: Tuple[str, ...] = ()

    def get_summary(self) -> str:
        """Get human-readable summary of validation."""
        summary = f"{self.confidence_level.value} confidence ({self.confidence_score:.0%})"

        if self.critical_issues:
            summary += f"\nCritical issues: {len(self.critical_issues)}"
        if self.warnings:
            summary += f"\nWarnings: {len(self.warnings)}"

        return summary


class DailyMetricRecord(BaseModel):
    """One day of merchant metrics as supplied by the storage layer."""

    model_config = ConfigDict(frozen=True)

    date: date
    transactions_count: Optional[float] = None
    revenue: Optional[float] = None
    unique_customers: Optional[float] = None
    cashback_paid: Optional[float] = None

    def metric_value(self, metric: MetricKind) -> float:
        """Value for *metric*, reading missing fields as zero."""
        raw = {
            MetricKind.TRANSACTIONS: self.transactions_count,
            MetricKind.REVENUE: self.revenue,
            MetricKind.CUSTOMERS: self.unique_customers,
            MetricKind.CASHBACK: self.cashback_paid,
        }[metric]
        return float(raw or 0)


class MetricPoint(BaseModel):
    """A single (date, value) observation."""

    model_config = ConfigDict(frozen=True)

    date: date
    value: float

    @field_validator("value")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("metric values must be finite")
        return v


class MetricSeries(BaseModel):
    """Ordered daily observations for one metric, strictly ascending by date.

    Gaps are left as missing points; nothing is interpolated.
    """

    model_config = ConfigDict(frozen=True)

    metric: MetricKind
    points: Tuple[MetricPoint, ...] = ()

    @model_validator(mode="after")
    def _check_order(self) -> "MetricSeries":
        for previous, current in zip(self.points, self.points[1:]):
            if current.date <= previous.date:
                raise ValueError(
                    f"points must be strictly ascending by date: "
                    f"{current.date} follows {previous.date}"
                )
        return self

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(p.value for p in self.points)

    @property
    def dates(self) -> Tuple[date, ...]:
        return tuple(p.date for p in self.points)

    def tail(self, n: int) -> "MetricSeries":
        """Series restricted to the trailing *n* points."""
        if n >= len(self.points):
            return self
        return MetricSeries(metric=self.metric, points=self.points[len(self.points) - n:])

    def to_pandas(self) -> pd.Series:
        return pd.Series(
            list(self.values),
            index=pd.DatetimeIndex(list(self.dates)),
            name=self.metric.value,
            dtype=float,
        )

    @classmethod
    def from_pairs(cls, metric: MetricKind, pairs: Iterable[Tuple[date, float]]) -> "MetricSeries":
        return cls(
            metric=metric,
            points=tuple(MetricPoint(date=d, value=float(v)) for d, v in pairs)
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[DailyMetricRecord],
        metric: MetricKind
    ) -> "MetricSeries":
        """Build a series from daily records, sorting them by date first."""
        ordered = sorted(records, key=lambda r: r.date)
        return cls.from_pairs(metric, ((r.date, r.metric_value(metric)) for r in ordered))


class Statistics(BaseModel):
    """Descriptive statistics over a window (population standard deviation)."""

    model_config = ConfigDict(frozen=True)

    mean: float
    std_dev: float = Field(ge=0)
    sample_size: int = Field(ge=1)
    minimum: float
    maximum: float


class AnomalyDirection(str, Enum):
    SPIKE = "spike"
    DROP = "drop"


class AnomalySeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class Anomaly(BaseModel):
    """A recent day whose value sits unusually far from the baseline."""

    model_config = ConfigDict(frozen=True)

    metric: MetricKind
    date: date
    observed_value: float
    expected_value: float
    deviation_percent: Optional[float] = Field(
        default=None,
        description="Percent above/below the baseline mean; None when the mean is zero"
    )
    z_score: float
    direction: AnomalyDirection
    severity: AnomalySeverity
    description: str
    recommendation: str


class AnomalyReport(BaseModel):
    """Result of an anomaly detection pass over one or more metrics."""

    model_config = ConfigDict(frozen=True)

    anomalies: Tuple[Anomaly, ...] = ()
    reason: Optional[str] = Field(
        default=None,
        description="Why the result is empty (e.g. insufficient data)"
    )
    skipped_metrics: Tuple[MetricKind, ...] = ()
    validation: Tuple[ValidationReport, ...] = ()

    @property
    def anomaly_count(self) -> int:
        return len(self.anomalies)


class ForecastPoint(BaseModel):
    """Projected value for one future day with its confidence bounds."""

    model_config = ConfigDict(frozen=True)

    date: date
    predicted_value: float
    lower_bound: float
    upper_bound: float

    @property
    def interval_width(self) -> float:
        return self.upper_bound - self.lower_bound


class ForecastAccuracy(BaseModel):
    """Backtested accuracy on a trailing holdout."""

    model_config = ConfigDict(frozen=True)

    mape: Optional[float] = Field(
        default=None,
        description="Mean absolute percentage error; None when every actual is zero"
    )
    rmse: float
    holdout_size: int


class ForecastResult(BaseModel):
    """Forecast for one metric."""

    model_config = ConfigDict(frozen=True)

    metric: MetricKind
    methodology: str
    forecast_points: Tuple[ForecastPoint, ...]
    accuracy: ForecastAccuracy
    seasonality_period: Optional[int] = None
    trend_slope: float
    residual_std_dev: float
    validation: ValidationReport


class InsightType(str, Enum):
    SUSTAINED_GROWTH = "sustained_growth"
    SUSTAINED_DECLINE = "sustained_decline"
    COMPETITIVE_DIVERGENCE = "competitive_divergence"
    BASKET_SIZE_SHIFT = "basket_size_shift"
    MARKET_POSITION = "market_position"
    CASHBACK_POSITIONING = "cashback_positioning"
    CAMPAIGN_EFFICIENCY = "campaign_efficiency"
    CASHBACK_SUSTAINABILITY = "cashback_sustainability"
    CUSTOMER_GAP = "customer_gap"
    CUSTOMER_ACQUISITION_COST = "customer_acquisition_cost"


class InsightMetric(str, Enum):
    """What an insight measures: a tracked metric or a ratio derived from them."""
    TRANSACTIONS = "transactions"
    REVENUE = "revenue"
    CUSTOMERS = "customers"
    CASHBACK = "cashback"
    AVG_TRANSACTION_VALUE = "avg_transaction_value"
    CUSTOMER_ACQUISITION_COST = "customer_acquisition_cost"
    MARKET_RANK = "market_rank"
    CASHBACK_RATE = "cashback_rate"
    ROI = "roi"
    CASHBACK_RATIO = "cashback_ratio"

    @classmethod
    def for_metric(cls, metric: MetricKind) -> "InsightMetric":
        return cls(metric.value)


class InsightSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Insight(BaseModel):
    """Narrative finding together with the numbers that support it."""

    model_config = ConfigDict(frozen=True)

    type: InsightType
    title: str
    description: str
    metric: InsightMetric
    supporting_values: Dict[str, float] = Field(
        default_factory=dict,
        description="Numeric evidence behind the narrative"
    )
    severity: InsightSeverity = InsightSeverity.MEDIUM
    recommendations: Tuple[str, ...] = ()


class MerchantSnapshot(BaseModel):
    """Current-period totals for the merchant being analysed."""

    model_config = ConfigDict(frozen=True)

    name: str = "merchant"
    transactions: float = 0
    revenue: float = 0
    customers: float = 0
    cashback_paid: float = 0
    cashback_percent: float = 0


class CompetitorSnapshot(BaseModel):
    """A peer merchant; ``is_you`` marks the merchant's own row in a ranking."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_you: bool = False
    rank: Optional[int] = None
    transactions: float = 0
    revenue: float = 0
    customers: float = 0
    cashback_percent: float = 0
    history: Dict[MetricKind, MetricSeries] = Field(default_factory=dict)


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Alert(BaseModel):
    """Notification payload derived from an anomaly."""

    model_config = ConfigDict(frozen=True)

    metric: MetricKind
    date: date
    severity: AlertSeverity
    title: str
    message: str
    current_value: float
    expected_value: float
    channels: Tuple[str, ...]
