"""
Retail Analytics Core

Time-series analytics over a merchant's daily metrics (transactions, revenue,
unique customers, cashback paid). Every operation is a pure function of its
inputs and an explicit config object; nothing is cached between calls.

Modules:
- statistics: mean, population stddev, OLS trend, MAPE/RMSE
- anomaly_detection: z-score flags on the most recent days
- forecasting: trend + weekly seasonal forecasts with widening intervals
- insights: self-trend and peer comparison narratives
- alerts: notification payloads derived from anomalies
- validation: statistical assumption testing and confidence scoring
"""

from .base_models import (
    Alert,
    AlertSeverity,
    Anomaly,
    AnomalyDirection,
    AnomalyReport,
    AnomalySeverity,
    CompetitorSnapshot,
    ConfidenceLevel,
    DailyMetricRecord,
    ForecastAccuracy,
    ForecastPoint,
    ForecastResult,
    Insight,
    InsightMetric,
    InsightSeverity,
    InsightType,
    MerchantSnapshot,
    MetricKind,
    MetricPoint,
    MetricSeries,
    Statistics,
    ValidationReport,
)
from .config import AnomalyConfig, ForecastConfig, InsightConfig
from .exceptions import (
    AnalyticsError,
    InsufficientDataError,
    InvalidInputError,
    InvalidParametersError,
)

from .statistics import StatisticsCalculator
from .anomaly_detection import AnomalyDetector
from .forecasting import ForecastingEngine
from .insights import InsightsEngine
from .alerts import AlertBuilder
from .validation import StatisticalValidator

__all__ = [
    # Base models
    'Alert',
    'AlertSeverity',
    'Anomaly',
    'AnomalyDirection',
    'AnomalyReport',
    'AnomalySeverity',
    'CompetitorSnapshot',
    'ConfidenceLevel',
    'DailyMetricRecord',
    'ForecastAccuracy',
    'ForecastPoint',
    'ForecastResult',
    'Insight',
    'InsightMetric',
    'InsightSeverity',
    'InsightType',
    'MerchantSnapshot',
    'MetricKind',
    'MetricPoint',
    'MetricSeries',
    'Statistics',
    'ValidationReport',

    # Configuration
    'AnomalyConfig',
    'ForecastConfig',
    'InsightConfig',

    # Errors
    'AnalyticsError',
    'InsufficientDataError',
    'InvalidInputError',
    'InvalidParametersError',

    # Engines
    'StatisticsCalculator',
    'AnomalyDetector',
    'ForecastingEngine',
    'InsightsEngine',
    'AlertBuilder',
    'StatisticalValidator'
]
