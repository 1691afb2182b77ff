"""Business logic for the analytics feeds."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Sequence

from pydantic import ValidationError

from app.core.config import Settings
from app.schemas.analytics import (
    AlertFeed,
    AlertItem,
    AnomalyFeed,
    AnomalyItem,
    CompetitorIn,
    ConfidenceInterval,
    ForecastAccuracyOut,
    ForecastFeed,
    ForecastItem,
    InsightFeed,
    InsightItem,
    MerchantIn,
)
from src.analytics import (
    AlertBuilder,
    AnomalyConfig,
    AnomalyDetector,
    AnomalyReport,
    CompetitorSnapshot,
    DailyMetricRecord,
    ForecastingEngine,
    ForecastResult,
    InsightsEngine,
    InvalidInputError,
    InvalidParametersError,
    MerchantSnapshot,
    MetricKind,
    MetricSeries,
)

logger = logging.getLogger(__name__)


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 2)


class AnalyticsService:
    """
    Builds metric series from daily records, runs the analytics core and
    shapes results into the public feeds.

    Per-metric work runs on a thread pool; results are merged in the
    documented order, never in completion order.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.detector = AnomalyDetector()
        self.forecaster = ForecastingEngine()
        self.insights_engine = InsightsEngine()
        self.alert_builder = AlertBuilder()

    @staticmethod
    def series_for(records: Sequence[DailyMetricRecord], metric: MetricKind) -> MetricSeries:
        try:
            return MetricSeries.from_records(records, metric)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid daily records: {e}") from e

    @classmethod
    def build_series(cls, records: Sequence[DailyMetricRecord]) -> Dict[MetricKind, MetricSeries]:
        """One series per tracked metric, missing values read as zero."""
        return {metric: cls.series_for(records, metric) for metric in MetricKind}

    def anomaly_config(self, threshold: Optional[float], lookback_days: Optional[int]) -> AnomalyConfig:
        if lookback_days is not None:
            lookback_days = min(lookback_days, self.settings.anomaly_max_lookback_days)
        try:
            return self.settings.anomaly_config(threshold=threshold, lookback_days=lookback_days)
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid anomaly parameters: {e}") from e

    def detect_anomalies(
        self,
        records: Sequence[DailyMetricRecord],
        config: AnomalyConfig
    ) -> AnomalyReport:
        series = self.build_series(records)
        with ThreadPoolExecutor(max_workers=self.settings.analytics_max_workers) as pool:
            futures = [
                pool.submit(self.detector.detect, series[metric], config)
                for metric in config.metrics
            ]
            reports = [future.result() for future in futures]

        report = AnomalyDetector.merge_reports(reports)
        logger.info(
            "Anomaly detection over %d days: %d anomalies, skipped=%s",
            len(records), report.anomaly_count, [m.value for m in report.skipped_metrics]
        )
        return report

    def anomaly_feed(
        self,
        merchant_id: str,
        records: Sequence[DailyMetricRecord],
        threshold: Optional[float] = None,
        lookback_days: Optional[int] = None
    ) -> AnomalyFeed:
        config = self.anomaly_config(threshold, lookback_days)
        report = self.detect_anomalies(records, config)

        return AnomalyFeed(
            merchant_id=merchant_id,
            threshold_z_score=config.z_threshold,
            lookback_days=config.baseline_window,
            anomaly_count=report.anomaly_count,
            anomalies=[
                AnomalyItem(
                    metric=a.metric,
                    type=a.direction.value,
                    severity=a.severity.value,
                    date=a.date,
                    value=_round(a.observed_value),
                    expected_value=_round(a.expected_value),
                    deviation_percent=_round(a.deviation_percent),
                    z_score=_round(a.z_score)
                )
                for a in report.anomalies
            ],
            message=report.reason if not report.anomalies else None
        )

    def forecast(
        self,
        records: Sequence[DailyMetricRecord],
        metric: MetricKind,
        days: Optional[int] = None
    ) -> ForecastResult:
        config = self.settings.forecast_config()
        horizon = days if days is not None else self.settings.forecast_default_horizon
        horizon = min(horizon, config.max_horizon)

        series = self.series_for(records, metric).tail(self.settings.forecast_history_days)
        return self.forecaster.forecast_metric(series, horizon, config)

    def forecast_all(
        self,
        records: Sequence[DailyMetricRecord],
        days: Optional[int] = None
    ) -> Dict[MetricKind, ForecastResult]:
        with ThreadPoolExecutor(max_workers=self.settings.analytics_max_workers) as pool:
            futures = {metric: pool.submit(self.forecast, records, metric, days) for metric in MetricKind}
            return {metric: future.result() for metric, future in futures.items()}

    def forecast_feed(
        self,
        merchant_id: str,
        records: Sequence[DailyMetricRecord],
        metric: MetricKind,
        days: Optional[int] = None
    ) -> ForecastFeed:
        return self.to_forecast_feed(merchant_id, self.forecast(records, metric, days))

    @staticmethod
    def to_forecast_feed(merchant_id: str, result: ForecastResult) -> ForecastFeed:
        return ForecastFeed(
            merchant_id=merchant_id,
            metric=result.metric,
            methodology=result.methodology,
            accuracy=ForecastAccuracyOut(
                mape=_round(result.accuracy.mape),
                rmse=_round(result.accuracy.rmse)
            ),
            forecast=[
                ForecastItem(
                    date=p.date,
                    predicted_value=_round(p.predicted_value),
                    confidence_interval=ConfidenceInterval(
                        lower=_round(p.lower_bound),
                        upper=_round(p.upper_bound)
                    )
                )
                for p in result.forecast_points
            ]
        )

    def insight_feed(
        self,
        merchant_id: str,
        current: MerchantIn,
        records: Sequence[DailyMetricRecord],
        competitors: Sequence[CompetitorIn]
    ) -> InsightFeed:
        history = self.build_series(records) if records else {}
        peers = [
            CompetitorSnapshot(
                name=c.name,
                is_you=c.is_you,
                rank=c.rank,
                transactions=c.transactions,
                revenue=c.revenue,
                customers=c.customers,
                cashback_percent=c.cashback_percent,
                history=self.build_series(c.records) if c.records else {}
            )
            for c in competitors
        ]

        insights = self.insights_engine.detect_insights(
            MerchantSnapshot(**current.model_dump()),
            history,
            peers,
            self.settings.insight_config()
        )

        return InsightFeed(
            merchant_id=merchant_id,
            insight_count=len(insights),
            insights=[
                InsightItem(
                    type=i.type.value,
                    title=i.title,
                    description=i.description,
                    metric=i.metric.value,
                    severity=i.severity.value,
                    supporting_values={k: round(v, 4) for k, v in i.supporting_values.items()},
                    recommendations=list(i.recommendations)
                )
                for i in insights
            ]
        )

    def alert_feed(
        self,
        merchant_id: str,
        merchant_name: str,
        records: Sequence[DailyMetricRecord],
        threshold: Optional[float] = None,
        lookback_days: Optional[int] = None
    ) -> AlertFeed:
        report = self.detect_anomalies(records, self.anomaly_config(threshold, lookback_days))
        alerts = self.alert_builder.build_alerts(report, merchant_name)

        return AlertFeed(
            merchant_id=merchant_id,
            alert_count=len(alerts),
            alerts=[
                AlertItem(
                    metric=a.metric,
                    date=a.date,
                    severity=a.severity.value,
                    title=a.title,
                    message=a.message,
                    current_value=_round(a.current_value),
                    expected_value=_round(a.expected_value),
                    channels=list(a.channels)
                )
                for a in alerts
            ]
        )
