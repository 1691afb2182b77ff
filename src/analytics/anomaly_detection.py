"""Anomaly detection over recent daily merchant metrics."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .base_models import (
    Anomaly,
    AnomalyDirection,
    AnomalyReport,
    AnomalySeverity,
    MetricKind,
    MetricSeries,
    Statistics,
)
from .config import AnomalyConfig
from .statistics import StatisticsCalculator
from .validation import StatisticalValidator

logger = logging.getLogger(__name__)

_METRIC_ORDER = {metric: i for i, metric in enumerate(MetricKind)}

_RECOMMENDATIONS: Dict[MetricKind, Dict[AnomalyDirection, str]] = {
    MetricKind.TRANSACTIONS: {
        AnomalyDirection.SPIKE: "Investigate what drove increased activity. Consider if this can be replicated.",
        AnomalyDirection.DROP: "Check for technical issues, competitor promotions, or seasonal factors.",
    },
    MetricKind.REVENUE: {
        AnomalyDirection.SPIKE: "Analyze which products/categories drove growth. Consider inventory impact.",
        AnomalyDirection.DROP: "Review pricing, promotions, and customer feedback for issues.",
    },
    MetricKind.CUSTOMERS: {
        AnomalyDirection.SPIKE: "Great acquisition! Ensure onboarding experience meets expectations.",
        AnomalyDirection.DROP: "Review customer feedback, check for churn indicators.",
    },
    MetricKind.CASHBACK: {
        AnomalyDirection.SPIKE: "Review if cashback rates are sustainable. Check for abuse patterns.",
        AnomalyDirection.DROP: "Ensure cashback is being properly tracked and credited.",
    },
}


class AnomalyDetector:
    """
    Z-score anomaly detection for daily metric series.

    The baseline mean and standard deviation are computed over the whole
    bounded series, recent window included, so an anomalous day contributes to
    its own baseline. Sustained shifts are therefore damped.
    """

    def __init__(self, validator: Optional[StatisticalValidator] = None):
        self.validator = validator or StatisticalValidator()

    def detect(
        self,
        series: MetricSeries,
        config: Optional[AnomalyConfig] = None
    ) -> AnomalyReport:
        """
        Flag abnormal days among the trailing ``recent_window`` points.

        Args:
            series: Ascending daily series for one metric
            config: Windows and thresholds; defaults to ``AnomalyConfig()``

        Returns:
            AnomalyReport; empty with a ``reason`` when data is insufficient
        """
        config = config or AnomalyConfig()
        metric = series.metric
        bounded = series.tail(config.baseline_window)
        values = bounded.values

        validation = self.validator.validate_anomaly_detection(values, config.recent_window)

        if len(bounded) < config.recent_window:
            reason = (
                f"insufficient data: only {len(bounded)} days of history "
                f"(need at least {config.recent_window})"
            )
            logger.info("Skipping anomaly detection for %s: %s", metric.value, reason)
            return AnomalyReport(reason=reason, validation=(validation,))

        stats = StatisticsCalculator.compute_statistics(values)

        if stats.std_dev == 0:
            # Constant series cannot be anomalous
            logger.debug("Skipping %s: zero variance over %d days", metric.value, stats.sample_size)
            return AnomalyReport(skipped_metrics=(metric,), validation=(validation,))

        anomalies: List[Anomaly] = []
        for point in bounded.points[-config.recent_window:]:
            z_score = (point.value - stats.mean) / stats.std_dev
            if abs(z_score) > config.z_threshold:
                anomalies.append(self._build_anomaly(metric, point.date, point.value, z_score, stats, config))

        logger.debug(
            "%s: %d anomalies in last %d days (mean=%.2f, std=%.2f)",
            metric.value, len(anomalies), config.recent_window, stats.mean, stats.std_dev
        )

        return AnomalyReport(
            anomalies=tuple(self.sort_anomalies(anomalies)),
            validation=(validation,)
        )

    def detect_all(
        self,
        series_by_metric: Mapping[MetricKind, MetricSeries],
        config: Optional[AnomalyConfig] = None
    ) -> AnomalyReport:
        """Run ``detect`` for every configured metric present and merge the reports."""
        config = config or AnomalyConfig()
        reports = [
            self.detect(series_by_metric[metric], config)
            for metric in config.metrics
            if metric in series_by_metric
        ]
        return self.merge_reports(reports)

    @classmethod
    def merge_reports(cls, reports: Iterable[AnomalyReport]) -> AnomalyReport:
        """Combine per-metric reports in the documented order, independent of input order."""
        reports = list(reports)
        anomalies = [a for report in reports for a in report.anomalies]
        # Metrics short of history share one message per distinct day count
        reasons = sorted({report.reason for report in reports if report.reason})
        skipped = sorted(
            {m for report in reports for m in report.skipped_metrics},
            key=_METRIC_ORDER.__getitem__
        )

        return AnomalyReport(
            anomalies=tuple(cls.sort_anomalies(anomalies)),
            reason="; ".join(reasons) if reasons else None,
            skipped_metrics=tuple(skipped),
            validation=tuple(v for report in reports for v in report.validation)
        )

    @staticmethod
    def sort_anomalies(anomalies: Sequence[Anomaly]) -> List[Anomaly]:
        """Date descending, then high before medium, then metric order."""
        return sorted(
            anomalies,
            key=lambda a: (
                -a.date.toordinal(),
                0 if a.severity == AnomalySeverity.HIGH else 1,
                _METRIC_ORDER[a.metric],
            )
        )

    def _build_anomaly(
        self,
        metric: MetricKind,
        day,
        value: float,
        z_score: float,
        stats: Statistics,
        config: AnomalyConfig
    ) -> Anomaly:
        direction = AnomalyDirection.SPIKE if z_score > 0 else AnomalyDirection.DROP
        severity = (
            AnomalySeverity.HIGH if abs(z_score) > config.high_severity_z
            else AnomalySeverity.MEDIUM
        )
        deviation_percent = (
            (value - stats.mean) / stats.mean * 100 if stats.mean != 0 else None
        )

        return Anomaly(
            metric=metric,
            date=day,
            observed_value=value,
            expected_value=stats.mean,
            deviation_percent=deviation_percent,
            z_score=z_score,
            direction=direction,
            severity=severity,
            description=self._describe(metric, direction, value, stats.mean, deviation_percent),
            recommendation=_RECOMMENDATIONS[metric][direction]
        )

    def _describe(
        self,
        metric: MetricKind,
        direction: AnomalyDirection,
        value: float,
        expected: float,
        deviation_percent: Optional[float]
    ) -> str:
        label = metric.label.capitalize()
        verb, relation = (
            ("spiked", "above") if direction == AnomalyDirection.SPIKE else ("dropped", "below")
        )
        comparison = f"({value:,.2f} vs {expected:,.2f} expected)"

        if deviation_percent is None:
            return f"{label} {verb} {relation} a zero baseline {comparison}"
        return f"{label} {verb} {abs(deviation_percent):.1f}% {relation} expected {comparison}"
