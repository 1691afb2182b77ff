"""Turns detected anomalies into notification payloads.

Delivery (email, Slack, push) belongs to an external dispatcher; this module
only decides severity, wording and which channels an alert should go to.
"""

from typing import Dict, Iterable, Tuple

from .base_models import (
    Alert,
    AlertSeverity,
    Anomaly,
    AnomalyDirection,
    AnomalyReport,
    MetricKind,
)

# Metrics whose moderate deviations already warrant a warning
CRITICAL_METRICS = (MetricKind.TRANSACTIONS, MetricKind.REVENUE)

CHANNELS: Dict[AlertSeverity, Tuple[str, ...]] = {
    AlertSeverity.CRITICAL: ("email", "slack", "mobile"),
    AlertSeverity.WARNING: ("email", "slack"),
    AlertSeverity.INFO: ("email",),
}

_DROP_ACTIONS = {
    MetricKind.TRANSACTIONS: (
        "Check for technical issues",
        "Review recent competitor activity",
        "Consider emergency promotion",
    ),
    MetricKind.REVENUE: (
        "Investigate high-value customer behavior",
        "Check for pricing issues",
        "Review product availability",
    ),
}

_SPIKE_ACTIONS = {
    MetricKind.TRANSACTIONS: (
        "Investigate what's driving growth",
        "Scale successful tactics",
        "Ensure inventory can support demand",
    ),
}


class AlertBuilder:
    """Builds one alert per anomaly with escalating severity and channels."""

    def __init__(self, critical_z: float = 3.0, warning_z: float = 2.5, action_z: float = 2.5):
        self.critical_z = critical_z
        self.warning_z = warning_z
        self.action_z = action_z

    def build_alerts(self, report: AnomalyReport, merchant_name: str) -> Tuple[Alert, ...]:
        """Alerts in the same order as ``report.anomalies``."""
        return tuple(self.build_alert(a, merchant_name) for a in report.anomalies)

    def build_alert(self, anomaly: Anomaly, merchant_name: str) -> Alert:
        severity = self.alert_severity(anomaly)
        return Alert(
            metric=anomaly.metric,
            date=anomaly.date,
            severity=severity,
            title=self._title(anomaly),
            message=self._message(anomaly, merchant_name),
            current_value=anomaly.observed_value,
            expected_value=anomaly.expected_value,
            channels=CHANNELS[severity]
        )

    def alert_severity(self, anomaly: Anomaly) -> AlertSeverity:
        magnitude = abs(anomaly.z_score)
        if magnitude > self.critical_z:
            return AlertSeverity.CRITICAL
        if magnitude > self.warning_z or anomaly.metric in CRITICAL_METRICS:
            return AlertSeverity.WARNING
        return AlertSeverity.INFO

    def _title(self, anomaly: Anomaly) -> str:
        magnitude = "Significant" if abs(anomaly.z_score) > self.critical_z else "Unusual"
        return f"{magnitude} {anomaly.direction.value} in {anomaly.metric.value}"

    def _message(self, anomaly: Anomaly, merchant_name: str) -> str:
        change = "increase" if anomaly.direction == AnomalyDirection.SPIKE else "decrease"
        if anomaly.deviation_percent is not None:
            message = (
                f"{merchant_name}: Your {anomaly.metric.value} show a "
                f"{abs(anomaly.deviation_percent):.0f}% {change}. "
            )
        else:
            message = f"{merchant_name}: Your {anomaly.metric.value} show an unusual {change}. "
        message += (
            f"Current: {anomaly.observed_value:,.2f}, "
            f"Expected: {anomaly.expected_value:,.2f}."
        )

        if anomaly.z_score < -self.action_z:
            message += self._bullets("Recommended actions", _DROP_ACTIONS.get(anomaly.metric, ()))
        elif anomaly.z_score > self.action_z:
            message += self._bullets("Opportunity", _SPIKE_ACTIONS.get(anomaly.metric, ()))
        return message

    @staticmethod
    def _bullets(heading: str, items: Iterable[str]) -> str:
        items = list(items)
        if not items:
            return ""
        return f"\n\n{heading}:\n" + "\n".join(f"- {item}" for item in items)
