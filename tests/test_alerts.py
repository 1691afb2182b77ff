"""Test alerts -- anomaly to notification payloads."""

from datetime import date

import pytest

from src.analytics import (
    AlertBuilder,
    AlertSeverity,
    Anomaly,
    AnomalyDetector,
    AnomalyDirection,
    AnomalyReport,
    AnomalySeverity,
    MetricKind,
)


def make_anomaly(metric, z_score, observed=150.0, expected=100.0, deviation=50.0, day=date(2024, 3, 1)):
    return Anomaly(
        metric=metric,
        date=day,
        observed_value=observed,
        expected_value=expected,
        deviation_percent=deviation,
        z_score=z_score,
        direction=AnomalyDirection.SPIKE if z_score > 0 else AnomalyDirection.DROP,
        severity=AnomalySeverity.HIGH if abs(z_score) > 3 else AnomalySeverity.MEDIUM,
        description="",
        recommendation=""
    )


@pytest.fixture
def builder():
    return AlertBuilder()


class TestSeverity:

    @pytest.mark.parametrize("metric,z_score,expected", [
        (MetricKind.CUSTOMERS, 3.5, AlertSeverity.CRITICAL),
        (MetricKind.CASHBACK, -3.1, AlertSeverity.CRITICAL),
        (MetricKind.CUSTOMERS, 2.7, AlertSeverity.WARNING),
        (MetricKind.REVENUE, 2.2, AlertSeverity.WARNING),
        (MetricKind.TRANSACTIONS, -2.1, AlertSeverity.WARNING),
        (MetricKind.CUSTOMERS, 2.2, AlertSeverity.INFO),
        (MetricKind.CASHBACK, -2.3, AlertSeverity.INFO),
    ])
    def test_alert_severity(self, builder, metric, z_score, expected):
        assert builder.alert_severity(make_anomaly(metric, z_score)) == expected

    def test_channels_escalate(self, builder):
        critical = builder.build_alert(make_anomaly(MetricKind.REVENUE, 4.0), "Shop")
        warning = builder.build_alert(make_anomaly(MetricKind.REVENUE, 2.2), "Shop")
        info = builder.build_alert(make_anomaly(MetricKind.CUSTOMERS, 2.2), "Shop")

        assert critical.channels == ("email", "slack", "mobile")
        assert warning.channels == ("email", "slack")
        assert info.channels == ("email",)


class TestContent:

    def test_titles(self, builder):
        assert builder.build_alert(make_anomaly(MetricKind.REVENUE, 3.5), "Shop").title == \
            "Significant spike in revenue"
        assert builder.build_alert(make_anomaly(MetricKind.CUSTOMERS, -2.2), "Shop").title == \
            "Unusual drop in customers"

    def test_message(self, builder):
        alert = builder.build_alert(make_anomaly(MetricKind.REVENUE, 2.2), "Corner Shop")

        assert alert.message == (
            "Corner Shop: Your revenue show a 50% increase. Current: 150.00, Expected: 100.00."
        )
        assert alert.current_value == 150.0
        assert alert.expected_value == 100.0

    def test_drop_recommends_actions(self, builder):
        anomaly = make_anomaly(MetricKind.TRANSACTIONS, -3.2, observed=40, deviation=-60.0)
        message = builder.build_alert(anomaly, "Shop").message

        assert "60% decrease" in message
        assert "Recommended actions:" in message
        assert "- Check for technical issues" in message

    def test_spike_highlights_opportunity(self, builder):
        message = builder.build_alert(make_anomaly(MetricKind.TRANSACTIONS, 2.8), "Shop").message
        assert "Opportunity:" in message

    def test_zero_baseline_message(self, builder):
        anomaly = make_anomaly(MetricKind.CASHBACK, 3.2, expected=0.0, deviation=None)
        assert "unusual increase" in builder.build_alert(anomaly, "Shop").message


class TestBuildAlerts:

    def test_one_alert_per_anomaly_in_order(self, builder):
        anomalies = AnomalyDetector.sort_anomalies([
            make_anomaly(MetricKind.CUSTOMERS, 2.2, day=date(2024, 3, 1)),
            make_anomaly(MetricKind.REVENUE, 3.4, day=date(2024, 3, 2)),
        ])
        alerts = builder.build_alerts(AnomalyReport(anomalies=tuple(anomalies)), "Shop")

        assert [a.metric for a in alerts] == [MetricKind.REVENUE, MetricKind.CUSTOMERS]
        assert [a.date for a in alerts] == [date(2024, 3, 2), date(2024, 3, 1)]

    def test_empty_report(self, builder):
        assert builder.build_alerts(AnomalyReport(reason="insufficient data"), "Shop") == ()
