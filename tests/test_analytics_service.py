"""Test analytics_service -- records in, feeds out."""

from datetime import date

import pytest

from app.core.config import Settings
from app.schemas.analytics import CompetitorIn, MerchantIn
from app.services.analytics_service import AnalyticsService
from src.analytics import (
    DailyMetricRecord,
    InsufficientDataError,
    InvalidInputError,
    InvalidParametersError,
    MetricKind,
)


@pytest.fixture
def service():
    return AnalyticsService(Settings())


class TestAnomalyFeed:

    def test_spike_on_every_metric(self, service, spiking_records):
        feed = service.anomaly_feed("m-1", spiking_records)

        assert feed.merchant_id == "m-1"
        assert feed.threshold_z_score == 2.0
        assert feed.lookback_days == 90
        assert feed.anomaly_count == 4
        assert [a.metric for a in feed.anomalies] == list(MetricKind)
        for item in feed.anomalies:
            assert item.type == "spike"
            assert item.severity == "high"
            assert item.date == spiking_records[-1].date
            assert item.value == round(item.value, 2)
        assert feed.message is None

    def test_quiet_period(self, service, steady_records):
        feed = service.anomaly_feed("m-1", steady_records)
        assert feed.anomaly_count == 0
        assert feed.anomalies == []

    def test_short_history_explains_itself(self, service, records_factory):
        feed = service.anomaly_feed("m-1", records_factory([10, 12, 11]))

        assert feed.anomalies == []
        assert feed.message == "insufficient data: only 3 days of history (need at least 7)"

    def test_records_are_sorted(self, service, spiking_records):
        shuffled = list(reversed(spiking_records))
        assert service.anomaly_feed("m-1", shuffled) == service.anomaly_feed("m-1", spiking_records)

    def test_missing_values_read_as_zero(self, service):
        records = [DailyMetricRecord(date=date(2024, 1, d), transactions_count=10 + d % 3) for d in range(1, 15)]
        feed = service.anomaly_feed("m-1", records)
        assert all(a.metric == MetricKind.TRANSACTIONS for a in feed.anomalies)

    def test_lookback_is_clamped(self, service, steady_records):
        assert service.anomaly_feed("m-1", steady_records, lookback_days=1000).lookback_days == 180
        assert service.anomaly_feed("m-1", steady_records, lookback_days=3).lookback_days == 7

    def test_threshold_override(self, service, steady_records):
        feed = service.anomaly_feed("m-1", steady_records, threshold=1.0)
        assert feed.threshold_z_score == 1.0
        assert feed.anomaly_count > 0

    def test_duplicate_dates_rejected(self, service, steady_records):
        with pytest.raises(InvalidInputError):
            service.anomaly_feed("m-1", steady_records + steady_records[-1:])


class TestForecastFeed:

    def test_default_horizon(self, service, spiking_records):
        feed = service.forecast_feed("m-1", spiking_records, MetricKind.REVENUE)

        assert feed.metric == MetricKind.REVENUE
        assert len(feed.forecast) == 7
        assert feed.methodology
        widths = [p.confidence_interval.upper - p.confidence_interval.lower for p in feed.forecast]
        assert all(a <= b for a, b in zip(widths, widths[1:]))

    def test_horizon_clamped(self, service, spiking_records):
        feed = service.forecast_feed("m-1", spiking_records, MetricKind.TRANSACTIONS, days=100)
        assert len(feed.forecast) == 30

    def test_invalid_horizon(self, service, spiking_records):
        with pytest.raises(InvalidParametersError):
            service.forecast_feed("m-1", spiking_records, MetricKind.TRANSACTIONS, days=0)

    def test_insufficient_history(self, service, records_factory):
        with pytest.raises(InsufficientDataError):
            service.forecast_feed("m-1", records_factory([10.0] * 10), MetricKind.TRANSACTIONS)

    def test_forecast_all(self, service, steady_records):
        results = service.forecast_all(steady_records, days=3)
        assert set(results) == set(MetricKind)
        assert all(len(r.forecast_points) == 3 for r in results.values())


class TestInsightFeed:

    def test_growth_and_peers(self, service, records_factory):
        records = records_factory([100] * 7 + [150] * 7)
        competitors = [
            CompetitorIn(name="Rival", transactions=200, customers=300, cashback_percent=2.0,
                         records=records_factory([100] * 14)),
        ]
        feed = service.insight_feed(
            "m-1",
            MerchantIn(name="Shop", transactions=150, revenue=7500, customers=120, cashback_percent=2.0),
            records,
            competitors
        )

        types = [i.type for i in feed.insights]
        assert feed.insight_count == len(feed.insights)
        assert "sustained_growth" in types
        assert "competitive_divergence" in types
        assert "customer_gap" in types

    def test_acquisition_cost_metric_is_plain_text(self, service, records_factory):
        records = records_factory(
            [100] * 14, customers=[100] * 14, cashback=[100] * 7 + [150] * 7
        )
        feed = service.insight_feed("m-1", MerchantIn(), records, [])

        cac = next(i for i in feed.insights if i.type == "customer_acquisition_cost")
        assert cac.metric == "customer_acquisition_cost"
        assert type(cac.metric) is str
        assert cac.supporting_values["change_percent"] == pytest.approx(50.0)

    def test_empty(self, service):
        feed = service.insight_feed("m-1", MerchantIn(), [], [])
        assert feed.insight_count == 0


class TestAlertFeed:

    def test_alerts_for_spike(self, service, spiking_records):
        feed = service.alert_feed("m-1", "Corner Shop", spiking_records)

        assert feed.alert_count == 4
        assert all(a.severity == "critical" for a in feed.alerts)
        assert all(a.channels == ["email", "slack", "mobile"] for a in feed.alerts)
        assert feed.alerts[0].message.startswith("Corner Shop:")
