"""Test forecasting -- trend + weekly seasonality with widening intervals."""

from datetime import timedelta

import pytest

from src.analytics import (
    ForecastConfig,
    ForecastingEngine,
    InsufficientDataError,
    InvalidParametersError,
    MetricKind,
)


@pytest.fixture
def engine():
    return ForecastingEngine()


class TestForecastMetric:

    def test_horizon_and_dates(self, engine, trending_series):
        result = engine.forecast_metric(trending_series, 10)

        assert result.metric == MetricKind.TRANSACTIONS
        assert len(result.forecast_points) == 10
        last = trending_series.dates[-1]
        assert [p.date for p in result.forecast_points] == [
            last + timedelta(days=k) for k in range(1, 11)
        ]

    def test_follows_trend(self, engine, trending_series):
        result = engine.forecast_metric(trending_series, 7)

        assert 4.5 < result.trend_slope < 5.5
        assert result.forecast_points[0].predicted_value == pytest.approx(400, abs=5)
        predictions = [p.predicted_value for p in result.forecast_points]
        assert predictions == sorted(predictions)

    def test_linear_history_is_exact(self, engine, series_factory):
        result = engine.forecast_metric(series_factory([100 + 10 * i for i in range(14)]), 7)

        assert result.trend_slope == pytest.approx(10.0)
        assert result.residual_std_dev == 0.0
        assert result.seasonality_period is None
        assert result.forecast_points[0].predicted_value == pytest.approx(240.0)
        assert result.forecast_points[6].predicted_value == pytest.approx(300.0)
        assert all(p.interval_width == 0.0 for p in result.forecast_points)
        assert result.accuracy.mape == pytest.approx(0.0, abs=1e-9)
        assert result.accuracy.rmse == pytest.approx(0.0, abs=1e-9)

    def test_declining_history_floors_at_zero(self, engine, series_factory):
        result = engine.forecast_metric(series_factory([300 - 20 * i for i in range(14)]), 14)
        points = result.forecast_points

        assert all(p.predicted_value >= 0 for p in points)
        assert points[0].predicted_value == pytest.approx(20.0)
        assert points[1].predicted_value == pytest.approx(0.0, abs=1e-9)
        assert all(p.predicted_value == 0.0 for p in points[2:])
        widths = [p.interval_width for p in points]
        assert all(a <= b for a, b in zip(widths, widths[1:]))

    def test_interval_width_never_shrinks(self, engine, trending_series):
        result = engine.forecast_metric(trending_series, 30)

        widths = [p.interval_width for p in result.forecast_points]
        assert widths[0] > 0
        assert all(a <= b for a, b in zip(widths, widths[1:]))

    def test_interval_is_symmetric(self, engine, trending_series):
        for point in engine.forecast_metric(trending_series, 5).forecast_points:
            assert point.lower_bound <= point.predicted_value <= point.upper_bound
            assert point.upper_bound - point.predicted_value == pytest.approx(
                point.predicted_value - point.lower_bound
            )

    def test_constant_series(self, engine, constant_series):
        result = engine.forecast_metric(constant_series, 7)

        assert result.residual_std_dev == 0.0
        assert result.trend_slope == pytest.approx(0.0)
        for point in result.forecast_points:
            assert point.predicted_value == pytest.approx(250.0)
            assert point.interval_width == pytest.approx(0.0)
        assert result.accuracy.rmse == pytest.approx(0.0)
        assert result.accuracy.mape == pytest.approx(0.0)

    def test_all_zero_history_has_no_mape(self, engine, series_factory):
        result = engine.forecast_metric(series_factory([0.0] * 20), 3)
        assert result.accuracy.mape is None
        assert result.accuracy.rmse == pytest.approx(0.0)

    def test_backtest_holdout(self, engine, trending_series):
        accuracy = engine.forecast_metric(trending_series, 7).accuracy
        assert accuracy.holdout_size == 12
        assert accuracy.mape is not None
        assert accuracy.mape < 5
        assert accuracy.rmse >= 0

    def test_idempotent(self, engine, weekly_series):
        assert engine.forecast_metric(weekly_series, 14) == engine.forecast_metric(weekly_series, 14)

    def test_methodology_without_seasonality(self, engine, trending_series):
        methodology = engine.forecast_metric(trending_series, 7).methodology
        assert "7-day centered moving average" in methodology
        assert "seasonal" not in methodology
        assert "95%" in methodology


class TestSeasonality:

    def test_weekly_pattern_detected(self, engine, weekly_series):
        assert engine.detect_seasonality(weekly_series.values) == 7

    def test_trend_has_no_weekly_pattern(self, engine, trending_series):
        assert engine.detect_seasonality(trending_series.values) is None

    def test_short_history_has_no_seasonality(self, engine, series_factory):
        assert engine.detect_seasonality([100, 180] * 6) is None

    def test_forecast_repeats_weekly_shape(self, engine, weekly_series):
        result = engine.forecast_metric(weekly_series, 7)

        assert result.seasonality_period == 7
        assert "7-day seasonal adjustment" in result.methodology
        # 56 days of history: step 1 falls on the first weekday of the pattern, step 6 on the peak
        points = result.forecast_points
        assert points[5].predicted_value > points[0].predicted_value + 30


class TestGuards:

    def test_insufficient_history(self, engine, series_factory):
        with pytest.raises(InsufficientDataError) as exc_info:
            engine.forecast_metric(series_factory([float(i) for i in range(13)]), 7)

        assert exc_info.value.available == 13
        assert exc_info.value.required == 14
        assert "Need at least 14 days" in str(exc_info.value)

    def test_minimum_history_is_enough(self, engine, series_factory):
        result = engine.forecast_metric(series_factory([float(i % 3) for i in range(14)]), 7)
        assert len(result.forecast_points) == 7

    @pytest.mark.parametrize("days_ahead", [0, -1, 31])
    def test_horizon_out_of_bounds(self, engine, trending_series, days_ahead):
        with pytest.raises(InvalidParametersError):
            engine.forecast_metric(trending_series, days_ahead)

    def test_parameters_checked_before_history(self, engine, series_factory):
        with pytest.raises(InvalidParametersError):
            engine.forecast_metric(series_factory([1.0, 2.0]), 0)

    @pytest.mark.parametrize("overrides", [
        {"confidence_level": 1.5},
        {"holdout_fraction": 0},
        {"min_history": 1},
        {"max_horizon": 0},
    ])
    def test_invalid_config(self, engine, trending_series, overrides):
        with pytest.raises(InvalidParametersError):
            engine.forecast_metric(trending_series, 1, ForecastConfig(**overrides))

    def test_custom_max_horizon(self, engine, trending_series):
        result = engine.forecast_metric(trending_series, 45, ForecastConfig(max_horizon=60))
        assert len(result.forecast_points) == 45
