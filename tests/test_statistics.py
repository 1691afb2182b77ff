"""Test statistics -- shared numeric primitives."""

import math

import pytest

from src.analytics import InvalidInputError, StatisticsCalculator


class TestComputeStatistics:
    """Mean and population standard deviation."""

    def test_population_std_dev(self):
        stats = StatisticsCalculator.compute_statistics([2, 4, 4, 4, 5, 5, 7, 9])
        assert stats.mean == pytest.approx(5.0)
        assert stats.std_dev == pytest.approx(2.0)
        assert stats.sample_size == 8
        assert stats.minimum == 2
        assert stats.maximum == 9

    def test_single_value_has_zero_spread(self):
        stats = StatisticsCalculator.compute_statistics([42.0])
        assert stats.mean == 42.0
        assert stats.std_dev == 0.0

    def test_constant_values(self):
        assert StatisticsCalculator.compute_statistics([7.0] * 10).std_dev == 0.0

    def test_empty_raises(self):
        with pytest.raises(InvalidInputError):
            StatisticsCalculator.compute_statistics([])

    def test_non_finite_raises(self):
        with pytest.raises(InvalidInputError):
            StatisticsCalculator.compute_statistics([1.0, float("nan")])

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            StatisticsCalculator.compute_statistics([])


class TestLinearFit:

    def test_perfect_line(self):
        slope, intercept = StatisticsCalculator.compute_linear_fit([1, 3, 5, 7])
        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(1.0)

    def test_flat_line(self):
        assert StatisticsCalculator.compute_trend_slope([5, 5, 5, 5]) == pytest.approx(0.0)

    def test_decreasing(self):
        assert StatisticsCalculator.compute_trend_slope([10, 8, 6, 4]) == pytest.approx(-2.0)

    def test_single_point(self):
        assert StatisticsCalculator.compute_linear_fit([3.0]) == (0.0, 3.0)

    def test_empty_raises(self):
        with pytest.raises(InvalidInputError):
            StatisticsCalculator.compute_linear_fit([])


class TestErrorMetrics:

    def test_mape(self):
        mape = StatisticsCalculator.mean_absolute_percentage_error([100, 200], [110, 180])
        assert mape == pytest.approx(10.0)

    def test_mape_skips_zero_actuals(self):
        mape = StatisticsCalculator.mean_absolute_percentage_error([0, 100], [5, 90])
        assert mape == pytest.approx(10.0)

    def test_mape_all_zero_actuals(self):
        assert StatisticsCalculator.mean_absolute_percentage_error([0, 0], [1, 2]) is None

    def test_mape_length_mismatch(self):
        with pytest.raises(InvalidInputError):
            StatisticsCalculator.mean_absolute_percentage_error([1, 2], [1])

    def test_rmse(self):
        rmse = StatisticsCalculator.root_mean_squared_error([1, 2, 3], [1, 2, 5])
        assert rmse == pytest.approx(math.sqrt(4 / 3))

    def test_rmse_perfect(self):
        assert StatisticsCalculator.root_mean_squared_error([4, 5], [4, 5]) == 0.0

    def test_rmse_empty_raises(self):
        with pytest.raises(InvalidInputError):
            StatisticsCalculator.root_mean_squared_error([], [])


class TestAutocorrelation:

    def test_periodic_signal(self):
        values = [1.0, 5.0] * 10
        assert StatisticsCalculator.autocorrelation(values, 2) == pytest.approx(1.0)
        assert StatisticsCalculator.autocorrelation(values, 1) == pytest.approx(-1.0)

    def test_constant_is_zero(self):
        assert StatisticsCalculator.autocorrelation([3.0] * 20, 7) == 0.0

    def test_too_short_is_zero(self):
        assert StatisticsCalculator.autocorrelation([1.0, 2.0, 3.0], 7) == 0.0
