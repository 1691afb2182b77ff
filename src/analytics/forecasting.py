"""Short-horizon forecasting with widening confidence intervals."""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from .base_models import ForecastAccuracy, ForecastPoint, ForecastResult, MetricSeries
from .config import ForecastConfig
from .exceptions import InsufficientDataError, InvalidParametersError
from .statistics import StatisticsCalculator
from .validation import StatisticalValidator

logger = logging.getLogger(__name__)

# Residual spread below this share of the series level is floating-point noise
_RELATIVE_NOISE_FLOOR = 1e-9


@dataclass(frozen=True)
class _TrendModel:
    """Linear trend plus optional zero-mean seasonal indices, indexed by position."""

    slope: float
    intercept: float
    seasonal: Optional[np.ndarray]
    period: Optional[int]

    def predict(self, index: int) -> float:
        value = self.intercept + self.slope * index
        if self.seasonal is not None:
            value += float(self.seasonal[index % self.period])
        return float(value)

    def forecast(self, index: int) -> float:
        """Out-of-sample prediction; daily metrics are never negative."""
        return max(0.0, self.predict(index))

    def fitted(self, n: int) -> np.ndarray:
        return np.array([self.predict(i) for i in range(n)], dtype=float)


class ForecastingEngine:
    """
    Trend extrapolation with weekly seasonal adjustment.

    The trend is an OLS line through the interior of a centered moving average.
    A weekly seasonal component is added only when the detrended series shows
    it. Interval half-width at step k is ``z * residual_std * sqrt(k)``.
    """

    def __init__(self, validator: Optional[StatisticalValidator] = None):
        self.validator = validator or StatisticalValidator()

    def forecast_metric(
        self,
        series: MetricSeries,
        days_ahead: int,
        config: Optional[ForecastConfig] = None
    ) -> ForecastResult:
        """
        Project *series* ``days_ahead`` days past its last date.

        Args:
            series: Ascending daily series for one metric
            days_ahead: Forecast horizon, 1..config.max_horizon
            config: Forecast settings; defaults to ``ForecastConfig()``

        Returns:
            ForecastResult with one point per future day and backtested accuracy

        Raises:
            InvalidParametersError: horizon or config out of bounds
            InsufficientDataError: fewer than ``min_history`` points
        """
        config = config or ForecastConfig()
        self._check_parameters(days_ahead, config)

        if len(series) < config.min_history:
            raise InsufficientDataError(len(series), config.min_history, "forecasting")

        values = np.asarray(series.values, dtype=float)
        n = values.size

        validation = self.validator.validate_forecasting(values, days_ahead, config.min_history)

        model = self._fit(values, config)
        residuals = values - model.fitted(n)
        residual_std = self._residual_spread(residuals, values)

        z = float(stats.norm.ppf(0.5 + config.confidence_level / 2))
        last_date = series.dates[-1]

        points: List[ForecastPoint] = []
        for step in range(1, days_ahead + 1):
            predicted = model.forecast(n - 1 + step)
            half_width = z * residual_std * math.sqrt(step)
            points.append(ForecastPoint(
                date=last_date + timedelta(days=step),
                predicted_value=predicted,
                lower_bound=predicted - half_width,
                upper_bound=predicted + half_width
            ))

        accuracy = self._backtest(values, config)

        logger.debug(
            "Forecast %s: n=%d horizon=%d slope=%.4f period=%s residual_std=%.4f",
            series.metric.value, n, days_ahead, model.slope, model.period, residual_std
        )

        return ForecastResult(
            metric=series.metric,
            methodology=self._describe_methodology(model, config),
            forecast_points=tuple(points),
            accuracy=accuracy,
            seasonality_period=model.period,
            trend_slope=model.slope,
            residual_std_dev=residual_std,
            validation=validation
        )

    def detect_seasonality(
        self,
        values: Sequence[float],
        config: Optional[ForecastConfig] = None
    ) -> Optional[int]:
        """Return the seasonal period when the detrended series repeats weekly, else None."""
        config = config or ForecastConfig()
        data = np.asarray(values, dtype=float)
        period = config.seasonality_period
        if data.size < 2 * period:
            return None

        detrended = data - self._trend_line(data, config)
        if self._residual_spread(detrended, data) == 0:
            return None
        score = StatisticsCalculator.autocorrelation(detrended, period)
        return period if score > config.seasonality_threshold else None

    def _check_parameters(self, days_ahead: int, config: ForecastConfig) -> None:
        if config.min_history < 2:
            raise InvalidParametersError(f"min_history must be at least 2, got {config.min_history}")
        if config.max_horizon < 1:
            raise InvalidParametersError(f"max_horizon must be at least 1, got {config.max_horizon}")
        if not 0 < config.confidence_level < 1:
            raise InvalidParametersError(
                f"confidence_level must be between 0 and 1, got {config.confidence_level}"
            )
        if not 0 < config.holdout_fraction < 1:
            raise InvalidParametersError(
                f"holdout_fraction must be between 0 and 1, got {config.holdout_fraction}"
            )
        if config.smoothing_window < 1 or config.seasonality_period < 2:
            raise InvalidParametersError("smoothing_window must be >= 1 and seasonality_period >= 2")
        if not 1 <= days_ahead <= config.max_horizon:
            raise InvalidParametersError(
                f"days_ahead must be between 1 and {config.max_horizon}, got {days_ahead}"
            )

    @staticmethod
    def _smooth(values: np.ndarray, window: int) -> np.ndarray:
        """Centered moving average, truncated at the edges."""
        window = max(1, min(window, values.size))
        return (
            pd.Series(values)
            .rolling(window=window, center=True, min_periods=1)
            .mean()
            .to_numpy()
        )

    def _fit_line(self, values: np.ndarray, config: ForecastConfig) -> Tuple[float, float]:
        """
        OLS line through the centered moving average.

        Only positions where the full window fits are used; truncated edge
        averages would pull the slope towards zero.
        """
        window = max(1, min(config.smoothing_window, values.size))
        half = window // 2
        if values.size - 2 * half < 2:
            half = 0
        smoothed = self._smooth(values, window)[half:values.size - half]
        slope, offset = StatisticsCalculator.compute_linear_fit(smoothed)
        return slope, offset - slope * half

    def _trend_line(self, values: np.ndarray, config: ForecastConfig) -> np.ndarray:
        slope, intercept = self._fit_line(values, config)
        return intercept + slope * np.arange(values.size, dtype=float)

    def _fit(self, values: np.ndarray, config: ForecastConfig) -> _TrendModel:
        slope, intercept = self._fit_line(values, config)

        period = self.detect_seasonality(values, config)
        seasonal = None
        if period is not None:
            detrended = values - (intercept + slope * np.arange(values.size, dtype=float))
            indices = np.array([detrended[phase::period].mean() for phase in range(period)])
            seasonal = indices - indices.mean()

        return _TrendModel(slope=slope, intercept=intercept, seasonal=seasonal, period=period)

    @staticmethod
    def _residual_spread(residuals: np.ndarray, values: np.ndarray) -> float:
        spread = StatisticsCalculator.compute_statistics(residuals).std_dev
        level = max(1.0, float(np.abs(values).max()))
        if spread <= _RELATIVE_NOISE_FLOOR * level:
            return 0.0
        return spread

    def _backtest(self, values: np.ndarray, config: ForecastConfig) -> ForecastAccuracy:
        """Refit without the trailing holdout and score predictions against it."""
        holdout = max(1, int(values.size * config.holdout_fraction))
        train, test = values[:-holdout], values[-holdout:]

        model = self._fit(train, config)
        predictions = [model.forecast(train.size + j) for j in range(holdout)]

        return ForecastAccuracy(
            mape=StatisticsCalculator.mean_absolute_percentage_error(test, predictions),
            rmse=StatisticsCalculator.root_mean_squared_error(test, predictions),
            holdout_size=holdout
        )

    @staticmethod
    def _describe_methodology(model: _TrendModel, config: ForecastConfig) -> str:
        confidence = f"{config.confidence_level:.0%}"
        base = f"Linear trend fitted to a {config.smoothing_window}-day centered moving average"
        if model.period is not None:
            base += f" with {model.period}-day seasonal adjustment"
        return f"{base}; {confidence} intervals widen with the square root of the horizon"
