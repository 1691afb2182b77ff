"""Numeric primitives shared by the anomaly detector and the forecaster.

Standard deviation is the population form (divide by n) everywhere in the
engine: anomaly baselines, forecast residual spread and validation checks all
call into this module so the choice stays consistent.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .base_models import Statistics
from .exceptions import InvalidInputError


def _as_array(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise InvalidInputError("values must be a one-dimensional sequence")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("values must be finite numbers")
    return arr


class StatisticsCalculator:
    """Pure statistical helpers; every method is a function of its arguments."""

    @staticmethod
    def compute_statistics(values: Sequence[float]) -> Statistics:
        """
        Mean and population standard deviation of *values*.

        Raises:
            InvalidInputError: if *values* is empty or holds non-finite numbers
        """
        arr = _as_array(values)
        if arr.size == 0:
            raise InvalidInputError("cannot compute statistics of an empty sequence")

        mean = float(arr.mean())
        std_dev = float(arr.std(ddof=0)) if arr.size > 1 else 0.0

        return Statistics(
            mean=mean,
            std_dev=std_dev,
            sample_size=int(arr.size),
            minimum=float(arr.min()),
            maximum=float(arr.max())
        )

    @staticmethod
    def compute_linear_fit(values: Sequence[float]) -> Tuple[float, float]:
        """
        Ordinary least squares fit of *values* against index position.

        Returns:
            (slope, intercept); a single value gives a flat line through it
        """
        y = _as_array(values)
        n = y.size
        if n == 0:
            raise InvalidInputError("cannot fit a trend to an empty sequence")
        if n == 1:
            return 0.0, float(y[0])

        x = np.arange(n, dtype=float)
        x_mean = x.mean()
        y_mean = y.mean()
        denominator = float(((x - x_mean) ** 2).sum())
        slope = float(((x - x_mean) * (y - y_mean)).sum() / denominator)
        intercept = float(y_mean - slope * x_mean)
        return slope, intercept

    @classmethod
    def compute_trend_slope(cls, values: Sequence[float]) -> float:
        """OLS slope against index position (units per day)."""
        slope, _ = cls.compute_linear_fit(values)
        return slope

    @staticmethod
    def mean_absolute_percentage_error(
        actual: Sequence[float],
        predicted: Sequence[float]
    ) -> Optional[float]:
        """MAPE in percent, ignoring days whose actual value is zero."""
        a = _as_array(actual)
        p = _as_array(predicted)
        if a.size != p.size:
            raise InvalidInputError("actual and predicted must have the same length")

        mask = a != 0
        if not mask.any():
            return None
        return float(np.mean(np.abs((a[mask] - p[mask]) / a[mask])) * 100)

    @staticmethod
    def root_mean_squared_error(
        actual: Sequence[float],
        predicted: Sequence[float]
    ) -> float:
        a = _as_array(actual)
        p = _as_array(predicted)
        if a.size != p.size:
            raise InvalidInputError("actual and predicted must have the same length")
        if a.size == 0:
            raise InvalidInputError("cannot score an empty forecast")
        return float(np.sqrt(np.mean((a - p) ** 2)))

    @staticmethod
    def autocorrelation(values: Sequence[float], lag: int) -> float:
        """Pearson correlation of the series with itself shifted by *lag*.

        Returns 0.0 when the correlation is undefined (too short or constant).
        """
        arr = _as_array(values)
        if lag < 1 or arr.size <= lag + 1:
            return 0.0
        if arr[lag:].std() == 0 or arr[:-lag].std() == 0:
            return 0.0
        corr = pd.Series(arr).autocorr(lag=lag)
        if corr is None or not np.isfinite(corr):
            return 0.0
        return float(corr)
