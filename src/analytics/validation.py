"""Statistical validation framework for analytics inputs."""

import logging
from typing import Dict, List, Sequence

import numpy as np
from scipy import stats

from .base_models import ValidationReport, ConfidenceLevel

logger = logging.getLogger(__name__)

# Normality and stationarity tests are unreliable below this many points
MIN_POINTS_FOR_ASSUMPTION_TESTS = 20


class StatisticalValidator:
    """Validates statistical assumptions and data quality for analytics."""

    def __init__(self, significance_level: float = 0.05):
        """
        Initialize validator.

        Args:
            significance_level: Alpha level for statistical tests
        """
        self.alpha = significance_level

    def validate_anomaly_detection(
        self,
        values: Sequence[float],
        min_required: int
    ) -> ValidationReport:
        """
        Validate a metric series for z-score anomaly detection.

        Args:
            values: Baseline values (recent window included)
            min_required: Minimum number of points (the recent window)

        Returns:
            ValidationReport
        """
        warnings: List[str] = []
        critical_issues: List[str] = []
        assumptions: Dict[str, bool] = {}

        data = np.asarray(values, dtype=float)
        n = int(data.size)
        sample_adequate = n >= min_required

        if not sample_adequate:
            critical_issues.append(
                f"Insufficient data for anomaly detection: {n} obs (need {min_required})"
            )

        # Variance check
        has_variance = n > 0 and float(data.std(ddof=0)) > 0
        assumptions['has_variance'] = has_variance
        if n > 0 and not has_variance:
            critical_issues.append("Data has zero variance - no anomalies can be detected")

        # Z-scores assume a roughly normal baseline
        if n >= MIN_POINTS_FOR_ASSUMPTION_TESTS and has_variance:
            _, p_value = stats.shapiro(data)
            is_normal = bool(p_value > self.alpha)
            assumptions['normal_distribution'] = is_normal
            if not is_normal:
                warnings.append(
                    "Baseline is not normally distributed; z-score severities are approximate."
                )

        return self._build_report(n, min_required, sample_adequate, assumptions, warnings, critical_issues)

    def validate_forecasting(
        self,
        values: Sequence[float],
        forecast_horizon: int,
        min_required: int
    ) -> ValidationReport:
        """
        Validate time series data for forecasting.

        Args:
            values: Historical values
            forecast_horizon: Number of periods to forecast
            min_required: Minimum history length

        Returns:
            ValidationReport with validation results
        """
        warnings: List[str] = []
        critical_issues: List[str] = []
        assumptions: Dict[str, bool] = {}

        data = np.asarray(values, dtype=float)
        n = int(data.size)
        sample_adequate = n >= min_required

        if not sample_adequate:
            critical_issues.append(
                f"Sample size too small: {n} observations (need {min_required})"
            )

        if n and forecast_horizon > n:
            warnings.append(
                f"Horizon of {forecast_horizon} days exceeds the {n} days of history"
            )

        has_variance = n > 0 and float(data.std(ddof=0)) > 0
        assumptions['has_variance'] = has_variance

        # Stationarity test (Augmented Dickey-Fuller)
        if n >= MIN_POINTS_FOR_ASSUMPTION_TESTS and has_variance:
            try:
                from statsmodels.tsa.stattools import adfuller
                adf_result = adfuller(data)
                is_stationary = bool(adf_result[1] < self.alpha)
                assumptions['stationarity'] = is_stationary

                if not is_stationary:
                    warnings.append(
                        "Data is non-stationary (trending). Forecast relies on the fitted trend."
                    )
            except (ValueError, np.linalg.LinAlgError) as e:
                logger.debug("ADF test failed: %s", e)
                warnings.append(f"Could not test stationarity: {e}")
                assumptions['stationarity'] = False
        else:
            warnings.append("Not enough variable data to test stationarity")

        return self._build_report(n, min_required, sample_adequate, assumptions, warnings, critical_issues)

    def _build_report(
        self,
        n: int,
        min_required: int,
        sample_adequate: bool,
        assumptions: Dict[str, bool],
        warnings: List[str],
        critical_issues: List[str]
    ) -> ValidationReport:
        confidence_score = self._calculate_confidence_score(
            sample_adequate=sample_adequate,
            n=n,
            min_required=min_required,
            critical_issues=critical_issues,
            warnings=warnings
        )

        return ValidationReport(
            is_valid=len(critical_issues) == 0,
            confidence_level=self._score_to_level(confidence_score),
            confidence_score=confidence_score,
            sample_size=n,
            min_required_sample=min_required,
            sample_size_adequate=sample_adequate,
            assumptions_tested=assumptions,
            warnings=tuple(warnings),
            critical_issues=tuple(critical_issues)
        )

    def _calculate_confidence_score(
        self,
        sample_adequate: bool,
        n: int,
        min_required: int,
        critical_issues: List[str],
        warnings: List[str]
    ) -> float:
        """
        Calculate overall confidence score.

        Args:
            sample_adequate: Whether sample size is adequate
            n: Actual sample size
            min_required: Required sample size
            critical_issues: List of critical issues
            warnings: List of warnings

        Returns:
            Confidence score (0-1)
        """
        score = 1.0

        # Critical issues reduce confidence significantly
        score -= len(critical_issues) * 0.3

        # Warnings reduce confidence moderately
        score -= len(warnings) * 0.1

        # Sample size penalty
        if not sample_adequate and min_required > 0:
            score *= n / min_required

        return min(1.0, max(0.0, score))

    def _score_to_level(self, score: float) -> ConfidenceLevel:
        """Convert numeric score to confidence level."""
        if score >= 0.9:
            return ConfidenceLevel.VERY_HIGH
        elif score >= 0.7:
            return ConfidenceLevel.HIGH
        elif score >= 0.5:
            return ConfidenceLevel.MEDIUM
        elif score >= 0.3:
            return ConfidenceLevel.LOW
        else:
            return ConfidenceLevel.VERY_LOW
