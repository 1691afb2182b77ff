"""Typed errors raised by the analytics core."""


class AnalyticsError(Exception):
    """Base class for all analytics failures."""


class InvalidInputError(AnalyticsError, ValueError):
    """Input values cannot be analysed (empty, non-finite, misordered)."""


class InsufficientDataError(AnalyticsError, ValueError):
    """Series is shorter than the minimum history an operation needs."""

    def __init__(self, available: int, required: int, operation: str = "analysis"):
        self.available = available
        self.required = required
        self.operation = operation
        super().__init__(
            f"Need at least {required} days of historical data for {operation}, "
            f"found {available}"
        )


class InvalidParametersError(AnalyticsError, ValueError):
    """Call parameters (horizon, windows, thresholds) are out of bounds."""
