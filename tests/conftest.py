"""
Shared fixtures for the retail analytics test suite.

Series and daily records are built in memory; nothing touches storage or the
network.
"""

from datetime import date, timedelta
from typing import List, Sequence

import numpy as np
import pytest

from src.analytics import DailyMetricRecord, MetricKind, MetricSeries

START = date(2024, 1, 1)


def make_series(values: Sequence[float], metric: MetricKind = MetricKind.REVENUE, start: date = START) -> MetricSeries:
    """Consecutive daily series starting at *start*."""
    return MetricSeries.from_pairs(
        metric, ((start + timedelta(days=i), v) for i, v in enumerate(values))
    )


def make_records(
    transactions: Sequence[float],
    revenue: Sequence[float] = None,
    customers: Sequence[float] = None,
    cashback: Sequence[float] = None,
    start: date = START
) -> List[DailyMetricRecord]:
    """Daily records; unspecified metrics mirror a flat, varied baseline."""
    n = len(transactions)
    revenue = revenue if revenue is not None else [t * 50 for t in transactions]
    customers = customers if customers is not None else [t * 0.8 for t in transactions]
    cashback = cashback if cashback is not None else [r * 0.05 for r in revenue]
    return [
        DailyMetricRecord(
            date=start + timedelta(days=i),
            transactions_count=transactions[i],
            revenue=revenue[i],
            unique_customers=customers[i],
            cashback_paid=cashback[i],
        )
        for i in range(n)
    ]


# ---------------------------------------------------------------------------
# Series fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def noisy_revenue_values():
    """89 days of revenue around 1000 (sd 50) followed by a 3000 spike."""
    rng = np.random.default_rng(42)
    noise = rng.normal(1000, 50, 89)
    return [float(v) for v in noise] + [3000.0]


@pytest.fixture
def noisy_revenue_series(noisy_revenue_values):
    return make_series(noisy_revenue_values, MetricKind.REVENUE)


@pytest.fixture
def trending_series():
    """60 days rising 5 per day with mild deterministic wobble."""
    values = [100 + 5 * i + (3 if i % 2 else -3) for i in range(60)]
    return make_series(values, MetricKind.TRANSACTIONS)


@pytest.fixture
def weekly_series():
    """8 weeks with a strong weekend peak on a flat level."""
    pattern = [100, 95, 98, 102, 110, 180, 170]
    return make_series(pattern * 8, MetricKind.TRANSACTIONS)


@pytest.fixture
def constant_series():
    return make_series([250.0] * 30, MetricKind.CUSTOMERS)


@pytest.fixture
def steady_records():
    """30 days of steady activity with a small, deterministic wobble."""
    transactions = [100 + (i % 5) for i in range(30)]
    return make_records(transactions)


@pytest.fixture
def spiking_records():
    """90 days around 100 transactions, the last day at 400."""
    rng = np.random.default_rng(7)
    transactions = [float(v) for v in rng.normal(100, 5, 89)] + [400.0]
    return make_records(transactions)


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def records_factory():
    return make_records
