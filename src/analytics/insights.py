"""Comparative narrative insights from merchant and peer metrics."""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .base_models import (
    CompetitorSnapshot,
    Insight,
    InsightMetric,
    InsightSeverity,
    InsightType,
    MerchantSnapshot,
    MetricKind,
    MetricSeries,
)
from .config import InsightConfig

logger = logging.getLogger(__name__)

_SEVERITY_WEIGHT = {
    InsightSeverity.HIGH: 3,
    InsightSeverity.MEDIUM: 2,
    InsightSeverity.LOW: 1,
}


def _window_means(values: Sequence[float], window: int) -> Optional[Tuple[float, float]]:
    """(prior mean, recent mean) of two adjacent trailing windows, or None if too short."""
    if len(values) < 2 * window:
        return None
    recent = np.asarray(values[-window:], dtype=float)
    prior = np.asarray(values[-2 * window:-window], dtype=float)
    return float(prior.mean()), float(recent.mean())


def _growth_rate(values: Sequence[float], window: int) -> Optional[float]:
    """Relative change of the recent window mean over the prior window mean."""
    means = _window_means(values, window)
    if means is None or means[0] == 0:
        return None
    prior, recent = means
    return (recent - prior) / prior


def _window_ratios(
    numerator: MetricSeries,
    denominator: MetricSeries,
    window: int
) -> Optional[Tuple[float, float]]:
    """
    (prior, recent) ratio of window sums, e.g. revenue per transaction.

    Only dates present in both series count. None when history is too short
    or either window's denominator sums to zero.
    """
    denominator_by_date = {p.date: p.value for p in denominator.points}
    pairs = [
        (p.value, denominator_by_date[p.date])
        for p in numerator.points if p.date in denominator_by_date
    ]
    if len(pairs) < 2 * window:
        return None

    recent, prior = pairs[-window:], pairs[-2 * window:-window]
    recent_den = sum(d for _, d in recent)
    prior_den = sum(d for _, d in prior)
    if recent_den == 0 or prior_den == 0:
        return None
    return sum(n for n, _ in prior) / prior_den, sum(n for n, _ in recent) / recent_den


class InsightsEngine:
    """
    Derives narrative findings from a merchant's own trend and from peers.

    Every insight is a pure function of the inputs and carries the numbers it
    was computed from, so reports can render or audit it without recomputing.
    """

    def detect_insights(
        self,
        current_merchant: MerchantSnapshot,
        historical_series: Mapping[MetricKind, MetricSeries],
        competitors: Sequence[CompetitorSnapshot] = (),
        config: Optional[InsightConfig] = None
    ) -> Tuple[Insight, ...]:
        """
        Args:
            current_merchant: Current-period totals for the merchant
            historical_series: Daily series per metric, ascending
            competitors: Peer snapshots (the merchant's own row has ``is_you``)
            config: Thresholds; defaults to ``InsightConfig()``

        Returns:
            Insights ranked by severity and magnitude, at most ``max_insights``
        """
        config = config or InsightConfig()
        peers = [c for c in competitors if not c.is_you]

        insights: List[Insight] = []
        insights.extend(self._analyze_trends(historical_series, config))
        insights.extend(self._analyze_basket_size(historical_series, config))
        insights.extend(self._analyze_acquisition_cost(historical_series, config))
        insights.extend(self._analyze_divergence(historical_series, peers, config))
        insights.extend(self._analyze_market_position(current_merchant, competitors))
        insights.extend(self._analyze_cashback_rate(current_merchant, peers, config))
        insights.extend(self._analyze_efficiency(current_merchant, config))
        insights.extend(self._analyze_customer_gap(current_merchant, peers, config))

        ranked = sorted(insights, key=lambda i: -self._score(i))
        logger.debug("Detected %d insights, keeping %d", len(ranked), min(len(ranked), config.max_insights))
        return tuple(ranked[:config.max_insights])

    def _analyze_trends(
        self,
        historical_series: Mapping[MetricKind, MetricSeries],
        config: InsightConfig
    ) -> List[Insight]:
        insights = []
        for metric in MetricKind:
            series = historical_series.get(metric)
            if series is None:
                continue
            means = _window_means(series.values, config.window)
            growth = _growth_rate(series.values, config.window)
            if means is None or growth is None or abs(growth) <= config.growth_threshold:
                continue

            prior, recent = means
            growing = growth > 0
            pct = abs(growth) * 100
            severity = (
                InsightSeverity.HIGH if abs(growth) > 2 * config.growth_threshold
                else InsightSeverity.MEDIUM
            )

            insights.append(Insight(
                type=InsightType.SUSTAINED_GROWTH if growing else InsightType.SUSTAINED_DECLINE,
                title=f"{metric.label.capitalize()} {'up' if growing else 'down'} {pct:.0f}% week over week",
                description=(
                    f"Average daily {metric.label} over the last {config.window} days is "
                    f"{recent:,.2f}, {pct:.0f}% {'higher' if growing else 'lower'} than the "
                    f"{prior:,.2f} average of the {config.window} days before. "
                    + ("This growth momentum presents an opportunity to scale."
                       if growing else "This decline requires attention to prevent further losses.")
                ),
                metric=InsightMetric.for_metric(metric),
                supporting_values={
                    "recent_average": recent,
                    "prior_average": prior,
                    "change_percent": growth * 100,
                    "change_absolute": recent - prior,
                    "window_days": float(config.window),
                },
                severity=severity,
                recommendations=(
                    ("Investigate what's driving this growth (seasonality, marketing, word-of-mouth)",
                     "Consider increasing campaign budget to capitalize on momentum")
                    if growing else
                    ("Check for technical issues affecting checkout flow",
                     "Review recent competitor campaigns that may be drawing customers")
                )
            ))
        return insights

    def _analyze_basket_size(
        self,
        historical_series: Mapping[MetricKind, MetricSeries],
        config: InsightConfig
    ) -> List[Insight]:
        revenue = historical_series.get(MetricKind.REVENUE)
        transactions = historical_series.get(MetricKind.TRANSACTIONS)
        if revenue is None or transactions is None:
            return []

        ratios = _window_ratios(revenue, transactions, config.window)
        if ratios is None or ratios[0] == 0:
            return []

        prior_value, recent_value = ratios
        change = (recent_value - prior_value) / prior_value
        if abs(change) <= config.basket_threshold:
            return []

        rising = change > 0
        return [Insight(
            type=InsightType.BASKET_SIZE_SHIFT,
            title=f"Average transaction value {'increasing' if rising else 'decreasing'}",
            description=(
                f"Customers are spending {abs(change) * 100:.0f}% {'more' if rising else 'less'} "
                f"per transaction ({recent_value:,.2f} vs {prior_value:,.2f}). "
                + ("This suggests customers are buying higher-value items or larger quantities."
                   if rising else "This may indicate customers are trading down or buying fewer items.")
            ),
            metric=InsightMetric.AVG_TRANSACTION_VALUE,
            supporting_values={
                "recent_avg_transaction_value": recent_value,
                "prior_avg_transaction_value": prior_value,
                "change_percent": change * 100,
            },
            severity=InsightSeverity.MEDIUM,
            recommendations=(
                ("Promote higher-margin products to similar customer segments",
                 "Introduce bundle deals to maintain high transaction values")
                if rising else
                ("Review product pricing strategy",
                 "Consider promotions on complementary products to increase basket")
            )
        )]

    def _analyze_acquisition_cost(
        self,
        historical_series: Mapping[MetricKind, MetricSeries],
        config: InsightConfig
    ) -> List[Insight]:
        """Cashback paid per customer, recent window vs the one before it."""
        cashback = historical_series.get(MetricKind.CASHBACK)
        customers = historical_series.get(MetricKind.CUSTOMERS)
        if cashback is None or customers is None:
            return []

        ratios = _window_ratios(cashback, customers, config.window)
        if ratios is None or ratios[0] == 0:
            return []

        prior_cac, recent_cac = ratios
        change = (recent_cac - prior_cac) / prior_cac
        if change <= config.cac_growth_threshold:
            return []

        return [Insight(
            type=InsightType.CUSTOMER_ACQUISITION_COST,
            title="Customer acquisition cost increasing",
            description=(
                f"Cashback paid per customer rose {change * 100:.0f}% "
                f"({recent_cac:,.2f} vs {prior_cac:,.2f}). "
                "Each customer is becoming more expensive to reach."
            ),
            metric=InsightMetric.CUSTOMER_ACQUISITION_COST,
            supporting_values={
                "recent_cac": recent_cac,
                "prior_cac": prior_cac,
                "change_percent": change * 100,
                "change_absolute": recent_cac - prior_cac,
            },
            severity=InsightSeverity.MEDIUM,
            recommendations=(
                "Optimize targeting to reach more cost-effective customers",
                "Review if cashback rate can be reduced without hurting conversion",
                "Focus on customer retention to maximize lifetime value",
            )
        )]

    def _analyze_divergence(
        self,
        historical_series: Mapping[MetricKind, MetricSeries],
        peers: Sequence[CompetitorSnapshot],
        config: InsightConfig
    ) -> List[Insight]:
        insights = []
        for metric in MetricKind:
            own = historical_series.get(metric)
            if own is None:
                continue
            own_growth = _growth_rate(own.values, config.window)
            peer_growths = [
                g for g in (
                    _growth_rate(peer.history[metric].values, config.window)
                    for peer in peers if metric in peer.history
                )
                if g is not None
            ]
            if own_growth is None or not peer_growths:
                continue

            own_pct = own_growth * 100
            peer_pct = float(np.mean(peer_growths)) * 100
            gap = own_pct - peer_pct
            if abs(gap) <= config.divergence_threshold:
                continue

            ahead = gap > 0
            insights.append(Insight(
                type=InsightType.COMPETITIVE_DIVERGENCE,
                title=f"{metric.label.capitalize()} growth {'outpacing' if ahead else 'lagging'} peers",
                description=(
                    f"Your {metric.label} changed {own_pct:+.1f}% over the last {config.window} days "
                    f"while the {len(peer_growths)} peers averaged {peer_pct:+.1f}%, "
                    f"a gap of {abs(gap):.1f} percentage points."
                ),
                metric=InsightMetric.for_metric(metric),
                supporting_values={
                    "merchant_growth_percent": own_pct,
                    "peer_average_growth_percent": peer_pct,
                    "change_percent": gap,
                    "peer_count": float(len(peer_growths)),
                },
                severity=(
                    InsightSeverity.HIGH if abs(gap) > 2 * config.divergence_threshold
                    else InsightSeverity.MEDIUM
                ),
                recommendations=(
                    ("Identify which campaigns explain the lead and scale them",)
                    if ahead else
                    ("Analyze what the fastest-growing peers are doing differently",
                     "Consider increasing cashback rate or promotional frequency")
                )
            ))
        return insights

    def _analyze_market_position(
        self,
        current: MerchantSnapshot,
        competitors: Sequence[CompetitorSnapshot]
    ) -> List[Insight]:
        you = next((c for c in competitors if c.is_you), None)
        if you is None or you.rank is None or len(competitors) < 2:
            return []

        rank, total = you.rank, len(competitors)
        evidence = {"rank": float(rank), "total_merchants": float(total)}

        if rank <= 3:
            evidence["change_percent"] = (1 - rank / total) * 100
            return [Insight(
                type=InsightType.MARKET_POSITION,
                title=f"You're #{rank} in the market",
                description=(
                    f"Strong market position, ranked {rank} of {total} merchants. Maintaining "
                    f"this position requires continued innovation and customer focus."
                ),
                metric=InsightMetric.MARKET_RANK,
                supporting_values=evidence,
                severity=InsightSeverity.HIGH,
                recommendations=(
                    "Invest in customer retention programs",
                    "Consider exclusive partnerships or unique offerings",
                )
            )]

        if rank > total * 0.7:
            ranked = sorted((c for c in competitors if c.rank is not None), key=lambda c: c.rank)
            median_peer = ranked[len(ranked) // 2]
            evidence["transactions_gap_to_median"] = median_peer.transactions - current.transactions
            evidence["change_percent"] = (rank / total) * 100
            return [Insight(
                type=InsightType.MARKET_POSITION,
                title=f"Market position needs improvement (#{rank} of {total})",
                description=(
                    f"Currently in the bottom {round((1 - (rank - 1) / total) * 100)}% of the market. "
                    f"The median merchant records {evidence['transactions_gap_to_median']:,.0f} "
                    f"more transactions."
                ),
                metric=InsightMetric.MARKET_RANK,
                supporting_values=evidence,
                severity=InsightSeverity.HIGH,
                recommendations=(
                    "Analyze what top 3 competitors are doing differently",
                    "Focus on customer acquisition in underserved segments",
                )
            )]
        return []

    def _analyze_cashback_rate(
        self,
        current: MerchantSnapshot,
        peers: Sequence[CompetitorSnapshot],
        config: InsightConfig
    ) -> List[Insight]:
        if not peers:
            return []
        peer_avg = float(np.mean([p.cashback_percent for p in peers]))
        diff = current.cashback_percent - peer_avg
        if abs(diff) <= config.cashback_gap_points or peer_avg == 0:
            return []

        above = diff > 0
        return [Insight(
            type=InsightType.CASHBACK_POSITIONING,
            title=(
                f"Your cashback rate is {diff:.1f} points above market average" if above
                else "Room to increase cashback rate"
            ),
            description=(
                f"At {current.cashback_percent:.1f}% vs {peer_avg:.1f}% average, "
                + ("you're using aggressive pricing. This can drive acquisition but impacts profitability."
                   if above else "a strategic increase could boost customer acquisition.")
            ),
            metric=InsightMetric.CASHBACK_RATE,
            supporting_values={
                "cashback_percent": current.cashback_percent,
                "peer_average_cashback_percent": peer_avg,
                "change_percent": diff / peer_avg * 100,
                "difference_points": diff,
            },
            severity=InsightSeverity.MEDIUM,
            recommendations=(
                ("Test if reducing by 0.5-1% significantly impacts conversion",
                 "Consider tiered cashback (higher for loyal customers)")
                if above else
                ("Test 0.5% increase and measure impact on transactions",
                 "Calculate break-even point for cashback increase")
            )
        )]

    def _analyze_efficiency(
        self,
        current: MerchantSnapshot,
        config: InsightConfig
    ) -> List[Insight]:
        insights = []
        if current.cashback_paid <= 0 or current.revenue <= 0:
            return insights

        roi = (current.revenue - current.cashback_paid) / current.cashback_paid
        roi_evidence = {
            "roi": roi,
            "target_roi": config.target_roi,
            "change_percent": (roi - config.target_roi) / config.target_roi * 100,
        }
        if roi < config.low_roi:
            insights.append(Insight(
                type=InsightType.CAMPAIGN_EFFICIENCY,
                title="Campaign ROI below healthy threshold",
                description=(
                    f"Current ROI of {roi:.2f}x means you're earning {roi:.2f} for every 1 spent "
                    f"on cashback. Industry leaders achieve 3-4x ROI."
                ),
                metric=InsightMetric.ROI,
                supporting_values=roi_evidence,
                severity=InsightSeverity.HIGH,
                recommendations=(
                    "Reduce cashback rate by 1% and monitor impact",
                    "Target promotions to high-value customer segments",
                )
            ))
        elif roi > config.high_roi:
            insights.append(Insight(
                type=InsightType.CAMPAIGN_EFFICIENCY,
                title="Excellent ROI - room to invest in growth",
                description=(
                    f"Your {roi:.2f}x ROI is industry-leading. You can afford to increase "
                    f"marketing spend or cashback rate to accelerate growth."
                ),
                metric=InsightMetric.ROI,
                supporting_values=roi_evidence,
                severity=InsightSeverity.MEDIUM,
                recommendations=(
                    "Test 1% cashback increase to drive more transactions",
                    "Invest surplus in customer acquisition campaigns",
                )
            ))

        ratio = current.cashback_paid / current.revenue
        if ratio > config.cashback_ratio_limit:
            insights.append(Insight(
                type=InsightType.CASHBACK_SUSTAINABILITY,
                title=f"Cashback costs consuming {ratio * 100:.0f}% of revenue",
                description=(
                    "High cashback-to-revenue ratio suggests the campaign may not be "
                    "sustainable long-term. Sustainable range: 8-12% of revenue."
                ),
                metric=InsightMetric.CASHBACK_RATIO,
                supporting_values={
                    "cashback_ratio": ratio,
                    "limit": config.cashback_ratio_limit,
                    "change_percent": (ratio - config.cashback_ratio_limit) / config.cashback_ratio_limit * 100,
                },
                severity=InsightSeverity.HIGH,
                recommendations=(
                    "Gradually reduce cashback rate while monitoring churn",
                    "Implement tiered cashback (lower % on higher amounts)",
                )
            ))
        return insights

    def _analyze_customer_gap(
        self,
        current: MerchantSnapshot,
        peers: Sequence[CompetitorSnapshot],
        config: InsightConfig
    ) -> List[Insight]:
        if not peers or current.customers <= 0:
            return []
        leader = max(peers, key=lambda p: p.customers)
        gap = leader.customers - current.customers
        if gap <= current.customers * config.customer_gap_ratio:
            return []

        return [Insight(
            type=InsightType.CUSTOMER_GAP,
            title="Significant untapped customer base",
            description=(
                f"{leader.name} has {gap:,.0f} more customers than you. This represents "
                f"{gap / current.customers * 100:.0f}% growth potential."
            ),
            metric=InsightMetric.CUSTOMERS,
            supporting_values={
                "customers": current.customers,
                "leader_customers": leader.customers,
                "change_absolute": gap,
                "change_percent": gap / current.customers * 100,
            },
            severity=InsightSeverity.HIGH,
            recommendations=(
                "Analyze demographic/geographic differences with top competitor",
                "Test marketing in channels where you're underrepresented",
            )
        )]

    @staticmethod
    def _score(insight: Insight) -> float:
        change = abs(insight.supporting_values.get("change_percent", 0.0))
        return _SEVERITY_WEIGHT[insight.severity] * change
