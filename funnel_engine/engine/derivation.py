"""
Metric Derivation — raw counters to rates and ratios.

Turns a MetricSnapshot into DerivedMetrics: media efficiency (CTR, CPC, CPM,
CPL, CAC), funnel conversion rates for the inside-sales and e-commerce
funnels, and money ratios (ROAS, revenue per contract, margin %).

Every ratio is null-safe: a zero denominator or a missing operand yields
None, never 0, NaN or infinity.
"""

from typing import Iterable, Optional

import structlog

from funnel_engine.models.snapshot import ChannelBreakdown, DerivedMetrics, MetricSnapshot

logger = structlog.get_logger()


def safe_div(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Divide, returning None when either operand is undefined or the denominator is 0."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator


def safe_pct(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Like :func:`safe_div` but expressed in percent."""
    ratio = safe_div(numerator, denominator)
    return ratio * 100 if ratio is not None else None


def sum_defined(values: Iterable[Optional[float]]) -> Optional[float]:
    """Sum the defined values; None when none are defined."""
    defined = [v for v in values if v is not None]
    if not defined:
        return None
    return float(sum(defined))


def channel_clicks(channel: ChannelBreakdown) -> Optional[float]:
    """Reported clicks, or clicks estimated as investment / CPC."""
    if channel.clicks is not None:
        return channel.clicks
    return safe_div(channel.investment, channel.cpc)


class MetricDerivation:
    """
    Computes DerivedMetrics from a MetricSnapshot.

    Stateless; one instance can be shared freely. When the snapshot carries
    per-channel breakdowns and no top-level media counters, the channel
    aggregates stand in for the missing counters.

    Example:
        >>> derived = MetricDerivation().derive(MetricSnapshot(leads=100, mql=15))
        >>> derived["lead_to_mql"]
        15.0
    """

    def derive(self, snapshot: MetricSnapshot) -> DerivedMetrics:
        """
        Derive every supported metric from the snapshot.

        Args:
            snapshot: Raw counters for the period

        Returns:
            DerivedMetrics with one entry per supported metric key
        """
        channels = snapshot.channels

        total_investment = sum_defined(c.investment for c in channels)
        total_clicks = sum_defined(channel_clicks(c) for c in channels)
        total_impressions = sum_defined(c.impressions for c in channels)

        investment = snapshot.investment if snapshot.investment is not None else total_investment
        clicks = snapshot.clicks if snapshot.clicks is not None else total_clicks
        impressions = snapshot.impressions if snapshot.impressions is not None else total_impressions

        revenue = snapshot.revenue
        ecommerce_revenue = None
        if snapshot.paid_orders is not None and snapshot.ticket_size is not None:
            ecommerce_revenue = snapshot.paid_orders * snapshot.ticket_size
        if revenue is None:
            revenue = ecommerce_revenue

        margin = None
        if revenue is not None and snapshot.variable_costs is not None:
            margin = revenue - snapshot.variable_costs

        metrics: dict[str, Optional[float]] = {
            # Media
            "total_investment": total_investment,
            "total_clicks": total_clicks,
            "total_impressions": total_impressions,
            "avg_cpc": safe_div(total_investment, total_clicks),
            "ctr": safe_pct(clicks, impressions),
            "cpc": safe_div(investment, clicks),
            "cpm": safe_div(investment, safe_div(impressions, 1000)),
            "cvr_click_lead": safe_pct(snapshot.leads, clicks),
            "cpl": safe_div(investment, snapshot.leads),
            # Inside-sales funnel
            "lead_to_mql": safe_pct(snapshot.mql, snapshot.leads),
            "mql_to_sql": safe_pct(snapshot.sql, snapshot.mql),
            "sql_to_meeting": safe_pct(snapshot.meetings, snapshot.sql),
            "meeting_to_win": safe_pct(snapshot.contracts, snapshot.meetings),
            "sql_to_win": safe_pct(snapshot.contracts, snapshot.sql),
            "lead_to_win": safe_pct(snapshot.contracts, snapshot.leads),
            # E-commerce funnel
            "visitor_to_cart": safe_pct(snapshot.carts, snapshot.visitors),
            "cart_to_purchase": safe_pct(snapshot.purchases, snapshot.carts),
            "purchase_to_payment": safe_pct(snapshot.paid_orders, snapshot.purchases),
            "ecommerce_revenue": ecommerce_revenue,
            # Money
            "cac": safe_div(investment, snapshot.contracts),
            "revenue_per_contract": safe_div(revenue, snapshot.contracts),
            "roas": safe_div(revenue, investment),
            "margin_pct": safe_pct(margin, revenue),
        }

        for channel in channels:
            key = channel.name.lower().replace(" ", "_")
            metrics[f"clicks_{key}"] = channel_clicks(channel)

        derived = DerivedMetrics(metrics=metrics)
        logger.debug(
            "metrics_derived",
            defined=len(derived.defined()),
            undefined=len(derived) - len(derived.defined()),
            channels=len(channels),
        )
        return derived


_default = MetricDerivation()


def derive(snapshot: MetricSnapshot) -> DerivedMetrics:
    """Module-level shortcut for ``MetricDerivation().derive``."""
    return _default.derive(snapshot)
