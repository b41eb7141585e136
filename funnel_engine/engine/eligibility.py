"""
Eligibility — whether the volume behind a value is large enough to judge it.

Funnel stages are gated on their denominator, with one minimum per stage:

    lead_to_mql       leads     >= 30
    mql_to_sql        mql       >= 20
    sql_to_meeting    sql       >= 10
    meeting_to_win    meetings  >= 10
    e-commerce        30 for every stage

Supporting metrics are gated on every counter behind them: CTR needs 1000
impressions and 30 clicks, CPC 30 clicks, CPL 20 leads, and so on. A missing
or zero counter makes the metric no_data; a counter under its minimum makes
it low_sample.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

from funnel_engine.models.enums import Status
from funnel_engine.models.snapshot import DerivedMetrics, MetricSnapshot

STAGE_MIN_SAMPLES: Mapping[str, int] = MappingProxyType({
    "lead_to_mql": 30,
    "mql_to_sql": 20,
    "sql_to_meeting": 10,
    "meeting_to_win": 10,
    "visitor_to_cart": 30,
    "cart_to_purchase": 30,
    "purchase_to_payment": 30,
})

# metric key -> ((counter, minimum), ...)
METRIC_REQUIREMENTS: Mapping[str, tuple[tuple[str, int], ...]] = MappingProxyType({
    "ctr": (("impressions", 1000), ("clicks", 30)),
    "cpc": (("clicks", 30),),
    "cpm": (("impressions", 1000),),
    "cvr_click_lead": (("clicks", 30), ("leads", 20)),
    "cpl": (("leads", 20),),
    "sql_to_win": (("sql", 10),),
})

_COUNTER_LABELS = {
    "impressions": "impressões",
    "clicks": "cliques",
    "leads": "leads",
    "sql": "SQLs",
}

# Media counters fall back to the channel aggregates when not given directly
_CHANNEL_TOTALS = {
    "investment": "total_investment",
    "clicks": "total_clicks",
    "impressions": "total_impressions",
}


class Eligibility(BaseModel):
    """
    Outcome of an eligibility check.

    Attributes:
        eligible: True when the value can be judged
        status: no_data or low_sample when ineligible
        reason: Short explanation, only when ineligible
        current_value: Counter that failed the check
        required_value: Minimum the counter needed
    """

    model_config = ConfigDict(frozen=True)

    eligible: bool
    status: Optional[Status] = None
    reason: Optional[str] = None
    current_value: Optional[float] = None
    required_value: Optional[int] = None


ELIGIBLE = Eligibility(eligible=True)


def effective_counter(
    snapshot: MetricSnapshot,
    name: str,
    derived: Optional[DerivedMetrics] = None,
) -> Optional[float]:
    """Raw counter, or the channel aggregate for media counters left unset."""
    value = snapshot.counter(name)
    if value is None and derived is not None and name in _CHANNEL_TOTALS:
        value = derived.get(_CHANNEL_TOTALS[name])
    return value


def check_metric_eligibility(
    metric_key: str,
    snapshot: MetricSnapshot,
    derived: Optional[DerivedMetrics] = None,
) -> Eligibility:
    """
    Check the counters behind a supporting metric.

    Metrics without requirements are always eligible.
    """
    for counter, minimum in METRIC_REQUIREMENTS.get(metric_key, ()):
        value = effective_counter(snapshot, counter, derived)
        label = _COUNTER_LABELS.get(counter, counter)
        if not value:
            return Eligibility(
                eligible=False,
                status=Status.NO_DATA,
                reason=f"Sem dados: {label} ausentes",
            )
        if value < minimum:
            return Eligibility(
                eligible=False,
                status=Status.LOW_SAMPLE,
                reason=f"Amostra insuficiente: {label} {value:.0f} < {minimum}",
                current_value=value,
                required_value=minimum,
            )
    return ELIGIBLE
