"""
Confidence Score — 0-100 trust rating for a funnel reading.

Starts at 100 and subtracts penalties in three categories:

    amostra       small stage volumes (two bands per counter)
    completude    missing investment or media data
    consistencia  a stage larger than the one before it

    score < 50  -> baixa
    score < 80  -> media
    otherwise   -> alta

The two largest penalties are surfaced as the main reasons.
"""

from typing import NamedTuple, Optional, Union

import structlog

from funnel_engine.engine.eligibility import effective_counter
from funnel_engine.models.enums import ConfidenceLevel, FunnelType, PenaltyCategory
from funnel_engine.models.funnel import ConfidencePenalty, ConfidenceScore
from funnel_engine.models.snapshot import DerivedMetrics, MetricSnapshot

logger = structlog.get_logger()


LOW_CONFIDENCE_SCORE = 50
HIGH_CONFIDENCE_SCORE = 80
TOP_PENALTIES = 2

INCOMPLETE_PENALTY = 10
INCONSISTENT_PENALTY = 30


class SampleBand(NamedTuple):
    counter: str
    noun: str
    small: int
    small_penalty: int
    moderate: int
    moderate_penalty: int
    missing: str
    previous: Optional[str] = None


INSIDE_SALES_BANDS = (
    SampleBand("leads", "leads", 20, 35, 50, 20, "Leads não informados"),
    SampleBand("mql", "MQL", 10, 25, 20, 15, "MQLs não informados", "leads"),
    SampleBand("sql", "SQL", 5, 25, 10, 15, "SQLs não informados", "mql"),
    SampleBand("meetings", "reuniões", 5, 35, 10, 20, "Reuniões não informadas", "sql"),
)

ECOMMERCE_BANDS = (
    SampleBand("visitors", "visitantes", 100, 35, 300, 20, "Visitantes não informados"),
    SampleBand("carts", "carrinhos", 10, 25, 30, 15, "Carrinhos não informados", "visitors"),
    SampleBand("purchases", "compras", 10, 25, 30, 15, "Compras não informadas", "carts"),
    SampleBand("paid_orders", "pedidos pagos", 5, 35, 10, 20, "Pedidos pagos não informados", "purchases"),
)

# (larger counter, smaller counter, message): larger must not exceed smaller
INSIDE_SALES_ORDER = (
    ("mql", "leads", "Dados inconsistentes: MQL > Leads"),
    ("sql", "mql", "Dados inconsistentes: SQL > MQL"),
    ("meetings", "sql", "Dados inconsistentes: Reuniões > SQL"),
    ("contracts", "meetings", "Dados inconsistentes: Contratos > Reuniões"),
)

ECOMMERCE_ORDER = (
    ("carts", "visitors", "Dados inconsistentes: Carrinhos > Visitantes"),
    ("purchases", "carts", "Dados inconsistentes: Compras > Carrinhos"),
    ("paid_orders", "purchases", "Dados inconsistentes: Pedidos pagos > Compras"),
)

_BANDS = {FunnelType.INSIDE_SALES: INSIDE_SALES_BANDS, FunnelType.ECOMMERCE: ECOMMERCE_BANDS}
_ORDER = {FunnelType.INSIDE_SALES: INSIDE_SALES_ORDER, FunnelType.ECOMMERCE: ECOMMERCE_ORDER}


def _sample_penalty(band: SampleBand, snapshot: MetricSnapshot) -> Optional[ConfidencePenalty]:
    value = snapshot.counter(band.counter) or 0
    previous = (snapshot.counter(band.previous) or 0) if band.previous else None
    if value == 0 and (previous is None or previous > 0):
        return ConfidencePenalty(
            reason=band.missing,
            penalty=band.small_penalty,
            category=PenaltyCategory.SAMPLE,
        )
    if value < band.small:
        return ConfidencePenalty(
            reason=f"Amostra de {band.noun} pequena ({value:g} < {band.small})",
            penalty=band.small_penalty,
            category=PenaltyCategory.SAMPLE,
        )
    if value < band.moderate:
        return ConfidencePenalty(
            reason=f"Amostra de {band.noun} moderada ({value:g} < {band.moderate})",
            penalty=band.moderate_penalty,
            category=PenaltyCategory.SAMPLE,
        )
    return None


def confidence_score(
    snapshot: MetricSnapshot,
    funnel: Union[FunnelType, str] = FunnelType.INSIDE_SALES,
    derived: Optional[DerivedMetrics] = None,
) -> ConfidenceScore:
    """
    Score how much a funnel reading can be trusted.

    Args:
        snapshot: Raw counters for the period
        funnel: Funnel type, selects the sample bands and stage order
        derived: Derived metrics; channel totals stand in for missing
            investment, clicks and impressions

    Returns:
        ConfidenceScore with every penalty and the two largest ones
    """
    funnel = FunnelType(funnel)
    penalties = []

    for band in _BANDS[funnel]:
        penalty = _sample_penalty(band, snapshot)
        if penalty is not None:
            penalties.append(penalty)

    if not effective_counter(snapshot, "investment", derived):
        penalties.append(ConfidencePenalty(
            reason="Investimento não informado",
            penalty=INCOMPLETE_PENALTY,
            category=PenaltyCategory.COMPLETENESS,
        ))
    elif not (
        effective_counter(snapshot, "clicks", derived)
        and effective_counter(snapshot, "impressions", derived)
    ):
        penalties.append(ConfidencePenalty(
            reason="Dados de mídia incompletos (cliques/impressões)",
            penalty=INCOMPLETE_PENALTY,
            category=PenaltyCategory.COMPLETENESS,
        ))

    for larger, smaller, message in _ORDER[funnel]:
        a = snapshot.counter(larger) or 0
        b = snapshot.counter(smaller) or 0
        if b > 0 and a > b:
            penalties.append(ConfidencePenalty(
                reason=message,
                penalty=INCONSISTENT_PENALTY,
                category=PenaltyCategory.CONSISTENCY,
            ))

    score = max(0, min(100, 100 - sum(p.penalty for p in penalties)))
    if score < LOW_CONFIDENCE_SCORE:
        level, label = ConfidenceLevel.LOW, "Baixa confiança"
    elif score < HIGH_CONFIDENCE_SCORE:
        level, label = ConfidenceLevel.MEDIUM, "Confiança média"
    else:
        level, label = ConfidenceLevel.HIGH, "Alta confiança"

    top = sorted(penalties, key=lambda p: p.penalty, reverse=True)[:TOP_PENALTIES]
    result = ConfidenceScore(
        score=score,
        level=level,
        label=label,
        penalties=tuple(penalties),
        top_penalties=tuple(top),
        has_inconsistency=any(p.category == PenaltyCategory.CONSISTENCY for p in penalties),
    )
    logger.debug(
        "confidence_scored",
        funnel=funnel.value,
        score=score,
        penalties=len(penalties),
    )
    return result
