"""
Stage Impact Calculator — per-transition gap, eligibility and volume impact.

For each funnel transition (e.g. Lead → MQL) computes the current rate, the
target rate, the gap in percentage points, whether the stage has enough volume
to be diagnosed, and how many extra units the stage would produce per month if
it converted at the target rate.

Status precedence for a stage:
    denominator zero or missing     -> no_data (ineligible)
    rate undefined                  -> no_data (ineligible)
    denominator < stage minimum     -> low_sample (ineligible, rate still reported)
    otherwise                       -> StatusClassifier result

The primary bottleneck is the eligible critical stage with the largest
absolute gap; ties go to the earliest stage in funnel order.
"""

import math
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from funnel_engine.engine.classifier import MIN_SAMPLE, StatusClassifier
from funnel_engine.engine.eligibility import STAGE_MIN_SAMPLES
from funnel_engine.models.enums import ConfidenceLevel, Direction, FunnelType, Status
from funnel_engine.models.funnel import ImpactEstimate, StageImpact
from funnel_engine.models.snapshot import DerivedMetrics, MetricSnapshot
from funnel_engine.models.targets import Target

logger = structlog.get_logger()


# Confidence bands over the smallest stage volume
HIGH_CONFIDENCE_SAMPLE = 50
MEDIUM_CONFIDENCE_SAMPLE = 20


class FunnelStage(BaseModel):
    """Static definition of one funnel transition."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    label: str
    numerator: str
    denominator: str
    output_unit: str


INSIDE_SALES_STAGES: tuple[FunnelStage, ...] = (
    FunnelStage(stage_id="lead_to_mql", label="Lead → MQL",
                numerator="mql", denominator="leads", output_unit="MQLs"),
    FunnelStage(stage_id="mql_to_sql", label="MQL → SQL",
                numerator="sql", denominator="mql", output_unit="SQLs"),
    FunnelStage(stage_id="sql_to_meeting", label="SQL → Reunião",
                numerator="meetings", denominator="sql", output_unit="reuniões"),
    FunnelStage(stage_id="meeting_to_win", label="Reunião → Contrato",
                numerator="contracts", denominator="meetings", output_unit="contratos"),
)

ECOMMERCE_STAGES: tuple[FunnelStage, ...] = (
    FunnelStage(stage_id="visitor_to_cart", label="Visitantes → Carrinho",
                numerator="carts", denominator="visitors", output_unit="carrinhos"),
    FunnelStage(stage_id="cart_to_purchase", label="Carrinho → Compra",
                numerator="purchases", denominator="carts", output_unit="compras"),
    FunnelStage(stage_id="purchase_to_payment", label="Compra → Pagamento",
                numerator="paid_orders", denominator="purchases", output_unit="pedidos pagos"),
)

FUNNEL_STAGES: Mapping[FunnelType, tuple[FunnelStage, ...]] = MappingProxyType({
    FunnelType.INSIDE_SALES: INSIDE_SALES_STAGES,
    FunnelType.ECOMMERCE: ECOMMERCE_STAGES,
})

_STAGE_INDEX: Mapping[str, FunnelStage] = MappingProxyType({
    stage.stage_id: stage
    for stages in FUNNEL_STAGES.values()
    for stage in stages
})


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def stage_definition(stage_id: str) -> Optional[FunnelStage]:
    """Look up a built-in stage by id."""
    return _STAGE_INDEX.get(stage_id)


class StageImpactCalculator:
    """
    Computes StageImpact records for funnel transitions.

    The minimum denominator of a stage resolves, first match wins, from
    ``stage_min_samples``, then the funnel-wide ``min_sample``, then the
    built-in STAGE_MIN_SAMPLES table.

    Attributes:
        classifier: StatusClassifier used for eligible stages
        min_sample: Funnel-wide minimum denominator, None to use the table
        stage_min_samples: Per-stage minimum denominators
    """

    def __init__(
        self,
        classifier: Optional[StatusClassifier] = None,
        min_sample: Optional[int] = None,
        stage_min_samples: Optional[Mapping[str, int]] = None,
    ):
        self.classifier = classifier or StatusClassifier()
        overrides = dict(stage_min_samples or {})
        for value in (min_sample, *overrides.values()):
            if value is not None and value < 1:
                raise ValueError(f"min_sample must be >= 1 (got {value})")
        self.min_sample = min_sample
        self.stage_min_samples = overrides

    def min_sample_for(self, stage_id: str) -> int:
        """Minimum denominator for a stage to be eligible."""
        if stage_id in self.stage_min_samples:
            return self.stage_min_samples[stage_id]
        if self.min_sample is not None:
            return self.min_sample
        return STAGE_MIN_SAMPLES.get(stage_id, MIN_SAMPLE)

    @classmethod
    def for_funnel(cls, funnel: FunnelType) -> "StageImpactCalculator":
        """Build a calculator with the configured thresholds for a funnel type."""
        from funnel_engine.config import get_settings

        settings = get_settings()
        funnel = FunnelType(funnel)
        min_sample = (
            settings.ecommerce_min_sample
            if funnel == FunnelType.ECOMMERCE
            else settings.inside_sales_min_sample
        )
        return cls(
            classifier=StatusClassifier.from_settings(),
            min_sample=min_sample,
            stage_min_samples=settings.stage_min_samples,
        )

    def compute_impact(
        self,
        stage_id: str,
        derived: DerivedMetrics,
        target: Target,
        sample_size: Optional[float],
    ) -> StageImpact:
        """
        Compute the impact record for one stage.

        Args:
            stage_id: Stage identifier, also the derived-metric key of its rate
            derived: Derived metrics for the period
            target: Target for the stage rate (percent)
            sample_size: Stage denominator volume

        Returns:
            StageImpact
        """
        definition = stage_definition(stage_id)
        if definition is None:
            logger.warning("unknown_stage_id", stage_id=stage_id)
        label = definition.label if definition else stage_id
        unit = definition.output_unit if definition else "conversões"

        current = derived.get(stage_id)
        target_rate = target.value
        gap = current - target_rate if current is not None else None
        numerator = (
            current * sample_size / 100
            if current is not None and sample_size is not None
            else None
        )

        def ineligible(status: Status, reason: str) -> StageImpact:
            return StageImpact(
                stage_id=stage_id,
                label=label,
                current_rate=current,
                target_rate=target_rate,
                gap_pp=gap,
                status=status,
                eligible=False,
                eligibility_reason=reason,
                numerator=numerator,
                denominator=sample_size,
            )

        if not sample_size:
            return ineligible(Status.NO_DATA, "Sem dados: etapa sem volume de entrada")
        if current is None:
            return ineligible(Status.NO_DATA, "Sem dados: taxa indefinida")
        min_sample = self.min_sample_for(stage_id)
        if sample_size < min_sample:
            return ineligible(
                Status.LOW_SAMPLE,
                f"Amostra insuficiente: {sample_size:.0f} < {min_sample}",
            )

        status = self.classifier.classify(current, target_rate, target.direction)

        impact = None
        if (
            status != Status.OK
            and target.direction == Direction.HIGHER_IS_BETTER
            and current < target_rate
        ):
            extra_output = round_half_up(sample_size * (target_rate - current) / 100)
            if extra_output > 0:
                impact = ImpactEstimate(
                    extra_output=extra_output,
                    new_output=round_half_up(sample_size * target_rate / 100),
                    description=f"+{extra_output} {unit}/mês",
                )

        return StageImpact(
            stage_id=stage_id,
            label=label,
            current_rate=current,
            target_rate=target_rate,
            gap_pp=gap,
            status=status,
            eligible=True,
            numerator=numerator,
            denominator=sample_size,
            impact=impact,
        )

    def compute_all(
        self,
        snapshot: MetricSnapshot,
        derived: DerivedMetrics,
        targets: Mapping[str, Target],
        funnel: FunnelType = FunnelType.INSIDE_SALES,
    ) -> list[StageImpact]:
        """
        Compute every stage of a funnel in order and mark the primary bottleneck.

        Extra output at a stage is propagated through the remaining stages at
        their current rates (target rate when the current one is undefined)
        to estimate the extra final conversions.

        Raises:
            ValueError: If the funnel type is unknown or a stage has no target
        """
        stages = FUNNEL_STAGES[FunnelType(funnel)]
        missing = [s.stage_id for s in stages if s.stage_id not in targets]
        if missing:
            raise ValueError(f"Missing targets for stages: {', '.join(missing)}")

        impacts = [
            self.compute_impact(
                stage.stage_id,
                derived,
                targets[stage.stage_id],
                snapshot.counter(stage.denominator),
            )
            for stage in stages
        ]

        final_unit = stages[-1].output_unit
        propagated = []
        for index, impact in enumerate(impacts):
            if impact.impact is None:
                propagated.append(impact)
                continue
            extra = float(impact.impact.extra_output)
            for downstream in stages[index + 1:]:
                rate = derived.get(downstream.stage_id)
                if rate is None:
                    rate = targets[downstream.stage_id].value
                extra *= rate / 100
            extra_final = round_half_up(extra)
            description = impact.impact.description
            if index < len(stages) - 1 and extra_final > 0:
                description = f"{description} → +{extra_final} {final_unit}/mês"
            estimate = impact.impact.model_copy(
                update={"extra_contracts": extra_final, "description": description}
            )
            propagated.append(impact.model_copy(update={"impact": estimate}))

        bottleneck = find_primary_bottleneck(propagated)
        if bottleneck is not None:
            propagated = [
                s.model_copy(update={"is_primary_bottleneck": True})
                if s.stage_id == bottleneck.stage_id
                else s
                for s in propagated
            ]

        logger.info(
            "stage_impacts_computed",
            funnel=FunnelType(funnel).value,
            stages=len(propagated),
            critical=sum(1 for s in propagated if s.status == Status.CRITICAL),
            low_sample=sum(1 for s in propagated if s.status == Status.LOW_SAMPLE),
            bottleneck=bottleneck.stage_id if bottleneck else None,
        )
        return propagated


def find_primary_bottleneck(impacts: Sequence[StageImpact]) -> Optional[StageImpact]:
    """
    Pick the eligible critical stage with the largest absolute gap.

    Ties are broken by position in ``impacts`` (earliest wins), so callers
    must pass stages in funnel order.
    """
    best: Optional[StageImpact] = None
    for impact in impacts:
        if not impact.eligible or impact.status != Status.CRITICAL or impact.gap_pp is None:
            continue
        if best is None or abs(impact.gap_pp) > abs(best.gap_pp):
            best = impact
    return best


def confidence_level(
    snapshot: MetricSnapshot,
    funnel: FunnelType = FunnelType.INSIDE_SALES,
) -> ConfidenceLevel:
    """Confidence in a funnel reading from its smallest non-empty stage volume."""
    volumes = [
        snapshot.counter(stage.denominator)
        for stage in FUNNEL_STAGES[FunnelType(funnel)]
    ]
    volumes = [v for v in volumes if v]
    if not volumes:
        return ConfidenceLevel.LOW
    smallest = min(volumes)
    if smallest >= HIGH_CONFIDENCE_SAMPLE:
        return ConfidenceLevel.HIGH
    if smallest >= MEDIUM_CONFIDENCE_SAMPLE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
