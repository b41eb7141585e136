"""
Supporting Metric Evaluator — media and cost metrics around the funnel stages.

Stage rates are judged by StageImpactCalculator. Every other metric in the
target set (CTR, CPC, CPM, CVR clique → lead, CPL, SQL → contrato) is judged
here: gated by its volume requirements, classified against its target, and
attached to the stage whose diagnostics it explains.

Only eligible critical metrics count as failing.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

import structlog

from funnel_engine.engine.classifier import StatusClassifier
from funnel_engine.engine.eligibility import check_metric_eligibility
from funnel_engine.engine.impact import FUNNEL_STAGES
from funnel_engine.models.enums import FunnelType, Status
from funnel_engine.models.funnel import MetricEvaluation
from funnel_engine.models.snapshot import DerivedMetrics, MetricSnapshot
from funnel_engine.models.targets import Target

logger = structlog.get_logger()


# metric key -> stage whose catalog entries explain it
METRIC_STAGES: Mapping[FunnelType, Mapping[str, str]] = MappingProxyType({
    FunnelType.INSIDE_SALES: MappingProxyType({
        "ctr": "lead_to_mql",
        "cpc": "lead_to_mql",
        "cpm": "lead_to_mql",
        "cvr_click_lead": "lead_to_mql",
        "cpl": "lead_to_mql",
        "sql_to_win": "meeting_to_win",
    }),
    FunnelType.ECOMMERCE: MappingProxyType({
        "ctr": "traffic",
        "cpc": "traffic",
    }),
})


class SupportingMetricEvaluator:
    """
    Classifies the non-stage metrics of a target set.

    Attributes:
        classifier: StatusClassifier used for eligible metrics
    """

    def __init__(self, classifier: Optional[StatusClassifier] = None):
        self.classifier = classifier or StatusClassifier()

    @classmethod
    def from_settings(cls) -> "SupportingMetricEvaluator":
        return cls(classifier=StatusClassifier.from_settings())

    def evaluate(
        self,
        snapshot: MetricSnapshot,
        derived: DerivedMetrics,
        targets: Mapping[str, Target],
        funnel: Union[FunnelType, str] = FunnelType.INSIDE_SALES,
    ) -> list[MetricEvaluation]:
        """
        Evaluate every target that is not a stage of the funnel.

        Args:
            snapshot: Raw counters, used for the volume requirements
            derived: Derived metrics holding the values
            targets: Target set; stage targets are skipped
            funnel: Funnel type

        Returns:
            One MetricEvaluation per supporting target, in target order
        """
        funnel = FunnelType(funnel)
        stage_ids = {stage.stage_id for stage in FUNNEL_STAGES[funnel]}
        stage_map = METRIC_STAGES[funnel]
        keys = [key for key in targets if key not in stage_ids]

        checks = {key: check_metric_eligibility(key, snapshot, derived) for key in keys}
        eligible = [key for key in keys if checks[key].eligible]
        statuses = self.classifier.classify_many(
            {key: derived.get(key) for key in eligible},
            {key: targets[key] for key in eligible},
        )

        evaluations = []
        for key in keys:
            target = targets[key]
            check = checks[key]
            status = statuses.get(key, check.status)
            reason = check.reason
            if check.eligible and status == Status.NO_DATA:
                reason = "Sem dados: métrica indefinida"
            evaluations.append(MetricEvaluation(
                metric_key=key,
                label=target.label,
                stage_id=stage_map.get(key),
                value=derived.get(key),
                target=target.value,
                direction=target.direction,
                status=status,
                eligible=check.eligible and status != Status.NO_DATA,
                eligibility_reason=reason,
            ))

        logger.debug(
            "supporting_metrics_evaluated",
            funnel=funnel.value,
            total=len(evaluations),
            failing=sum(1 for e in evaluations if e.is_failing),
        )
        return evaluations


def failing_by_stage(evaluations: Iterable[MetricEvaluation]) -> dict[str, tuple[str, ...]]:
    """Failing metric keys grouped by the stage they belong to, in input order."""
    grouped: dict[str, list[str]] = {}
    for evaluation in evaluations:
        if evaluation.is_failing and evaluation.stage_id:
            grouped.setdefault(evaluation.stage_id, []).append(evaluation.metric_key)
    return {stage_id: tuple(keys) for stage_id, keys in grouped.items()}
