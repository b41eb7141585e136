"""
Funnel Diagnostic Service — one diagnostic run over a metric snapshot.

Pipeline:
    MetricSnapshot -> MetricDerivation -> StageImpactCalculator
        -> SupportingMetricEvaluator -> DiagnosticRuleMatcher
        -> confidence_score -> InsightSummarizer -> FunnelDiagnosis
"""

from typing import Mapping, Optional, Union

import structlog

from funnel_engine.engine.confidence import confidence_score
from funnel_engine.engine.derivation import MetricDerivation
from funnel_engine.engine.diagnostics import DiagnosticRuleMatcher
from funnel_engine.engine.impact import StageImpactCalculator, confidence_level
from funnel_engine.engine.insights import InsightSummarizer
from funnel_engine.engine.metrics import SupportingMetricEvaluator, failing_by_stage
from funnel_engine.models.enums import FunnelType
from funnel_engine.models.funnel import FunnelDiagnosis
from funnel_engine.models.snapshot import MetricSnapshot
from funnel_engine.models.targets import Target, default_targets

logger = structlog.get_logger()


class FunnelDiagnosticService:
    """
    Runs the full funnel diagnostic for a snapshot.

    Components are injectable; by default each one is built from settings,
    with the stage calculator chosen per funnel type so each funnel keeps
    its own minimum sample.
    """

    def __init__(
        self,
        derivation: Optional[MetricDerivation] = None,
        matcher: Optional[DiagnosticRuleMatcher] = None,
        summarizer: Optional[InsightSummarizer] = None,
        calculators: Optional[Mapping[FunnelType, StageImpactCalculator]] = None,
        evaluator: Optional[SupportingMetricEvaluator] = None,
    ):
        self.derivation = derivation or MetricDerivation()
        self.evaluator = evaluator or SupportingMetricEvaluator.from_settings()
        self.matcher = matcher or DiagnosticRuleMatcher.from_settings()
        self.summarizer = summarizer or InsightSummarizer()
        self._calculators = dict(calculators or {})

    def calculator(self, funnel: FunnelType) -> StageImpactCalculator:
        """Stage calculator for a funnel type, built lazily from settings."""
        if funnel not in self._calculators:
            self._calculators[funnel] = StageImpactCalculator.for_funnel(funnel)
        return self._calculators[funnel]

    def diagnose(
        self,
        snapshot: MetricSnapshot,
        targets: Optional[Mapping[str, Target]] = None,
        funnel: Union[FunnelType, str] = FunnelType.INSIDE_SALES,
    ) -> FunnelDiagnosis:
        """
        Diagnose a funnel snapshot against its targets.

        Args:
            snapshot: Raw counters for the period
            targets: Stage targets by stage id (default: built-in benchmarks)
            funnel: Funnel type name

        Returns:
            FunnelDiagnosis with stages in funnel order, supporting metric
            statuses and the confidence score

        Raises:
            ValueError: If the funnel type is unknown or a stage has no target
        """
        funnel = FunnelType(funnel)
        if targets is None:
            targets = default_targets(funnel)

        derived = self.derivation.derive(snapshot)
        stages = self.calculator(funnel).compute_all(snapshot, derived, targets, funnel)
        metric_statuses = self.evaluator.evaluate(snapshot, derived, targets, funnel)
        failing = failing_by_stage(metric_statuses)
        diagnostics = self.matcher.diagnose_stages(stages, failing)
        bottleneck = next((s.stage_id for s in stages if s.is_primary_bottleneck), None)
        confidence = confidence_level(snapshot, funnel)
        score = confidence_score(snapshot, funnel, derived)
        summary = self.summarizer.summarize_funnel(stages, derived)

        logger.info(
            "funnel_diagnosed",
            funnel=funnel.value,
            period=snapshot.period_label,
            bottleneck=bottleneck,
            confidence=confidence.value,
            confidence_score=score.score,
            failing_metrics=sum(len(keys) for keys in failing.values()),
            diagnosed_stages=len(diagnostics),
        )

        return FunnelDiagnosis(
            funnel=funnel.value,
            derived=derived,
            stages=tuple(stages),
            metric_statuses=tuple(metric_statuses),
            diagnostics=tuple(diagnostics),
            primary_bottleneck=bottleneck,
            confidence=confidence,
            confidence_score=score,
            summary=tuple(summary),
        )


def diagnose(
    snapshot: MetricSnapshot,
    targets: Optional[Mapping[str, Target]] = None,
    funnel: Union[FunnelType, str] = FunnelType.INSIDE_SALES,
) -> FunnelDiagnosis:
    """Run a diagnostic with a settings-configured service."""
    return FunnelDiagnosticService().diagnose(snapshot, targets, funnel)
