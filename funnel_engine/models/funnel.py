"""
Funnel diagnostic models.

This module defines the per-stage impact record produced by the stage impact
calculator, the diagnostic catalog entry, and the aggregate result returned by
the funnel diagnostic service.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ConfidenceLevel, Direction, PenaltyCategory, Status
from .snapshot import DerivedMetrics


class ImpactEstimate(BaseModel):
    """
    Volume gained at the stage output if the stage hit its target rate.

    Attributes:
        extra_output: Additional units at the stage output (rounded)
        new_output: Stage output volume at the target rate (rounded)
        description: Short human string, e.g. "+4 contratos/mês"
        extra_contracts: Extra contracts after propagating down the funnel
    """

    model_config = ConfigDict(frozen=True)

    extra_output: int = Field(description="Additional output units at target rate")
    new_output: int = Field(description="Output volume at target rate")
    description: str = Field(description="Short human-readable impact")
    extra_contracts: Optional[int] = Field(
        default=None, description="Extra final conversions after downstream propagation"
    )


class StageImpact(BaseModel):
    """
    Diagnosis of one funnel transition against its target.

    Attributes:
        stage_id: Funnel transition identifier (e.g. "lead_to_mql")
        label: Display label for the transition
        current_rate: Current conversion rate in percent, None when undefined
        target_rate: Target conversion rate in percent
        gap_pp: current_rate - target_rate in percentage points
        status: Stage status
        eligible: Whether the stage volume is large enough to diagnose
        eligibility_reason: Why the stage is ineligible (only when ineligible)
        numerator: Stage output volume
        denominator: Stage input volume
        impact: Estimated gain from hitting the target
        is_primary_bottleneck: Set on the single worst eligible critical stage
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    label: str = ""
    current_rate: Optional[float] = None
    target_rate: float
    gap_pp: Optional[float] = None
    status: Status
    eligible: bool
    eligibility_reason: Optional[str] = None
    numerator: Optional[float] = None
    denominator: Optional[float] = None
    impact: Optional[ImpactEstimate] = None
    is_primary_bottleneck: bool = False

    @model_validator(mode="after")
    def validate_consistency(self) -> "StageImpact":
        """Keep gap, eligibility and impact consistent with each other."""
        if self.current_rate is None and self.gap_pp is not None:
            raise ValueError("gap_pp must be None when current_rate is undefined")
        if self.eligible and self.eligibility_reason is not None:
            raise ValueError("eligibility_reason is only set for ineligible stages")
        if not self.eligible and self.impact is not None:
            raise ValueError("impact is never estimated for ineligible stages")
        return self


class DiagnosticEntry(BaseModel):
    """
    One read-only knowledge-base item for a funnel stage.

    Attributes:
        stage_id: Stage the entry applies to
        situation: Short statement of what is going wrong
        metric_label: Metric symptom that explains the likely cause
        action: Recommended action
        metric_key: Metric the entry is tied to, when it has one
        priority: Position in the catalog (lower comes first)
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    situation: str
    metric_label: str
    action: str
    metric_key: Optional[str] = None
    priority: int = 0


class StageDiagnostic(BaseModel):
    """Diagnostic entries matched for a single stage and its failing metrics."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    label: str = ""
    status: Status
    entries: tuple[DiagnosticEntry, ...] = ()
    failing_metrics: tuple[str, ...] = ()


class MetricEvaluation(BaseModel):
    """
    Classification of one supporting metric (media, cost or shortcut rate).

    Attributes:
        metric_key: Derived-metric key, e.g. "cpl"
        label: Display label from the target
        stage_id: Catalog stage the metric explains, when it has one
        value: Current value, None when undefined
        target: Target value
        direction: Target direction
        status: Metric status
        eligible: Whether the inputs behind the value are large enough to judge
        eligibility_reason: Why the metric is ineligible (only when ineligible)
    """

    model_config = ConfigDict(frozen=True)

    metric_key: str
    label: str = ""
    stage_id: Optional[str] = None
    value: Optional[float] = None
    target: float
    direction: Direction = Direction.HIGHER_IS_BETTER
    status: Status
    eligible: bool = True
    eligibility_reason: Optional[str] = None

    @property
    def is_failing(self) -> bool:
        """Critical and judged on enough data."""
        return self.eligible and self.status == Status.CRITICAL


class ConfidencePenalty(BaseModel):
    """One deduction from the confidence score."""

    model_config = ConfigDict(frozen=True)

    reason: str
    penalty: int = Field(ge=0)
    category: PenaltyCategory


class ConfidenceScore(BaseModel):
    """
    Deterministic 0-100 trust score for a funnel reading.

    Attributes:
        score: 100 minus all penalties, clamped to 0..100
        level: Band of the score (baixa < 50 <= media < 80 <= alta)
        label: Display label for the band
        penalties: Every deduction, in evaluation order
        top_penalties: The two largest deductions
        has_inconsistency: True when a later stage outnumbers an earlier one
    """

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    level: ConfidenceLevel
    label: str
    penalties: tuple[ConfidencePenalty, ...] = ()
    top_penalties: tuple[ConfidencePenalty, ...] = ()
    has_inconsistency: bool = False


class FunnelDiagnosis(BaseModel):
    """
    Complete result of a funnel diagnostic run.

    Attributes:
        funnel: Funnel type analysed
        derived: Derived metrics for the snapshot
        stages: Stage impacts in funnel order
        metric_statuses: Supporting metrics classified against their targets
        diagnostics: Matched guidance for attention/critical stages and
            stages with failing supporting metrics
        primary_bottleneck: Stage id of the primary bottleneck, if any
        confidence: Confidence level from the smallest stage volume
        confidence_score: Penalty-based confidence score
        summary: Deterministic summary lines
    """

    model_config = ConfigDict(frozen=True)

    funnel: str
    derived: DerivedMetrics
    stages: tuple[StageImpact, ...]
    metric_statuses: tuple[MetricEvaluation, ...] = ()
    diagnostics: tuple[StageDiagnostic, ...] = ()
    primary_bottleneck: Optional[str] = None
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    confidence_score: Optional[ConfidenceScore] = None
    summary: tuple[str, ...] = ()

    def stage(self, stage_id: str) -> Optional[StageImpact]:
        """Look up a stage impact by id."""
        for s in self.stages:
            if s.stage_id == stage_id:
                return s
        return None

    def metric(self, metric_key: str) -> Optional[MetricEvaluation]:
        """Look up a supporting metric evaluation by key."""
        for m in self.metric_statuses:
            if m.metric_key == metric_key:
                return m
        return None
