"""
Pydantic v2 data models for the funnel diagnostics and projection engines.

Model Organization:
    - enums: Enumeration types for statuses, directions and model selectors
    - snapshot: Raw counters (MetricSnapshot) and DerivedMetrics
    - targets: Target thresholds and default benchmark tables
    - benchmarks: Segment and channel benchmark profiles, benchmark gap
    - funnel: Stage impacts, metric statuses, confidence score, diagnostic
      entries and funnel diagnosis results
    - projection: Projection inputs, monthly P&L rows and alerts

Input and output records are frozen. Targets are editable and validated on
assignment.

Usage:
    >>> from funnel_engine.models import MetricSnapshot
    >>> snapshot = MetricSnapshot(leads=120, mql=18, sql=6, contracts=2)
"""

from .benchmarks import BenchmarkGap, BenchmarkProfile, benchmark_gap, benchmark_profile
from .enums import (
    AlertKind,
    AlertSeverity,
    BenchmarkPosition,
    ConfidenceLevel,
    CostScaling,
    Direction,
    FunnelType,
    GrowthModel,
    PenaltyCategory,
    Status,
)
from .funnel import (
    ConfidencePenalty,
    ConfidenceScore,
    DiagnosticEntry,
    FunnelDiagnosis,
    ImpactEstimate,
    MetricEvaluation,
    StageDiagnostic,
    StageImpact,
)
from .projection import (
    MonthProjection,
    ProjectionAlert,
    ProjectionInputs,
    ProjectionResult,
)
from .snapshot import ChannelBreakdown, DerivedMetrics, MetricSnapshot
from .targets import ECOMMERCE_TARGETS, INSIDE_SALES_TARGETS, Target, default_targets

__all__ = [
    # Enums
    "AlertKind",
    "AlertSeverity",
    "BenchmarkPosition",
    "ConfidenceLevel",
    "CostScaling",
    "Direction",
    "FunnelType",
    "GrowthModel",
    "PenaltyCategory",
    "Status",
    # Snapshot
    "ChannelBreakdown",
    "DerivedMetrics",
    "MetricSnapshot",
    # Targets
    "Target",
    "default_targets",
    "INSIDE_SALES_TARGETS",
    "ECOMMERCE_TARGETS",
    # Benchmarks
    "BenchmarkGap",
    "BenchmarkProfile",
    "benchmark_gap",
    "benchmark_profile",
    # Funnel
    "ConfidencePenalty",
    "ConfidenceScore",
    "DiagnosticEntry",
    "FunnelDiagnosis",
    "ImpactEstimate",
    "MetricEvaluation",
    "StageDiagnostic",
    "StageImpact",
    # Projection
    "MonthProjection",
    "ProjectionAlert",
    "ProjectionInputs",
    "ProjectionResult",
]
