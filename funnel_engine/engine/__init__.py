"""
Funnel diagnostics and financial projection engine components.

This package contains the analytical engines of the funnel toolkit:

- Metric derivation: raw counters → null-safe rates and ratios
- Status classification: value vs. target → ok / attention / critical
- Eligibility: per-stage and per-metric minimum volumes
- Stage impact: per-transition gap, eligibility, volume impact, bottleneck
- Supporting metrics: media and cost metrics classified against targets
- Diagnostic matching: stage status and failing metrics → catalog guidance
- Confidence score: 0-100 trust rating from sample, completeness, consistency
- Financial projection: month-by-month P&L under compounding growth
- Insight summary: deterministic summary lines for both views
- Export: pt-BR formatting and delimited-text rendering

All engine components are designed for:
- Determinism (same inputs, same outputs, no I/O)
- Comprehensive observability (structured logging)
- Type safety (complete Pydantic validation)
- Testability (plain classes with injectable collaborators)
"""

__all__ = [
    "MetricDerivation",
    "StatusClassifier",
    "StageImpactCalculator",
    "SupportingMetricEvaluator",
    "DiagnosticRuleMatcher",
    "FinancialProjectionEngine",
    "InsightSummarizer",
    "FunnelDiagnosticService",
    "confidence_score",
]

from funnel_engine.engine.classifier import StatusClassifier
from funnel_engine.engine.confidence import confidence_score
from funnel_engine.engine.derivation import MetricDerivation
from funnel_engine.engine.diagnostics import DiagnosticRuleMatcher
from funnel_engine.engine.funnel import FunnelDiagnosticService
from funnel_engine.engine.impact import StageImpactCalculator
from funnel_engine.engine.insights import InsightSummarizer
from funnel_engine.engine.metrics import SupportingMetricEvaluator
from funnel_engine.engine.projection import FinancialProjectionEngine
