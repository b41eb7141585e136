"""
Diagnostic Rule Matcher — stage status to catalog guidance.

Returns a bounded, severity-scaled slice of the knowledge base for a stage:
the first ``attention_limit`` entries for an attention stage, the first
``critical_limit`` for a critical one, nothing otherwise. Stages whose
supporting metrics fail (CTR, CPL, ...) also get the entries tied to those
metrics. Entries always come back in catalog order, so identical inputs give
identical output.
"""

from typing import Iterable, Mapping, Optional, Union

import structlog

from funnel_engine.engine.catalog import DIAGNOSTIC_CATALOG, STAGE_LABELS
from funnel_engine.models.enums import Status
from funnel_engine.models.funnel import DiagnosticEntry, StageDiagnostic, StageImpact

logger = structlog.get_logger()


ATTENTION_LIMIT = 3
CRITICAL_LIMIT = 5
FALLBACK_LIMIT = 2


class DiagnosticRuleMatcher:
    """
    Looks up diagnostic guidance for a stage.

    Attributes:
        catalog: Mapping of stage id to ordered entries
        attention_limit: Entries returned for attention
        critical_limit: Entries returned for critical
    """

    def __init__(
        self,
        catalog: Optional[Mapping[str, Iterable[DiagnosticEntry]]] = None,
        attention_limit: int = ATTENTION_LIMIT,
        critical_limit: int = CRITICAL_LIMIT,
    ):
        if attention_limit < 0 or critical_limit < 0:
            raise ValueError("Diagnostic limits must be >= 0")
        source = DIAGNOSTIC_CATALOG if catalog is None else catalog
        self.catalog = {stage: tuple(entries) for stage, entries in source.items()}
        self.attention_limit = attention_limit
        self.critical_limit = critical_limit

    @classmethod
    def from_settings(cls) -> "DiagnosticRuleMatcher":
        from funnel_engine.config import get_settings

        settings = get_settings()
        return cls(
            attention_limit=settings.attention_diagnostic_limit,
            critical_limit=settings.critical_diagnostic_limit,
        )

    def match(self, stage_id: str, status: Union[Status, str]) -> list[DiagnosticEntry]:
        """
        Return guidance for a stage in the given status.

        Unknown stage ids and statuses that are not attention/critical yield
        an empty list.
        """
        status = Status(status)
        if status == Status.ATTENTION:
            limit = self.attention_limit
        elif status == Status.CRITICAL:
            limit = self.critical_limit
        else:
            return []

        entries = self.catalog.get(stage_id)
        if entries is None:
            logger.warning("diagnostic_stage_unknown", stage_id=stage_id)
            return []
        return list(entries[:limit])

    def match_failing(
        self,
        stage_id: str,
        failing_metric_keys: Iterable[str],
    ) -> list[DiagnosticEntry]:
        """
        Return the stage entries tied to specific failing metrics.

        When no failing metric is given the first entries of the stage are
        returned as common causes.
        """
        entries = self.catalog.get(stage_id, ())
        failing = set(failing_metric_keys)
        if not failing:
            return list(entries[:FALLBACK_LIMIT])
        return [e for e in entries if e.metric_key in failing]

    def diagnose_stages(
        self,
        impacts: Iterable[StageImpact],
        failing_metrics: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> list[StageDiagnostic]:
        """
        Match every stage that needs guidance, keeping funnel order.

        Ineligible stages are skipped. A stage's entries are its status
        match plus the entries tied to its failing supporting metrics,
        deduplicated and ordered by priority. Failing metrics of a stage
        that is not in ``impacts`` (e.g. e-commerce traffic) produce a
        critical diagnostic ahead of the funnel stages.
        """
        failing = {stage: tuple(keys) for stage, keys in (failing_metrics or {}).items() if keys}
        impacts = [impact for impact in impacts if impact.eligible]
        covered = {impact.stage_id for impact in impacts}

        diagnostics = []
        for stage_id, keys in failing.items():
            if stage_id in covered:
                continue
            entries = self.match_failing(stage_id, keys)
            if entries:
                diagnostics.append(StageDiagnostic(
                    stage_id=stage_id,
                    label=STAGE_LABELS.get(stage_id, stage_id),
                    status=Status.CRITICAL,
                    entries=tuple(entries),
                    failing_metrics=keys,
                ))

        for impact in impacts:
            keys = failing.get(impact.stage_id, ())
            entries = self.match(impact.stage_id, impact.status)
            if keys:
                entries = _merge(entries, self.match_failing(impact.stage_id, keys))
            if entries:
                diagnostics.append(StageDiagnostic(
                    stage_id=impact.stage_id,
                    label=impact.label,
                    status=impact.status,
                    entries=tuple(entries),
                    failing_metrics=keys,
                ))
        return diagnostics


def _merge(*groups: Iterable[DiagnosticEntry]) -> list[DiagnosticEntry]:
    seen = {}
    for group in groups:
        for entry in group:
            seen.setdefault((entry.priority, entry.situation), entry)
    return sorted(seen.values(), key=lambda e: e.priority)


_default = DiagnosticRuleMatcher()


def match(stage_id: str, status: Union[Status, str]) -> list[DiagnosticEntry]:
    """Match against the built-in catalog with the default limits."""
    return _default.match(stage_id, status)
