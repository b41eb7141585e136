"""Unit tests for the diagnostic rule matcher and its catalog."""

import pytest

from funnel_engine.engine.catalog import DIAGNOSTIC_CATALOG
from funnel_engine.engine.diagnostics import DiagnosticRuleMatcher, match
from funnel_engine.models.enums import Status
from funnel_engine.models.funnel import DiagnosticEntry, StageImpact


def make_stage(stage_id: str, status: Status, eligible: bool = True) -> StageImpact:
    return StageImpact(
        stage_id=stage_id,
        label=stage_id,
        current_rate=5.0,
        target_rate=10.0,
        gap_pp=-5.0,
        status=status,
        eligible=eligible,
        eligibility_reason=None if eligible else "Amostra insuficiente: 5 < 30",
    )


class TestDiagnosticCatalog:
    """Static knowledge base."""

    def test_catalog_covers_every_stage(self):
        assert set(DIAGNOSTIC_CATALOG) == {
            "lead_to_mql",
            "mql_to_sql",
            "sql_to_meeting",
            "meeting_to_win",
            "traffic",
            "visitor_to_cart",
            "cart_to_purchase",
            "purchase_to_payment",
        }

    def test_catalog_entries_belong_to_their_stage(self):
        for stage_id, entries in DIAGNOSTIC_CATALOG.items():
            assert entries
            assert all(e.stage_id == stage_id for e in entries)

    def test_catalog_priorities_increase(self):
        for entries in DIAGNOSTIC_CATALOG.values():
            priorities = [e.priority for e in entries]
            assert priorities == sorted(priorities)

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            DIAGNOSTIC_CATALOG["lead_to_mql"] = ()


class TestDiagnosticRuleMatcherMatch:
    """Severity-scaled lookups."""

    def test_match_attention_returns_first_three(self):
        entries = match("visitor_to_cart", Status.ATTENTION)

        assert entries == list(DIAGNOSTIC_CATALOG["visitor_to_cart"][:3])

    def test_match_critical_returns_first_five(self):
        entries = match("lead_to_mql", Status.CRITICAL)

        assert len(entries) == 5
        assert entries[0].situation == "Anúncios não atraem atenção"

    def test_match_critical_on_short_stage_returns_all(self):
        assert len(match("meeting_to_win", Status.CRITICAL)) == 4

    @pytest.mark.parametrize("status", [Status.OK, Status.NO_DATA, Status.LOW_SAMPLE])
    def test_match_non_actionable_status_is_empty(self, status):
        assert match("lead_to_mql", status) == []

    def test_match_accepts_raw_status_string(self):
        assert len(match("cart_to_purchase", "critical")) == 5

    def test_match_unknown_stage_is_empty(self):
        assert match("stage_that_does_not_exist", Status.CRITICAL) == []

    def test_match_is_deterministic(self):
        assert match("traffic", Status.CRITICAL) == match("traffic", Status.CRITICAL)

    def test_match_custom_limits(self):
        matcher = DiagnosticRuleMatcher(attention_limit=1, critical_limit=2)

        assert len(matcher.match("lead_to_mql", Status.ATTENTION)) == 1
        assert len(matcher.match("lead_to_mql", Status.CRITICAL)) == 2

    def test_match_empty_catalog(self):
        matcher = DiagnosticRuleMatcher(catalog={})

        assert matcher.match("lead_to_mql", Status.CRITICAL) == []

    def test_match_custom_catalog(self):
        entry = DiagnosticEntry(stage_id="custom", situation="s", metric_label="m", action="a")
        matcher = DiagnosticRuleMatcher(catalog={"custom": [entry]})

        assert matcher.match("custom", Status.ATTENTION) == [entry]

    def test_init_negative_limit_raises_error(self):
        with pytest.raises(ValueError, match="limits"):
            DiagnosticRuleMatcher(attention_limit=-1)

    def test_from_settings_reads_environment(self, monkeypatch):
        monkeypatch.setenv("FUNNEL_CRITICAL_DIAGNOSTIC_LIMIT", "2")

        matcher = DiagnosticRuleMatcher.from_settings()

        assert len(matcher.match("lead_to_mql", Status.CRITICAL)) == 2


class TestDiagnosticRuleMatcherMatchFailing:
    """Metric-keyed lookups."""

    def test_match_failing_filters_by_metric(self):
        entries = DiagnosticRuleMatcher().match_failing("lead_to_mql", ["cpl"])

        assert [e.metric_key for e in entries] == ["cpl"]

    def test_match_failing_multiple_metrics_keep_catalog_order(self):
        entries = DiagnosticRuleMatcher().match_failing("traffic", ["cpc", "ctr"])

        assert [e.priority for e in entries] == sorted(e.priority for e in entries)
        assert {e.metric_key for e in entries} == {"ctr", "cpc"}

    def test_match_failing_without_metrics_falls_back_to_first_two(self):
        entries = DiagnosticRuleMatcher().match_failing("mql_to_sql", [])

        assert entries == list(DIAGNOSTIC_CATALOG["mql_to_sql"][:2])


class TestDiagnosticRuleMatcherDiagnoseStages:
    """Batch matching over stage impacts."""

    def test_diagnose_stages_keeps_funnel_order(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages([
            make_stage("visitor_to_cart", Status.ATTENTION),
            make_stage("cart_to_purchase", Status.OK),
            make_stage("purchase_to_payment", Status.CRITICAL),
        ])

        assert [d.stage_id for d in diagnostics] == ["visitor_to_cart", "purchase_to_payment"]
        assert len(diagnostics[0].entries) == 3
        assert len(diagnostics[1].entries) == 5

    def test_diagnose_stages_low_sample_gets_nothing(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages([
            make_stage("lead_to_mql", Status.LOW_SAMPLE, eligible=False),
        ])

        assert diagnostics == []

    def test_diagnose_stages_adds_failing_metric_entries(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages(
            [make_stage("lead_to_mql", Status.OK)],
            {"lead_to_mql": ("ctr", "cpl")},
        )

        assert len(diagnostics) == 1
        assert diagnostics[0].status == Status.OK
        assert diagnostics[0].failing_metrics == ("ctr", "cpl")
        assert [e.metric_key for e in diagnostics[0].entries] == ["ctr", "cpl"]

    def test_diagnose_stages_merges_without_duplicates(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages(
            [make_stage("lead_to_mql", Status.ATTENTION)],
            {"lead_to_mql": ("ctr", "cpl")},
        )
        priorities = [e.priority for e in diagnostics[0].entries]

        assert priorities == [1, 2, 3, 4]

    def test_diagnose_stages_failing_metrics_on_ineligible_stage_ignored(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages(
            [make_stage("lead_to_mql", Status.LOW_SAMPLE, eligible=False)],
            {"lead_to_mql": ("ctr",)},
        )

        assert diagnostics == []

    def test_diagnose_stages_traffic_comes_first(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages(
            [make_stage("visitor_to_cart", Status.ATTENTION)],
            {"traffic": ("cpc",)},
        )

        assert [d.stage_id for d in diagnostics] == ["traffic", "visitor_to_cart"]
        assert diagnostics[0].label == "Tráfego"
        assert diagnostics[0].status == Status.CRITICAL
        assert {e.metric_key for e in diagnostics[0].entries} == {"cpc"}

    def test_diagnose_stages_empty_failing_lists_ignored(self):
        diagnostics = DiagnosticRuleMatcher().diagnose_stages(
            [make_stage("mql_to_sql", Status.OK)],
            {"mql_to_sql": ()},
        )

        assert diagnostics == []
