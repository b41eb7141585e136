"""
Unit tests for the funnel diagnostic service.

End-to-end over the engines: snapshot in, FunnelDiagnosis out.
"""

import pytest

from funnel_engine.engine.classifier import StatusClassifier
from funnel_engine.engine.diagnostics import DiagnosticRuleMatcher
from funnel_engine.engine.funnel import FunnelDiagnosticService, diagnose
from funnel_engine.engine.impact import StageImpactCalculator
from funnel_engine.engine.metrics import SupportingMetricEvaluator
from funnel_engine.models.enums import ConfidenceLevel, FunnelType, Status
from funnel_engine.models.snapshot import MetricSnapshot
from funnel_engine.models.targets import default_targets
from tests.conftest import make_ecommerce_snapshot, make_snapshot


class TestFunnelDiagnosticServiceInsideSales:
    """Inside-sales funnel run."""

    @pytest.fixture
    def diagnosis(self, snapshot):
        return FunnelDiagnosticService().diagnose(snapshot)

    def test_diagnose_stages_in_order(self, diagnosis):
        assert diagnosis.funnel == "inside_sales"
        assert [s.stage_id for s in diagnosis.stages] == [
            "lead_to_mql",
            "mql_to_sql",
            "sql_to_meeting",
            "meeting_to_win",
        ]

    def test_diagnose_primary_bottleneck(self, diagnosis):
        assert diagnosis.primary_bottleneck == "lead_to_mql"
        assert diagnosis.stage("lead_to_mql").is_primary_bottleneck

    def test_diagnose_matches_critical_guidance(self, diagnosis):
        assert [d.stage_id for d in diagnosis.diagnostics] == ["lead_to_mql"]
        assert len(diagnosis.diagnostics[0].entries) == 5

    def test_diagnose_meeting_stage_eligible_at_twenty_meetings(self, diagnosis):
        assert diagnosis.stage("meeting_to_win").eligible is True
        assert diagnosis.stage("meeting_to_win").status == Status.OK

    def test_diagnose_low_sample_stage_has_no_guidance(self):
        diagnosis = diagnose(make_snapshot(meetings=8.0, contracts=2.0))

        assert diagnosis.stage("meeting_to_win").status == Status.LOW_SAMPLE
        assert diagnosis.stage("meeting_to_win").eligibility_reason == "Amostra insuficiente: 8 < 10"
        assert "meeting_to_win" not in {d.stage_id for d in diagnosis.diagnostics}

    def test_diagnose_confidence(self, diagnosis):
        assert diagnosis.confidence == ConfidenceLevel.MEDIUM

    def test_diagnose_summary(self, diagnosis):
        assert diagnosis.summary[0] == "Gargalo crítico: Lead → MQL está 5,00% abaixo do benchmark."

    def test_diagnose_keeps_derived_metrics(self, diagnosis):
        assert diagnosis.derived["roas"] == pytest.approx(6.0)

    def test_diagnose_unknown_stage_lookup(self, diagnosis):
        assert diagnosis.stage("unknown") is None


class TestFunnelDiagnosticServiceEcommerce:
    """E-commerce funnel run."""

    def test_diagnose_ecommerce_attention(self, ecommerce_snapshot):
        diagnosis = diagnose(ecommerce_snapshot, funnel="ecommerce")

        assert diagnosis.funnel == "ecommerce"
        assert diagnosis.stage("visitor_to_cart").status == Status.ATTENTION
        assert diagnosis.primary_bottleneck is None
        assert [d.stage_id for d in diagnosis.diagnostics] == ["visitor_to_cart"]
        assert len(diagnosis.diagnostics[0].entries) == 3
        assert diagnosis.summary == ("1 etapa(s) precisam de atenção.",)

    def test_diagnose_custom_targets(self, ecommerce_snapshot):
        targets = default_targets(FunnelType.ECOMMERCE)
        targets["visitor_to_cart"].value = 8.0

        diagnosis = diagnose(ecommerce_snapshot, targets, FunnelType.ECOMMERCE)

        assert diagnosis.stage("visitor_to_cart").status == Status.OK
        assert diagnosis.diagnostics == ()

    def test_diagnose_default_targets_untouched_by_edits(self):
        targets = default_targets(FunnelType.ECOMMERCE)
        targets["visitor_to_cart"].value = 1.0

        assert default_targets(FunnelType.ECOMMERCE)["visitor_to_cart"].value == 10.0


class TestFunnelDiagnosticServiceEdgeCases:
    """Empty input, misconfiguration and injection."""

    def test_diagnose_empty_snapshot(self):
        diagnosis = diagnose(MetricSnapshot())

        assert all(s.status == Status.NO_DATA for s in diagnosis.stages)
        assert diagnosis.diagnostics == ()
        assert diagnosis.primary_bottleneck is None
        assert diagnosis.confidence == ConfidenceLevel.LOW
        assert diagnosis.summary == ()

    def test_diagnose_unknown_funnel_raises_error(self, snapshot):
        with pytest.raises(ValueError):
            diagnose(snapshot, funnel="marketplace")

    def test_diagnose_injected_components(self, snapshot):
        service = FunnelDiagnosticService(
            matcher=DiagnosticRuleMatcher(critical_limit=1),
            calculators={FunnelType.INSIDE_SALES: StageImpactCalculator(min_sample=25)},
        )

        diagnosis = service.diagnose(snapshot)

        assert diagnosis.stage("meeting_to_win").status == Status.LOW_SAMPLE
        assert len(diagnosis.diagnostics[0].entries) == 1

    def test_diagnose_stage_min_sample_from_settings(self, monkeypatch):
        monkeypatch.setenv("FUNNEL_STAGE_MIN_SAMPLES", '{"meeting_to_win": 50}')

        diagnosis = diagnose(make_snapshot())

        assert diagnosis.stage("meeting_to_win").status == Status.LOW_SAMPLE
        assert diagnosis.stage("sql_to_meeting").eligible is True

    def test_diagnose_funnel_min_sample_from_settings(self, monkeypatch):
        monkeypatch.setenv("FUNNEL_INSIDE_SALES_MIN_SAMPLE", "100")

        diagnosis = diagnose(make_snapshot())

        assert [s.eligible for s in diagnosis.stages] == [True, True, False, False]

    def test_diagnose_result_serializes(self, snapshot):
        payload = diagnose(snapshot).model_dump(mode="json")

        assert payload["primary_bottleneck"] == "lead_to_mql"
        assert payload["stages"][0]["status"] == "critical"

    def test_diagnose_payment_line_for_low_payment_rate(self):
        diagnosis = diagnose(make_ecommerce_snapshot(paid_orders=20.0), funnel=FunnelType.ECOMMERCE)

        assert diagnosis.primary_bottleneck == "purchase_to_payment"
        assert diagnosis.summary[-1].startswith("Taxa de pagamento de 50,00%")


class TestFunnelDiagnosticServiceSupportingMetrics:
    """Media and cost metrics classified alongside the stages."""

    def test_diagnose_classifies_supporting_metrics(self, snapshot):
        diagnosis = diagnose(snapshot)

        assert {m.metric_key: m.status for m in diagnosis.metric_statuses} == {
            "ctr": Status.CRITICAL,
            "cpc": Status.OK,
            "cpm": Status.OK,
            "cvr_click_lead": Status.OK,
            "cpl": Status.OK,
            "sql_to_win": Status.ATTENTION,
        }
        assert diagnosis.metric("ctr").stage_id == "lead_to_mql"
        assert diagnosis.metric("sql_to_win").stage_id == "meeting_to_win"
        assert diagnosis.metric("lead_to_mql") is None

    def test_diagnose_attaches_failing_metrics_to_stage(self, snapshot):
        lead_to_mql = diagnose(snapshot).diagnostics[0]

        assert lead_to_mql.failing_metrics == ("ctr",)
        assert [e.priority for e in lead_to_mql.entries] == [1, 2, 3, 4, 5]

    def test_diagnose_expensive_leads_on_healthy_stage(self):
        snapshot = MetricSnapshot(
            investment=100_000.0,
            impressions=1_000_000.0,
            clicks=1_000.0,
            leads=100.0,
            mql=20.0,
            sql=8.0,
            meetings=3.0,
            contracts=1.0,
        )

        diagnosis = diagnose(snapshot)

        assert diagnosis.stage("lead_to_mql").status == Status.OK
        assert diagnosis.metric("cpl").value == pytest.approx(1_000.0)
        assert diagnosis.metric("cpl").status == Status.CRITICAL
        assert diagnosis.metric("ctr").value == pytest.approx(0.1)
        assert diagnosis.metric("ctr").status == Status.CRITICAL
        assert diagnosis.metric("sql_to_win").status == Status.LOW_SAMPLE
        assert [d.stage_id for d in diagnosis.diagnostics] == ["lead_to_mql"]
        stage = diagnosis.diagnostics[0]
        assert stage.status == Status.OK
        assert stage.failing_metrics == ("ctr", "cpc", "cpm", "cpl")
        assert [e.metric_key for e in stage.entries] == ["ctr", "cpc", "cpl"]

    def test_diagnose_low_click_volume_is_not_failing(self):
        diagnosis = diagnose(make_snapshot(clicks=20.0))

        assert diagnosis.metric("ctr").status == Status.LOW_SAMPLE
        assert diagnosis.metric("ctr").eligibility_reason == "Amostra insuficiente: cliques 20 < 30"
        assert diagnosis.metric("cpl").status == Status.OK
        assert diagnosis.diagnostics[0].failing_metrics == ()

    def test_diagnose_ecommerce_traffic_guidance(self):
        snapshot = make_ecommerce_snapshot(investment=5_000.0, impressions=200_000.0, clicks=1_000.0)

        diagnosis = diagnose(snapshot, funnel=FunnelType.ECOMMERCE)

        assert [d.stage_id for d in diagnosis.diagnostics] == ["traffic", "visitor_to_cart"]
        traffic = diagnosis.diagnostics[0]
        assert traffic.label == "Tráfego"
        assert traffic.status == Status.CRITICAL
        assert traffic.failing_metrics == ("cpc", "ctr")
        assert None not in {e.metric_key for e in traffic.entries}
        assert len(traffic.entries) == 7

    def test_diagnose_ecommerce_without_media_has_no_traffic_guidance(self, ecommerce_snapshot):
        diagnosis = diagnose(ecommerce_snapshot, funnel=FunnelType.ECOMMERCE)

        assert {m.status for m in diagnosis.metric_statuses} == {Status.NO_DATA}
        assert "traffic" not in {d.stage_id for d in diagnosis.diagnostics}

    def test_diagnose_injected_evaluator(self, snapshot):
        service = FunnelDiagnosticService(
            evaluator=SupportingMetricEvaluator(StatusClassifier(ok_ratio=0.5, attention_ratio=0.4)),
        )

        diagnosis = service.diagnose(snapshot)

        assert diagnosis.metric("ctr").status == Status.OK


class TestFunnelDiagnosticServiceConfidenceScore:
    """Confidence score attached to each run."""

    def test_diagnose_full_inside_sales_scores_high(self, snapshot):
        score = diagnose(snapshot).confidence_score

        assert score.score == 100
        assert score.level == ConfidenceLevel.HIGH
        assert score.penalties == ()

    def test_diagnose_ecommerce_without_investment(self, ecommerce_snapshot):
        score = diagnose(ecommerce_snapshot, funnel=FunnelType.ECOMMERCE).confidence_score

        assert score.score == 90
        assert [p.reason for p in score.penalties] == ["Investimento não informado"]

    def test_diagnose_score_serializes(self, snapshot):
        payload = diagnose(snapshot).model_dump(mode="json")

        assert payload["confidence_score"]["level"] == "alta"
        assert payload["metric_statuses"][0]["metric_key"] == "ctr"
