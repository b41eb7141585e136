"""Unit tests for the confidence score."""

import pytest

from funnel_engine.engine.confidence import confidence_score
from funnel_engine.engine.derivation import derive
from funnel_engine.models.enums import ConfidenceLevel, FunnelType, PenaltyCategory
from funnel_engine.models.snapshot import MetricSnapshot
from tests.conftest import make_channel, make_ecommerce_snapshot, make_snapshot


def reasons(score):
    return [p.reason for p in score.penalties]


class TestConfidenceScoreSample:
    """Sample-size penalties."""

    def test_complete_snapshot_scores_100(self, snapshot):
        score = confidence_score(snapshot)

        assert score.score == 100
        assert score.level == ConfidenceLevel.HIGH
        assert score.label == "Alta confiança"
        assert score.top_penalties == ()

    @pytest.mark.parametrize(
        "overrides, reason, penalty",
        [
            ({"leads": 15.0, "mql": 12.0, "sql": 10.0, "meetings": 10.0, "contracts": 1.0},
             "Amostra de leads pequena (15 < 20)", 35),
            ({"leads": 40.0, "mql": 25.0, "sql": 10.0, "meetings": 10.0, "contracts": 1.0},
             "Amostra de leads moderada (40 < 50)", 20),
            ({"mql": 15.0, "sql": 10.0, "meetings": 10.0, "contracts": 1.0},
             "Amostra de MQL moderada (15 < 20)", 15),
            ({"sql": 4.0, "meetings": 4.0, "contracts": 1.0},
             "Amostra de SQL pequena (4 < 5)", 25),
        ],
    )
    def test_sample_bands(self, overrides, reason, penalty):
        score = confidence_score(make_snapshot(**overrides))
        matching = [p for p in score.penalties if p.reason == reason]

        assert len(matching) == 1
        assert matching[0].penalty == penalty
        assert matching[0].category == PenaltyCategory.SAMPLE

    def test_meetings_moderate_band(self):
        score = confidence_score(make_snapshot(meetings=8.0, contracts=2.0))

        assert reasons(score) == ["Amostra de reuniões moderada (8 < 10)"]
        assert score.score == 80
        assert score.level == ConfidenceLevel.HIGH

    def test_missing_stage_after_filled_one(self):
        score = confidence_score(make_snapshot(meetings=None, contracts=None))

        assert reasons(score) == ["Reuniões não informadas"]
        assert score.score == 65
        assert score.level == ConfidenceLevel.MEDIUM

    def test_empty_stage_after_empty_one_uses_small_band(self):
        score = confidence_score(make_snapshot(sql=0.0, meetings=0.0, contracts=0.0))

        assert "SQLs não informados" in reasons(score)
        assert "Amostra de reuniões pequena (0 < 5)" in reasons(score)


class TestConfidenceScoreCompleteness:
    """Investment and media data."""

    def test_missing_investment(self):
        score = confidence_score(make_snapshot(investment=None))

        assert reasons(score) == ["Investimento não informado"]
        assert score.penalties[0].category == PenaltyCategory.COMPLETENESS
        assert score.score == 90

    def test_missing_impressions(self):
        score = confidence_score(make_snapshot(impressions=None))

        assert reasons(score) == ["Dados de mídia incompletos (cliques/impressões)"]

    def test_channel_breakdown_fills_media_data(self):
        snapshot = make_snapshot(
            investment=None,
            impressions=None,
            clicks=None,
            channels=(make_channel(clicks=500.0),),
        )

        assert confidence_score(snapshot, derived=derive(snapshot)).score == 100

    def test_without_derived_channels_are_not_considered(self):
        snapshot = make_snapshot(investment=None, channels=(make_channel(),))

        assert reasons(confidence_score(snapshot)) == ["Investimento não informado"]


class TestConfidenceScoreConsistency:
    """Stages larger than their predecessor."""

    def test_mql_above_leads(self):
        score = confidence_score(make_snapshot(mql=1_200.0))

        assert "Dados inconsistentes: MQL > Leads" in reasons(score)
        assert score.has_inconsistency is True

    def test_contracts_above_meetings(self):
        score = confidence_score(make_snapshot(contracts=25.0))

        assert reasons(score) == ["Dados inconsistentes: Contratos > Reuniões"]
        assert score.score == 70

    def test_zero_predecessor_is_not_inconsistent(self):
        score = confidence_score(make_snapshot(meetings=0.0))

        assert score.has_inconsistency is False

    def test_consistent_snapshot(self, snapshot):
        assert confidence_score(snapshot).has_inconsistency is False


class TestConfidenceScoreAggregation:
    """Clamping, levels and top penalties."""

    def test_empty_snapshot_clamps_to_zero(self):
        score = confidence_score(MetricSnapshot())

        assert score.score == 0
        assert score.level == ConfidenceLevel.LOW
        assert score.label == "Baixa confiança"

    def test_top_penalties_are_the_two_largest(self):
        snapshot = make_snapshot(investment=None, leads=40.0, mql=1.0, sql=1.0, meetings=1.0, contracts=1.0)
        score = confidence_score(snapshot)

        assert [p.penalty for p in score.top_penalties] == [35, 25]
        assert score.top_penalties[0].reason == "Amostra de reuniões pequena (1 < 5)"

    def test_ties_keep_penalty_order(self):
        score = confidence_score(make_snapshot(leads=40.0, mql=25.0, sql=10.0, meetings=8.0, contracts=1.0))

        assert [p.reason for p in score.top_penalties] == [
            "Amostra de leads moderada (40 < 50)",
            "Amostra de reuniões moderada (8 < 10)",
        ]

    def test_medium_band(self):
        score = confidence_score(make_snapshot(leads=40.0, mql=25.0, sql=8.0, meetings=8.0, contracts=1.0))

        assert score.score == 55
        assert score.level == ConfidenceLevel.MEDIUM
        assert score.label == "Confiança média"

    def test_unknown_funnel_raises_error(self, snapshot):
        with pytest.raises(ValueError):
            confidence_score(snapshot, "marketplace")


class TestConfidenceScoreEcommerce:
    """E-commerce bands and stage order."""

    def test_storefront_without_investment(self, ecommerce_snapshot):
        score = confidence_score(ecommerce_snapshot, FunnelType.ECOMMERCE)

        assert score.score == 90
        assert reasons(score) == ["Investimento não informado"]

    def test_small_visitor_sample(self):
        snapshot = make_ecommerce_snapshot(
            visitors=90.0,
            carts=40.0,
            purchases=30.0,
            paid_orders=20.0,
            investment=500.0,
            impressions=10_000.0,
            clicks=90.0,
        )
        score = confidence_score(snapshot, FunnelType.ECOMMERCE)

        assert reasons(score) == ["Amostra de visitantes pequena (90 < 100)"]

    def test_paid_orders_above_purchases(self):
        score = confidence_score(make_ecommerce_snapshot(paid_orders=50.0), "ecommerce")

        assert "Dados inconsistentes: Pedidos pagos > Compras" in reasons(score)
