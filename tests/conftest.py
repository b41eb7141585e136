"""
Pytest configuration and shared fixtures for the funnel engine test suite.

Model factories are plain functions so tests can build variants with
keyword overrides; fixtures wrap the common scenarios.
"""

from datetime import date

import pytest

from funnel_engine.config import get_settings
from funnel_engine.models.enums import Direction, GrowthModel
from funnel_engine.models.projection import ProjectionInputs
from funnel_engine.models.snapshot import ChannelBreakdown, MetricSnapshot
from funnel_engine.models.targets import Target


# ---------------------------------------------------------------------------
# Pydantic model factories
# ---------------------------------------------------------------------------


def make_snapshot(**overrides) -> MetricSnapshot:
    """Inside-sales snapshot with a critical Lead → MQL stage."""
    defaults = dict(
        investment=10_000.0,
        impressions=400_000.0,
        clicks=4_000.0,
        leads=1_000.0,
        mql=100.0,
        sql=40.0,
        meetings=20.0,
        contracts=6.0,
        revenue=60_000.0,
        period_label="Jan/2025",
    )
    defaults.update(overrides)
    return MetricSnapshot(**defaults)


def make_ecommerce_snapshot(**overrides) -> MetricSnapshot:
    """E-commerce snapshot with Visitantes → Carrinho in attention."""
    defaults = dict(
        visitors=1_000.0,
        carts=80.0,
        purchases=40.0,
        paid_orders=36.0,
        ticket_size=150.0,
    )
    defaults.update(overrides)
    return MetricSnapshot(**defaults)


def make_channel(name: str = "Google", **overrides) -> ChannelBreakdown:
    defaults = dict(name=name, investment=1_000.0, cpc=2.0, ctr=1.5, impressions=50_000.0)
    defaults.update(overrides)
    return ChannelBreakdown(**defaults)


def make_target(
    value: float = 15.0,
    direction: Direction = Direction.HIGHER_IS_BETTER,
    label: str = "",
) -> Target:
    return Target(value=value, direction=direction, label=label)


def make_projection_inputs(**overrides) -> ProjectionInputs:
    """Investment-to-revenue inputs: R$ 10k revenue, 100 orders, R$ 2k media."""
    defaults = dict(
        base_revenue=10_000.0,
        base_orders=100.0,
        base_investment=2_000.0,
        tax_pct=10.0,
        model=GrowthModel.INVESTMENT_TO_REVENUE,
        horizon_months=1,
        g_mkt=10.0,
        d_roas=5.0,
        retention_pct=0.0,
    )
    defaults.update(overrides)
    return ProjectionInputs(**defaults)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Drop FUNNEL_* overrides from the environment and reset the settings cache."""
    import os

    for key in list(os.environ):
        if key.startswith("FUNNEL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(os.path.dirname(__file__))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def snapshot() -> MetricSnapshot:
    return make_snapshot()


@pytest.fixture
def ecommerce_snapshot() -> MetricSnapshot:
    return make_ecommerce_snapshot()


@pytest.fixture
def projection_inputs() -> ProjectionInputs:
    return make_projection_inputs()


@pytest.fixture
def base_period() -> date:
    return date(2025, 1, 1)
