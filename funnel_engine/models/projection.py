"""
Financial projection models.

Defines the inputs to a month-by-month P&L projection, the per-month
statement rows, and the threshold alerts raised against them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AlertKind, AlertSeverity, CostScaling, GrowthModel


class ProjectionInputs(BaseModel):
    """
    Base-period snapshot plus growth assumptions for a projection.

    All rates are percentages per period and compound from the base period.

    Attributes:
        base_revenue: Gross revenue in the base period
        base_orders: Orders in the base period
        base_cogs: Cost of goods sold in the base period
        base_freight: Freight cost in the base period
        base_investment: Marketing investment in the base period
        base_commission: Sales commission in the base period
        base_fixed_costs: Fixed costs in the base period
        tax_pct: Flat tax over gross revenue (%)
        model: Revenue growth model
        horizon_months: Number of projected periods after the base
        g_mkt: Investment growth (% per period, above -100)
        d_roas: ROAS decay (% per period)
        g_rev: Revenue growth (% per period, above -100)
        g_ticket: Average ticket growth (% per period, above -100)
        g_fix: Fixed cost growth (% per period, above -100)
        retention_pct: Share of previous period revenue carried over (%)
        cogs_scaling: How COGS scales
        freight_scaling: How freight scales
        commission_scaling: How commission scales
        min_margin_pct: Contribution margin floor (%) for alerts
        min_roas: ROAS floor for alerts
        min_ebitda: EBITDA floor for alerts
    """

    model_config = ConfigDict(frozen=True)

    base_revenue: float = Field(ge=0)
    base_orders: float = Field(default=0, ge=0)
    base_cogs: float = Field(default=0, ge=0)
    base_freight: float = Field(default=0, ge=0)
    base_investment: float = Field(default=0, ge=0)
    base_commission: float = Field(default=0, ge=0)
    base_fixed_costs: float = Field(default=0, ge=0)
    tax_pct: float = Field(default=0, ge=0, le=100)

    model: GrowthModel = GrowthModel.INVESTMENT_TO_REVENUE
    horizon_months: int = Field(default=12, description="Projected periods after the base")

    g_mkt: float = Field(default=0.0, gt=-100)
    d_roas: float = 0.0
    g_rev: float = Field(default=0.0, gt=-100)
    g_ticket: float = Field(default=0.0, gt=-100)
    g_fix: float = Field(default=0.0, gt=-100)
    retention_pct: float = Field(default=0.0, ge=0)

    cogs_scaling: CostScaling = CostScaling.PER_REVENUE
    freight_scaling: CostScaling = CostScaling.PER_REVENUE
    commission_scaling: CostScaling = CostScaling.PER_REVENUE

    min_margin_pct: Optional[float] = None
    min_roas: Optional[float] = None
    min_ebitda: Optional[float] = None

    @field_validator("horizon_months")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        """Horizon must be a non-negative whole number of periods."""
        if v < 0:
            raise ValueError(f"horizon_months must be >= 0 (got {v})")
        return v

    @field_validator("cogs_scaling", "freight_scaling")
    @classmethod
    def validate_volume_scaling(cls, v: CostScaling) -> CostScaling:
        """Only commission may be held fixed."""
        if v == CostScaling.FIXED:
            raise ValueError("fixed scaling is only supported for commission")
        return v

    @field_validator("d_roas")
    @classmethod
    def validate_roas_decay(cls, v: float) -> float:
        if v > 100:
            raise ValueError(f"d_roas cannot exceed 100% per period (got {v})")
        return v


class MonthProjection(BaseModel):
    """One row of the projected P&L. Month 0 is the base period."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=0)
    label: str
    revenue: float
    taxes: float
    net_revenue: float
    cogs: float
    freight: float
    commission: float
    contribution_margin: float
    contribution_margin_pct: float
    investment: float
    fixed_costs: float
    ebitda: float
    ebitda_pct: float
    orders: float
    avg_ticket: float
    roas: float


class ProjectionAlert(BaseModel):
    """A projected month that breaches a configured threshold."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=1)
    label: str
    kind: AlertKind
    message: str
    severity: AlertSeverity


class ProjectionResult(BaseModel):
    """Full projection: base month followed by projected months, plus alerts."""

    model_config = ConfigDict(frozen=True)

    months: tuple[MonthProjection, ...]
    alerts: tuple[ProjectionAlert, ...] = ()

    @property
    def base_month(self) -> MonthProjection:
        return self.months[0]

    @property
    def last_month(self) -> MonthProjection:
        return self.months[-1]

    def alerts_for(self, month: int) -> list[ProjectionAlert]:
        return [a for a in self.alerts if a.month == month]
