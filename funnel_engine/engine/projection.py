"""
Financial Projection Engine — month-by-month P&L under compounding growth.

Month 0 is the base period as given. Months 1..N are generated by one of two
models:

INVESTMENT_TO_REVENUE
    investment_i = MKT0 * (1 + g_mkt/100)^i
    roas_i       = max(0, ROAS0 * (1 - d_roas/100)^i)
    revenue_i    = investment_i * roas_i + revenue_{i-1} * retention/100

REVENUE_GROWTH
    revenue_i    = R0 * (1 + g_rev/100)^i + revenue_{i-1} * retention/100
    ticket_i     = T0 * (1 + g_ticket/100)^i
    investment_i = MKT0 * (1 + g_mkt/100)^i   (ROAS bookkeeping only)

Variable costs scale per order or per revenue from base-period rates
(commission may also be held fixed); fixed costs compound at g_fix. The
carry-over term makes the loop strictly sequential.
"""

from datetime import date
from typing import Optional

import structlog

from funnel_engine.engine.export import format_currency, format_number
from funnel_engine.models.enums import AlertKind, AlertSeverity, CostScaling, GrowthModel
from funnel_engine.models.projection import (
    MonthProjection,
    ProjectionAlert,
    ProjectionInputs,
    ProjectionResult,
)

logger = structlog.get_logger()


MONTH_NAMES = ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez")


def month_label(base_period: date, offset: int) -> str:
    """Label for the month ``offset`` months after the base, e.g. 'Fev/2025'."""
    index = base_period.month - 1 + offset
    year = base_period.year + index // 12
    return f"{MONTH_NAMES[index % 12]}/{year}"


def compound(base: float, rate_pct: float, periods: int) -> float:
    """Apply ``(1 + rate/100)^periods`` to ``base``."""
    return base * (1 + rate_pct / 100) ** periods


def _pct_of(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


class FinancialProjectionEngine:
    """
    Generates a ProjectionResult from ProjectionInputs.

    Deterministic: the same inputs always produce the same months and
    alerts. A new input set yields an entirely new sequence.

    Attributes:
        min_margin_pct: Margin floor used when the inputs carry none
        min_roas: ROAS floor used when the inputs carry none
        min_ebitda: EBITDA floor used when the inputs carry none
    """

    def __init__(
        self,
        min_margin_pct: Optional[float] = None,
        min_roas: Optional[float] = None,
        min_ebitda: Optional[float] = None,
    ):
        self.min_margin_pct = min_margin_pct
        self.min_roas = min_roas
        self.min_ebitda = min_ebitda

    @classmethod
    def from_settings(cls) -> "FinancialProjectionEngine":
        from funnel_engine.config import get_settings

        settings = get_settings()
        return cls(
            min_margin_pct=settings.default_min_margin_pct,
            min_roas=settings.default_min_roas,
            min_ebitda=settings.default_min_ebitda,
        )

    def floors(self, inputs: ProjectionInputs) -> ProjectionInputs:
        """Return ``inputs`` with unset alert floors filled from the engine defaults."""
        update = {
            name: getattr(self, name)
            for name in ("min_margin_pct", "min_roas", "min_ebitda")
            if getattr(inputs, name) is None and getattr(self, name) is not None
        }
        return inputs.model_copy(update=update) if update else inputs

    def project(
        self,
        inputs: ProjectionInputs,
        base_period: Optional[date] = None,
    ) -> ProjectionResult:
        """
        Project the P&L over ``inputs.horizon_months`` periods.

        Args:
            inputs: Base snapshot, growth assumptions and alert floors
            base_period: Calendar month of the base period (default: current month)

        Returns:
            ProjectionResult with horizon_months + 1 months
        """
        base_period = base_period or date.today().replace(day=1)
        inputs = self.floors(inputs)

        r0 = inputs.base_revenue
        o0 = inputs.base_orders
        mkt0 = inputs.base_investment
        fix0 = inputs.base_fixed_costs
        tax = inputs.tax_pct / 100

        ticket0 = r0 / o0 if o0 > 0 else 0.0
        roas0 = r0 / mkt0 if mkt0 > 0 else 0.0

        cost_rates = {
            "cogs": self._cost_rates(inputs.base_cogs, o0, r0),
            "freight": self._cost_rates(inputs.base_freight, o0, r0),
            "commission": self._cost_rates(inputs.base_commission, o0, r0),
        }

        months = [
            self._statement(
                month=0,
                label=month_label(base_period, 0),
                revenue=r0,
                tax=tax,
                cogs=inputs.base_cogs,
                freight=inputs.base_freight,
                commission=inputs.base_commission,
                investment=mkt0,
                fixed_costs=fix0,
                orders=o0,
                ticket=ticket0,
                roas=roas0,
            )
        ]
        alerts: list[ProjectionAlert] = []

        prev_revenue = r0
        for i in range(1, inputs.horizon_months + 1):
            carry_over = prev_revenue * inputs.retention_pct / 100
            investment = compound(mkt0, inputs.g_mkt, i)

            if inputs.model == GrowthModel.INVESTMENT_TO_REVENUE:
                roas = max(0.0, roas0 * (1 - inputs.d_roas / 100) ** i)
                revenue = investment * roas + carry_over
                ticket = ticket0
                orders = revenue / ticket if ticket > 0 else 0.0
            else:
                revenue = compound(r0, inputs.g_rev, i) + carry_over
                ticket = compound(ticket0, inputs.g_ticket, i)
                orders = revenue / ticket if ticket > 0 else 0.0
                roas = revenue / investment if investment > 0 else 0.0

            month = self._statement(
                month=i,
                label=month_label(base_period, i),
                revenue=revenue,
                tax=tax,
                cogs=self._scale(inputs.cogs_scaling, cost_rates["cogs"], inputs.base_cogs, orders, revenue),
                freight=self._scale(inputs.freight_scaling, cost_rates["freight"], inputs.base_freight, orders, revenue),
                commission=self._scale(
                    inputs.commission_scaling, cost_rates["commission"], inputs.base_commission, orders, revenue
                ),
                investment=investment,
                fixed_costs=compound(fix0, inputs.g_fix, i),
                orders=orders,
                ticket=ticket,
                roas=roas,
            )
            months.append(month)
            alerts.extend(self.check_alerts(month, inputs))
            prev_revenue = revenue

        result = ProjectionResult(months=tuple(months), alerts=tuple(alerts))

        logger.info(
            "projection_computed",
            model=inputs.model.value,
            horizon_months=inputs.horizon_months,
            final_revenue=round(result.last_month.revenue, 2),
            final_ebitda=round(result.last_month.ebitda, 2),
            alerts=len(alerts),
            errors=sum(1 for a in alerts if a.severity == AlertSeverity.ERROR),
        )
        return result

    @staticmethod
    def _cost_rates(base_cost: float, base_orders: float, base_revenue: float) -> dict[str, float]:
        return {
            "per_order": base_cost / base_orders if base_orders > 0 else 0.0,
            "per_revenue": base_cost / base_revenue if base_revenue > 0 else 0.0,
        }

    @staticmethod
    def _scale(
        scaling: CostScaling,
        rates: dict[str, float],
        base_cost: float,
        orders: float,
        revenue: float,
    ) -> float:
        if scaling == CostScaling.PER_ORDER:
            return rates["per_order"] * orders
        if scaling == CostScaling.FIXED:
            return base_cost
        return rates["per_revenue"] * revenue

    @staticmethod
    def _statement(
        month: int,
        label: str,
        revenue: float,
        tax: float,
        cogs: float,
        freight: float,
        commission: float,
        investment: float,
        fixed_costs: float,
        orders: float,
        ticket: float,
        roas: float,
    ) -> MonthProjection:
        taxes = revenue * tax
        contribution = revenue - taxes - cogs - freight - commission
        ebitda = contribution - investment - fixed_costs
        return MonthProjection(
            month=month,
            label=label,
            revenue=revenue,
            taxes=taxes,
            net_revenue=revenue - taxes,
            cogs=cogs,
            freight=freight,
            commission=commission,
            contribution_margin=contribution,
            contribution_margin_pct=_pct_of(contribution, revenue),
            investment=investment,
            fixed_costs=fixed_costs,
            ebitda=ebitda,
            ebitda_pct=_pct_of(ebitda, revenue),
            orders=orders,
            avg_ticket=ticket,
            roas=roas,
        )

    @staticmethod
    def check_alerts(month: MonthProjection, inputs: ProjectionInputs) -> list[ProjectionAlert]:
        """
        Threshold alerts for one projected month, in margin / EBITDA / ROAS order.

        A negative EBITDA is always an error; the EBITDA floor only applies
        while EBITDA is non-negative.
        """
        if month.month == 0:
            return []

        alerts = []

        def alert(kind: AlertKind, severity: AlertSeverity, message: str) -> None:
            alerts.append(ProjectionAlert(
                month=month.month,
                label=month.label,
                kind=kind,
                message=message,
                severity=severity,
            ))

        if inputs.min_margin_pct is not None and month.contribution_margin_pct < inputs.min_margin_pct:
            alert(
                AlertKind.MARGIN,
                AlertSeverity.WARNING,
                f"Margem de contribuição ({format_number(month.contribution_margin_pct, 1)}%) "
                f"abaixo do mínimo ({format_number(inputs.min_margin_pct, 1)}%)",
            )

        if month.ebitda < 0:
            alert(
                AlertKind.EBITDA,
                AlertSeverity.ERROR,
                f"EBITDA negativo: {format_currency(month.ebitda)}",
            )
        elif inputs.min_ebitda is not None and month.ebitda < inputs.min_ebitda:
            alert(
                AlertKind.EBITDA,
                AlertSeverity.WARNING,
                f"EBITDA ({format_currency(month.ebitda)}) abaixo do mínimo "
                f"({format_currency(inputs.min_ebitda)})",
            )

        if inputs.min_roas is not None and month.roas < inputs.min_roas:
            alert(
                AlertKind.ROAS,
                AlertSeverity.WARNING,
                f"ROAS ({format_number(month.roas, 2)}) abaixo do mínimo "
                f"({format_number(inputs.min_roas, 2)})",
            )

        return alerts


_default = FinancialProjectionEngine()


def project(inputs: ProjectionInputs, base_period: Optional[date] = None) -> ProjectionResult:
    """Module-level shortcut for ``FinancialProjectionEngine().project``."""
    return _default.project(inputs, base_period)
