"""
Insight Summarizer — short deterministic reading of a result.

Lines always come out in the same order (revenue, EBITDA, margin, ROAS,
alert count for projections; bottleneck, attention, ROAS, payment for the
funnel view) and each rule contributes at most one line.
"""

from typing import Iterable, Sequence

from funnel_engine.engine.export import format_percent
from funnel_engine.models.enums import AlertSeverity, Status
from funnel_engine.models.funnel import StageImpact
from funnel_engine.models.projection import MonthProjection, ProjectionAlert
from funnel_engine.models.snapshot import DerivedMetrics


# Projection thresholds
STRONG_GROWTH_PCT = 50.0
EBITDA_EFFICIENCY_PCT = 20.0
LOW_MARGIN_PCT = 20.0
HEALTHY_MARGIN_PCT = 40.0
LOW_ROAS = 2.0
EXCELLENT_ROAS = 5.0

# Funnel thresholds
FUNNEL_GOOD_ROAS = 4.0
LOW_PAYMENT_RATE_PCT = 70.0


def _growth_pct(first: float, last: float) -> float:
    return (last - first) / first * 100 if first > 0 else 0.0


class InsightSummarizer:
    """Turns projection and funnel results into ordered summary lines."""

    def summarize(
        self,
        months: Sequence[MonthProjection],
        alerts: Iterable[ProjectionAlert] = (),
    ) -> list[str]:
        """
        Summarize a projection by comparing its first and last months.

        Args:
            months: Projected months, base month first
            alerts: Alerts raised over the projection

        Returns:
            Summary lines, empty when there are no months
        """
        if not months:
            return []

        first, last = months[0], months[-1]
        lines = []

        revenue_growth = _growth_pct(first.revenue, last.revenue)
        if revenue_growth > STRONG_GROWTH_PCT:
            lines.append(
                f"Crescimento projetado de {format_percent(revenue_growth)} na receita ao longo do período."
            )
        elif revenue_growth > 0:
            lines.append(f"Receita deve crescer {format_percent(revenue_growth)} no período projetado.")
        elif revenue_growth < 0:
            lines.append(f"Atenção: receita projetada em queda de {format_percent(abs(revenue_growth))}.")

        if first.ebitda > 0 and last.ebitda > 0:
            ebitda_growth = _growth_pct(first.ebitda, last.ebitda)
            if ebitda_growth > EBITDA_EFFICIENCY_PCT:
                lines.append(
                    f"EBITDA crescendo {format_percent(ebitda_growth)}, boa eficiência operacional."
                )
            elif ebitda_growth < 0:
                lines.append(f"EBITDA em queda de {format_percent(abs(ebitda_growth))} no período.")
        elif last.ebitda < 0:
            lines.append(
                "EBITDA ficará negativo no último mês projetado. "
                "Revise custos ou premissas de crescimento."
            )

        margin = last.contribution_margin_pct
        if margin < LOW_MARGIN_PCT:
            lines.append(
                f"Margem de contribuição baixa ({format_percent(margin)}). "
                "Considere otimizar custos variáveis."
            )
        elif margin > HEALTHY_MARGIN_PCT:
            lines.append(f"Margem de contribuição saudável ({format_percent(margin)}).")

        if last.roas < LOW_ROAS:
            lines.append(
                f"ROAS projetado ({last.roas:.2f}) está baixo. "
                "Pode ser necessário otimizar investimento em mídia."
            )
        elif last.roas > EXCELLENT_ROAS:
            lines.append(f"ROAS excelente projetado ({last.roas:.2f}).")

        errors = sum(1 for a in alerts if a.severity == AlertSeverity.ERROR)
        if errors:
            lines.append(
                f"{errors} alerta(s) crítico(s) detectado(s). Verifique a seção de alertas."
            )

        return lines

    def summarize_funnel(
        self,
        impacts: Sequence[StageImpact],
        derived: DerivedMetrics,
    ) -> list[str]:
        """Summarize a funnel diagnosis: bottleneck, attention count, ROAS, payment rate."""
        lines = []

        bottleneck = next((s for s in impacts if s.is_primary_bottleneck), None)
        if bottleneck is not None and bottleneck.gap_pp is not None:
            lines.append(
                f"Gargalo crítico: {bottleneck.label or bottleneck.stage_id} está "
                f"{format_percent(abs(bottleneck.gap_pp))} abaixo do benchmark."
            )

        attention = sum(1 for s in impacts if s.eligible and s.status == Status.ATTENTION)
        if attention:
            lines.append(f"{attention} etapa(s) precisam de atenção.")

        roas = derived.get("roas")
        if roas is not None:
            if roas < LOW_ROAS:
                lines.append(f"ROAS de {roas:.2f}x está abaixo do ideal (2x+).")
            elif roas >= FUNNEL_GOOD_ROAS:
                lines.append(f"ROAS excelente de {roas:.2f}x.")

        payment = derived.get("purchase_to_payment")
        if payment is not None and payment < LOW_PAYMENT_RATE_PCT:
            lines.append(
                f"Taxa de pagamento de {format_percent(payment)} indica problemas "
                "de checkout ou boletos não pagos."
            )

        return lines


_default = InsightSummarizer()


def summarize(
    months: Sequence[MonthProjection],
    alerts: Iterable[ProjectionAlert] = (),
) -> list[str]:
    """Module-level shortcut for ``InsightSummarizer().summarize``."""
    return _default.summarize(months, alerts)
