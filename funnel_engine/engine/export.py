"""
Formatting and delimited-text export.

pt-BR number and currency formatting plus ``;``-separated renderings of a
projection and of funnel stage results. Column order and separators are a
presentation concern; nothing downstream parses these strings.
"""

from typing import Iterable, Optional, Sequence, Union

from funnel_engine.models.funnel import StageImpact
from funnel_engine.models.projection import MonthProjection, ProjectionResult

EMPTY = "-"

_PT_BR = str.maketrans({",": ".", ".": ","})

PROJECTION_HEADERS = (
    "Mês",
    "Receita",
    "Impostos",
    "Receita Líquida",
    "CMV",
    "Frete",
    "Comissão",
    "Margem de Contribuição",
    "Margem Contrib. (%)",
    "Investimento",
    "Custos Fixos",
    "EBITDA",
    "EBITDA (%)",
    "Pedidos",
    "Ticket Médio",
    "ROAS",
)

STAGE_HEADERS = ("Etapa", "Taxa Atual", "Meta", "Gap (pp)", "Status")


def format_number(value: Optional[float], decimals: int = 0) -> str:
    """Format with pt-BR separators: 1234.5 -> '1.234,50' (decimals=2)."""
    if value is None:
        return EMPTY
    text = f"{abs(value):,.{decimals}f}".translate(_PT_BR)
    return f"-{text}" if value < 0 and text.strip("0,.") else text


def format_currency(value: Optional[float], symbol: str = "R$") -> str:
    """Format money: -1234.5 -> '-R$ 1.234,50'."""
    if value is None:
        return EMPTY
    text = f"{symbol} {format_number(abs(value), 2)}"
    return f"-{text}" if value < 0 and round(abs(value), 2) > 0 else text


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """Format a value already expressed in percent: 12.5 -> '12,50%'."""
    if value is None:
        return EMPTY
    return f"{format_number(value, decimals)}%"


def _plain(value: float, decimals: int, decimal_comma: bool) -> str:
    text = f"{value:.{decimals}f}"
    return text.replace(".", ",") if decimal_comma else text


def projection_to_rows(
    months: Iterable[MonthProjection],
    decimal_comma: bool = False,
) -> list[list[str]]:
    """Header row followed by one row per month."""
    rows = [list(PROJECTION_HEADERS)]
    for m in months:
        rows.append([
            m.label,
            _plain(m.revenue, 2, decimal_comma),
            _plain(m.taxes, 2, decimal_comma),
            _plain(m.net_revenue, 2, decimal_comma),
            _plain(m.cogs, 2, decimal_comma),
            _plain(m.freight, 2, decimal_comma),
            _plain(m.commission, 2, decimal_comma),
            _plain(m.contribution_margin, 2, decimal_comma),
            _plain(m.contribution_margin_pct, 2, decimal_comma),
            _plain(m.investment, 2, decimal_comma),
            _plain(m.fixed_costs, 2, decimal_comma),
            _plain(m.ebitda, 2, decimal_comma),
            _plain(m.ebitda_pct, 2, decimal_comma),
            _plain(m.orders, 0, decimal_comma),
            _plain(m.avg_ticket, 2, decimal_comma),
            _plain(m.roas, 2, decimal_comma),
        ])
    return rows


def projection_to_csv(
    projection: Union[ProjectionResult, Sequence[MonthProjection]],
    separator: str = ";",
    decimal_comma: bool = False,
) -> str:
    """
    Render a projection as delimited text.

    Args:
        projection: A ProjectionResult or its months
        separator: Field separator
        decimal_comma: Use ',' as decimal mark (requires a separator other than ',')

    Raises:
        ValueError: If decimal_comma is combined with a ',' separator
    """
    if decimal_comma and separator == ",":
        raise ValueError("decimal_comma cannot be used with ',' as separator")
    months = projection.months if isinstance(projection, ProjectionResult) else projection
    rows = projection_to_rows(months, decimal_comma=decimal_comma)
    return "\n".join(separator.join(row) for row in rows)


def stage_results_to_csv(impacts: Iterable[StageImpact], separator: str = ";") -> str:
    """Render stage impacts as delimited text (rates in pt-BR percent)."""
    rows = [list(STAGE_HEADERS)]
    for s in impacts:
        rows.append([
            s.label or s.stage_id,
            format_percent(s.current_rate),
            format_percent(s.target_rate),
            format_number(s.gap_pp, 2),
            s.status.value,
        ])
    return "\n".join(separator.join(row) for row in rows)
