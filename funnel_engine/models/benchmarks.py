"""
Benchmark profiles for the inside-sales funnel.

A profile is a set of reference conversion rates (percent) that can replace
the default stage targets. Three tables are available:

    SEGMENT_PROFILES      business segment medians (market studies 2024/2025)
    FPS_CHANNEL_PROFILES  First Page Sage 2025 rates by acquisition channel
    FPS_SEGMENT_PROFILES  First Page Sage 2025 rates by SaaS vertical

``benchmark_profile`` resolves a name with segment taking priority over
channel, and ``benchmark_gap`` positions a current rate against a benchmark
with a tolerance band in percentage points.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import BenchmarkPosition

# Rates within this many percentage points of the benchmark count as "within"
GAP_TOLERANCE_PP = 5.0


class BenchmarkProfile(BaseModel):
    """
    Reference stage rates for one segment or channel.

    Attributes:
        name: Profile key, e.g. "b2b_software" or "ppc"
        label: Display label
        source: Table the profile comes from
        lead_to_mql: Lead → MQL rate (%)
        mql_to_sql: MQL → SQL rate (%)
        sql_to_meeting: SQL → meeting (opportunity) rate (%)
        meeting_to_win: Meeting → contract rate (%)
        sql_to_win: SQL → contract rate (%)
        ranges: Typical (min, max) band per stage, when the source gives one
        notes: Context about the segment
    """

    model_config = ConfigDict(frozen=True)

    name: str
    label: str = ""
    source: str
    lead_to_mql: Optional[float] = Field(default=None, gt=0)
    mql_to_sql: Optional[float] = Field(default=None, gt=0)
    sql_to_meeting: Optional[float] = Field(default=None, gt=0)
    meeting_to_win: Optional[float] = Field(default=None, gt=0)
    sql_to_win: Optional[float] = Field(default=None, gt=0)
    ranges: tuple[tuple[str, float, float], ...] = ()
    notes: str = ""

    def rates(self) -> dict[str, float]:
        """Defined stage rates keyed by stage id."""
        rates = {
            "lead_to_mql": self.lead_to_mql,
            "mql_to_sql": self.mql_to_sql,
            "sql_to_meeting": self.sql_to_meeting,
            "meeting_to_win": self.meeting_to_win,
            "sql_to_win": self.sql_to_win,
        }
        return {k: v for k, v in rates.items() if v is not None}

    def rate_for(self, stage_id: str) -> Optional[float]:
        return self.rates().get(stage_id)

    def range_for(self, stage_id: str) -> Optional[tuple[float, float]]:
        for key, low, high in self.ranges:
            if key == stage_id:
                return low, high
        return None


class BenchmarkGap(BaseModel):
    """Current rate minus benchmark, with its position."""

    model_config = ConfigDict(frozen=True)

    gap_pp: float
    position: BenchmarkPosition


def _segment(name, label, lead_to_mql, mql_to_sql, sql_to_win, notes) -> BenchmarkProfile:
    """Segment rows are (min, max, median) triples; the median is the target."""
    return BenchmarkProfile(
        name=name,
        label=label,
        source="segmento",
        lead_to_mql=lead_to_mql[2],
        mql_to_sql=mql_to_sql[2],
        sql_to_win=sql_to_win[2],
        ranges=(
            ("lead_to_mql", lead_to_mql[0], lead_to_mql[1]),
            ("mql_to_sql", mql_to_sql[0], mql_to_sql[1]),
            ("sql_to_win", sql_to_win[0], sql_to_win[1]),
        ),
        notes=notes,
    )


def _fps(name, label, source, lead_to_mql, mql_to_sql, sql_to_opp, opp_to_close) -> BenchmarkProfile:
    return BenchmarkProfile(
        name=name,
        label=label,
        source=source,
        lead_to_mql=lead_to_mql,
        mql_to_sql=mql_to_sql,
        sql_to_meeting=sql_to_opp,
        meeting_to_win=opp_to_close,
    )


SEGMENT_PROFILES: Mapping[str, BenchmarkProfile] = MappingProxyType({
    p.name: p for p in (
        _segment("b2b_software", "B2B Software / SaaS", (25, 45, 35), (30, 50, 40), (15, 30, 22),
                 "Conversões dependem de trial/demo. Ciclo mais longo para enterprise."),
        _segment("b2b_servicos", "B2B Serviços", (20, 40, 30), (25, 45, 35), (20, 35, 27),
                 "Relacionamento e confiança são críticos. Propostas customizadas."),
        _segment("b2b_consultoria", "B2B Consultoria", (30, 50, 40), (35, 55, 45), (25, 40, 32),
                 "Alto ticket, decisão complexa. Requer múltiplos stakeholders."),
        _segment("b2b_industria", "B2B Indústria", (35, 55, 45), (30, 50, 40), (20, 35, 28),
                 "Leads mais qualificados naturalmente. Decisão técnica + comercial."),
        _segment("b2b_saude", "B2B Saúde / Medtech", (35, 55, 45), (35, 50, 42), (25, 40, 32),
                 "Regulamentação afeta ciclo. Decisão por comitês técnicos."),
        _segment("b2b_financeiro", "B2B Financeiro / Fintech", (28, 48, 38), (35, 55, 45), (25, 42, 33),
                 "Compliance e segurança são críticos. Múltiplos decisores."),
        _segment("b2c_varejo", "B2C Varejo / E-commerce", (15, 30, 22), (40, 65, 52), (30, 50, 40),
                 "Volume alto, decisão rápida. Foco em abandono e remarketing."),
        _segment("b2c_servicos", "B2C Serviços", (20, 40, 30), (35, 55, 45), (35, 55, 45),
                 "Decisão emocional. Urgência e conveniência são fatores-chave."),
        _segment("b2c_educacao", "B2C Educação", (25, 50, 38), (30, 50, 40), (20, 40, 30),
                 "Sazonalidade forte. Proof of concept via conteúdo gratuito."),
    )
})

# (lead_to_mql, mql_to_sql, sql_to_opportunity, opportunity_to_close), percent
_FPS_CHANNELS = {
    "seo": ("SEO", 41, 51, 49, 36),
    "ppc": ("PPC", 36, 26, 38, 35),
    "linkedin": ("LinkedIn", 38, 30, 41, 39),
    "email": ("Email", 43, 46, 48, 32),
    "webinar": ("Webinar", 44, 39, 42, 40),
}

_FPS_SEGMENTS = {
    "adtech": ("Adtech", 39, 35, 40, 37),
    "automotive_saas": ("Automotive SaaS", 37, 39, 44, 36),
    "crms": ("CRMs", 36, 42, 48, 38),
    "chemical_pharmaceutical": ("Chemical/Pharmaceutical", 47, 46, 41, 39),
    "cybersecurity": ("Cybersecurity", 44, 38, 40, 39),
    "design": ("Design", 40, 34, 45, 38),
    "edtech": ("Edtech", 46, 35, 39, 40),
    "entertainment": ("Entertainment", 41, 39, 47, 43),
    "fintech": ("Fintech", 38, 42, 48, 39),
    "hospitality": ("Hospitality", 45, 38, 38, 38),
    "industrial_iot": ("Industrial & IoT", 47, 39, 42, 39),
    "insurance": ("Insurance", 40, 28, 41, 37),
    "legaltech": ("Legaltech", 41, 40, 47, 42),
    "medtech": ("Medtech", 48, 43, 41, 35),
    "project_management": ("Project Management", 46, 37, 42, 35),
    "retail_ecommerce": ("Retail/eCommerce", 41, 36, 45, 39),
    "telecom": ("Telecom", 46, 35, 41, 36),
}

FPS_CHANNEL_PROFILES: Mapping[str, BenchmarkProfile] = MappingProxyType({
    name: _fps(name, label, "fps_canal", *rates)
    for name, (label, *rates) in _FPS_CHANNELS.items()
})

FPS_SEGMENT_PROFILES: Mapping[str, BenchmarkProfile] = MappingProxyType({
    name: _fps(name, label, "fps_segmento", *rates)
    for name, (label, *rates) in _FPS_SEGMENTS.items()
})


def benchmark_profile(
    segment: Optional[str] = None,
    channel: Optional[str] = None,
) -> Optional[BenchmarkProfile]:
    """
    Resolve a benchmark profile.

    Priority: business segment, then First Page Sage segment, then First
    Page Sage channel. Unknown or empty names resolve to None.
    """
    if segment:
        profile = SEGMENT_PROFILES.get(segment) or FPS_SEGMENT_PROFILES.get(segment)
        if profile is not None:
            return profile
    if channel:
        return FPS_CHANNEL_PROFILES.get(channel)
    return None


def benchmark_gap(
    current_rate: Optional[float],
    benchmark_rate: Optional[float],
    tolerance_pp: float = GAP_TOLERANCE_PP,
) -> Optional[BenchmarkGap]:
    """
    Position a current rate against a benchmark rate.

    Returns None when either rate is undefined. ``abs(gap) <= tolerance_pp``
    is "within"; otherwise the sign decides above/below.
    """
    if current_rate is None or benchmark_rate is None:
        return None
    gap = current_rate - benchmark_rate
    if abs(gap) <= tolerance_pp:
        position = BenchmarkPosition.WITHIN
    elif gap > 0:
        position = BenchmarkPosition.ABOVE
    else:
        position = BenchmarkPosition.BELOW
    return BenchmarkGap(gap_pp=gap, position=position)
