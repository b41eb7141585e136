"""
Enumeration types for the funnel diagnostics and projection engines.

All enums inherit from str so they serialize to JSON as plain strings and
compare equal to their raw values.
"""

from enum import Enum


class Status(str, Enum):
    """
    Ordinal classification of a metric or funnel stage against its target.

    ``ok``, ``attention`` and ``critical`` are computed statuses ordered by
    severity. ``no_data`` and ``low_sample`` mean the value cannot be judged.
    """

    OK = "ok"
    ATTENTION = "attention"
    CRITICAL = "critical"
    NO_DATA = "no_data"
    LOW_SAMPLE = "low_sample"

    @property
    def severity_rank(self) -> int:
        """0 for ok, 1 for attention, 2 for critical, -1 when not judged."""
        return _SEVERITY_RANK.get(self, -1)

    @property
    def is_actionable(self) -> bool:
        """True for statuses that call for diagnostic guidance."""
        return self in (Status.ATTENTION, Status.CRITICAL)


_SEVERITY_RANK = {
    Status.OK: 0,
    Status.ATTENTION: 1,
    Status.CRITICAL: 2,
}


class Direction(str, Enum):
    """Which side of a target counts as good."""

    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        """Accept the full names plus the short ``higher``/``lower`` and ``min``/``max`` aliases."""
        if isinstance(value, Direction):
            return value
        aliases = {
            "higher": cls.HIGHER_IS_BETTER,
            "min": cls.HIGHER_IS_BETTER,
            "lower": cls.LOWER_IS_BETTER,
            "max": cls.LOWER_IS_BETTER,
        }
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


class FunnelType(str, Enum):
    """Funnel shapes with built-in stage tables."""

    INSIDE_SALES = "inside_sales"
    ECOMMERCE = "ecommerce"


class GrowthModel(str, Enum):
    """Revenue model used by the financial projection."""

    INVESTMENT_TO_REVENUE = "investment_to_revenue"
    REVENUE_GROWTH = "revenue_growth"


class CostScaling(str, Enum):
    """How a variable cost line scales with projected volume."""

    PER_ORDER = "per_order"
    PER_REVENUE = "per_revenue"
    FIXED = "fixed"


class AlertKind(str, Enum):
    """Threshold family that produced a projection alert."""

    MARGIN = "margin"
    EBITDA = "ebitda"
    ROAS = "roas"


class AlertSeverity(str, Enum):
    """Projection alert severity."""

    WARNING = "warning"
    ERROR = "error"


class ConfidenceLevel(str, Enum):
    """Confidence in a funnel reading based on the smallest stage volume."""

    HIGH = "alta"
    MEDIUM = "media"
    LOW = "baixa"


class PenaltyCategory(str, Enum):
    """What a confidence-score penalty is about."""

    SAMPLE = "amostra"
    COMPLETENESS = "completude"
    CONSISTENCY = "consistencia"


class BenchmarkPosition(str, Enum):
    """Where a rate sits relative to a benchmark, with a tolerance band."""

    ABOVE = "acima"
    BELOW = "abaixo"
    WITHIN = "dentro"
