"""
Targets and benchmark tables.

A Target is a user-editable threshold for one metric. The default tables hold
the reference benchmarks for each funnel type; ``default_targets`` always
returns fresh Target instances so edits never leak back into the tables.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .benchmarks import BenchmarkProfile, benchmark_profile
from .enums import Direction, FunnelType


class Target(BaseModel):
    """
    A named threshold for one metric.

    Attributes:
        value: Threshold value, in the metric's own unit (percent for rates)
        direction: Whether values above or below the threshold are good
        label: Display label
    """

    model_config = ConfigDict(validate_assignment=True)

    value: float = Field(description="Threshold value in the metric's unit")
    direction: Direction = Field(
        default=Direction.HIGHER_IS_BETTER,
        description="Whether higher or lower values are better",
    )
    label: str = Field(default="", description="Display label")

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v):
        """Accept short aliases such as 'higher' or 'max'."""
        return Direction.parse(v)

    @model_validator(mode="after")
    def validate_value_for_direction(self) -> "Target":
        """Ratio classification needs a positive target; cost targets cannot be negative."""
        if self.direction == Direction.HIGHER_IS_BETTER and self.value <= 0:
            raise ValueError(
                f"Target '{self.label or 'unnamed'}' must be > 0 for a higher_is_better metric "
                f"(got {self.value})"
            )
        if self.direction == Direction.LOWER_IS_BETTER and self.value < 0:
            raise ValueError(
                f"Target '{self.label or 'unnamed'}' cannot be negative (got {self.value})"
            )
        return self


_H = Direction.HIGHER_IS_BETTER
_L = Direction.LOWER_IS_BETTER

# Inside sales (Lead -> MQL -> SQL -> Meeting -> Contract), BR 2025 reference ranges.
# Lead->MQL: 10-20% typical; MQL->SQL: 20-35%; SQL->Contract: 15-25%.
INSIDE_SALES_TARGETS: Mapping[str, tuple[float, Direction, str]] = MappingProxyType({
    "ctr": (1.5, _H, "CTR (%)"),
    "cpc": (8.0, _L, "CPC (R$)"),
    "cpm": (60.0, _L, "CPM (R$)"),
    "cvr_click_lead": (5.0, _H, "CVR clique → lead (%)"),
    "cpl": (150.0, _L, "CPL (R$)"),
    "lead_to_mql": (15.0, _H, "Lead → MQL (%)"),
    "mql_to_sql": (30.0, _H, "MQL → SQL (%)"),
    "sql_to_meeting": (35.0, _H, "SQL → Reunião (%)"),
    "meeting_to_win": (15.0, _H, "Reunião → Contrato (%)"),
    "sql_to_win": (20.0, _H, "SQL → Contrato (%)"),
})

# E-commerce storefront benchmarks.
ECOMMERCE_TARGETS: Mapping[str, tuple[float, Direction, str]] = MappingProxyType({
    "cpc": (1.0, _L, "CPC (R$)"),
    "ctr": (1.0, _H, "CTR (%)"),
    "visitor_to_cart": (10.0, _H, "Visitantes → Carrinho (%)"),
    "cart_to_purchase": (10.0, _H, "Carrinho → Compra (%)"),
    "purchase_to_payment": (80.0, _H, "Compra → Pagamento (%)"),
})

_TABLES: Mapping[FunnelType, Mapping[str, tuple[float, Direction, str]]] = MappingProxyType({
    FunnelType.INSIDE_SALES: INSIDE_SALES_TARGETS,
    FunnelType.ECOMMERCE: ECOMMERCE_TARGETS,
})


def default_targets(
    funnel: FunnelType = FunnelType.INSIDE_SALES,
    profile: Optional[Union[str, BenchmarkProfile]] = None,
) -> dict[str, Target]:
    """
    Build a fresh, editable target set for a funnel type.

    Args:
        funnel: Funnel type
        profile: Benchmark profile (or its name) whose stage rates replace
            the matching default targets

    Raises:
        ValueError: If the funnel type or the profile name is unknown
    """
    table = _TABLES[FunnelType(funnel)]
    targets = {
        key: Target(value=value, direction=direction, label=label)
        for key, (value, direction, label) in table.items()
    }
    if profile is None:
        return targets

    if isinstance(profile, str):
        resolved = benchmark_profile(segment=profile, channel=profile)
        if resolved is None:
            raise ValueError(f"Unknown benchmark profile: {profile}")
        profile = resolved

    for key, rate in profile.rates().items():
        if key in targets:
            targets[key].value = rate
    return targets
