"""
Raw and derived metric models.

A MetricSnapshot holds the raw counters for one analysis period as entered by
a user or synced from an integration. DerivedMetrics is the nullable mapping
computed from it by the derivation engine.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ChannelBreakdown(BaseModel):
    """
    Counters for a single paid-media channel (e.g. Facebook, Google).

    Clicks may be given directly or estimated from investment and CPC.

    Attributes:
        name: Channel name
        investment: Spend on the channel for the period
        cpc: Cost per click reported by the channel
        ctr: Click-through rate reported by the channel (%)
        clicks: Clicks reported by the channel
        impressions: Impressions reported by the channel
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Channel name")
    investment: Optional[float] = Field(default=None, ge=0, description="Spend on the channel")
    cpc: Optional[float] = Field(default=None, ge=0, description="Cost per click")
    ctr: Optional[float] = Field(default=None, ge=0, description="Click-through rate (%)")
    clicks: Optional[float] = Field(default=None, ge=0, description="Clicks")
    impressions: Optional[float] = Field(default=None, ge=0, description="Impressions")

    @field_validator("name")
    @classmethod
    def validate_name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Channel name cannot be empty")
        return v.strip()


class MetricSnapshot(BaseModel):
    """
    Immutable raw counters for one analysis period.

    Every counter is optional. ``None`` means "not supplied" and is never
    treated as zero by the engines.

    Attributes:
        investment: Paid media spend
        impressions: Ad impressions
        clicks: Ad clicks
        leads: Leads captured
        mql: Marketing-qualified leads
        sql: Sales-qualified leads
        meetings: Meetings held
        contracts: Contracts signed
        revenue: Revenue for the period
        ticket_size: Average ticket
        variable_costs: Volume-linked costs, used for margin %
        visitors: Store visitors (e-commerce)
        carts: Sessions that added to cart (e-commerce)
        purchases: Checkouts started / orders placed (e-commerce)
        paid_orders: Orders actually paid (e-commerce)
        channels: Per-channel media breakdown
        period_label: Free-form label for the analysis period
    """

    model_config = ConfigDict(frozen=True)

    investment: Optional[float] = Field(default=None, ge=0)
    impressions: Optional[float] = Field(default=None, ge=0)
    clicks: Optional[float] = Field(default=None, ge=0)

    leads: Optional[float] = Field(default=None, ge=0)
    mql: Optional[float] = Field(default=None, ge=0)
    sql: Optional[float] = Field(default=None, ge=0)
    meetings: Optional[float] = Field(default=None, ge=0)
    contracts: Optional[float] = Field(default=None, ge=0)

    revenue: Optional[float] = Field(default=None, ge=0)
    ticket_size: Optional[float] = Field(default=None, ge=0)
    variable_costs: Optional[float] = Field(default=None, ge=0)

    visitors: Optional[float] = Field(default=None, ge=0)
    carts: Optional[float] = Field(default=None, ge=0)
    purchases: Optional[float] = Field(default=None, ge=0)
    paid_orders: Optional[float] = Field(default=None, ge=0)

    channels: tuple[ChannelBreakdown, ...] = Field(default_factory=tuple)
    period_label: Optional[str] = Field(default=None, description="Analysis period label")

    def counter(self, name: str) -> Optional[float]:
        """Return a raw counter by field name, or None when unknown or unset."""
        if name not in type(self).model_fields or name in ("channels", "period_label"):
            return None
        return getattr(self, name)


class DerivedMetrics(BaseModel):
    """
    Read-only mapping from metric key to a nullable value.

    ``None`` means the metric is undefined for the snapshot (division by zero
    or missing input). It is never a stand-in for zero.

    Example:
        >>> derived = DerivedMetrics(metrics={"ctr": 1.2, "cpl": None})
        >>> derived["ctr"]
        1.2
        >>> derived.get("cpl") is None
        True
        >>> list(derived)
        ['ctr', 'cpl']
    """

    model_config = ConfigDict(frozen=True)

    metrics: Mapping[str, Optional[float]] = Field(default_factory=dict, validate_default=True)

    @field_validator("metrics")
    @classmethod
    def freeze_metrics(cls, v: Mapping[str, Optional[float]]) -> Mapping[str, Optional[float]]:
        """Store a read-only view over a private copy of the input."""
        return MappingProxyType(dict(v))

    @field_serializer("metrics")
    def serialize_metrics(self, v: Mapping[str, Optional[float]]) -> dict[str, Optional[float]]:
        return dict(v)

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.metrics)

    def __getitem__(self, key: str) -> Optional[float]:
        return self.metrics[key]

    def __contains__(self, key: object) -> bool:
        return key in self.metrics

    def __len__(self) -> int:
        return len(self.metrics)

    def get(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return self.metrics.get(key, default)

    def keys(self) -> Iterator[str]:
        return iter(self.metrics)

    def items(self) -> Iterator[tuple[str, Optional[float]]]:
        return iter(self.metrics.items())

    def defined(self) -> dict[str, float]:
        """Only the metrics that have a value."""
        return {k: v for k, v in self.metrics.items() if v is not None}
