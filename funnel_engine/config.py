"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (prefix ``FUNNEL_``)."""

    model_config = SettingsConfigDict(
        env_prefix="FUNNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Status classification
    ok_ratio: float = Field(
        default=0.9, gt=0.0, le=1.0, description="current/target ratio at or above which a stage is ok"
    )
    attention_ratio: float = Field(
        default=0.7, gt=0.0, le=1.0, description="current/target ratio at or above which a stage is attention"
    )
    lower_attention_factor: float = Field(
        default=1.3, ge=1.0, description="Multiplier over target tolerated as attention for cost metrics"
    )

    # Eligibility
    min_sample: int = Field(
        default=30, ge=1, description="Default minimum sample for the status classifier"
    )
    inside_sales_min_sample: Optional[int] = Field(
        default=None, ge=1, description="Minimum denominator applied to every inside-sales stage"
    )
    ecommerce_min_sample: Optional[int] = Field(
        default=None, ge=1, description="Minimum denominator applied to every e-commerce stage"
    )
    stage_min_samples: dict[str, int] = Field(
        default_factory=dict,
        description="Per-stage minimum denominators, JSON object keyed by stage id",
    )

    # Diagnostics
    attention_diagnostic_limit: int = Field(
        default=3, ge=0, description="Catalog entries returned for an attention stage"
    )
    critical_diagnostic_limit: int = Field(
        default=5, ge=0, description="Catalog entries returned for a critical stage"
    )

    # Projection alert floors
    default_min_margin_pct: Optional[float] = Field(
        default=None, description="Default contribution margin floor (%)"
    )
    default_min_roas: Optional[float] = Field(default=None, description="Default ROAS floor")
    default_min_ebitda: Optional[float] = Field(default=None, description="Default EBITDA floor")

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")

    @field_validator("attention_ratio")
    @classmethod
    def validate_attention_below_ok(cls, v: float, info) -> float:
        """Ensure the attention band sits below the ok band."""
        ok = info.data.get("ok_ratio")
        if ok is not None and v > ok:
            raise ValueError("attention_ratio must not exceed ok_ratio")
        return v

    @field_validator("stage_min_samples")
    @classmethod
    def validate_stage_min_samples(cls, v: dict[str, int]) -> dict[str, int]:
        bad = sorted(stage for stage, n in v.items() if n < 1)
        if bad:
            raise ValueError(f"stage_min_samples must be >= 1 (stages: {', '.join(bad)})")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
