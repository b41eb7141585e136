"""
Status Classifier — rate vs. target to an ordinal status.

Maps a derived value and its target into ok / attention / critical, with
no_data for undefined values and low_sample when the caller's sample is below
the configured minimum.

Higher-is-better metrics use ratio bands (current / target):
    ratio >= OK_RATIO                      -> ok
    ATTENTION_RATIO <= ratio < OK_RATIO    -> attention
    ratio < ATTENTION_RATIO                -> critical

Lower-is-better metrics (costs) use a tolerance over the target:
    current <= target                            -> ok
    current <= target * LOWER_ATTENTION_FACTOR   -> attention
    otherwise                                    -> critical

Precedence: no_data > low_sample > computed status.
"""

from typing import Optional, Union

import structlog

from funnel_engine.models.enums import Direction, Status
from funnel_engine.models.targets import Target

logger = structlog.get_logger()


OK_RATIO = 0.9
ATTENTION_RATIO = 0.7
LOWER_ATTENTION_FACTOR = 1.3
MIN_SAMPLE = 30


class StatusClassifier:
    """
    Threshold-based status classification.

    Each instance carries its own thresholds so that different calculators
    (inside-sales matrix, e-commerce funnel) can be tuned independently.

    Attributes:
        ok_ratio: current/target ratio at or above which a metric is ok
        attention_ratio: current/target ratio at or above which it is attention
        lower_attention_factor: tolerance multiplier for lower-is-better metrics
        min_sample: sample size below which the result is low_sample
    """

    def __init__(
        self,
        ok_ratio: float = OK_RATIO,
        attention_ratio: float = ATTENTION_RATIO,
        lower_attention_factor: float = LOWER_ATTENTION_FACTOR,
        min_sample: int = MIN_SAMPLE,
    ):
        if not 0 < attention_ratio <= ok_ratio:
            raise ValueError(
                f"Thresholds must satisfy 0 < attention_ratio <= ok_ratio "
                f"(got attention_ratio={attention_ratio}, ok_ratio={ok_ratio})"
            )
        if lower_attention_factor < 1:
            raise ValueError(
                f"lower_attention_factor must be >= 1 (got {lower_attention_factor})"
            )
        if min_sample < 0:
            raise ValueError(f"min_sample must be >= 0 (got {min_sample})")
        self.ok_ratio = ok_ratio
        self.attention_ratio = attention_ratio
        self.lower_attention_factor = lower_attention_factor
        self.min_sample = min_sample

    @classmethod
    def from_settings(cls, min_sample: Optional[int] = None) -> "StatusClassifier":
        """Build a classifier from application settings."""
        from funnel_engine.config import get_settings

        settings = get_settings()
        return cls(
            ok_ratio=settings.ok_ratio,
            attention_ratio=settings.attention_ratio,
            lower_attention_factor=settings.lower_attention_factor,
            min_sample=min_sample if min_sample is not None else settings.min_sample,
        )

    def classify(
        self,
        current: Optional[float],
        target: float,
        direction: Union[Direction, str] = Direction.HIGHER_IS_BETTER,
        sample_size: Optional[float] = None,
    ) -> Status:
        """
        Classify a value against a target.

        Args:
            current: Current value, None when undefined
            target: Target value (must be > 0 for higher-is-better)
            direction: Direction, or one of the aliases accepted by Direction.parse
            sample_size: Optional sample behind the value; below min_sample
                yields low_sample

        Returns:
            Status

        Raises:
            ValueError: If target <= 0 for a higher-is-better metric
        """
        direction = Direction.parse(direction)
        if direction == Direction.HIGHER_IS_BETTER and target <= 0:
            raise ValueError(f"target must be > 0 for a higher_is_better metric (got {target})")

        if current is None:
            return Status.NO_DATA
        if sample_size is not None and sample_size < self.min_sample:
            return Status.LOW_SAMPLE

        if direction == Direction.HIGHER_IS_BETTER:
            ratio = current / target
            if ratio >= self.ok_ratio:
                return Status.OK
            if ratio >= self.attention_ratio:
                return Status.ATTENTION
            return Status.CRITICAL

        if current <= target:
            return Status.OK
        if current <= target * self.lower_attention_factor:
            return Status.ATTENTION
        return Status.CRITICAL

    def classify_target(
        self,
        current: Optional[float],
        target: Target,
        sample_size: Optional[float] = None,
    ) -> Status:
        """Classify against a Target model."""
        return self.classify(current, target.value, target.direction, sample_size)

    def classify_many(
        self,
        values: dict[str, Optional[float]],
        targets: dict[str, Target],
    ) -> dict[str, Status]:
        """
        Classify every metric that has a target.

        Metrics without a target are skipped; targets without a value are
        reported as no_data.
        """
        statuses = {
            key: self.classify_target(values.get(key), target)
            for key, target in targets.items()
        }
        logger.debug(
            "metrics_classified",
            total=len(statuses),
            critical=sum(1 for s in statuses.values() if s == Status.CRITICAL),
        )
        return statuses


_default = StatusClassifier()


def classify(
    current: Optional[float],
    target: float,
    direction: Union[Direction, str] = Direction.HIGHER_IS_BETTER,
    sample_size: Optional[float] = None,
) -> Status:
    """Classify with the default thresholds."""
    return _default.classify(current, target, direction, sample_size)
