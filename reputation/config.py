"""
Reputation Tracking Configuration.

============================================================
PURPOSE
============================================================
Thresholds and smoothing for the per-subject EMA.

The same two thresholds drive both the subject status and the
alert severity table, so there is exactly one place to tune them.

============================================================
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List

from core.exceptions import InvalidConfigError


@dataclass(frozen=True)
class ReputationConfig:
    """Configuration for EMA tracking and status classification."""

    # Smoothing factor: new_ema = alpha * score + (1 - alpha) * old_ema
    alpha: float = 0.3

    # Status thresholds (ema <= threshold)
    critical_threshold: float = -0.6
    warning_threshold: float = -0.3

    # Consecutive negative observations that force WARNING
    negative_streak_threshold: int = 3

    # |ema - previous_ema| below this reads as a STABLE trend
    trend_epsilon: float = 0.05

    @classmethod
    def from_env(cls) -> "ReputationConfig":
        """Load configuration from environment variables."""
        return cls(
            alpha=float(os.getenv("REPUTATION_EMA_ALPHA", "0.3")),
            critical_threshold=float(os.getenv("REPUTATION_CRITICAL_THRESHOLD", "-0.6")),
            warning_threshold=float(os.getenv("REPUTATION_WARNING_THRESHOLD", "-0.3")),
            negative_streak_threshold=int(os.getenv("REPUTATION_NEGATIVE_STREAK_THRESHOLD", "3")),
            trend_epsilon=float(os.getenv("REPUTATION_TREND_EPSILON", "0.05")),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not 0.0 < self.alpha < 1.0:
            errors.append("alpha must be strictly between 0 and 1")

        if not -1.0 <= self.critical_threshold <= 1.0:
            errors.append("critical_threshold must be within [-1, 1]")

        if not -1.0 <= self.warning_threshold <= 1.0:
            errors.append("warning_threshold must be within [-1, 1]")

        if self.critical_threshold >= self.warning_threshold:
            errors.append("critical_threshold must be below warning_threshold")

        if self.negative_streak_threshold < 1:
            errors.append("negative_streak_threshold must be at least 1")

        if self.trend_epsilon < 0:
            errors.append("trend_epsilon must not be negative")

        return errors

    def ensure_valid(self) -> "ReputationConfig":
        """Raise InvalidConfigError unless the config validates."""
        errors = self.validate()
        if errors:
            raise InvalidConfigError("ReputationConfig", errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alpha": self.alpha,
            "critical_threshold": self.critical_threshold,
            "warning_threshold": self.warning_threshold,
            "negative_streak_threshold": self.negative_streak_threshold,
            "trend_epsilon": self.trend_epsilon,
        }


DEFAULT_REPUTATION_CONFIG = ReputationConfig()


__all__ = ["ReputationConfig", "DEFAULT_REPUTATION_CONFIG"]
