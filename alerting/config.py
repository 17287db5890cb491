"""
Alerting - Configuration.

============================================================
PURPOSE
============================================================
Cooldown, classification and notification settings for the
alert coordinator.

The EMA thresholds and negative streak that decide severity and type
live in ReputationConfig; the coordinator reads them from there so
status, severity and type never drift apart.

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import InvalidConfigError


@dataclass(frozen=True)
class AlertingConfig:
    """
    Configuration for alert creation and lifecycle.

    ============================================================
    ALERT PHILOSOPHY
    ============================================================
    - One open alert per subject at a time
    - A cooldown window after every alert, whatever its outcome
    - Escalation only; recoveries never raise alerts

    ============================================================
    """

    # Cooldown after an alert is created
    cooldown_hours: float = 24.0

    # previous_ema - ema above this classifies as SUDDEN_DROP
    sudden_drop_threshold: float = 0.3

    # Streak at which HIGH severity recommends training
    training_streak: int = 5

    # Open alerts older than this are overdue
    overdue_after_hours: float = 24.0

    # Negative feedback ids attached to a new alert
    related_feedback_limit: int = 5

    # Telegram integration
    telegram_bot_token: Optional[str] = field(default=None, repr=False)
    telegram_chat_id: Optional[str] = None
    telegram_include_details: bool = True

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_env(cls) -> "AlertingConfig":
        """Load configuration from environment variables."""
        return cls(
            cooldown_hours=float(os.getenv("ALERT_COOLDOWN_HOURS", "24")),
            sudden_drop_threshold=float(os.getenv("ALERT_SUDDEN_DROP_THRESHOLD", "0.3")),
            training_streak=int(os.getenv("ALERT_TRAINING_STREAK", "5")),
            overdue_after_hours=float(os.getenv("ALERT_OVERDUE_HOURS", "24")),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
            telegram_include_details=os.getenv("TELEGRAM_INCLUDE_DETAILS", "true").lower() == "true",
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.cooldown_hours <= 0:
            errors.append("cooldown_hours must be positive")

        if self.sudden_drop_threshold <= 0:
            errors.append("sudden_drop_threshold must be positive")

        if self.training_streak < 1:
            errors.append("training_streak must be at least 1")

        if self.overdue_after_hours <= 0:
            errors.append("overdue_after_hours must be positive")

        if self.related_feedback_limit < 0:
            errors.append("related_feedback_limit must not be negative")

        if bool(self.telegram_bot_token) != bool(self.telegram_chat_id):
            errors.append("telegram_bot_token and telegram_chat_id must be set together")

        return errors

    def ensure_valid(self) -> "AlertingConfig":
        errors = self.validate()
        if errors:
            raise InvalidConfigError("AlertingConfig", errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cooldown_hours": self.cooldown_hours,
            "sudden_drop_threshold": self.sudden_drop_threshold,
            "training_streak": self.training_streak,
            "overdue_after_hours": self.overdue_after_hours,
            "related_feedback_limit": self.related_feedback_limit,
            "telegram_enabled": self.telegram_enabled,
            "telegram_include_details": self.telegram_include_details,
        }


DEFAULT_ALERTING_CONFIG = AlertingConfig()


__all__ = ["AlertingConfig", "DEFAULT_ALERTING_CONFIG"]
