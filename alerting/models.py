"""
Alerting - Models.

============================================================
PURPOSE
============================================================
The Alert entity and its vocabulary.

Alerts are immutable values. Lifecycle changes go through the
pure functions in alerting.transitions, which return a new Alert.

============================================================
LIFECYCLE
============================================================
ACTIVE ──► ACKNOWLEDGED ──► IN_PROGRESS ──► RESOLVED
   │             │               │
   └─────────────┴───────────────┴──► DISMISSED
   └─────────────┴───────────────┴──► ESCALATED ──► RESOLVED / DISMISSED

RESOLVED and DISMISSED are terminal.
============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ============================================================
# ENUMS
# ============================================================

class AlertType(Enum):
    """What pattern raised the alert."""

    LOW_SCORE = "low_score"
    SUDDEN_DROP = "sudden_drop"
    CONSECUTIVE_NEGATIVE = "consecutive_negative"

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ")


class AlertSeverity(Enum):
    """Alert severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertStatus(Enum):
    """Alert lifecycle status."""

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
    ESCALATED = "escalated"

    @property
    def is_open(self) -> bool:
        """Blocks a new alert for the same subject."""
        return self in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


OPEN_STATUSES = frozenset({
    AlertStatus.ACTIVE,
    AlertStatus.ACKNOWLEDGED,
    AlertStatus.IN_PROGRESS,
})


TERMINAL_STATUSES = frozenset({
    AlertStatus.RESOLVED,
    AlertStatus.DISMISSED,
})


class RecommendedAction(Enum):
    """Suggested operator response."""

    REVIEW_DRIVER_PROFILE = "review_driver_profile"
    CONTACT_DRIVER = "contact_driver"
    SCHEDULE_TRAINING = "schedule_training"
    ASSIGN_MENTOR = "assign_mentor"
    SUSPEND_TEMPORARILY = "suspend_temporarily"
    INVESTIGATE_FURTHER = "investigate_further"
    MONITOR_CLOSELY = "monitor_closely"
    NO_ACTION_NEEDED = "no_action_needed"


class AlertAction(Enum):
    """Operator actions on an alert."""

    ACKNOWLEDGE = "acknowledge"
    ASSIGN = "assign"
    RESOLVE = "resolve"
    DISMISS = "dismiss"
    ESCALATE = "escalate"


# ============================================================
# ALERT
# ============================================================

@dataclass(frozen=True)
class Alert:
    """
    One alert about one subject.

    ============================================================
    INVARIANTS
    ============================================================
    - cooldown_expires_at > created_at
    - at most one open alert per subject (enforced by coordinator)

    ============================================================
    """

    alert_id: str
    subject_id: str
    alert_type: AlertType
    severity: AlertSeverity
    status: AlertStatus
    current_score: float
    previous_score: Optional[float]
    threshold_value: float
    recommended_action: RecommendedAction
    message: str
    consecutive_negative_streak: int
    created_at: datetime
    updated_at: datetime
    cooldown_expires_at: datetime

    score_drop: Optional[float] = None
    related_feedback_ids: Tuple[str, ...] = field(default_factory=tuple)

    # Lifecycle
    assigned_to: Optional[str] = None
    assigned_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    acknowledgment_notes: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    dismissed_by: Optional[str] = None
    dismissed_at: Optional[datetime] = None
    dismissal_reason: Optional[str] = None
    escalated_by: Optional[str] = None
    escalated_at: Optional[datetime] = None
    escalation_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def in_cooldown(self, now: datetime) -> bool:
        return now < self.cooldown_expires_at

    def is_overdue(self, now: datetime, overdue_after_hours: float = 24.0) -> bool:
        """Still ACTIVE longer than the overdue window."""
        return (
            self.status == AlertStatus.ACTIVE
            and now - self.created_at > timedelta(hours=overdue_after_hours)
        )

    def to_dict(self) -> Dict[str, Any]:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "alert_id": self.alert_id,
            "subject_id": self.subject_id,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "status": self.status.value,
            "current_score": self.current_score,
            "previous_score": self.previous_score,
            "score_drop": self.score_drop,
            "threshold_value": self.threshold_value,
            "recommended_action": self.recommended_action.value,
            "message": self.message,
            "consecutive_negative_streak": self.consecutive_negative_streak,
            "related_feedback_ids": list(self.related_feedback_ids),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "cooldown_expires_at": iso(self.cooldown_expires_at),
            "assigned_to": self.assigned_to,
            "assigned_at": iso(self.assigned_at),
            "acknowledged_by": self.acknowledged_by,
            "acknowledged_at": iso(self.acknowledged_at),
            "acknowledgment_notes": self.acknowledgment_notes,
            "resolved_by": self.resolved_by,
            "resolved_at": iso(self.resolved_at),
            "resolution_notes": self.resolution_notes,
            "dismissed_by": self.dismissed_by,
            "dismissed_at": iso(self.dismissed_at),
            "dismissal_reason": self.dismissal_reason,
            "escalated_by": self.escalated_by,
            "escalated_at": iso(self.escalated_at),
            "escalation_reason": self.escalation_reason,
        }


# ============================================================
# STATISTICS
# ============================================================

@dataclass(frozen=True)
class AlertStatistics:
    """Snapshot of open alert counts."""

    total_active: int
    critical_count: int
    high_count: int
    medium_count: int
    low_count: int
    unacknowledged_count: int
    unassigned_count: int
    overdue_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_active": self.total_active,
            "critical_count": self.critical_count,
            "high_count": self.high_count,
            "medium_count": self.medium_count,
            "low_count": self.low_count,
            "unacknowledged_count": self.unacknowledged_count,
            "unassigned_count": self.unassigned_count,
            "overdue_count": self.overdue_count,
        }


__all__ = [
    "AlertType",
    "AlertSeverity",
    "AlertStatus",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    "RecommendedAction",
    "AlertAction",
    "Alert",
    "AlertStatistics",
]
