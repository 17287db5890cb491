"""
Reputation Models.

============================================================
PURPOSE
============================================================
The per-subject aggregate and the values the tracker hands out.

SubjectStats is immutable: every observation produces a new value,
which keeps updates and full recomputes on the same code path.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


# ============================================================
# ENUMS
# ============================================================

class SubjectStatus(Enum):
    """Reputation status, ordered by severity."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def is_escalation_from(self, other: "SubjectStatus") -> bool:
        return self.rank > other.rank


_STATUS_RANK = {
    SubjectStatus.NORMAL: 0,
    SubjectStatus.WARNING: 1,
    SubjectStatus.CRITICAL: 2,
}


class Trend(Enum):
    """Direction of the latest EMA move."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


# ============================================================
# SUBJECT STATS
# ============================================================

@dataclass(frozen=True)
class SubjectStats:
    """
    Rolling reputation aggregate for one subject.

    Invariants:
    - total_count == positive_count + negative_count + neutral_count
    - alert_status is a pure function of (ema_score, streak)
    """

    subject_id: str

    ema_score: float = 0.0
    """Exponential moving average of sentiment scores."""

    previous_ema_score: Optional[float] = None
    """EMA before the latest observation; None until the first one."""

    total_count: int = 0
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0

    very_positive_count: int = 0
    """Subset of positive_count labelled VERY_POSITIVE."""

    very_negative_count: int = 0
    """Subset of negative_count labelled VERY_NEGATIVE."""

    consecutive_negative_streak: int = 0

    average_rating: Optional[float] = None
    """Mean star rating over rated observations only."""

    ratings_count: int = 0

    alert_status: SubjectStatus = SubjectStatus.NORMAL

    last_feedback_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    # --------------------------------------------------------
    # Derived views
    # --------------------------------------------------------

    def trend(self, epsilon: float = 0.05) -> Trend:
        if self.previous_ema_score is None:
            return Trend.STABLE
        delta = self.ema_score - self.previous_ema_score
        if abs(delta) < epsilon:
            return Trend.STABLE
        return Trend.IMPROVING if delta > 0 else Trend.DECLINING

    @property
    def positive_percentage(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.positive_count * 100.0 / self.total_count

    @property
    def negative_percentage(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.negative_count * 100.0 / self.total_count

    @property
    def score_drop(self) -> Optional[float]:
        """previous - current; positive means the score fell."""
        if self.previous_ema_score is None:
            return None
        return self.previous_ema_score - self.ema_score

    def needs_attention(self, streak_threshold: int = 3) -> bool:
        return (
            self.alert_status != SubjectStatus.NORMAL
            or self.consecutive_negative_streak >= streak_threshold
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "ema_score": self.ema_score,
            "previous_ema_score": self.previous_ema_score,
            "total_count": self.total_count,
            "positive_count": self.positive_count,
            "negative_count": self.negative_count,
            "neutral_count": self.neutral_count,
            "very_positive_count": self.very_positive_count,
            "very_negative_count": self.very_negative_count,
            "consecutive_negative_streak": self.consecutive_negative_streak,
            "average_rating": self.average_rating,
            "ratings_count": self.ratings_count,
            "alert_status": self.alert_status.value,
            "trend": self.trend().value,
            "positive_percentage": self.positive_percentage,
            "negative_percentage": self.negative_percentage,
            "last_feedback_at": self.last_feedback_at.isoformat() if self.last_feedback_at else None,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


# ============================================================
# TRACKER OUTPUTS
# ============================================================

@dataclass(frozen=True)
class StatsUpdate:
    """Result of folding one observation into a subject's stats."""

    stats: SubjectStats
    previous_status: SubjectStatus
    transitioned: bool
    """True only when the status rank increased."""

    @property
    def subject_id(self) -> str:
        return self.stats.subject_id


@dataclass(frozen=True)
class OverallStatistics:
    """Fleet-wide reputation summary."""

    total_subjects: int
    critical_count: int
    warning_count: int
    normal_count: int
    average_ema_score: float
    total_feedback_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_subjects": self.total_subjects,
            "critical_count": self.critical_count,
            "warning_count": self.warning_count,
            "normal_count": self.normal_count,
            "average_ema_score": self.average_ema_score,
            "total_feedback_count": self.total_feedback_count,
        }


__all__ = [
    "SubjectStatus",
    "Trend",
    "SubjectStats",
    "StatsUpdate",
    "OverallStatistics",
]
