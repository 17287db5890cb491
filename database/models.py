"""
Database ORM Models.

============================================================
PURPOSE
============================================================
Relational rows behind the SQL-backed stores.

============================================================
MODELS
============================================================
1. SubjectStatsRow: One rolling reputation aggregate per subject
2. AlertRow: Alert with its full lifecycle audit trail
3. FeedbackHistoryRow: Every processed feedback with its score

Timestamps are stored timezone-aware; SQLite hands them back
naive, the repositories re-attach UTC.

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base


# ============================================================
# SUBJECT STATS
# ============================================================


class SubjectStatsRow(Base):
    """
    Rolling reputation aggregate for one subject.

    Mirrors reputation.models.SubjectStats field for field.
    """

    __tablename__ = "subject_stats"

    subject_id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )

    # EMA
    ema_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Exponential moving average of sentiment scores (-1..1)",
    )

    previous_ema_score: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="EMA before the latest observation",
    )

    # Counters
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    positive_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    negative_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    neutral_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    very_positive_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    very_negative_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    consecutive_negative_streak: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Negative observations since the last non-negative one",
    )

    # Ratings
    average_rating: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Mean star rating over rated observations",
    )

    ratings_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    alert_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="normal",
        comment="normal, warning, critical",
    )

    # Timestamps
    last_feedback_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    last_updated: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_subject_stats_alert_status", "alert_status"),
        Index("ix_subject_stats_ema_score", "ema_score"),
    )

    def __repr__(self) -> str:
        return (
            f"SubjectStatsRow("
            f"subject_id={self.subject_id}, "
            f"ema={self.ema_score}, "
            f"status={self.alert_status})"
        )


# ============================================================
# ALERTS
# ============================================================


class AlertRow(Base):
    """
    Reputation alert and its operator history.

    ============================================================
    WHAT IT STORES
    ============================================================
    - Trigger snapshot (scores, threshold, streak)
    - Classification (type, severity, recommended action)
    - Lifecycle audit (who did what, when, with which notes)

    ============================================================
    """

    __tablename__ = "alerts"

    alert_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    subject_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )

    # Classification
    alert_type: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="low_score, sudden_drop, consecutive_negative",
    )

    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="low, medium, high, critical",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="active, acknowledged, in_progress, escalated, resolved, dismissed",
    )

    recommended_action: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
    )

    # Trigger snapshot
    current_score: Mapped[float] = mapped_column(Float, nullable=False)
    previous_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    threshold_value: Mapped[float] = mapped_column(Float, nullable=False)
    score_drop: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    consecutive_negative_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    related_feedback_ids: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Recent negative feedback ids, newest first",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cooldown_expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="No new alert for the subject before this instant",
    )

    # Lifecycle audit
    assigned_to: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledged_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledgment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dismissed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    dismissed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    dismissal_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    escalated_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    escalated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    escalation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_alerts_subject_created", "subject_id", "created_at"),
        Index("ix_alerts_status", "status"),
        Index("ix_alerts_severity", "severity"),
    )

    def __repr__(self) -> str:
        return (
            f"AlertRow("
            f"alert_id={self.alert_id}, "
            f"subject_id={self.subject_id}, "
            f"status={self.status})"
        )


# ============================================================
# FEEDBACK HISTORY
# ============================================================


class FeedbackHistoryRow(Base):
    """Append-only log of processed feedback."""

    __tablename__ = "feedback_history"

    # Arrival order
    seq: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    feedback_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )

    subject_id: Mapped[str] = mapped_column(String(128), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Score
    score: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="lexical, openrouter, fallback",
    )
    keywords: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_feedback_history_subject_seq", "subject_id", "seq"),
    )

    def score_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "keywords": list(self.keywords or []),
            "source": self.source,
            "reasoning": self.reasoning,
        }

    def __repr__(self) -> str:
        return (
            f"FeedbackHistoryRow("
            f"feedback_id={self.feedback_id}, "
            f"subject_id={self.subject_id}, "
            f"score={self.score})"
        )


__all__ = ["SubjectStatsRow", "AlertRow", "FeedbackHistoryRow"]
