"""
Database Repositories - SQL-backed stores.

============================================================
PURPOSE
============================================================
SQLAlchemy implementations of the store protocols:

- SqlSubjectStatsStore  -> reputation.store.SubjectStatsStore
- SqlAlertStore         -> alerting.store.AlertStore
- SqlFeedbackHistory    -> pipeline.history.FeedbackHistoryStore

Each call runs in its own transaction scope. Rows are converted
to and from the frozen domain values at this boundary; nothing
outside this module sees an ORM object.

============================================================
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from alerting.models import (
    Alert,
    AlertSeverity,
    AlertStatus,
    AlertType,
    RecommendedAction,
)
from core.clock import ensure_utc
from pipeline.history import FeedbackEntry
from reputation.models import SubjectStats, SubjectStatus
from sentiment.models import ScoredFeedback

from .engine import read_scope, transaction_scope
from .models import AlertRow, FeedbackHistoryRow, SubjectStatsRow


logger = logging.getLogger(__name__)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    return ensure_utc(value) if value is not None else None


# ============================================================
# SUBJECT STATS
# ============================================================


class SqlSubjectStatsStore:
    """SubjectStats persisted in the ``subject_stats`` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, subject_id: str) -> Optional[SubjectStats]:
        with read_scope(self._session_factory) as session:
            row = session.get(SubjectStatsRow, subject_id)
            return self._to_domain(row) if row is not None else None

    def save(self, stats: SubjectStats) -> None:
        with transaction_scope(self._session_factory) as session:
            session.merge(self._to_row(stats))
        logger.debug(f"Saved stats for {stats.subject_id}: ema={stats.ema_score:.3f}")

    def list_all(self) -> List[SubjectStats]:
        with read_scope(self._session_factory) as session:
            rows = session.scalars(
                select(SubjectStatsRow).order_by(SubjectStatsRow.subject_id)
            ).all()
            return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_row(stats: SubjectStats) -> SubjectStatsRow:
        return SubjectStatsRow(
            subject_id=stats.subject_id,
            ema_score=stats.ema_score,
            previous_ema_score=stats.previous_ema_score,
            total_count=stats.total_count,
            positive_count=stats.positive_count,
            negative_count=stats.negative_count,
            neutral_count=stats.neutral_count,
            very_positive_count=stats.very_positive_count,
            very_negative_count=stats.very_negative_count,
            consecutive_negative_streak=stats.consecutive_negative_streak,
            average_rating=stats.average_rating,
            ratings_count=stats.ratings_count,
            alert_status=stats.alert_status.value,
            last_feedback_at=stats.last_feedback_at,
            last_updated=stats.last_updated,
        )

    @staticmethod
    def _to_domain(row: SubjectStatsRow) -> SubjectStats:
        return SubjectStats(
            subject_id=row.subject_id,
            ema_score=row.ema_score,
            previous_ema_score=row.previous_ema_score,
            total_count=row.total_count,
            positive_count=row.positive_count,
            negative_count=row.negative_count,
            neutral_count=row.neutral_count,
            very_positive_count=row.very_positive_count,
            very_negative_count=row.very_negative_count,
            consecutive_negative_streak=row.consecutive_negative_streak,
            average_rating=row.average_rating,
            ratings_count=row.ratings_count,
            alert_status=SubjectStatus(row.alert_status),
            last_feedback_at=_utc(row.last_feedback_at),
            last_updated=_utc(row.last_updated),
        )


# ============================================================
# ALERTS
# ============================================================

# Optional audit columns copied verbatim between Alert and AlertRow
_AUDIT_TEXT_FIELDS = (
    "assigned_to",
    "acknowledged_by",
    "acknowledgment_notes",
    "resolved_by",
    "resolution_notes",
    "dismissed_by",
    "dismissal_reason",
    "escalated_by",
    "escalation_reason",
)

_AUDIT_TIME_FIELDS = (
    "assigned_at",
    "acknowledged_at",
    "resolved_at",
    "dismissed_at",
    "escalated_at",
)


class SqlAlertStore:
    """Alerts persisted in the ``alerts`` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, alert_id: str) -> Optional[Alert]:
        with read_scope(self._session_factory) as session:
            row = session.get(AlertRow, alert_id)
            return self._to_domain(row) if row is not None else None

    def save(self, alert: Alert) -> None:
        with transaction_scope(self._session_factory) as session:
            session.merge(self._to_row(alert))
        logger.debug(f"Saved alert {alert.alert_id} ({alert.status.value})")

    def list_for_subject(self, subject_id: str) -> List[Alert]:
        with read_scope(self._session_factory) as session:
            rows = session.scalars(
                select(AlertRow)
                .where(AlertRow.subject_id == subject_id)
                .order_by(AlertRow.created_at, AlertRow.alert_id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def list_all(self) -> List[Alert]:
        with read_scope(self._session_factory) as session:
            rows = session.scalars(
                select(AlertRow).order_by(AlertRow.created_at, AlertRow.alert_id)
            ).all()
            return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_row(alert: Alert) -> AlertRow:
        row = AlertRow(
            alert_id=alert.alert_id,
            subject_id=alert.subject_id,
            alert_type=alert.alert_type.value,
            severity=alert.severity.value,
            status=alert.status.value,
            recommended_action=alert.recommended_action.value,
            current_score=alert.current_score,
            previous_score=alert.previous_score,
            threshold_value=alert.threshold_value,
            score_drop=alert.score_drop,
            consecutive_negative_streak=alert.consecutive_negative_streak,
            message=alert.message,
            related_feedback_ids=list(alert.related_feedback_ids),
            created_at=alert.created_at,
            updated_at=alert.updated_at,
            cooldown_expires_at=alert.cooldown_expires_at,
        )
        for name in _AUDIT_TEXT_FIELDS + _AUDIT_TIME_FIELDS:
            setattr(row, name, getattr(alert, name))
        return row

    @staticmethod
    def _to_domain(row: AlertRow) -> Alert:
        audit = {name: getattr(row, name) for name in _AUDIT_TEXT_FIELDS}
        audit.update({name: _utc(getattr(row, name)) for name in _AUDIT_TIME_FIELDS})
        return Alert(
            alert_id=row.alert_id,
            subject_id=row.subject_id,
            alert_type=AlertType(row.alert_type),
            severity=AlertSeverity(row.severity),
            status=AlertStatus(row.status),
            current_score=row.current_score,
            previous_score=row.previous_score,
            threshold_value=row.threshold_value,
            recommended_action=RecommendedAction(row.recommended_action),
            message=row.message,
            consecutive_negative_streak=row.consecutive_negative_streak,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
            cooldown_expires_at=ensure_utc(row.cooldown_expires_at),
            score_drop=row.score_drop,
            related_feedback_ids=tuple(row.related_feedback_ids or ()),
            **audit,
        )


# ============================================================
# FEEDBACK HISTORY
# ============================================================


class SqlFeedbackHistory:
    """Feedback entries persisted in the ``feedback_history`` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def append(self, entry: FeedbackEntry) -> None:
        with transaction_scope(self._session_factory) as session:
            session.add(FeedbackHistoryRow(
                feedback_id=entry.feedback_id,
                subject_id=entry.subject_id,
                text=entry.text,
                rating=entry.rating,
                submitted_at=entry.submitted_at,
                score=entry.scored.score,
                confidence=entry.scored.confidence,
                source=entry.scored.source.value,
                keywords=sorted(entry.scored.keywords),
                reasoning=entry.scored.reasoning,
            ))

    def list_for_subject(self, subject_id: str) -> List[FeedbackEntry]:
        with read_scope(self._session_factory) as session:
            rows = session.scalars(
                select(FeedbackHistoryRow)
                .where(FeedbackHistoryRow.subject_id == subject_id)
                .order_by(FeedbackHistoryRow.seq)
            ).all()
            return [
                FeedbackEntry(
                    feedback_id=row.feedback_id,
                    subject_id=row.subject_id,
                    text=row.text,
                    submitted_at=ensure_utc(row.submitted_at),
                    scored=ScoredFeedback.from_dict(row.score_dict()),
                    rating=row.rating,
                )
                for row in rows
            ]


__all__ = ["SqlSubjectStatsStore", "SqlAlertStore", "SqlFeedbackHistory"]
