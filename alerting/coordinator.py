"""
Alerting - Coordinator.

============================================================
PURPOSE
============================================================
Decides whether a status escalation becomes an alert, and applies
operator lifecycle actions to existing alerts.

============================================================
ENTRY CONDITIONS (all must hold)
============================================================
1. The tracker reported an escalation (transitioned=True)
2. No open (ACTIVE/ACKNOWLEDGED/IN_PROGRESS) alert for the subject
3. No alert for the subject is still inside its cooldown window,
   whatever that alert's status

============================================================
CLASSIFICATION
============================================================
Severity:
  CRITICAL status                          -> CRITICAL
  WARNING, streak >= N or ema <= warning   -> HIGH
  WARNING, warning < ema < 0               -> MEDIUM
  otherwise                                -> LOW
Type (first match):
  streak >= N                              -> CONSECUTIVE_NEGATIVE
  previous_ema - ema > sudden_drop         -> SUDDEN_DROP
  otherwise                                -> LOW_SCORE
Action:
  CRITICAL                                 -> INVESTIGATE_FURTHER
  HIGH, streak >= training_streak          -> SCHEDULE_TRAINING
  HIGH                                     -> REVIEW_DRIVER_PROFILE
  otherwise                                -> MONITOR_CLOSELY

N is ReputationConfig.negative_streak_threshold, the same streak
that puts a subject into WARNING.

============================================================
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from core.clock import ClockFactory, ClockProtocol
from core.exceptions import AlertNotFoundError
from core.locks import SubjectLocks
from reputation.config import DEFAULT_REPUTATION_CONFIG, ReputationConfig
from reputation.models import SubjectStats, SubjectStatus

from . import transitions
from .config import DEFAULT_ALERTING_CONFIG, AlertingConfig
from .models import (
    Alert,
    AlertAction,
    AlertSeverity,
    AlertStatistics,
    AlertStatus,
    AlertType,
    RecommendedAction,
)
from .store import AlertStore, InMemoryAlertStore


logger = logging.getLogger(__name__)

# Reference EMA recorded on LOW alerts; the other severities use the
# configured reputation thresholds
LOW_SEVERITY_THRESHOLD = 0.3


# ============================================================
# CLASSIFICATION RULES
# ============================================================

def severity_thresholds(reputation: ReputationConfig) -> Dict[AlertSeverity, float]:
    """Reference EMA value recorded on alerts of each severity."""
    return {
        AlertSeverity.CRITICAL: reputation.critical_threshold,
        AlertSeverity.HIGH: reputation.warning_threshold,
        AlertSeverity.MEDIUM: 0.0,
        AlertSeverity.LOW: LOW_SEVERITY_THRESHOLD,
    }


def determine_severity(stats: SubjectStats, reputation: ReputationConfig) -> AlertSeverity:
    if stats.alert_status == SubjectStatus.CRITICAL:
        return AlertSeverity.CRITICAL
    if stats.alert_status == SubjectStatus.WARNING:
        if stats.consecutive_negative_streak >= reputation.negative_streak_threshold:
            return AlertSeverity.HIGH
        if stats.ema_score <= reputation.warning_threshold:
            return AlertSeverity.HIGH
        if stats.ema_score < 0.0:
            return AlertSeverity.MEDIUM
    return AlertSeverity.LOW


def determine_alert_type(
    stats: SubjectStats,
    reputation: ReputationConfig,
    alerting: AlertingConfig,
) -> AlertType:
    if stats.consecutive_negative_streak >= reputation.negative_streak_threshold:
        return AlertType.CONSECUTIVE_NEGATIVE
    drop = stats.score_drop
    if drop is not None and drop > alerting.sudden_drop_threshold:
        return AlertType.SUDDEN_DROP
    return AlertType.LOW_SCORE


def determine_action(
    severity: AlertSeverity,
    stats: SubjectStats,
    alerting: AlertingConfig,
) -> RecommendedAction:
    if severity == AlertSeverity.CRITICAL:
        return RecommendedAction.INVESTIGATE_FURTHER
    if severity == AlertSeverity.HIGH:
        if stats.consecutive_negative_streak >= alerting.training_streak:
            return RecommendedAction.SCHEDULE_TRAINING
        return RecommendedAction.REVIEW_DRIVER_PROFILE
    return RecommendedAction.MONITOR_CLOSELY


def build_alert_message(alert_type: AlertType, severity: AlertSeverity, ema_score: float) -> str:
    kind = alert_type.display_name
    if severity == AlertSeverity.CRITICAL:
        return (
            f"CRITICAL: {kind} - Sentiment score is critically low ({ema_score:.2f}). "
            f"Immediate action required!"
        )
    if severity == AlertSeverity.HIGH:
        return (
            f"HIGH PRIORITY: {kind} - Sentiment score is low ({ema_score:.2f}). "
            f"Urgent attention needed."
        )
    if severity == AlertSeverity.MEDIUM:
        return f"MEDIUM: {kind} - Sentiment score dropped to {ema_score:.2f}. Please review."
    return f"LOW: {kind} - Minor sentiment score change to {ema_score:.2f}. Monitor closely."


# ============================================================
# COORDINATOR
# ============================================================

class AlertCoordinator:
    """
    Owns alert creation and lifecycle.

    Check-then-create runs under the subject lock; pass the same
    SubjectLocks instance the tracker uses so a pipeline can hold
    one lock across both steps.
    """

    def __init__(
        self,
        store: Optional[AlertStore] = None,
        config: Optional[AlertingConfig] = None,
        reputation_config: Optional[ReputationConfig] = None,
        clock: Optional[ClockProtocol] = None,
        locks: Optional[SubjectLocks] = None,
    ) -> None:
        self._store = store if store is not None else InMemoryAlertStore()
        self._config = (config or DEFAULT_ALERTING_CONFIG).ensure_valid()
        self._reputation = (reputation_config or DEFAULT_REPUTATION_CONFIG).ensure_valid()
        self._clock = clock or ClockFactory.get_clock()
        self._locks = locks or SubjectLocks()

    @property
    def config(self) -> AlertingConfig:
        return self._config

    # --------------------------------------------------------
    # Creation
    # --------------------------------------------------------

    def evaluate(
        self,
        subject_id: str,
        stats: SubjectStats,
        transitioned: bool,
        related_feedback_ids: Sequence[str] = (),
    ) -> Optional[Alert]:
        """
        Create an alert for an escalation, unless one is open or the
        subject is cooling down.
        """
        if not transitioned:
            return None

        with self._locks.hold(subject_id):
            now = self._clock.now()
            existing = self._store.list_for_subject(subject_id)

            open_alert = next((a for a in existing if a.is_open), None)
            if open_alert is not None:
                logger.info(
                    f"Alert suppressed for {subject_id}: open alert {open_alert.alert_id} "
                    f"({open_alert.status.value})"
                )
                return None

            cooling = next((a for a in existing if a.in_cooldown(now)), None)
            if cooling is not None:
                logger.info(
                    f"Alert suppressed for {subject_id}: cooldown until "
                    f"{cooling.cooldown_expires_at.isoformat()}"
                )
                return None

            alert = self._build(subject_id, stats, related_feedback_ids, now)
            self._store.save(alert)

        logger.info(
            f"Alert created: {alert.alert_id} subject={subject_id} "
            f"severity={alert.severity.value} type={alert.alert_type.value} "
            f"ema={alert.current_score:.3f}"
        )
        return alert

    def _build(
        self,
        subject_id: str,
        stats: SubjectStats,
        related_feedback_ids: Sequence[str],
        now: datetime,
    ) -> Alert:
        severity = determine_severity(stats, self._reputation)
        alert_type = determine_alert_type(stats, self._reputation, self._config)
        limit = self._config.related_feedback_limit
        return Alert(
            alert_id=str(uuid4()),
            subject_id=subject_id,
            alert_type=alert_type,
            severity=severity,
            status=AlertStatus.ACTIVE,
            current_score=stats.ema_score,
            previous_score=stats.previous_ema_score,
            score_drop=stats.score_drop,
            threshold_value=severity_thresholds(self._reputation)[severity],
            recommended_action=determine_action(severity, stats, self._config),
            message=build_alert_message(alert_type, severity, stats.ema_score),
            consecutive_negative_streak=stats.consecutive_negative_streak,
            related_feedback_ids=tuple(related_feedback_ids)[:limit],
            created_at=now,
            updated_at=now,
            cooldown_expires_at=now + timedelta(hours=self._config.cooldown_hours),
        )

    # --------------------------------------------------------
    # Operator actions
    # --------------------------------------------------------

    def apply(
        self,
        alert_id: str,
        action: AlertAction,
        actor: str,
        notes: Optional[str] = None,
    ) -> Alert:
        """
        Apply an operator action.

        Raises:
            AlertNotFoundError: unknown alert id
            InvalidAlertTransitionError: action not allowed from the
                alert's current status
        """
        alert = self._require(alert_id)
        with self._locks.hold(alert.subject_id):
            current = self._require(alert_id)
            updated = transitions.apply_transition(current, action, actor, self._clock.now(), notes)
            self._store.save(updated)

        logger.info(
            f"Alert {alert_id} {action.value} by {actor}: "
            f"{current.status.value} -> {updated.status.value}"
        )
        return updated

    def acknowledge(self, alert_id: str, actor: str, notes: Optional[str] = None) -> Alert:
        return self.apply(alert_id, AlertAction.ACKNOWLEDGE, actor, notes)

    def assign(self, alert_id: str, assignee: str) -> Alert:
        return self.apply(alert_id, AlertAction.ASSIGN, assignee)

    def resolve(self, alert_id: str, actor: str, notes: Optional[str] = None) -> Alert:
        return self.apply(alert_id, AlertAction.RESOLVE, actor, notes)

    def dismiss(self, alert_id: str, actor: str, reason: Optional[str] = None) -> Alert:
        return self.apply(alert_id, AlertAction.DISMISS, actor, reason)

    def escalate(self, alert_id: str, actor: str, reason: Optional[str] = None) -> Alert:
        return self.apply(alert_id, AlertAction.ESCALATE, actor, reason)

    def _require(self, alert_id: str) -> Alert:
        alert = self._store.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    # --------------------------------------------------------
    # Queries
    # --------------------------------------------------------

    def get(self, alert_id: str) -> Optional[Alert]:
        return self._store.get(alert_id)

    def alerts_for_subject(self, subject_id: str) -> List[Alert]:
        return self._store.list_for_subject(subject_id)

    def active_alert_for_subject(self, subject_id: str) -> Optional[Alert]:
        return next((a for a in self._store.list_for_subject(subject_id) if a.is_open), None)

    def is_in_cooldown(self, subject_id: str) -> bool:
        now = self._clock.now()
        return any(a.in_cooldown(now) for a in self._store.list_for_subject(subject_id))

    def active_alerts(self) -> List[Alert]:
        """Alerts that still need an operator: not resolved or dismissed."""
        return [a for a in self._store.list_all() if not a.status.is_terminal]

    def critical_alerts(self) -> List[Alert]:
        return [a for a in self.active_alerts() if a.severity == AlertSeverity.CRITICAL]

    def unacknowledged_alerts(self) -> List[Alert]:
        return [a for a in self._store.list_all() if a.status == AlertStatus.ACTIVE]

    def unassigned_alerts(self) -> List[Alert]:
        return [a for a in self.active_alerts() if a.assigned_to is None]

    def unassigned_critical_alerts(self) -> List[Alert]:
        return [a for a in self.critical_alerts() if a.assigned_to is None]

    def alerts_assigned_to(self, assignee: str) -> List[Alert]:
        return [a for a in self.active_alerts() if a.assigned_to == assignee]

    def overdue_alerts(self) -> List[Alert]:
        now = self._clock.now()
        hours = self._config.overdue_after_hours
        return [a for a in self._store.list_all() if a.is_overdue(now, hours)]

    def statistics(self) -> AlertStatistics:
        active = self.active_alerts()
        by_severity = Counter(a.severity for a in active)
        return AlertStatistics(
            total_active=len(active),
            critical_count=by_severity.get(AlertSeverity.CRITICAL, 0),
            high_count=by_severity.get(AlertSeverity.HIGH, 0),
            medium_count=by_severity.get(AlertSeverity.MEDIUM, 0),
            low_count=by_severity.get(AlertSeverity.LOW, 0),
            unacknowledged_count=len(self.unacknowledged_alerts()),
            unassigned_count=sum(1 for a in active if a.assigned_to is None),
            overdue_count=len(self.overdue_alerts()),
        )


__all__ = [
    "LOW_SEVERITY_THRESHOLD",
    "severity_thresholds",
    "determine_severity",
    "determine_alert_type",
    "determine_action",
    "build_alert_message",
    "AlertCoordinator",
]
