"""
Alerting - Lifecycle Transitions.

============================================================
PURPOSE
============================================================
Operator-driven alert lifecycle as pure functions.

Each function takes an Alert and returns a new Alert, or raises
InvalidAlertTransitionError naming the attempted action and the
current status. Nothing here touches storage.

============================================================
"""

import dataclasses
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from core.exceptions import InvalidAlertTransitionError

from .models import Alert, AlertAction, AlertSeverity, AlertStatus


# ============================================================
# TRANSITION TABLE
# ============================================================

# Statuses each action may be applied from
ALLOWED_FROM: Dict[AlertAction, FrozenSet[AlertStatus]] = {
    AlertAction.ACKNOWLEDGE: frozenset({
        AlertStatus.ACTIVE,
    }),
    AlertAction.ASSIGN: frozenset({
        AlertStatus.ACTIVE,
        AlertStatus.ACKNOWLEDGED,
    }),
    AlertAction.RESOLVE: frozenset({
        AlertStatus.ACTIVE,
        AlertStatus.ACKNOWLEDGED,
        AlertStatus.IN_PROGRESS,
        AlertStatus.ESCALATED,
    }),
    AlertAction.DISMISS: frozenset({
        AlertStatus.ACTIVE,
        AlertStatus.ACKNOWLEDGED,
        AlertStatus.IN_PROGRESS,
        AlertStatus.ESCALATED,
    }),
    AlertAction.ESCALATE: frozenset({
        AlertStatus.ACTIVE,
        AlertStatus.ACKNOWLEDGED,
        AlertStatus.IN_PROGRESS,
    }),
}

TARGET_STATUS: Dict[AlertAction, AlertStatus] = {
    AlertAction.ACKNOWLEDGE: AlertStatus.ACKNOWLEDGED,
    AlertAction.ASSIGN: AlertStatus.IN_PROGRESS,
    AlertAction.RESOLVE: AlertStatus.RESOLVED,
    AlertAction.DISMISS: AlertStatus.DISMISSED,
    AlertAction.ESCALATE: AlertStatus.ESCALATED,
}


def can_apply(alert: Alert, action: AlertAction) -> bool:
    return alert.status in ALLOWED_FROM[action]


def _check(alert: Alert, action: AlertAction) -> None:
    if not can_apply(alert, action):
        raise InvalidAlertTransitionError(
            alert_id=alert.alert_id,
            action=action.value,
            current_status=alert.status.value,
        )


# ============================================================
# TRANSITIONS
# ============================================================

def acknowledge(
    alert: Alert,
    actor: str,
    now: datetime,
    notes: Optional[str] = None,
) -> Alert:
    """ACTIVE -> ACKNOWLEDGED."""
    _check(alert, AlertAction.ACKNOWLEDGE)
    return dataclasses.replace(
        alert,
        status=AlertStatus.ACKNOWLEDGED,
        acknowledged_by=actor,
        acknowledged_at=now,
        acknowledgment_notes=notes,
        updated_at=now,
    )


def assign(alert: Alert, assignee: str, now: datetime) -> Alert:
    """ACTIVE/ACKNOWLEDGED -> IN_PROGRESS."""
    _check(alert, AlertAction.ASSIGN)
    return dataclasses.replace(
        alert,
        status=AlertStatus.IN_PROGRESS,
        assigned_to=assignee,
        assigned_at=now,
        updated_at=now,
    )


def resolve(
    alert: Alert,
    actor: str,
    now: datetime,
    notes: Optional[str] = None,
) -> Alert:
    """Any non-terminal status -> RESOLVED."""
    _check(alert, AlertAction.RESOLVE)
    return dataclasses.replace(
        alert,
        status=AlertStatus.RESOLVED,
        resolved_by=actor,
        resolved_at=now,
        resolution_notes=notes,
        updated_at=now,
    )


def dismiss(
    alert: Alert,
    actor: str,
    now: datetime,
    reason: Optional[str] = None,
) -> Alert:
    """Any non-terminal status -> DISMISSED."""
    _check(alert, AlertAction.DISMISS)
    return dataclasses.replace(
        alert,
        status=AlertStatus.DISMISSED,
        dismissed_by=actor,
        dismissed_at=now,
        dismissal_reason=reason,
        updated_at=now,
    )


def escalate(
    alert: Alert,
    actor: str,
    now: datetime,
    reason: Optional[str] = None,
) -> Alert:
    """Open alert -> ESCALATED, severity forced to CRITICAL."""
    _check(alert, AlertAction.ESCALATE)
    return dataclasses.replace(
        alert,
        status=AlertStatus.ESCALATED,
        severity=AlertSeverity.CRITICAL,
        escalated_by=actor,
        escalated_at=now,
        escalation_reason=reason,
        updated_at=now,
    )


def apply_transition(
    alert: Alert,
    action: AlertAction,
    actor: str,
    now: datetime,
    notes: Optional[str] = None,
) -> Alert:
    """
    Dispatch an operator action.

    For ASSIGN the actor is the assignee. ``notes`` carries the
    acknowledgment notes, resolution notes, dismissal reason or
    escalation reason depending on the action.
    """
    if action == AlertAction.ACKNOWLEDGE:
        return acknowledge(alert, actor, now, notes)
    if action == AlertAction.ASSIGN:
        return assign(alert, actor, now)
    if action == AlertAction.RESOLVE:
        return resolve(alert, actor, now, notes)
    if action == AlertAction.DISMISS:
        return dismiss(alert, actor, now, notes)
    if action == AlertAction.ESCALATE:
        return escalate(alert, actor, now, notes)
    raise ValueError(f"Unknown alert action: {action}")


__all__ = [
    "ALLOWED_FROM",
    "TARGET_STATUS",
    "can_apply",
    "acknowledge",
    "assign",
    "resolve",
    "dismiss",
    "escalate",
    "apply_transition",
]
