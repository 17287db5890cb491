"""
Alerting Module.

Turns reputation status escalations into operator alerts and manages
their lifecycle.

Components:
- AlertCoordinator: create-or-suppress decision plus operator actions
- transitions: pure lifecycle functions
- AlertNotifier: outbound delivery (log, Telegram)
"""

from .config import DEFAULT_ALERTING_CONFIG, AlertingConfig
from .coordinator import (
    AlertCoordinator,
    build_alert_message,
    determine_action,
    determine_alert_type,
    determine_severity,
    severity_thresholds,
)
from .models import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    Alert,
    AlertAction,
    AlertSeverity,
    AlertStatistics,
    AlertStatus,
    AlertType,
    RecommendedAction,
)
from .notifications import (
    AlertNotifier,
    AlertSender,
    LoggingAlertSender,
    TelegramAlertSender,
    create_alert_notifier,
    format_alert_notification,
    format_daily_summary,
    format_overdue_reminder,
    format_resolution_notice,
    format_unassigned_critical,
)
from .store import AlertStore, InMemoryAlertStore
from .transitions import ALLOWED_FROM, apply_transition, can_apply

__all__ = [
    # Config
    "AlertingConfig",
    "DEFAULT_ALERTING_CONFIG",
    # Models
    "Alert",
    "AlertType",
    "AlertSeverity",
    "AlertStatus",
    "AlertAction",
    "RecommendedAction",
    "AlertStatistics",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    # Coordinator
    "AlertCoordinator",
    "determine_severity",
    "determine_alert_type",
    "determine_action",
    "build_alert_message",
    "severity_thresholds",
    # Transitions
    "ALLOWED_FROM",
    "apply_transition",
    "can_apply",
    # Store
    "AlertStore",
    "InMemoryAlertStore",
    # Notifications
    "AlertSender",
    "TelegramAlertSender",
    "LoggingAlertSender",
    "AlertNotifier",
    "create_alert_notifier",
    "format_alert_notification",
    "format_daily_summary",
    "format_overdue_reminder",
    "format_resolution_notice",
    "format_unassigned_critical",
]
