"""
Alerting - Notifications.

============================================================
PURPOSE
============================================================
Outbound delivery of alerts and operator notices.

Provides:
- Telegram delivery (httpx)
- Log-only delivery for development
- Message formatting for new alerts, resolutions, daily
  summaries, overdue reminders and unassigned critical alerts

============================================================
DELIVERY PHILOSOPHY
============================================================
- Fire-and-forget: a failed send never undoes the alert
- Every sender is tried; one failure does not stop the others
- Failures are logged, not raised

============================================================
"""

import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

import httpx

from .config import AlertingConfig
from .models import Alert, AlertSeverity, AlertStatistics


logger = logging.getLogger(__name__)


_SEVERITY_MARK = {
    AlertSeverity.CRITICAL: "🔴",
    AlertSeverity.HIGH: "🟠",
    AlertSeverity.MEDIUM: "🟡",
    AlertSeverity.LOW: "🔵",
}


# ============================================================
# MESSAGE FORMATTING
# ============================================================

def format_alert_notification(alert: Alert, include_details: bool = True) -> str:
    """Operator-facing text for a newly raised alert."""
    lines = [
        f"{_SEVERITY_MARK[alert.severity]} *{alert.severity.name} ALERT* for {alert.subject_id}",
        "",
        f"*Severity:* {alert.severity.name}",
        f"*Type:* {alert.alert_type.display_name}",
        f"*Current EMA Score:* {alert.current_score:.2f}",
        f"*Recommended Action:* {alert.recommended_action.name.replace('_', ' ')}",
        f"*Alert ID:* {alert.alert_id}",
    ]

    if include_details:
        if alert.score_drop is not None:
            lines.append(f"*Score Drop:* {alert.score_drop:.2f}")
        lines.append(f"*Negative Streak:* {alert.consecutive_negative_streak}")
        lines.append(f"*Time:* {alert.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        lines.append("")
        lines.append(alert.message)

    return "\n".join(lines)


def format_resolution_notice(alert: Alert) -> str:
    lines = [f"✅ *RESOLVED* alert {alert.alert_id} for {alert.subject_id}"]
    if alert.resolved_by:
        lines.append(f"*Resolved By:* {alert.resolved_by}")
    lines.append(f"*Resolution Notes:* {alert.resolution_notes or 'none'}")
    return "\n".join(lines)


def format_daily_summary(stats: AlertStatistics) -> str:
    return (
        "Daily Summary:\n"
        f"- Active Alerts: {stats.total_active}\n"
        f"- Critical: {stats.critical_count}\n"
        f"- High Priority: {stats.high_count}\n"
        f"- Unacknowledged: {stats.unacknowledged_count}\n"
        f"- Overdue: {stats.overdue_count}"
    )


def format_overdue_reminder(alerts: Sequence[Alert], overdue_after_hours: float = 24.0) -> str:
    lines = [
        f"There are {len(alerts)} overdue alerts "
        f"(active for more than {overdue_after_hours:g} hours) requiring attention."
    ]
    for alert in alerts:
        lines.append(
            f"- {alert.alert_id} {alert.subject_id} {alert.severity.name} "
            f"since {alert.created_at.strftime('%Y-%m-%d %H:%M UTC')}"
        )
    return "\n".join(lines)


def format_unassigned_critical(alerts: Sequence[Alert]) -> str:
    lines = [
        f"There are {len(alerts)} unassigned critical alerts requiring immediate attention."
    ]
    for alert in alerts:
        lines.append(f"- {alert.alert_id} {alert.subject_id} EMA {alert.current_score:.2f}")
    return "\n".join(lines)


# ============================================================
# ALERT SENDER PROTOCOL
# ============================================================

class AlertSender(Protocol):
    """
    Protocol for alert delivery implementations.

    ``send`` delivers a new alert, ``send_text`` a pre-formatted
    notice (summaries, reminders, resolutions). Both return True when
    the message was delivered.
    """

    async def send(self, alert: Alert) -> bool:
        ...

    async def send_text(self, title: str, text: str) -> bool:
        ...


# ============================================================
# TELEGRAM ALERT SENDER
# ============================================================

class TelegramAlertSender:
    """
    Deliver alerts through a Telegram bot.

    The bot must be a member of the target chat.
    """

    API_BASE = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        include_details: bool = True,
        timeout_seconds: float = 10.0,
    ):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._include_details = include_details
        self._timeout = timeout_seconds

    async def send(self, alert: Alert) -> bool:
        text = format_alert_notification(alert, self._include_details)
        return await self._post(text, f"alert {alert.alert_id}")

    async def send_text(self, title: str, text: str) -> bool:
        return await self._post(f"*{title}*\n\n{text}", title)

    async def _post(self, text: str, what: str) -> bool:
        url = f"{self.API_BASE}/bot{self._bot_token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Telegram delivery failed for {what}: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Telegram rejected {what}: HTTP {response.status_code}")
            return False
        return True


# ============================================================
# LOGGING ALERT SENDER
# ============================================================

class LoggingAlertSender:
    """Write alerts to the application log (development/testing)."""

    def __init__(self, include_details: bool = True):
        self._include_details = include_details
        self.sent: List[str] = []
        self.notices: List[str] = []

    async def send(self, alert: Alert) -> bool:
        self.sent.append(alert.alert_id)
        logger.warning(
            "ALERT\n" + format_alert_notification(alert, self._include_details)
        )
        return True

    async def send_text(self, title: str, text: str) -> bool:
        self.notices.append(title)
        logger.warning(f"{title.upper()}\n{text}")
        return True


# ============================================================
# NOTIFIER
# ============================================================

class AlertNotifier:
    """Fans alerts and operator notices out to every configured sender."""

    def __init__(self, senders: Optional[List[AlertSender]] = None):
        self._senders: List[AlertSender] = list(senders or [])

    def add_sender(self, sender: AlertSender) -> None:
        self._senders.append(sender)

    @property
    def senders(self) -> List[AlertSender]:
        return list(self._senders)

    async def notify(self, alert: Alert) -> bool:
        """
        Send a new alert to all senders.

        Returns True if at least one sender delivered. Never raises.
        """
        return await self._fan_out(f"alert {alert.alert_id}", lambda s: s.send(alert))

    async def notify_resolution(self, alert: Alert) -> bool:
        logger.info(f"Sending resolution notice for alert {alert.alert_id}")
        return await self._send_text("Alert Resolved", format_resolution_notice(alert))

    async def send_daily_summary(self, stats: AlertStatistics) -> bool:
        logger.info("Sending daily alert summary")
        return await self._send_text("Daily Alert Summary", format_daily_summary(stats))

    async def send_overdue_reminder(
        self,
        alerts: Sequence[Alert],
        overdue_after_hours: float = 24.0,
    ) -> bool:
        """Remind operators of overdue alerts; nothing is sent when there are none."""
        if not alerts:
            logger.info("No overdue alerts found")
            return False
        return await self._send_text(
            "Overdue Alert Reminder",
            format_overdue_reminder(alerts, overdue_after_hours),
        )

    async def send_unassigned_critical(self, alerts: Sequence[Alert]) -> bool:
        if not alerts:
            logger.info("No unassigned critical alerts found")
            return False
        return await self._send_text(
            "Unassigned Critical Alerts",
            format_unassigned_critical(alerts),
        )

    async def _send_text(self, title: str, text: str) -> bool:
        return await self._fan_out(title, lambda s: s.send_text(title, text))

    async def _fan_out(
        self,
        what: str,
        deliver: Callable[[AlertSender], Awaitable[bool]],
    ) -> bool:
        delivered = False
        for sender in self._senders:
            try:
                if await deliver(sender):
                    delivered = True
            except Exception as e:
                logger.error(f"Alert sender {type(sender).__name__} failed for {what}: {e}")

        if not delivered and self._senders:
            logger.warning(f"{what} was not delivered by any sender")
        return delivered


# ============================================================
# FACTORY FUNCTIONS
# ============================================================

def create_alert_notifier(config: Optional[AlertingConfig] = None) -> AlertNotifier:
    """
    Build a notifier from configuration.

    Telegram is added when both token and chat id are set; the log
    sender is always present.
    """
    config = config or AlertingConfig.from_env()
    notifier = AlertNotifier()
    notifier.add_sender(LoggingAlertSender(include_details=config.telegram_include_details))

    if config.telegram_enabled:
        notifier.add_sender(TelegramAlertSender(
            bot_token=config.telegram_bot_token,
            chat_id=config.telegram_chat_id,
            include_details=config.telegram_include_details,
        ))
        logger.info("Telegram alert delivery enabled")

    return notifier


__all__ = [
    "format_alert_notification",
    "format_resolution_notice",
    "format_daily_summary",
    "format_overdue_reminder",
    "format_unassigned_critical",
    "AlertSender",
    "TelegramAlertSender",
    "LoggingAlertSender",
    "AlertNotifier",
    "create_alert_notifier",
]
