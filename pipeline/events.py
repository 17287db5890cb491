"""
Pipeline Events - outbound signals.

============================================================
PURPOSE
============================================================
Fire-and-forget notification of state changes to whatever is
listening (notifiers, audit sinks, message buses).

- Handlers run after the state change is stored
- A failing handler is logged and skipped; it never rolls back
  the state change and never reaches the caller
- Optional background mode schedules handlers as tasks

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from alerting.models import Alert, AlertStatus
from alerting.notifications import AlertNotifier
from reputation.models import SubjectStats, SubjectStatus


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Outbound event kinds."""

    STATS_TRANSITIONED = "stats_transitioned"
    ALERT_RAISED = "alert_raised"
    ALERT_UPDATED = "alert_updated"


@dataclass(frozen=True)
class PipelineEvent:
    """One outbound event."""

    event_type: EventType
    subject_id: str
    occurred_at: datetime
    stats: Optional[SubjectStats] = None
    previous_status: Optional[SubjectStatus] = None
    alert: Optional[Alert] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "subject_id": self.subject_id,
            "occurred_at": self.occurred_at.isoformat(),
            "stats": self.stats.to_dict() if self.stats else None,
            "previous_status": self.previous_status.value if self.previous_status else None,
            "alert": self.alert.to_dict() if self.alert else None,
            "context": self.context,
        }


EventHandler = Callable[[PipelineEvent], Awaitable[Any]]


class EventDispatcher:
    """
    Routes events to subscribed async handlers.

    In background mode ``emit`` schedules delivery and returns at
    once; ``drain`` waits for everything scheduled so far.
    """

    def __init__(self, background: bool = False):
        self._handlers: Dict[EventType, List[EventHandler]] = {t: [] for t in EventType}
        self._background = background
        self._pending: Set[asyncio.Task] = set()
        self._failures = 0

    @property
    def failures(self) -> int:
        """Handler failures seen so far."""
        return self._failures

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def subscribe_all(self, handler: EventHandler) -> None:
        for event_type in EventType:
            self.subscribe(event_type, handler)

    async def emit(self, event: PipelineEvent) -> None:
        """Deliver an event. Never raises."""
        handlers = list(self._handlers[event.event_type])
        if not handlers:
            return

        if self._background:
            task = asyncio.create_task(self._deliver(event, handlers))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return

        await self._deliver(event, handlers)

    async def _deliver(self, event: PipelineEvent, handlers: List[EventHandler]) -> None:
        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                self._failures += 1
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)} failed "
                    f"for {event.event_type.value} ({event.subject_id}): {e}"
                )

    async def drain(self) -> None:
        """Wait for all background deliveries scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending))


def alert_notification_handler(notifier: AlertNotifier) -> EventHandler:
    """Adapt an AlertNotifier into an ALERT_RAISED handler."""

    async def notify(event: PipelineEvent) -> None:
        if event.alert is not None:
            await notifier.notify(event.alert)

    notify.__name__ = "alert_notification_handler"
    return notify


def resolution_notification_handler(notifier: AlertNotifier) -> EventHandler:
    """Adapt an AlertNotifier into an ALERT_UPDATED handler that announces resolutions."""

    async def notify_resolved(event: PipelineEvent) -> None:
        if event.alert is not None and event.alert.status == AlertStatus.RESOLVED:
            await notifier.notify_resolution(event.alert)

    notify_resolved.__name__ = "resolution_notification_handler"
    return notify_resolved


__all__ = [
    "EventType",
    "PipelineEvent",
    "EventHandler",
    "EventDispatcher",
    "alert_notification_handler",
    "resolution_notification_handler",
]
