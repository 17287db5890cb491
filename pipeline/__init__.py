"""
Feedback Pipeline Package.

Ties sentiment scoring, reputation tracking and alerting into a
single per-feedback flow, with outbound events and feedback history.
"""

from .config import PipelineConfig, configure_logging, LOG_FORMAT, LOG_DATEFMT
from .events import (
    EventType,
    PipelineEvent,
    EventHandler,
    EventDispatcher,
    alert_notification_handler,
    resolution_notification_handler,
)
from .history import (
    FeedbackEntry,
    FeedbackHistoryStore,
    InMemoryFeedbackHistory,
    recent_negative_ids,
)
from .service import ProcessedFeedback, FeedbackPipeline, create_pipeline


__all__ = [
    "PipelineConfig",
    "configure_logging",
    "LOG_FORMAT",
    "LOG_DATEFMT",
    "EventType",
    "PipelineEvent",
    "EventHandler",
    "EventDispatcher",
    "alert_notification_handler",
    "resolution_notification_handler",
    "FeedbackEntry",
    "FeedbackHistoryStore",
    "InMemoryFeedbackHistory",
    "recent_negative_ids",
    "ProcessedFeedback",
    "FeedbackPipeline",
    "create_pipeline",
]
