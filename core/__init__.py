"""
Core Module Package.

Infrastructure shared by every other package:
- clock: UTC time abstraction (mockable)
- locks: per-subject reentrant locks
- exceptions: engine exception hierarchy
"""

from .clock import ClockFactory, ClockProtocol, MockClock, SystemClock, ensure_utc, now_utc
from .locks import SubjectLocks
from .exceptions import (
    AlertError,
    AlertNotFoundError,
    ConfigurationError,
    ErrorClassification,
    InvalidAlertTransitionError,
    InvalidConfigError,
    MalformedResponseError,
    PersistenceError,
    ProviderTimeoutError,
    ReputationEngineError,
    SentimentProviderError,
    Severity,
)

__all__ = [
    # Clock
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "ensure_utc",
    "now_utc",
    # Locks
    "SubjectLocks",
    # Exceptions
    "Severity",
    "ErrorClassification",
    "ReputationEngineError",
    "ConfigurationError",
    "InvalidConfigError",
    "SentimentProviderError",
    "ProviderTimeoutError",
    "MalformedResponseError",
    "AlertError",
    "AlertNotFoundError",
    "InvalidAlertTransitionError",
    "PersistenceError",
]
