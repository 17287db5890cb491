"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Exception hierarchy for the feedback reputation engine.

- Every error carries severity, classification and debug context
- Operator-facing alert errors distinguish "not found" from "conflict"
- AI provider errors never leave the provider (recovered by fallback)

============================================================
EXCEPTION HIERARCHY
============================================================
ReputationEngineError (base)
├── ConfigurationError
│   └── InvalidConfigError
├── SentimentProviderError
│   ├── ProviderTimeoutError
│   └── MalformedResponseError
├── AlertError
│   ├── AlertNotFoundError
│   └── InvalidAlertTransitionError
└── PersistenceError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Handled locally, e.g. by a fallback."""

    TRANSIENT = "transient"
    """Temporary, retry may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Caller or operator must act."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class ReputationEngineError(Exception):
    """
    Base exception for all engine errors.

    All exceptions carry:
    - severity: for alerting on the error itself
    - classification: recoverability
    - context: structured debug data
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def is_recoverable(self) -> bool:
        return self.classification in (
            ErrorClassification.RECOVERABLE,
            ErrorClassification.TRANSIENT,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(ReputationEngineError):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]
        super().__init__(message, context=context, **kwargs)


class InvalidConfigError(ConfigurationError):
    """A config object failed validation."""

    def __init__(self, config_name: str, errors: List[str], **kwargs):
        self.errors = list(errors)
        context = kwargs.pop("context", {})
        context["config_name"] = config_name
        context["errors"] = self.errors
        super().__init__(
            f"Invalid {config_name}: {'; '.join(self.errors)}",
            context=context,
            **kwargs,
        )


# ============================================================
# SENTIMENT PROVIDER ERRORS
# ============================================================

class SentimentProviderError(ReputationEngineError):
    """AI sentiment provider failed; callers see the lexical fallback."""

    default_classification = ErrorClassification.TRANSIENT

    def __init__(self, message: str, provider: str = "unknown", **kwargs):
        self.provider = provider
        context = kwargs.pop("context", {})
        context["provider"] = provider
        super().__init__(message, context=context, **kwargs)


class ProviderTimeoutError(SentimentProviderError):
    """Provider did not answer within its time bound."""

    def __init__(self, provider: str, timeout_seconds: float, **kwargs):
        self.timeout_seconds = timeout_seconds
        context = kwargs.pop("context", {})
        context["timeout_seconds"] = timeout_seconds
        super().__init__(
            f"{provider} timed out after {timeout_seconds}s",
            provider=provider,
            context=context,
            **kwargs,
        )


class MalformedResponseError(SentimentProviderError):
    """Provider answered with something we cannot parse."""

    default_classification = ErrorClassification.RECOVERABLE


# ============================================================
# ALERT ERRORS
# ============================================================

class AlertError(ReputationEngineError):
    """Base class for alert lifecycle errors."""

    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(self, message: str, alert_id: Optional[str] = None, **kwargs):
        self.alert_id = alert_id
        context = kwargs.pop("context", {})
        if alert_id:
            context["alert_id"] = alert_id
        super().__init__(message, context=context, **kwargs)


class AlertNotFoundError(AlertError):
    """No alert with the given id."""

    default_severity = Severity.LOW

    def __init__(self, alert_id: str, **kwargs):
        super().__init__(f"Alert not found: {alert_id}", alert_id=alert_id, **kwargs)


class InvalidAlertTransitionError(AlertError):
    """Operator action not permitted from the alert's current status."""

    def __init__(self, alert_id: str, action: str, current_status: str, **kwargs):
        self.action = action
        self.current_status = current_status
        context = kwargs.pop("context", {})
        context["action"] = action
        context["current_status"] = current_status
        super().__init__(
            f"Cannot {action} alert {alert_id} in status {current_status}",
            alert_id=alert_id,
            context=context,
            **kwargs,
        )


# ============================================================
# PERSISTENCE ERRORS
# ============================================================

class PersistenceError(ReputationEngineError):
    """Store read or write failed."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.TRANSIENT


__all__ = [
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
