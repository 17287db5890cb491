"""
Sentiment Provider - interface shared by all scorers.

A provider turns feedback text (and optional star rating) into a
ScoredFeedback. Providers NEVER raise to the caller: failures are
logged and answered with a degraded result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from .models import ScoredFeedback


@runtime_checkable
class SentimentProvider(Protocol):
    """Anything that can score feedback asynchronously."""

    name: str

    async def evaluate(self, text: Optional[str], rating: Optional[int] = None) -> ScoredFeedback:
        """Score feedback text. Must not raise."""
        ...


class ProviderStatus(Enum):
    """Health status of a sentiment provider."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


@dataclass
class ProviderHealth:
    """Running health counters for a provider."""
    status: ProviderStatus = ProviderStatus.UNKNOWN
    total_requests: int = 0
    successful_requests: int = 0
    fallbacks: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    latency_ms: Optional[float] = None

    # Consecutive failures before the provider reports DEGRADED
    degraded_after: int = field(default=3, repr=False)

    def record_success(self, latency_ms: float) -> None:
        self.total_requests += 1
        self.successful_requests += 1
        self.consecutive_failures = 0
        self.latency_ms = latency_ms
        self.status = ProviderStatus.HEALTHY

    def record_fallback(self, error: str, at: datetime) -> None:
        self.total_requests += 1
        self.fallbacks += 1
        self.consecutive_failures += 1
        self.last_error = error
        self.last_error_at = at
        if self.consecutive_failures >= self.degraded_after:
            self.status = ProviderStatus.DEGRADED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "fallbacks": self.fallbacks,
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
            "latency_ms": self.latency_ms,
        }


__all__ = ["SentimentProvider", "ProviderStatus", "ProviderHealth"]
