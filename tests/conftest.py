"""
Shared fixtures for the feedback reputation test suite.
"""

from datetime import datetime, timezone

import pytest

from alerting.config import AlertingConfig
from alerting.coordinator import AlertCoordinator
from alerting.store import InMemoryAlertStore
from core.clock import MockClock
from core.locks import SubjectLocks
from pipeline.events import EventDispatcher
from pipeline.history import InMemoryFeedbackHistory
from pipeline.service import FeedbackPipeline
from reputation.config import ReputationConfig
from reputation.store import InMemorySubjectStatsStore
from reputation.tracker import ReputationTracker
from sentiment.models import ScoredFeedback
from sentiment.scorer import LexicalSentimentScorer


FIXED_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def scored(score: float, confidence: float = 0.9) -> ScoredFeedback:
    """ScoredFeedback with a chosen score."""
    return ScoredFeedback(score=score, confidence=confidence)


@pytest.fixture
def mock_clock():
    return MockClock(FIXED_TIME)


@pytest.fixture
def reputation_config():
    return ReputationConfig()


@pytest.fixture
def alerting_config():
    return AlertingConfig()


@pytest.fixture
def locks():
    return SubjectLocks()


@pytest.fixture
def stats_store():
    return InMemorySubjectStatsStore()


@pytest.fixture
def alert_store():
    return InMemoryAlertStore()


@pytest.fixture
def tracker(stats_store, reputation_config, mock_clock, locks):
    return ReputationTracker(
        store=stats_store,
        config=reputation_config,
        clock=mock_clock,
        locks=locks,
    )


@pytest.fixture
def coordinator(alert_store, alerting_config, reputation_config, mock_clock, locks):
    return AlertCoordinator(
        store=alert_store,
        config=alerting_config,
        reputation_config=reputation_config,
        clock=mock_clock,
        locks=locks,
    )


@pytest.fixture
def pipeline(tracker, coordinator, mock_clock):
    return FeedbackPipeline(
        tracker=tracker,
        coordinator=coordinator,
        provider=LexicalSentimentScorer(),
        history=InMemoryFeedbackHistory(),
        dispatcher=EventDispatcher(),
        clock=mock_clock,
    )
