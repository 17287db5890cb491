"""
Reputation Tracking Module.

Maintains a decaying (EMA) sentiment score per subject and
classifies each subject as NORMAL, WARNING or CRITICAL.

Usage:
    from reputation import ReputationTracker

    tracker = ReputationTracker()
    update = tracker.update("driver-42", scored, rating=2)
    if update.transitioned:
        ...  # hand to the alert coordinator
"""

from .config import DEFAULT_REPUTATION_CONFIG, ReputationConfig
from .models import (
    OverallStatistics,
    StatsUpdate,
    SubjectStats,
    SubjectStatus,
    Trend,
)
from .store import InMemorySubjectStatsStore, SubjectStatsStore
from .tracker import (
    Observation,
    ReputationTracker,
    apply_observation,
    classify_status,
)

__all__ = [
    # Config
    "ReputationConfig",
    "DEFAULT_REPUTATION_CONFIG",
    # Models
    "SubjectStatus",
    "Trend",
    "SubjectStats",
    "StatsUpdate",
    "OverallStatistics",
    # Store
    "SubjectStatsStore",
    "InMemorySubjectStatsStore",
    # Tracker
    "Observation",
    "ReputationTracker",
    "apply_observation",
    "classify_status",
]
