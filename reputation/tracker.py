"""
Reputation Tracker - per-subject EMA and status.

============================================================
PURPOSE
============================================================
Folds each scored observation into the subject's SubjectStats and
reports whether the subject's status escalated.

============================================================
CRITICAL INVARIANTS
============================================================
1. The first observation seeds the EMA with its own score
2. Every later one applies ema = alpha*score + (1-alpha)*ema
3. Status is recomputed from (ema, streak) on every observation
4. transitioned is True only when the status rank increases
5. A full recompute replays the same step function from zero, so
   it matches incremental updates applied in the same order
6. Timestamps come from the observation, not from when it was
   applied, so a replay later in time gives the same stats

============================================================
CONCURRENCY
============================================================
Read-modify-write of a subject runs under that subject's lock.
The lock is reentrant so a caller may already hold it.

============================================================
"""

import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.clock import ClockFactory, ClockProtocol
from core.locks import SubjectLocks
from sentiment.models import ScoredFeedback, SentimentLabel

from .config import DEFAULT_REPUTATION_CONFIG, ReputationConfig
from .models import OverallStatistics, StatsUpdate, SubjectStats, SubjectStatus, Trend
from .store import InMemorySubjectStatsStore, SubjectStatsStore


logger = logging.getLogger(__name__)


# ============================================================
# OBSERVATION
# ============================================================

@dataclass(frozen=True)
class Observation:
    """One scored feedback event as seen by the tracker."""

    score: float
    rating: Optional[int] = None
    observed_at: Optional[datetime] = None

    @property
    def label(self) -> SentimentLabel:
        return SentimentLabel.from_score(self.score)

    @classmethod
    def from_scored(
        cls,
        scored: ScoredFeedback,
        rating: Optional[int] = None,
        observed_at: Optional[datetime] = None,
    ) -> "Observation":
        return cls(score=scored.score, rating=rating, observed_at=observed_at)


# ============================================================
# PURE STEP FUNCTIONS
# ============================================================

def classify_status(
    ema_score: float,
    negative_streak: int,
    config: ReputationConfig,
) -> SubjectStatus:
    """Status from the current EMA and negative streak."""
    if ema_score <= config.critical_threshold:
        return SubjectStatus.CRITICAL
    if ema_score <= config.warning_threshold or negative_streak >= config.negative_streak_threshold:
        return SubjectStatus.WARNING
    return SubjectStatus.NORMAL


def apply_observation(
    stats: SubjectStats,
    observation: Observation,
    config: ReputationConfig,
    updated_at: datetime,
) -> SubjectStats:
    """
    Return ``stats`` with one more observation folded in.

    Both timestamps come from the observation; ``updated_at`` is used
    only when it carries none.
    """
    previous_ema = stats.ema_score
    if stats.total_count == 0:
        ema = observation.score
    else:
        ema = config.alpha * observation.score + (1.0 - config.alpha) * previous_ema

    label = observation.label
    positive = stats.positive_count
    negative = stats.negative_count
    neutral = stats.neutral_count
    very_positive = stats.very_positive_count
    very_negative = stats.very_negative_count

    if label.is_negative:
        negative += 1
        if label == SentimentLabel.VERY_NEGATIVE:
            very_negative += 1
        streak = stats.consecutive_negative_streak + 1
    else:
        if label.is_positive:
            positive += 1
            if label == SentimentLabel.VERY_POSITIVE:
                very_positive += 1
        else:
            neutral += 1
        streak = 0

    average_rating = stats.average_rating
    ratings_count = stats.ratings_count
    if observation.rating is not None:
        running_total = (average_rating or 0.0) * ratings_count
        ratings_count += 1
        average_rating = (running_total + observation.rating) / ratings_count

    return dataclasses.replace(
        stats,
        ema_score=ema,
        previous_ema_score=previous_ema,
        total_count=stats.total_count + 1,
        positive_count=positive,
        negative_count=negative,
        neutral_count=neutral,
        very_positive_count=very_positive,
        very_negative_count=very_negative,
        consecutive_negative_streak=streak,
        average_rating=average_rating,
        ratings_count=ratings_count,
        alert_status=classify_status(ema, streak, config),
        last_feedback_at=observation.observed_at or updated_at,
        last_updated=observation.observed_at or updated_at,
    )


# ============================================================
# TRACKER
# ============================================================

class ReputationTracker:
    """
    Owns SubjectStats for every subject.

    Subjects are created lazily on first observation; nothing is
    ever deleted.
    """

    def __init__(
        self,
        store: Optional[SubjectStatsStore] = None,
        config: Optional[ReputationConfig] = None,
        clock: Optional[ClockProtocol] = None,
        locks: Optional[SubjectLocks] = None,
    ) -> None:
        self._config = (config or DEFAULT_REPUTATION_CONFIG).ensure_valid()
        self._store = store if store is not None else InMemorySubjectStatsStore()
        self._clock = clock or ClockFactory.get_clock()
        self._locks = locks or SubjectLocks()

    @property
    def config(self) -> ReputationConfig:
        return self._config

    @property
    def locks(self) -> SubjectLocks:
        return self._locks

    # --------------------------------------------------------
    # Mutations
    # --------------------------------------------------------

    def update(
        self,
        subject_id: str,
        scored: ScoredFeedback,
        rating: Optional[int] = None,
        observed_at: Optional[datetime] = None,
    ) -> StatsUpdate:
        """Fold one scored observation into the subject's stats."""
        observation = Observation.from_scored(scored, rating, observed_at)

        with self._locks.hold(subject_id):
            current = self._store.get(subject_id) or SubjectStats(subject_id=subject_id)
            updated = apply_observation(current, observation, self._config, self._clock.now())
            self._store.save(updated)

        previous_status = current.alert_status
        transitioned = updated.alert_status.is_escalation_from(previous_status)

        logger.info(
            f"Stats updated for {subject_id}: ema={updated.ema_score:.3f} "
            f"streak={updated.consecutive_negative_streak} status={updated.alert_status.value}"
            + (f" (escalated from {previous_status.value})" if transitioned else "")
        )
        return StatsUpdate(
            stats=updated,
            previous_status=previous_status,
            transitioned=transitioned,
        )

    def recompute(self, subject_id: str, observations: Iterable[Observation]) -> SubjectStats:
        """
        Rebuild a subject's stats from its full history.

        Observations must be in arrival order. The rebuilt value
        replaces whatever is stored.
        """
        with self._locks.hold(subject_id):
            now = self._clock.now()
            stats = SubjectStats(subject_id=subject_id)
            for observation in observations:
                stats = apply_observation(stats, observation, self._config, now)
            self._store.save(stats)

        logger.info(
            f"Stats recomputed for {subject_id}: {stats.total_count} observations, "
            f"ema={stats.ema_score:.3f} status={stats.alert_status.value}"
        )
        return stats

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------

    def get(self, subject_id: str) -> Optional[SubjectStats]:
        return self._store.get(subject_id)

    def get_or_create(self, subject_id: str) -> SubjectStats:
        with self._locks.hold(subject_id):
            stats = self._store.get(subject_id)
            if stats is None:
                stats = SubjectStats(subject_id=subject_id, last_updated=self._clock.now())
                self._store.save(stats)
                logger.debug(f"Created stats for {subject_id}")
            return stats

    def all_stats(self) -> List[SubjectStats]:
        return self._store.list_all()

    def needing_attention(self) -> List[SubjectStats]:
        """Subjects in WARNING/CRITICAL or on a negative streak."""
        threshold = self._config.negative_streak_threshold
        return [s for s in self.all_stats() if s.needs_attention(threshold)]

    def critical_subjects(self) -> List[SubjectStats]:
        return [s for s in self.all_stats() if s.alert_status == SubjectStatus.CRITICAL]

    def improving_subjects(self) -> List[SubjectStats]:
        eps = self._config.trend_epsilon
        return [s for s in self.all_stats() if s.trend(eps) == Trend.IMPROVING]

    def declining_subjects(self) -> List[SubjectStats]:
        eps = self._config.trend_epsilon
        return [s for s in self.all_stats() if s.trend(eps) == Trend.DECLINING]

    def top_subjects(self, limit: int = 10) -> List[SubjectStats]:
        return sorted(self.all_stats(), key=lambda s: s.ema_score, reverse=True)[:limit]

    def bottom_subjects(self, limit: int = 10) -> List[SubjectStats]:
        return sorted(self.all_stats(), key=lambda s: s.ema_score)[:limit]

    def score_distribution(self) -> Dict[SentimentLabel, int]:
        """Subjects per sentiment bin of their current EMA."""
        counts = Counter(SentimentLabel.from_score(s.ema_score) for s in self.all_stats())
        return {label: counts.get(label, 0) for label in SentimentLabel}

    def overall_statistics(self) -> OverallStatistics:
        stats = self.all_stats()
        by_status = Counter(s.alert_status for s in stats)
        average = sum(s.ema_score for s in stats) / len(stats) if stats else 0.0
        return OverallStatistics(
            total_subjects=len(stats),
            critical_count=by_status.get(SubjectStatus.CRITICAL, 0),
            warning_count=by_status.get(SubjectStatus.WARNING, 0),
            normal_count=by_status.get(SubjectStatus.NORMAL, 0),
            average_ema_score=average,
            total_feedback_count=sum(s.total_count for s in stats),
        )


__all__ = [
    "Observation",
    "classify_status",
    "apply_observation",
    "ReputationTracker",
]
