"""
Feedback History.

Every processed feedback is kept with its score so a subject's
stats can be rebuilt from scratch, and so alerts can point at the
feedback that caused them.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from reputation.tracker import Observation
from sentiment.models import FeedbackRecord, ScoredFeedback


@dataclass(frozen=True)
class FeedbackEntry:
    """A stored feedback record with its score."""

    feedback_id: str
    subject_id: str
    text: str
    submitted_at: datetime
    scored: ScoredFeedback
    rating: Optional[int] = None

    @classmethod
    def from_record(cls, record: FeedbackRecord, scored: ScoredFeedback) -> "FeedbackEntry":
        if record.feedback_id is None:
            raise ValueError("FeedbackRecord needs a feedback_id before it is stored")
        return cls(
            feedback_id=record.feedback_id,
            subject_id=record.subject_id,
            text=record.text,
            submitted_at=record.submitted_at,
            scored=scored,
            rating=record.rating,
        )

    def to_observation(self) -> Observation:
        return Observation(
            score=self.scored.score,
            rating=self.rating,
            observed_at=self.submitted_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedback_id": self.feedback_id,
            "subject_id": self.subject_id,
            "text": self.text,
            "submitted_at": self.submitted_at.isoformat(),
            "rating": self.rating,
            **self.scored.to_dict(),
        }


class FeedbackHistoryStore(Protocol):
    """Append-only per-subject feedback log."""

    def append(self, entry: FeedbackEntry) -> None:
        ...

    def list_for_subject(self, subject_id: str) -> List[FeedbackEntry]:
        """Entries in arrival order."""
        ...


def recent_negative_ids(entries: List[FeedbackEntry], limit: int) -> List[str]:
    """Ids of the newest negative entries, newest first."""
    negatives = [e.feedback_id for e in reversed(entries) if e.scored.label.is_negative]
    return negatives[:limit]


class InMemoryFeedbackHistory:
    """List-per-subject history, safe for concurrent use."""

    def __init__(self) -> None:
        self._entries: Dict[str, List[FeedbackEntry]] = {}
        self._lock = threading.Lock()

    def append(self, entry: FeedbackEntry) -> None:
        with self._lock:
            self._entries.setdefault(entry.subject_id, []).append(entry)

    def list_for_subject(self, subject_id: str) -> List[FeedbackEntry]:
        with self._lock:
            return list(self._entries.get(subject_id, []))

    def count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._entries.values())


__all__ = [
    "FeedbackEntry",
    "FeedbackHistoryStore",
    "InMemoryFeedbackHistory",
    "recent_negative_ids",
]
