"""
Sentiment Data Models - feedback inputs and scored outputs.

A ScoredFeedback label is always derived from its score through the
fixed bin edges {-0.6, -0.2, 0.2, 0.6}; no caller ever picks a label.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# Feedback scored below this confidence goes to a human reviewer
REVIEW_CONFIDENCE = 0.7


class SentimentLabel(Enum):
    """Five-bin sentiment label."""
    VERY_NEGATIVE = "very_negative"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    VERY_POSITIVE = "very_positive"

    @property
    def is_negative(self) -> bool:
        return self in (SentimentLabel.NEGATIVE, SentimentLabel.VERY_NEGATIVE)

    @property
    def is_positive(self) -> bool:
        return self in (SentimentLabel.POSITIVE, SentimentLabel.VERY_POSITIVE)

    @classmethod
    def from_score(cls, score: float) -> "SentimentLabel":
        """Bin a score in [-1, 1] into a label."""
        if score >= 0.6:
            return cls.VERY_POSITIVE
        elif score >= 0.2:
            return cls.POSITIVE
        elif score >= -0.2:
            return cls.NEUTRAL
        elif score >= -0.6:
            return cls.NEGATIVE
        else:
            return cls.VERY_NEGATIVE


class FeedbackCategory(Enum):
    """Coarse feedback category used for routing and reporting."""
    PRAISE = "praise"
    COMPLAINT = "complaint"
    GENERAL = "general"


class ScoreSource(Enum):
    """Which scorer produced a ScoredFeedback."""
    LEXICAL = "lexical"
    OPENROUTER = "openrouter"
    FALLBACK = "fallback"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ScoredFeedback:
    """
    Output of a sentiment scorer.

    score: -1.0 (very negative) to +1.0 (very positive)
    confidence: 0.0 to 1.0
    """
    score: float
    confidence: float
    keywords: frozenset[str] = field(default_factory=frozenset)
    source: ScoreSource = ScoreSource.LEXICAL
    reasoning: Optional[str] = None

    def __post_init__(self) -> None:
        """Clamp values into range."""
        if not -1.0 <= self.score <= 1.0:
            object.__setattr__(self, 'score', _clamp(self.score, -1.0, 1.0))
        if not 0.0 <= self.confidence <= 1.0:
            object.__setattr__(self, 'confidence', _clamp(self.confidence, 0.0, 1.0))
        if not isinstance(self.keywords, frozenset):
            object.__setattr__(self, 'keywords', frozenset(self.keywords))

    @property
    def label(self) -> SentimentLabel:
        return SentimentLabel.from_score(self.score)

    @property
    def requires_attention(self) -> bool:
        """Negative feedback or a low-confidence read needs a human look."""
        return self.label.is_negative or self.confidence < REVIEW_CONFIDENCE

    @property
    def category(self) -> FeedbackCategory:
        label = self.label
        if label.is_positive or self.score > 0.2:
            return FeedbackCategory.PRAISE
        if label.is_negative or self.score < -0.2:
            return FeedbackCategory.COMPLAINT
        return FeedbackCategory.GENERAL

    @classmethod
    def neutral(cls, source: ScoreSource = ScoreSource.LEXICAL) -> "ScoredFeedback":
        """Zero-signal result for empty input."""
        return cls(score=0.0, confidence=0.0, source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "label": self.label.value,
            "keywords": sorted(self.keywords),
            "source": self.source.value,
            "reasoning": self.reasoning,
            "requires_attention": self.requires_attention,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoredFeedback":
        return cls(
            score=float(data["score"]),
            confidence=float(data["confidence"]),
            keywords=frozenset(data.get("keywords", ())),
            source=ScoreSource(data.get("source", ScoreSource.LEXICAL.value)),
            reasoning=data.get("reasoning"),
        )


@dataclass(frozen=True)
class FeedbackRecord:
    """A single piece of feedback about a subject."""
    subject_id: str
    text: str
    submitted_at: datetime
    rating: Optional[int] = None  # 1..5
    feedback_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "text": self.text,
            "submitted_at": self.submitted_at.isoformat(),
            "rating": self.rating,
            "feedback_id": self.feedback_id,
        }
