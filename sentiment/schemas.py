"""
Pydantic Schemas for feedback ingestion.

Validation happens here, at the boundary; the scorer itself accepts
any string.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from core.clock import ensure_utc

from .models import FeedbackRecord


MAX_TEXT_LENGTH = 2000


class FeedbackSubmission(BaseModel):
    """Raw feedback as submitted by a client."""
    subject_id: str = Field(..., min_length=1, max_length=128)
    text: str = Field(..., max_length=MAX_TEXT_LENGTH)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    submitted_at: Optional[datetime] = None
    feedback_id: Optional[str] = Field(default=None, max_length=64)

    @field_validator("subject_id")
    @classmethod
    def _strip_subject(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("subject_id must not be blank")
        return value

    def to_record(self, now: datetime) -> FeedbackRecord:
        """Convert to the internal value, filling id and timestamp."""
        submitted = ensure_utc(self.submitted_at) if self.submitted_at else now
        return FeedbackRecord(
            subject_id=self.subject_id,
            text=self.text,
            submitted_at=submitted,
            rating=self.rating,
            feedback_id=self.feedback_id or str(uuid4()),
        )


class ScoredFeedbackResponse(BaseModel):
    """Serialized scorer output."""
    score: float
    confidence: float
    label: str
    keywords: list[str]
    source: str
    reasoning: Optional[str] = None
    requires_attention: bool
    category: str


__all__ = ["FeedbackSubmission", "ScoredFeedbackResponse", "MAX_TEXT_LENGTH"]
