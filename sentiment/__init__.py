"""
Sentiment Scoring Layer - feedback text to a bounded sentiment signal.

This package provides:
- LexicalSentimentScorer: deterministic keyword scorer (never raises)
- OpenRouterSentimentProvider: AI scorer that falls back to the lexical one
- FeedbackSubmission: ingestion-boundary validation

Usage:
    from sentiment import LexicalSentimentScorer

    scorer = LexicalSentimentScorer()
    result = scorer.score("The driver was very rude and late")

    print(result.score)        # -0.975
    print(result.label.value)  # very_negative

Output Schema:
- score: -1.0 (very negative) to +1.0 (very positive)
- confidence: 0.0 to 1.0, lexical evidence behind the score
- label: five bins with edges -0.6 / -0.2 / 0.2 / 0.6
- keywords: distinct tabled words that contributed
"""

from .base import ProviderHealth, ProviderStatus, SentimentProvider
from .config import SentimentConfig
from .lexicon import DEFAULT_LEXICON, SentimentLexicon
from .models import (
    FeedbackCategory,
    FeedbackRecord,
    ScoredFeedback,
    ScoreSource,
    SentimentLabel,
)
from .providers import OpenRouterSentimentProvider, create_sentiment_provider
from .schemas import FeedbackSubmission, ScoredFeedbackResponse
from .scorer import LexicalSentimentScorer, tokenize

__all__ = [
    # Models
    "SentimentLabel",
    "FeedbackCategory",
    "ScoreSource",
    "ScoredFeedback",
    "FeedbackRecord",
    # Scoring
    "SentimentLexicon",
    "DEFAULT_LEXICON",
    "LexicalSentimentScorer",
    "tokenize",
    # Providers
    "SentimentProvider",
    "ProviderHealth",
    "ProviderStatus",
    "OpenRouterSentimentProvider",
    "create_sentiment_provider",
    # Config
    "SentimentConfig",
    # Schemas
    "FeedbackSubmission",
    "ScoredFeedbackResponse",
]

__version__ = "1.0.0"
