"""Sentiment providers."""

import logging
from typing import Optional

from ..base import SentimentProvider
from ..config import SentimentConfig
from ..scorer import LexicalSentimentScorer
from .openrouter import OpenRouterSentimentProvider


logger = logging.getLogger(__name__)


def create_sentiment_provider(
    config: Optional[SentimentConfig] = None,
    lexical: Optional[LexicalSentimentScorer] = None,
) -> SentimentProvider:
    """
    Build the provider selected by configuration.

    The AI provider is only used when enabled and keyed; otherwise the
    lexical scorer serves directly.
    """
    config = config or SentimentConfig.from_env()
    lexical = lexical or LexicalSentimentScorer()

    if config.use_ai and config.openrouter_api_key:
        logger.info(f"Sentiment provider: openrouter ({config.openrouter_model})")
        return OpenRouterSentimentProvider(config, fallback=lexical)

    if config.use_ai:
        logger.warning("SENTIMENT_USE_AI set without OPENROUTER_API_KEY, using lexical scorer")
    else:
        logger.info("Sentiment provider: lexical")
    return lexical


__all__ = [
    "OpenRouterSentimentProvider",
    "create_sentiment_provider",
]
