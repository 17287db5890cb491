"""
Sentiment Configuration.

Controls which provider scores feedback and how the AI-backed
provider reaches its endpoint.
"""

import os
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class SentimentConfig:
    """Configuration for sentiment scoring."""

    use_ai: bool = False
    """Score through the AI provider (lexical fallback stays in place)."""

    openrouter_api_key: Optional[str] = field(default=None, repr=False)
    """Bearer token for the chat-completions endpoint."""

    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"

    openrouter_model: str = "openai/gpt-4o-mini"

    ai_timeout_seconds: float = 10.0
    """Upper bound on a single AI scoring call."""

    ai_max_tokens: int = 150

    ai_temperature: float = 0.1

    max_text_length: int = 2000
    """Longest feedback text accepted at the ingestion boundary."""

    @classmethod
    def from_env(cls) -> "SentimentConfig":
        """Load configuration from environment variables."""
        return cls(
            use_ai=os.getenv("SENTIMENT_USE_AI", "false").lower() == "true",
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
            openrouter_api_url=os.getenv(
                "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
            ),
            openrouter_model=os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
            ai_timeout_seconds=float(os.getenv("SENTIMENT_AI_TIMEOUT_SECONDS", "10")),
            max_text_length=int(os.getenv("FEEDBACK_MAX_TEXT_LENGTH", "2000")),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.use_ai and not self.openrouter_api_key:
            errors.append("openrouter_api_key required when use_ai is enabled")

        if self.ai_timeout_seconds <= 0:
            errors.append("ai_timeout_seconds must be positive")

        if self.max_text_length < 1:
            errors.append("max_text_length must be at least 1")

        if not 0.0 <= self.ai_temperature <= 2.0:
            errors.append("ai_temperature must be between 0 and 2")

        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "use_ai": self.use_ai,
            "openrouter_api_url": self.openrouter_api_url,
            "openrouter_model": self.openrouter_model,
            "ai_timeout_seconds": self.ai_timeout_seconds,
            "ai_max_tokens": self.ai_max_tokens,
            "ai_temperature": self.ai_temperature,
            "max_text_length": self.max_text_length,
            "has_api_key": bool(self.openrouter_api_key),
        }


__all__ = ["SentimentConfig"]
