"""
Pipeline Configuration.

Aggregates the per-package configs and reads them from the
environment (a local .env file is honoured).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from alerting.config import AlertingConfig
from core.exceptions import InvalidConfigError
from reputation.config import ReputationConfig
from sentiment.config import SentimentConfig


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration for the feedback pipeline."""

    sentiment: SentimentConfig = field(default_factory=SentimentConfig)
    reputation: ReputationConfig = field(default_factory=ReputationConfig)
    alerting: AlertingConfig = field(default_factory=AlertingConfig)

    database_url: Optional[str] = field(default=None, repr=False)
    """SQLAlchemy URL; None keeps everything in memory."""

    log_level: str = "INFO"

    background_events: bool = False
    """Deliver events as background tasks instead of inline."""

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "PipelineConfig":
        """Load configuration from environment variables."""
        if dotenv:
            load_dotenv()
        return cls(
            sentiment=SentimentConfig.from_env(),
            reputation=ReputationConfig.from_env(),
            alerting=AlertingConfig.from_env(),
            database_url=os.getenv("DATABASE_URL") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            background_events=os.getenv("PIPELINE_BACKGROUND_EVENTS", "false").lower() == "true",
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []
        errors.extend(f"sentiment: {e}" for e in self.sentiment.validate())
        errors.extend(f"reputation: {e}" for e in self.reputation.validate())
        errors.extend(f"alerting: {e}" for e in self.alerting.validate())

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"log_level {self.log_level!r} is not a logging level")

        return errors

    def ensure_valid(self) -> "PipelineConfig":
        errors = self.validate()
        if errors:
            raise InvalidConfigError("PipelineConfig", errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment.to_dict(),
            "reputation": self.reputation.to_dict(),
            "alerting": self.alerting.to_dict(),
            "database": "sql" if self.database_url else "memory",
            "log_level": self.log_level,
            "background_events": self.background_events,
        }


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the pipeline process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


__all__ = ["PipelineConfig", "configure_logging"]
