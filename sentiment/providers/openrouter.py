"""
OpenRouter Sentiment Provider - AI-backed scoring with lexical fallback.

Endpoint: OpenRouter chat completions (OpenAI-compatible)
Default model: openai/gpt-4o-mini

The provider wraps a LexicalSentimentScorer. Any timeout, transport
error, non-200 status or unparseable answer is logged as a degraded
event and answered with the lexical result. Nothing is raised to the
caller.
"""

import asyncio
import json
import logging
import time
from typing import Any, Optional

import aiohttp

from core.clock import ClockFactory, ClockProtocol
from core.exceptions import (
    MalformedResponseError,
    ProviderTimeoutError,
    SentimentProviderError,
)

from ..base import ProviderHealth
from ..config import SentimentConfig
from ..models import ScoredFeedback, ScoreSource
from ..scorer import LexicalSentimentScorer


logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """Analyze the sentiment of the following user feedback and the provided rating (if any).

Feedback: "{text}"
Rating: {rating}

Respond ONLY with a JSON object and nothing else, using this exact structure:
{{
  "sentiment": "POSITIVE|NEGATIVE|NEUTRAL",
  "score": number,
  "confidence": number,
  "reasoning": "brief explanation"
}}

Instructions:
- score is 1 (most negative) .. 5 (most positive), or -1 .. 1.
- Prefer the 1..5 scale when a numeric rating is present.
- confidence is 0.0 .. 1.0.
- Keep reasoning short (1-2 sentences).
"""

DEFAULT_CONFIDENCE = 0.8


def build_prompt(text: str, rating: Optional[int]) -> str:
    """Render the scoring prompt for one piece of feedback."""
    return PROMPT_TEMPLATE.format(
        text=text.replace('"', "'"),
        rating="N/A" if rating is None else rating,
    )


def extract_json_object(content: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a model answer.

    Models sometimes wrap the object in prose or code fences, so the
    slice from the first '{' to the last '}' is parsed.
    """
    start = content.find("{")
    end = content.rfind("}")
    if start < 0 or end <= start:
        raise MalformedResponseError("No JSON object in model answer", provider="openrouter")
    try:
        data = json.loads(content[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Invalid JSON in model answer: {e}", provider="openrouter", cause=e
        ) from e
    if not isinstance(data, dict):
        raise MalformedResponseError("Model answer is not a JSON object", provider="openrouter")
    return data


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def normalize_score(raw: Optional[float]) -> float:
    """Map a 1..5 score onto [-1, 1]; clamp anything else."""
    if raw is None:
        return 0.0
    if 1.0 <= raw <= 5.0:
        return (raw - 3.0) / 2.0
    return max(-1.0, min(1.0, raw))


class OpenRouterSentimentProvider:
    """
    AI sentiment provider with a lexical safety net.

    The lexical scorer is always consulted for keywords; its full
    result is returned whenever the AI path fails.
    """

    name = "openrouter"

    def __init__(
        self,
        config: SentimentConfig,
        fallback: Optional[LexicalSentimentScorer] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config
        self._fallback = fallback or LexicalSentimentScorer()
        self._clock = clock or ClockFactory.get_clock()
        self._session: Optional[aiohttp.ClientSession] = None
        self._health = ProviderHealth()

    @property
    def health(self) -> ProviderHealth:
        return self._health

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.ai_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def evaluate(self, text: Optional[str], rating: Optional[int] = None) -> ScoredFeedback:
        """Score via the AI endpoint, falling back to the lexical scorer."""
        if not text or not text.strip():
            return ScoredFeedback.neutral(source=ScoreSource.OPENROUTER)

        started = time.monotonic()
        try:
            content = await asyncio.wait_for(
                self._request(text, rating),
                timeout=self._config.ai_timeout_seconds,
            )
            result = self._parse(content, text)
        except asyncio.TimeoutError:
            error = ProviderTimeoutError(self.name, self._config.ai_timeout_seconds)
            return self._degrade(text, error)
        except SentimentProviderError as e:
            return self._degrade(text, e)

        self._health.record_success((time.monotonic() - started) * 1000)
        logger.debug(
            f"OpenRouter score={result.score:.3f} confidence={result.confidence:.3f} "
            f"label={result.label.value}"
        )
        return result

    async def _request(self, text: str, rating: Optional[int]) -> str:
        """POST the prompt and return the first choice's content."""
        session = await self._get_session()
        headers = {
            "Authorization": f"Bearer {self._config.openrouter_api_key or ''}",
            "Content-Type": "application/json",
            "X-Title": "Feedback Reputation Engine",
        }
        payload = {
            "model": self._config.openrouter_model,
            "messages": [{"role": "user", "content": build_prompt(text, rating)}],
            "max_tokens": self._config.ai_max_tokens,
            "temperature": self._config.ai_temperature,
        }

        try:
            async with session.post(
                self._config.openrouter_api_url, json=payload, headers=headers
            ) as response:
                if response.status != 200:
                    body = await response.text()
                    raise SentimentProviderError(
                        f"OpenRouter API error: {response.status}",
                        provider=self.name,
                        context={"status_code": response.status, "response": body[:500]},
                    )
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise SentimentProviderError(
                f"Network error: {e}", provider=self.name, cause=e
            ) from e
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Response body is not JSON: {e}", provider=self.name, cause=e
            ) from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                "Response has no choices", provider=self.name, cause=e
            ) from e
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError("Empty completion content", provider=self.name)
        return content

    def _parse(self, content: str, text: str) -> ScoredFeedback:
        data = extract_json_object(content)
        score = normalize_score(_as_float(data.get("score")))
        confidence = _as_float(data.get("confidence"))
        reasoning = data.get("reasoning")

        return ScoredFeedback(
            score=score,
            confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
            keywords=self._fallback.extract_keywords(text),
            source=ScoreSource.OPENROUTER,
            reasoning=reasoning if isinstance(reasoning, str) else None,
        )

    def _degrade(self, text: str, error: SentimentProviderError) -> ScoredFeedback:
        self._health.record_fallback(error.message, self._clock.now())
        logger.warning(
            f"OpenRouter degraded, using lexical fallback: {error.message} "
            f"(consecutive_failures={self._health.consecutive_failures})"
        )
        lexical = self._fallback.score(text)
        return ScoredFeedback(
            score=lexical.score,
            confidence=lexical.confidence,
            keywords=lexical.keywords,
            source=ScoreSource.FALLBACK,
            reasoning=None,
        )


__all__ = [
    "OpenRouterSentimentProvider",
    "build_prompt",
    "extract_json_object",
    "normalize_score",
]
