"""
Tests for the OpenRouter sentiment provider.

Tests cover:
- Prompt rendering and answer parsing helpers
- Successful AI scoring
- Lexical fallback on timeout, HTTP error, malformed answers
- Provider health tracking
- Provider factory selection
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from core.exceptions import MalformedResponseError
from sentiment.base import ProviderStatus, SentimentProvider
from sentiment.config import SentimentConfig
from sentiment.models import ScoreSource, SentimentLabel
from sentiment.providers import create_sentiment_provider
from sentiment.providers.openrouter import (
    OpenRouterSentimentProvider,
    build_prompt,
    extract_json_object,
    normalize_score,
)
from sentiment.scorer import LexicalSentimentScorer


@pytest.fixture
def config():
    return SentimentConfig(
        use_ai=True,
        openrouter_api_key="test-key",
        ai_timeout_seconds=0.05,
    )


@pytest.fixture
def provider(config):
    return OpenRouterSentimentProvider(config)


def completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


def fake_session(status: int = 200, body=None, text: str = "") -> MagicMock:
    """aiohttp-like session whose post() yields a canned response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.post.return_value.__aenter__.return_value = response
    return session


# =============================================================
# TEST: Helpers
# =============================================================

class TestHelpers:
    """Test prompt and parsing helpers."""

    def test_prompt_includes_text_and_rating(self):
        prompt = build_prompt('He said "hi"', 4)
        assert "He said 'hi'" in prompt
        assert "Rating: 4" in prompt

    def test_prompt_without_rating(self):
        assert "Rating: N/A" in build_prompt("fine", None)

    def test_extract_json_from_fenced_answer(self):
        content = 'Sure!\n```json\n{"score": 4, "confidence": 0.9}\n```'
        assert extract_json_object(content) == {"score": 4, "confidence": 0.9}

    def test_extract_json_without_object(self):
        with pytest.raises(MalformedResponseError):
            extract_json_object("I cannot help with that")

    def test_extract_json_invalid(self):
        with pytest.raises(MalformedResponseError):
            extract_json_object("{score: four}")

    @pytest.mark.parametrize("raw,expected", [
        (5, 1.0),
        (3, 0.0),
        (1, -1.0),
        (2, -0.5),
        (0.4, 0.4),
        (-0.7, -0.7),
        (7, 1.0),
        (None, 0.0),
    ])
    def test_normalize_score(self, raw, expected):
        assert normalize_score(raw) == pytest.approx(expected)


# =============================================================
# TEST: Successful scoring
# =============================================================

class TestOpenRouterSuccess:
    """Test the AI path when the endpoint answers."""

    @pytest.mark.asyncio
    async def test_parses_ai_answer(self, provider):
        answer = '{"sentiment": "NEGATIVE", "score": 2, "confidence": 0.85, "reasoning": "Rude driver"}'
        with patch.object(provider, "_request", AsyncMock(return_value=answer)):
            result = await provider.evaluate("The driver was rude", rating=2)

        assert result.score == pytest.approx(-0.5)
        assert result.confidence == pytest.approx(0.85)
        assert result.label == SentimentLabel.NEGATIVE
        assert result.source == ScoreSource.OPENROUTER
        assert result.reasoning == "Rude driver"
        assert result.keywords == frozenset({"rude"})
        assert provider.health.status == ProviderStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_missing_confidence_defaults(self, provider):
        with patch.object(provider, "_request", AsyncMock(return_value='{"score": 0.5}')):
            result = await provider.evaluate("ok")

        assert result.confidence == pytest.approx(0.8)
        assert result.reasoning is None

    @pytest.mark.asyncio
    async def test_request_posts_to_endpoint(self, provider, config):
        session = fake_session(body=completion('{"score": 4, "confidence": 0.9}'))
        with patch.object(provider, "_get_session", AsyncMock(return_value=session)):
            result = await provider.evaluate("great ride", rating=5)

        assert result.score == pytest.approx(0.5)
        _, kwargs = session.post.call_args
        assert session.post.call_args.args[0] == config.openrouter_api_url
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"]["model"] == "openai/gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_empty_text_skips_request(self, provider):
        request = AsyncMock()
        with patch.object(provider, "_request", request):
            result = await provider.evaluate("   ")

        request.assert_not_called()
        assert result.score == 0.0
        assert result.confidence == 0.0


# =============================================================
# TEST: Fallback
# =============================================================

class TestOpenRouterFallback:
    """Test lexical fallback on every failure mode."""

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, provider):
        async def slow(text, rating):
            await asyncio.sleep(1)
            return '{"score": 5}'

        with patch.object(provider, "_request", slow):
            result = await provider.evaluate("very rude driver")

        lexical = LexicalSentimentScorer().score("very rude driver")
        assert result.source == ScoreSource.FALLBACK
        assert result.score == pytest.approx(lexical.score)
        assert result.confidence == pytest.approx(lexical.confidence)
        assert provider.health.fallbacks == 1
        assert "timed out" in provider.health.last_error

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self, provider):
        session = fake_session(status=500, text="upstream down")
        with patch.object(provider, "_get_session", AsyncMock(return_value=session)):
            result = await provider.evaluate("excellent service")

        assert result.source == ScoreSource.FALLBACK
        assert result.label == SentimentLabel.VERY_POSITIVE
        assert "500" in provider.health.last_error

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self, provider):
        session = MagicMock()
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        with patch.object(provider, "_get_session", AsyncMock(return_value=session)):
            result = await provider.evaluate("bad")

        assert result.source == ScoreSource.FALLBACK
        assert result.score == pytest.approx(-0.7)

    @pytest.mark.asyncio
    async def test_missing_choices_falls_back(self, provider):
        session = fake_session(body={"error": "quota"})
        with patch.object(provider, "_get_session", AsyncMock(return_value=session)):
            result = await provider.evaluate("nice")

        assert result.source == ScoreSource.FALLBACK

    @pytest.mark.asyncio
    async def test_non_json_answer_falls_back(self, provider):
        with patch.object(provider, "_request", AsyncMock(return_value="It seems positive.")):
            result = await provider.evaluate("pleasant trip")

        assert result.source == ScoreSource.FALLBACK
        assert result.score == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_degraded_after_repeated_failures(self, provider):
        with patch.object(provider, "_request", AsyncMock(return_value="no json")):
            for _ in range(3):
                await provider.evaluate("late again")

        assert provider.health.status == ProviderStatus.DEGRADED
        assert provider.health.consecutive_failures == 3

        with patch.object(provider, "_request", AsyncMock(return_value='{"score": 3}')):
            await provider.evaluate("fine")

        assert provider.health.status == ProviderStatus.HEALTHY
        assert provider.health.consecutive_failures == 0


# =============================================================
# TEST: Factory
# =============================================================

class TestProviderFactory:
    """Test provider selection."""

    def test_lexical_when_ai_disabled(self):
        provider = create_sentiment_provider(SentimentConfig(use_ai=False))
        assert isinstance(provider, LexicalSentimentScorer)
        assert isinstance(provider, SentimentProvider)

    def test_lexical_when_key_missing(self):
        provider = create_sentiment_provider(SentimentConfig(use_ai=True))
        assert isinstance(provider, LexicalSentimentScorer)

    def test_openrouter_when_enabled(self, config):
        provider = create_sentiment_provider(config)
        assert isinstance(provider, OpenRouterSentimentProvider)
        assert isinstance(provider, SentimentProvider)

    def test_config_from_env(self, monkeypatch):
        monkeypatch.setenv("SENTIMENT_USE_AI", "true")
        monkeypatch.setenv("OPENROUTER_API_KEY", "secret-key-123")
        monkeypatch.setenv("SENTIMENT_AI_TIMEOUT_SECONDS", "3")

        config = SentimentConfig.from_env()

        assert config.use_ai is True
        assert config.openrouter_api_key == "secret-key-123"
        assert config.ai_timeout_seconds == 3.0
        assert config.to_dict()["has_api_key"] is True
        assert "secret-key-123" not in repr(config)
