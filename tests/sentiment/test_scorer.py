"""
Tests for the lexical sentiment scorer.

Tests cover:
- Tokenization
- Negation and intensifier windows
- Score and confidence formulas
- Label binning and derived properties
- Batch scoring and keyword extraction
"""

import pytest

from sentiment.lexicon import DEFAULT_LEXICON, NEGATIVE_WORDS, POSITIVE_WORDS, SentimentLexicon
from sentiment.models import (
    FeedbackCategory,
    ScoredFeedback,
    ScoreSource,
    SentimentLabel,
)
from sentiment.scorer import LexicalSentimentScorer, tokenize


@pytest.fixture
def scorer():
    return LexicalSentimentScorer()


# =============================================================
# TEST: Tokenization
# =============================================================

class TestTokenize:
    """Test whitespace tokenization."""

    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Great, DRIVER!") == ["great", "driver"]

    def test_contractions_lose_apostrophes(self):
        assert tokenize("wasn't") == ["wasnt"]

    def test_punctuation_only_tokens_become_empty(self):
        assert tokenize("ok --- fine") == ["ok", "", "fine"]


# =============================================================
# TEST: Scoring
# =============================================================

class TestLexicalScoring:
    """Test the lexical scoring algorithm."""

    def test_empty_text_is_neutral_with_zero_confidence(self, scorer):
        for text in ("", "   ", None):
            result = scorer.score(text)
            assert result.score == 0.0
            assert result.confidence == 0.0
            assert result.label == SentimentLabel.NEUTRAL
            assert result.keywords == frozenset()

    def test_intensified_complaint(self, scorer):
        """'very' boosts 'rude' (x1.5); 'late' is plain."""
        result = scorer.score("The driver was very rude and late")

        assert result.score == pytest.approx(-0.975)
        assert result.label == SentimentLabel.VERY_NEGATIVE
        assert result.confidence == pytest.approx(0.2 + 0.105)
        assert result.keywords == frozenset({"rude", "late"})
        assert result.source == ScoreSource.LEXICAL

    def test_negation_flips_and_damps(self, scorer):
        result = scorer.score("not good")

        assert result.score == pytest.approx(-0.56)
        assert result.label == SentimentLabel.NEGATIVE

    @pytest.mark.parametrize("word", sorted(POSITIVE_WORDS) + sorted(NEGATIVE_WORDS))
    def test_negation_applies_to_every_tabled_word(self, scorer, word):
        plain = scorer.score(word).score
        expected = max(-1.0, min(1.0, -0.8 * plain))

        assert scorer.score(f"not {word}").score == pytest.approx(expected)
        assert plain * expected <= 0

    def test_negation_window_is_three_tokens(self, scorer):
        inside = scorer.score("not a very good")
        outside = scorer.score("not a b c good")

        assert inside.score < 0
        assert outside.score == pytest.approx(0.7)

    def test_contraction_negation(self, scorer):
        result = scorer.score("The driver wasn't friendly")
        assert result.score == pytest.approx(-0.64)

    def test_intensifier_window_is_two_tokens(self, scorer):
        near = scorer.score("very nice")
        far = scorer.score("very x y nice")

        assert near.score == pytest.approx(0.9)
        assert far.score == pytest.approx(0.6)

    def test_earliest_intensifier_wins(self, scorer):
        result = scorer.score("extremely very good")
        assert result.score == pytest.approx(1.0)  # 0.7 * 1.8 clamped

        result = scorer.score("quite very bad")
        assert result.score == pytest.approx(-0.84)  # -0.7 * 1.2

    def test_score_is_clamped(self, scorer):
        result = scorer.score("extremely excellent")
        assert result.score == 1.0

    def test_unknown_words_only(self, scorer):
        result = scorer.score("the car arrived at noon")

        assert result.score == 0.0
        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == pytest.approx(0.3 * 5 / 20)

    def test_confidence_floor_when_matched(self, scorer):
        words = ["word"] * 39 + ["good"]
        result = scorer.score(" ".join(words))

        # 0.7 * 1/40 + 0.3 = 0.3175
        assert result.confidence == pytest.approx(0.3175)

        result = scorer.score(" ".join(["word"] * 3 + ["good"]))
        assert result.confidence >= 0.3

    def test_repeated_keyword_counts_each_time(self, scorer):
        result = scorer.score("good good bad")
        assert result.score == pytest.approx(0.7 / 3)
        assert result.keywords == frozenset({"good", "bad"})

    def test_mixed_feedback(self, scorer):
        result = scorer.score("Friendly driver but the car was dirty")
        assert result.score == pytest.approx(0.05)
        assert result.label == SentimentLabel.NEUTRAL

    def test_deterministic(self, scorer):
        text = "Absolutely terrible, rude and never on time"
        assert scorer.score(text) == scorer.score(text)

    def test_custom_lexicon(self):
        lexicon = SentimentLexicon(
            positive={"stellar": 1.0},
            negative={},
            negations=frozenset(),
            intensifiers={},
        )
        result = LexicalSentimentScorer(lexicon).score("stellar good")
        assert result.score == pytest.approx(1.0)
        assert result.keywords == frozenset({"stellar"})

    def test_default_lexicon_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_LEXICON.positive["new"] = 0.5


class TestBatchAndKeywords:
    """Test batch scoring and keyword extraction."""

    def test_score_batch_preserves_order(self, scorer):
        results = scorer.score_batch(["great service", "", "awful"])

        assert [r.label for r in results] == [
            SentimentLabel.VERY_POSITIVE,
            SentimentLabel.NEUTRAL,
            SentimentLabel.VERY_NEGATIVE,
        ]

    def test_extract_keywords(self, scorer):
        assert scorer.extract_keywords("Polite, punctual... but SLOW") == frozenset(
            {"polite", "punctual", "slow"}
        )
        assert scorer.extract_keywords(None) == frozenset()

    @pytest.mark.asyncio
    async def test_evaluate_ignores_rating(self, scorer):
        with_rating = await scorer.evaluate("nice ride", rating=1)
        without = await scorer.evaluate("nice ride")
        assert with_rating == without


# =============================================================
# TEST: ScoredFeedback
# =============================================================

class TestScoredFeedback:
    """Test ScoredFeedback derived values."""

    @pytest.mark.parametrize("score,label", [
        (1.0, SentimentLabel.VERY_POSITIVE),
        (0.6, SentimentLabel.VERY_POSITIVE),
        (0.59, SentimentLabel.POSITIVE),
        (0.2, SentimentLabel.POSITIVE),
        (0.19, SentimentLabel.NEUTRAL),
        (-0.2, SentimentLabel.NEUTRAL),
        (-0.21, SentimentLabel.NEGATIVE),
        (-0.6, SentimentLabel.NEGATIVE),
        (-0.61, SentimentLabel.VERY_NEGATIVE),
        (-1.0, SentimentLabel.VERY_NEGATIVE),
    ])
    def test_label_bins(self, score, label):
        assert ScoredFeedback(score=score, confidence=1.0).label == label

    def test_values_are_clamped(self):
        result = ScoredFeedback(score=3.0, confidence=-1.0)
        assert result.score == 1.0
        assert result.confidence == 0.0

    def test_requires_attention(self):
        assert ScoredFeedback(score=-0.5, confidence=0.9).requires_attention
        assert ScoredFeedback(score=0.8, confidence=0.4).requires_attention
        assert not ScoredFeedback(score=0.8, confidence=0.9).requires_attention

    @pytest.mark.parametrize("confidence,expected", [
        (0.5, True),
        (0.69, True),
        (0.7, False),
        (0.95, False),
    ])
    def test_requires_attention_confidence_cutoff(self, confidence, expected):
        assert ScoredFeedback(score=0.8, confidence=confidence).requires_attention is expected

    def test_category(self):
        assert ScoredFeedback(score=0.5, confidence=1).category == FeedbackCategory.PRAISE
        assert ScoredFeedback(score=-0.5, confidence=1).category == FeedbackCategory.COMPLAINT
        assert ScoredFeedback(score=0.0, confidence=1).category == FeedbackCategory.GENERAL

    def test_dict_round_trip(self):
        original = ScoredFeedback(
            score=-0.4,
            confidence=0.7,
            keywords={"rude"},
            source=ScoreSource.OPENROUTER,
            reasoning="driver was rude",
        )
        data = original.to_dict()

        assert data["label"] == "negative"
        assert data["keywords"] == ["rude"]
        assert ScoredFeedback.from_dict(data) == original
