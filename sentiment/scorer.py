"""
Lexical Sentiment Scorer - deterministic keyword scoring.

============================================================
ALGORITHM
============================================================
1. Split on whitespace, lowercase, strip non-letters per token
2. For every token found in the positive/negative tables:
   - a negation within the 3 preceding tokens flips and damps it
     (-weight * 0.8)
   - the earliest intensifier within the 2 preceding tokens
     multiplies it
3. score = mean contribution over matched tokens, clamped to [-1, 1]
4. confidence = 0.7 * matched/words + 0.3 * min(1, words/20),
   floored at 0.3 when anything matched, clamped to [0, 1]

Never raises. Unknown tokens are ignored; text with no tabled
words is NEUTRAL with zero score.
============================================================
"""

import logging
import re
from typing import Iterable, Optional

from .lexicon import DEFAULT_LEXICON, SentimentLexicon
from .models import ScoredFeedback, ScoreSource


logger = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^a-z]")


def tokenize(text: str) -> list[str]:
    """Whitespace tokens, lowercased, reduced to letters (may be empty)."""
    return [_NON_LETTERS.sub("", raw) for raw in text.lower().split()]


class LexicalSentimentScorer:
    """
    Pure keyword-based scorer.

    Instances hold no mutable state and are safe to share across
    threads and tasks.
    """

    name = "lexical"

    def __init__(self, lexicon: SentimentLexicon = DEFAULT_LEXICON) -> None:
        self._lexicon = lexicon

    @property
    def lexicon(self) -> SentimentLexicon:
        return self._lexicon

    def score(self, text: Optional[str]) -> ScoredFeedback:
        """Score a single piece of feedback text."""
        if not text or not text.strip():
            return ScoredFeedback.neutral()

        tokens = tokenize(text)
        word_count = len(tokens)
        lex = self._lexicon

        total = 0.0
        matched = 0
        keywords: set[str] = set()

        for i, token in enumerate(tokens):
            weight = lex.weight(token)
            if weight is None:
                continue

            negated = any(
                tokens[j] in lex.negations
                for j in range(max(0, i - lex.negation_window), i)
            )

            factor = 1.0
            for j in range(max(0, i - lex.intensifier_window), i):
                if tokens[j] in lex.intensifiers:
                    factor = lex.intensifiers[tokens[j]]
                    break

            contribution = -weight * lex.negation_factor if negated else weight
            total += contribution * factor
            matched += 1
            keywords.add(token)

        if matched == 0:
            score = 0.0
        else:
            score = max(-1.0, min(1.0, total / matched))

        density = matched / word_count
        confidence = 0.7 * density + 0.3 * min(1.0, word_count / 20.0)
        if matched > 0:
            confidence = max(0.3, confidence)
        confidence = max(0.0, min(1.0, confidence))

        result = ScoredFeedback(
            score=score,
            confidence=confidence,
            keywords=frozenset(keywords),
            source=ScoreSource.LEXICAL,
        )
        logger.debug(
            f"Lexical score={result.score:.3f} confidence={result.confidence:.3f} "
            f"label={result.label.value} keywords={sorted(keywords)}"
        )
        return result

    def score_batch(self, texts: Iterable[Optional[str]]) -> list[ScoredFeedback]:
        """Score many texts, preserving order."""
        return [self.score(text) for text in texts]

    def extract_keywords(self, text: Optional[str]) -> frozenset[str]:
        """Distinct tabled words present in the text."""
        if not text:
            return frozenset()
        return frozenset(t for t in tokenize(text) if self._lexicon.weight(t) is not None)

    async def evaluate(self, text: Optional[str], rating: Optional[int] = None) -> ScoredFeedback:
        """Provider interface; the rating does not affect lexical scoring."""
        return self.score(text)


__all__ = ["LexicalSentimentScorer", "tokenize"]
