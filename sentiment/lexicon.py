"""
Sentiment Lexicon - word tables for the lexical scorer.

Tables are built once at import and exposed through read-only
mapping proxies, so every scorer instance shares the same data.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


POSITIVE_WORDS: Mapping[str, float] = MappingProxyType({
    # Strong praise
    "excellent": 1.0,
    "amazing": 1.0,
    "fantastic": 1.0,
    "outstanding": 1.0,
    "superb": 1.0,
    "brilliant": 1.0,
    "perfect": 0.9,
    "wonderful": 0.9,
    "awesome": 0.9,
    "best": 0.9,
    "love": 0.9,
    # Clear positives
    "top": 0.8,
    "great": 0.8,
    "friendly": 0.8,
    "safe": 0.8,
    "happy": 0.8,
    "recommend": 0.8,
    "trustworthy": 0.8,
    "impressive": 0.8,
    "good": 0.7,
    "pleasant": 0.7,
    "helpful": 0.7,
    "professional": 0.7,
    "polite": 0.7,
    "courteous": 0.7,
    "punctual": 0.7,
    "satisfied": 0.7,
    "efficient": 0.7,
    "reliable": 0.7,
    "skilled": 0.7,
    "appreciate": 0.7,
    "pleased": 0.7,
    # Mild positives
    "nice": 0.6,
    "clean": 0.6,
    "comfortable": 0.6,
    "smooth": 0.6,
    "experienced": 0.6,
    "thanks": 0.6,
    "thank": 0.6,
})

NEGATIVE_WORDS: Mapping[str, float] = MappingProxyType({
    # Severe
    "terrible": -1.0,
    "awful": -1.0,
    "horrible": -1.0,
    "worst": -1.0,
    "disgusting": -1.0,
    "pathetic": -1.0,
    "dangerous": -1.0,
    "useless": -0.9,
    "unacceptable": -0.9,
    "rude": -0.9,
    "aggressive": -0.9,
    "unsafe": -0.9,
    "hate": -0.9,
    "dishonest": -0.9,
    # Clear negatives
    "disappointing": -0.8,
    "inappropriate": -0.8,
    "unprofessional": -0.8,
    "angry": -0.8,
    "irresponsible": -0.8,
    "unhappy": -0.8,
    "complain": -0.8,
    "complaint": -0.8,
    "unreliable": -0.8,
    "careless": -0.7,
    "bad": -0.7,
    "poor": -0.7,
    "annoying": -0.7,
    "frustrating": -0.7,
    "dissatisfied": -0.7,
    "dislike": -0.7,
    "dirty": -0.7,
    # Mild negatives
    "slow": -0.6,
    "late": -0.6,
    "uncomfortable": -0.6,
    "problem": -0.6,
    "wrong": -0.6,
    "issue": -0.5,
})

# Tokens are stripped of non-letters before lookup, so contractions
# appear here without apostrophes.
NEGATION_WORDS: frozenset[str] = frozenset({
    "not", "no", "never", "neither", "nobody", "nothing", "nowhere",
    "hardly", "scarcely", "barely",
    "doesnt", "isnt", "wasnt", "shouldnt", "wouldnt", "couldnt",
    "wont", "cant", "dont",
})

INTENSIFIERS: Mapping[str, float] = MappingProxyType({
    "very": 1.5,
    "extremely": 1.8,
    "really": 1.4,
    "absolutely": 1.7,
    "totally": 1.6,
    "completely": 1.7,
    "quite": 1.2,
    "so": 1.3,
})


@dataclass(frozen=True)
class SentimentLexicon:
    """Bundle of the four word tables plus the scoring windows."""
    positive: Mapping[str, float]
    negative: Mapping[str, float]
    negations: frozenset[str]
    intensifiers: Mapping[str, float]

    # Window sizes (tokens looked back from a tabled word)
    negation_window: int = 3
    intensifier_window: int = 2

    # Negated words contribute -weight * factor
    negation_factor: float = 0.8

    def weight(self, token: str) -> Optional[float]:
        """Signed base weight for a token, None if untabled."""
        if token in self.positive:
            return self.positive[token]
        if token in self.negative:
            return self.negative[token]
        return None


DEFAULT_LEXICON = SentimentLexicon(
    positive=POSITIVE_WORDS,
    negative=NEGATIVE_WORDS,
    negations=NEGATION_WORDS,
    intensifiers=INTENSIFIERS,
)


__all__ = [
    "POSITIVE_WORDS",
    "NEGATIVE_WORDS",
    "NEGATION_WORDS",
    "INTENSIFIERS",
    "SentimentLexicon",
    "DEFAULT_LEXICON",
]
