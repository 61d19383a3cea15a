"""Deterministic weighted-keyword sentiment classifier for search snippets.

Scores a title/snippet/domain triple by matching token prefixes against the
reputation lexicon, with a short negation window and a per-domain bias.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from repscope.processing.models import Sentiment, Verdict
from repscope.processing.sentiment.lexicon import Lexicon
from repscope.processing.sentiment.models import LexicalScore

# Combined text is cut before tokenizing
MAX_TEXT_LENGTH = 1000
MAX_TOKENS = 200
MAX_MARKERS = 3
LEXICAL_CONFIDENCE = 0.5

_TOKEN_PATTERN = re.compile(r"[^\W_]+")


def tokenize(title: str | None, snippet: str | None) -> list[str]:
    """Lowercase title+snippet and split on non-alphanumeric boundaries."""
    text = f" {title or ''} {snippet or ''} ".lower()[:MAX_TEXT_LENGTH]
    return _TOKEN_PATTERN.findall(text)[:MAX_TOKENS]


def _match(token: str, stems: Mapping[str, int]) -> int:
    """Return the weight of the first stem the token starts with, or 0."""
    for stem, weight in stems.items():
        if token.startswith(stem):
            return weight
    return 0


class LexicalClassifier:
    """Weighted lexical classifier.

    Never raises: anything that is not a string is treated as empty text
    and yields a neutral verdict with an empty explanation.
    """

    def __init__(self, lexicon: Lexicon | None = None, threshold: float = 0.3) -> None:
        self._lexicon = lexicon if lexicon is not None else Lexicon.default()
        self._threshold = threshold

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    @property
    def threshold(self) -> float:
        return self._threshold

    def score(self, title: str | None, snippet: str | None, domain: str = "") -> LexicalScore:
        """Accumulate positive/negative totals for one result."""
        tokens = tokenize(_as_text(title), _as_text(snippet))
        lex = self._lexicon
        positive = 0.0
        negative = 0.0

        for i, token in enumerate(tokens):
            window = tokens[max(0, i - lex.negation_window) : i]
            negated = any(w in lex.negations for w in window)

            weight = _match(token, lex.positive)
            if weight:
                if negated:
                    negative += weight * 0.5
                else:
                    positive += weight

            weight = _match(token, lex.negative)
            if weight:
                if negated:
                    positive += weight * 0.5
                else:
                    negative += weight

        bias = lex.bias_for(_as_text(domain))
        if bias > 0:
            positive += bias
        elif bias < 0:
            negative += abs(bias)

        return LexicalScore(positive=positive, negative=negative, tokens=len(tokens))

    def sentiment(self, title: str | None, snippet: str | None, domain: str = "") -> Sentiment:
        """Classify without building an explanation."""
        return self._decide(self.score(title, snippet, domain))

    def classify(self, title: str | None, snippet: str | None, domain: str = "") -> Verdict:
        """Classify and explain one result."""
        score = self.score(title, snippet, domain)
        sentiment = self._decide(score)
        if score.tokens == 0:
            return Verdict(sentiment=sentiment, confidence=LEXICAL_CONFIDENCE, explanation="")
        explanation = self.explain(title, snippet, _as_text(domain), sentiment)
        return Verdict(sentiment=sentiment, confidence=LEXICAL_CONFIDENCE, explanation=explanation)

    def explain(
        self,
        title: str | None,
        snippet: str | None,
        domain: str,
        sentiment: Sentiment,
    ) -> str:
        """Build a short rationale from the strongest matched keywords.

        This pass ignores negation: it reports which words were seen, not
        how they were scored.
        """
        tokens = tokenize(_as_text(title), _as_text(snippet))
        if not tokens:
            return ""

        found_positive: list[tuple[str, int]] = []
        found_negative: list[tuple[str, int]] = []
        for token in tokens:
            if weight := _match(token, self._lexicon.positive):
                found_positive.append((token, weight))
            if weight := _match(token, self._lexicon.negative):
                found_negative.append((token, weight))

        # sorted() is stable, so equal weights keep text order
        found_positive = sorted(found_positive, key=lambda m: m[1], reverse=True)
        found_negative = sorted(found_negative, key=lambda m: m[1], reverse=True)

        if sentiment is Sentiment.positive:
            rationale = (
                f"Positive markers: {_quote(found_positive)}"
                if found_positive
                else "Overall positive tone"
            )
        elif sentiment is Sentiment.negative:
            rationale = (
                f"Negative markers: {_quote(found_negative)}"
                if found_negative
                else "Overall negative tone"
            )
            if self._lexicon.bias_for(domain) < 0:
                rationale += " | Source: compromising-material site"
        elif not found_positive and not found_negative:
            rationale = "Neutral informational publication"
        else:
            rationale = "Mixed tone, positive and negative balance"

        source = self._source_phrase(domain, sentiment)
        return f"{source}. {rationale}" if source else rationale

    def _decide(self, score: LexicalScore) -> Sentiment:
        if score.total == 0:
            return Sentiment.neutral
        diff = score.normalized_diff
        if diff > self._threshold:
            return Sentiment.positive
        if diff < -self._threshold:
            return Sentiment.negative
        return Sentiment.neutral

    def _source_phrase(self, domain: str, sentiment: Sentiment) -> str:
        """Describe known source categories; empty for unknown domains."""
        info = self._lexicon.category_for(domain)
        if info is None:
            return ""
        category, stance = info
        if category == "tabloid" and sentiment is Sentiment.negative:
            return "Tabloid publication with a negative slant"
        if category == "reviews":
            return f"{sentiment.value.capitalize()} review on a review site"
        if category == "social":
            return {
                Sentiment.positive: "Positive content on a social platform",
                Sentiment.negative: "Negative content on a social platform",
                Sentiment.neutral: "Neutral mention on a social platform",
            }[sentiment]
        if stance == "official":
            return {
                Sentiment.positive: "Favourable coverage in state media",
                Sentiment.negative: "Critical coverage in state media",
                Sentiment.neutral: "Neutral coverage in state media",
            }[sentiment]
        return ""


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _quote(matches: list[tuple[str, int]]) -> str:
    return ", ".join(f'"{word}"' for word, _ in matches[:MAX_MARKERS])
