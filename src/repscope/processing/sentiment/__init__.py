"""Search-result sentiment classification.

This module contains:
- Reputation lexicon (keyword stems, negations, domain tables)
- Lexical classifier (deterministic weighted keywords)
- Classifier adapter (optional LLM backend with lexical fallback)
"""

from repscope.processing.sentiment.adapter import (
    PydanticAISentimentBackend,
    SentimentBackend,
    SentimentClassifier,
    create_sentiment_classifier,
)
from repscope.processing.sentiment.analyzer import LexicalClassifier
from repscope.processing.sentiment.lexicon import Lexicon
from repscope.processing.models import Sentiment, Verdict
from repscope.processing.sentiment.models import BackendVerdict, LexicalScore

__all__ = [
    # Lexical
    "Lexicon",
    "LexicalClassifier",
    "LexicalScore",
    # Adapter
    "PydanticAISentimentBackend",
    "SentimentBackend",
    "SentimentClassifier",
    "create_sentiment_classifier",
    # Models
    "BackendVerdict",
    "Sentiment",
    "Verdict",
]
