"""Data models for lexical scoring and the LLM backend reply."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from repscope.processing.models import Sentiment


@dataclass(frozen=True, slots=True)
class LexicalScore:
    """Raw polarity totals from one lexical pass.

    Attributes:
        positive: Positive running total (keywords, flipped negatives, bias).
        negative: Negative running total.
        tokens: Number of tokens considered after the cap.
    """

    positive: float
    negative: float
    tokens: int

    @property
    def total(self) -> float:
        return self.positive + self.negative

    @property
    def normalized_diff(self) -> float:
        """(positive - negative) / total, or 0.0 when nothing matched."""
        if self.total == 0:
            return 0.0
        return (self.positive - self.negative) / self.total


class BackendVerdict(BaseModel):
    """JSON shape the LLM backend is asked to return."""

    sentiment: Sentiment = Field(default=Sentiment.neutral)
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    explanation: str = Field(default="", max_length=500)
