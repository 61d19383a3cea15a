"""Persisted result and metrics models.

Attributes are snake_case; JSON uses camelCase aliases so the stored project
graph keeps its established shape (``positivePercent``, ``riskLevel`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Sentiment(StrEnum):
    """Reputation polarity of a single search result."""

    positive = "positive"
    negative = "negative"
    neutral = "neutral"


@dataclass(frozen=True, slots=True)
class Verdict:
    """Classifier output for one result."""

    sentiment: Sentiment
    confidence: float
    explanation: str

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {self.confidence}")


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class RiskLevel(StrEnum):
    """Share of top-10 traffic landing on negative results."""

    low = "low"
    medium = "medium"
    high = "high"


class SearchResult(CamelModel):
    """One ranked, classified search result."""

    position: int = Field(ge=1, description="Dense 1-based rank; matches list order")
    url: str
    title: str = ""
    snippet: str = ""
    domain: str = "unknown"
    type: str = "official"
    sentiment: Sentiment = Sentiment.neutral
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    explanation: str = ""
    ctr: float = Field(default=0.0, description="Traffic weight of the position")


class ReputationMetrics(CamelModel):
    """Position-weighted reputation summary of one engine's result list.

    Percentages, rating and score are one-decimal strings.
    """

    total_results: int = 0
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0
    positive_percent: str = "0.0"
    negative_percent: str = "0.0"
    neutral_percent: str = "0.0"
    rating: str = "50.0"
    score: str = "0.0"
    risk_level: RiskLevel = RiskLevel.low


def renumber(results: list[SearchResult]) -> list[SearchResult]:
    """Return copies with positions reset to 1..N in list order."""
    return [
        r if r.position == i else r.model_copy(update={"position": i})
        for i, r in enumerate(results, start=1)
    ]
