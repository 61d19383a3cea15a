"""Position-weighted reputation metrics.

Each result's sentiment is weighted by the estimated click-through share of
its position, so a negative article at #1 costs far more than one at #9.

Scoring over the first ten results:
    positive  +w
    neutral   +0.75 * w
    negative  -w
    rating  = (score + 100) / 2

With the default table the top-10 weights sum to 100, so the rating spans
0 (all negative) to 100 (all positive), with 87.5 for an all-neutral page.
Counts cover the whole list; percentages cover the top ten only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

import orjson

from repscope.core.constants import TOP_POSITIONS
from repscope.processing.models import ReputationMetrics, RiskLevel, SearchResult, Sentiment

if TYPE_CHECKING:
    from repscope.config import Settings

# Positions 1-10
TOP_WEIGHTS = (30.0, 20.0, 14.0, 10.0, 7.0, 6.0, 5.0, 4.0, 2.5, 1.5)

# Positions 11-50
TAIL_WEIGHTS = (
    2.1, 1.9, 1.6, 1.4, 1.3, 1.2, 1.0, 0.9, 0.8, 0.7,
    0.6, 0.55, 0.5, 0.45, 0.4, 0.38, 0.36, 0.34, 0.32, 0.3,
    0.28, 0.26, 0.24, 0.22, 0.2, 0.19, 0.18, 0.17, 0.16, 0.15,
    0.14, 0.13, 0.12, 0.11, 0.1, 0.09, 0.08, 0.07, 0.06, 0.05,
)  # fmt: skip

# Positions 51-100 and anything unmapped
FLOOR_WEIGHT = 0.03
MAX_MAPPED_POSITION = 100

NEUTRAL_FACTOR = 0.75
HIGH_RISK_RATIO = 0.5
MEDIUM_RISK_RATIO = 0.3

_ONE_DECIMAL = Decimal("0.1")


def format_decimal(value: float) -> str:
    """Format with one decimal, rounding half away from zero; never "-0.0"."""
    quantized = Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return str(quantized)


def _default_table() -> dict[int, float]:
    table = {i: w for i, w in enumerate(TOP_WEIGHTS, start=1)}
    table.update({i: w for i, w in enumerate(TAIL_WEIGHTS, start=len(TOP_WEIGHTS) + 1)})
    table.update({i: FLOOR_WEIGHT for i in range(len(table) + 1, MAX_MAPPED_POSITION + 1)})
    return table


class PositionWeights:
    """Position -> CTR weight table."""

    def __init__(self, table: Mapping[int, float] | None = None, default: float = FLOOR_WEIGHT) -> None:
        source = table if table is not None else _default_table()
        self._table = MappingProxyType({int(k): float(v) for k, v in source.items()})
        self._default = default

    def weight(self, position: int) -> float:
        return self._table.get(position, self._default)

    def __getitem__(self, position: int) -> float:
        return self.weight(position)

    @property
    def table(self) -> Mapping[int, float]:
        return self._table

    @classmethod
    def from_json_file(cls, path: Path) -> PositionWeights:
        """Load ``{"1": 30.0, ...}`` or ``{"weights": {...}, "default": 0.03}``."""
        data = orjson.loads(path.read_bytes())
        if "weights" in data:
            return cls(
                {int(k): v for k, v in data["weights"].items()},
                default=float(data.get("default", FLOOR_WEIGHT)),
            )
        return cls({int(k): v for k, v in data.items()})


class MetricsAggregator:
    """Turn a ranked, classified result list into reputation metrics.

    Stateless apart from the weight table: calling ``aggregate`` twice on
    the same list returns equal metrics.
    """

    def __init__(self, weights: PositionWeights | None = None, top_n: int = TOP_POSITIONS) -> None:
        self._weights = weights if weights is not None else PositionWeights()
        self._top_n = top_n

    @property
    def weights(self) -> PositionWeights:
        return self._weights

    def weight_for(self, position: int) -> float:
        return self._weights.weight(position)

    def aggregate(self, results: Sequence[SearchResult]) -> ReputationMetrics:
        positive_weight = 0.0
        negative_weight = 0.0
        neutral_weight = 0.0
        score = 0.0

        for result in results[: self._top_n]:
            weight = self._weights.weight(result.position)
            if result.sentiment == Sentiment.positive:
                positive_weight += weight
                score += weight
            elif result.sentiment == Sentiment.negative:
                negative_weight += weight
                score -= weight
            else:
                neutral_weight += weight
                score += weight * NEUTRAL_FACTOR

        total_weight = positive_weight + negative_weight + neutral_weight
        rating = (score + 100) / 2

        return ReputationMetrics(
            total_results=len(results),
            positive_count=_count(results, Sentiment.positive),
            negative_count=_count(results, Sentiment.negative),
            neutral_count=_count(results, Sentiment.neutral),
            positive_percent=_percent(positive_weight, total_weight),
            negative_percent=_percent(negative_weight, total_weight),
            neutral_percent=_percent(neutral_weight, total_weight),
            rating=format_decimal(rating),
            score=format_decimal(score),
            risk_level=_risk(negative_weight, total_weight),
        )


def _count(results: Iterable[SearchResult], sentiment: Sentiment) -> int:
    return sum(1 for r in results if r.sentiment == sentiment)


def _percent(weight: float, total: float) -> str:
    if total <= 0:
        return "0.0"
    return format_decimal(weight / total * 100)


def _risk(negative_weight: float, total: float) -> RiskLevel:
    if total <= 0:
        return RiskLevel.low
    ratio = negative_weight / total
    if ratio > HIGH_RISK_RATIO:
        return RiskLevel.high
    if ratio > MEDIUM_RISK_RATIO:
        return RiskLevel.medium
    return RiskLevel.low


def create_metrics_aggregator(settings: Settings) -> MetricsAggregator:
    """Aggregator using ``settings.position_weights_path`` when set."""
    if settings.position_weights_path is not None:
        return MetricsAggregator(PositionWeights.from_json_file(settings.position_weights_path))
    return MetricsAggregator()
