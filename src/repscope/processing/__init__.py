"""Scoring pipeline: sentiment classification and reputation metrics."""

from repscope.processing.metrics import (
    MetricsAggregator,
    PositionWeights,
    create_metrics_aggregator,
)
from repscope.processing.models import (
    ReputationMetrics,
    RiskLevel,
    SearchResult,
    Sentiment,
    Verdict,
    renumber,
)

__all__ = [
    "MetricsAggregator",
    "PositionWeights",
    "ReputationMetrics",
    "RiskLevel",
    "SearchResult",
    "Sentiment",
    "Verdict",
    "create_metrics_aggregator",
    "renumber",
]
