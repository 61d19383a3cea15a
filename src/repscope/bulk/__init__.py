"""Bulk position tracking of target URLs across many queries."""

from repscope.bulk.models import (
    BulkSearchReport,
    BulkSearchStatus,
    BulkSearchSummary,
    FoundArticle,
    RankedUrl,
)
from repscope.bulk.runner import BulkSearchRunner
from repscope.bulk.store import BulkSearchHistory
from repscope.bulk.tracking import build_report, normalize_url, urls_match

__all__ = [
    "BulkSearchHistory",
    "BulkSearchReport",
    "BulkSearchRunner",
    "BulkSearchStatus",
    "BulkSearchSummary",
    "FoundArticle",
    "RankedUrl",
    "build_report",
    "normalize_url",
    "urls_match",
]
