"""Bulk position-tracking models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import Field

from repscope.processing.models import CamelModel
from repscope.storage.models import new_id, utcnow


class RankedUrl(CamelModel):
    """One result of a bulk query; no sentiment is computed."""

    position: int
    url: str
    title: str = ""


class FoundArticle(CamelModel):
    """A target URL seen in the results of one query."""

    query: str
    position: int
    actual_url: str


class BulkSearchSummary(CamelModel):
    id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(default_factory=utcnow)
    search_depth: int
    queries_count: int
    target_urls_count: int
    found_count: int
    not_found_count: int


class BulkSearchReport(BulkSearchSummary):
    """Where each target URL ranked across all queries."""

    queries: list[str]
    target_urls: list[str]
    found_articles: dict[str, list[FoundArticle]]
    all_results: dict[str, list[RankedUrl]]

    def summary(self) -> BulkSearchSummary:
        return BulkSearchSummary.model_validate(
            self.model_dump(include=set(BulkSearchSummary.model_fields))
        )


@dataclass
class BulkSearchStatus:
    """Live state of the bulk search runner."""

    running: bool = False
    search_id: str | None = None
    current: int = 0
    total: int = 0
    query: str = ""
    targets: int = 0
    depth: int = 0
    error: str | None = None
    last_search_id: str | None = None

    def to_dict(self) -> dict[str, object]:
        progress = (
            {
                "current": self.current,
                "total": self.total,
                "query": self.query,
                "targets": self.targets,
                "depth": self.depth,
            }
            if self.running
            else None
        )
        return {
            "running": self.running,
            "searchId": self.search_id,
            "progress": progress,
            "error": self.error,
            "lastSearchId": self.last_search_id,
        }
