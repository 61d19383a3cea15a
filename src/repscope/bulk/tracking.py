"""Matching target URLs against ranked results.

Two URLs match when, after normalization, either one contains the other.
A target such as ``example.com/news`` therefore matches every article
under that path, and a bare domain matches any page on it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from repscope.bulk.models import BulkSearchReport, FoundArticle, RankedUrl

_SCHEME = re.compile(r"^https?://")


def normalize_url(url: str) -> str:
    """Lowercase, without scheme, ``www.``, query string or trailing slash."""
    value = _SCHEME.sub("", url.strip().lower())
    value = value.removeprefix("www.")
    value = value.split("?", 1)[0]
    return value.removesuffix("/")


def urls_match(result_url: str, target_url: str) -> bool:
    result = normalize_url(result_url)
    target = normalize_url(target_url)
    if not result or not target:
        return False
    return target in result or result in target


def find_targets(
    query: str,
    results: Sequence[RankedUrl],
    target_urls: Sequence[str],
) -> dict[str, list[FoundArticle]]:
    """Hits per target URL for one query's results."""
    hits: dict[str, list[FoundArticle]] = {}
    for result in results:
        for target in target_urls:
            if urls_match(result.url, target):
                hits.setdefault(target, []).append(
                    FoundArticle(query=query, position=result.position, actual_url=result.url)
                )
    return hits


def build_report(
    search_id: str,
    depth: int,
    queries: Sequence[str],
    target_urls: Sequence[str],
    all_results: dict[str, list[RankedUrl]],
) -> BulkSearchReport:
    found: dict[str, list[FoundArticle]] = {url: [] for url in target_urls}
    for query in queries:
        for target, hits in find_targets(query, all_results.get(query, []), target_urls).items():
            found[target].extend(hits)

    found_count = sum(1 for hits in found.values() if hits)
    return BulkSearchReport(
        id=search_id,
        search_depth=depth,
        queries_count=len(queries),
        queries=list(queries),
        target_urls_count=len(target_urls),
        target_urls=list(target_urls),
        found_count=found_count,
        not_found_count=len(target_urls) - found_count,
        found_articles=found,
        all_results=all_results,
    )
