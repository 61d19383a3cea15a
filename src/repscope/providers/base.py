"""Abstract search-results provider protocol.

A provider returns the ranked organic results for a query on one engine.
Providers must not raise for transient trouble (network, timeouts, bad
status, missing credentials): they log and return whatever they collected,
possibly an empty list.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

# (fraction in [0, 1], human-readable stage label)
RetrievalProgress = Callable[[float, str], None]


@dataclass(frozen=True, slots=True)
class RawResult:
    """One unclassified organic result."""

    position: int
    url: str
    title: str
    snippet: str
    domain: str
    type: str


@runtime_checkable
class ResultProvider(Protocol):
    """Protocol for ranked search-result retrieval."""

    async def retrieve(
        self,
        query: str,
        engine: str,
        depth: int,
        region: str,
        on_progress: RetrievalProgress | None = None,
    ) -> list[RawResult]:
        """Fetch up to ``depth`` results for ``query`` on ``engine``.

        Args:
            query: Monitored name.
            engine: Engine identifier ("google", "yandex").
            depth: Maximum number of results.
            region: Region code from ``core.constants.REGIONS``.
            on_progress: Optional per-page progress callback.

        Returns:
            Results in rank order with positions 1..N. May be shorter than
            ``depth`` or empty.
        """
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``; "unknown" if the URL has none."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    return host.removeprefix("www.")


def detect_content_type(url: str, title: str | None) -> str:
    """Guess the kind of page from its URL and title."""
    url_lower = url.lower()
    title_lower = (title or "").lower()

    if "wiki" in url_lower or "википедия" in title_lower:
        return "biography"
    if "news" in url_lower or "novosti" in url_lower or "новост" in title_lower:
        return "news"
    if any(s in url_lower for s in ("instagram", "vk.com", "facebook", "tiktok")):
        return "social"
    if any(s in url_lower for s in ("otzovik", "irecommend", "flamp")) or "отзыв" in title_lower:
        return "review"
    if any(s in url_lower for s in ("youtube", "rutube", "video")):
        return "media"
    if any(s in url_lower for s in ("forum", "pikabu", "dzen")):
        return "forum"
    return "official"
