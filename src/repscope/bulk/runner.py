"""Background bulk position tracking.

One bulk search at a time: every query is searched on Yandex to the given
depth, with a pause between queries, and the report of where each target
URL ranked is added to the history when all queries are done.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from repscope.bulk.models import BulkSearchStatus, RankedUrl
from repscope.bulk.store import BulkSearchHistory
from repscope.bulk.tracking import build_report
from repscope.core.constants import BULK_SEARCH_ENGINE, VALID_DEPTHS, get_region
from repscope.core.exceptions import ConflictError, InvalidRequestError, RepscopeError
from repscope.core.logging import get_logger
from repscope.providers import ResultProvider, create_result_provider
from repscope.storage.models import new_id

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)


def _unique(values: Sequence[str]) -> list[str]:
    kept: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in kept:
            kept.append(value)
    return kept


class BulkSearchRunner:
    def __init__(
        self,
        history: BulkSearchHistory,
        settings: Settings,
        *,
        provider_factory: Callable[[Settings], ResultProvider] = create_result_provider,
    ) -> None:
        self._history = history
        self._settings = settings
        self._provider_factory = provider_factory
        self._status = BulkSearchStatus()
        self._task: asyncio.Task[None] | None = None

    @property
    def history(self) -> BulkSearchHistory:
        return self._history

    @property
    def status(self) -> BulkSearchStatus:
        return self._status

    def start(
        self,
        queries: Sequence[str],
        target_urls: Sequence[str],
        depth: int | None = None,
        region: str | None = None,
    ) -> str:
        """Validate the request and start the search in the background.

        Returns:
            The id the finished report will carry.

        Raises:
            InvalidRequestError: If queries or targets are empty or depth is invalid.
            ConflictError: If a bulk search is already running.
        """
        queries = _unique(queries)
        targets = _unique(target_urls)
        depth = depth if depth is not None else self._settings.bulk_default_depth
        if not queries:
            raise InvalidRequestError("At least one query is required")
        if not targets:
            raise InvalidRequestError("At least one target URL is required")
        if depth not in VALID_DEPTHS:
            raise InvalidRequestError(f"Depth must be one of {VALID_DEPTHS}, got {depth}")
        if self._status.running:
            raise ConflictError("Bulk search is already running")

        search_id = new_id()
        self._status = BulkSearchStatus(
            running=True,
            search_id=search_id,
            total=len(queries),
            targets=len(targets),
            depth=depth,
            last_search_id=self._status.last_search_id,
        )
        self._task = asyncio.create_task(
            self._run(search_id, queries, targets, depth, region or self._settings.default_region),
            name=f"bulk-search-{search_id}",
        )
        logger.info(
            "Bulk search started",
            search_id=search_id,
            queries=len(queries),
            targets=len(targets),
            depth=depth,
        )
        return search_id

    async def wait_idle(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def shutdown(self, timeout: float) -> None:
        """Give a running search ``timeout`` seconds, then cancel it."""
        task = self._task
        if task is None or task.done():
            return
        _, pending = await asyncio.wait({task}, timeout=timeout)
        if pending:
            logger.warning("Bulk search abandoned at shutdown", search_id=self._status.search_id)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _run(
        self,
        search_id: str,
        queries: list[str],
        targets: list[str],
        depth: int,
        region: str,
    ) -> None:
        provider: ResultProvider | None = None
        try:
            provider = self._provider_factory(self._settings)
            region_code = get_region(region).code
            all_results: dict[str, list[RankedUrl]] = {}
            for i, query in enumerate(queries):
                self._status.current = i + 1
                self._status.query = query
                raw = await provider.retrieve(query, BULK_SEARCH_ENGINE, depth, region_code)
                all_results[query] = [
                    RankedUrl(position=r.position, url=r.url, title=r.title) for r in raw[:depth]
                ]
                logger.debug("Bulk query done", query=query, results=len(raw))
                if i < len(queries) - 1 and self._settings.bulk_query_delay > 0:
                    await asyncio.sleep(self._settings.bulk_query_delay)

            report = build_report(search_id, depth, queries, targets, all_results)
            await self._history.add(report)
            self._status = BulkSearchStatus(last_search_id=search_id)
            logger.info(
                "Bulk search completed",
                search_id=search_id,
                found=report.found_count,
                targets=report.target_urls_count,
            )
        except RepscopeError as e:
            logger.error("Bulk search failed", search_id=search_id, error=e.message)
            self._status = self._failed(e.message)
        except Exception as e:
            logger.exception("Bulk search crashed", search_id=search_id, error=str(e))
            self._status = self._failed(str(e) or type(e).__name__)
        finally:
            if provider is not None:
                try:
                    await provider.close()
                except Exception as e:
                    logger.warning("Provider close failed", error=str(e))

    def _failed(self, message: str) -> BulkSearchStatus:
        return BulkSearchStatus(error=message, last_search_id=self._status.last_search_id)
