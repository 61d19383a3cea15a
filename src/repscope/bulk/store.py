"""Bulk search report history, newest first, in one JSON file."""

from __future__ import annotations

import asyncio
from pathlib import Path

import orjson
from pydantic import TypeAdapter, ValidationError

from repscope.bulk.models import BulkSearchReport, BulkSearchSummary
from repscope.core.exceptions import BulkSearchNotFoundError, PersistenceError
from repscope.core.logging import get_logger
from repscope.storage.json_store import write_atomic

logger = get_logger(__name__)

_reports_adapter: TypeAdapter[list[BulkSearchReport]] = TypeAdapter(list[BulkSearchReport])


class BulkSearchHistory:
    """Keeps the latest ``limit`` reports."""

    def __init__(self, path: Path, limit: int = 20, timeout: float = 10.0) -> None:
        self._path = path
        self._limit = limit
        self._timeout = timeout
        self._lock = asyncio.Lock()

    async def list_summaries(self) -> list[BulkSearchSummary]:
        return [report.summary() for report in await self._load()]

    async def get(self, search_id: str) -> BulkSearchReport:
        for report in await self._load():
            if report.id == search_id:
                return report
        raise BulkSearchNotFoundError(f"Bulk search {search_id} not found")

    async def add(self, report: BulkSearchReport) -> None:
        async with self._lock:
            reports = [report, *await self._load()][: self._limit]
            await self._save(reports)
        logger.info("Bulk search saved", search_id=report.id, kept=len(reports))

    async def delete(self, search_id: str) -> None:
        async with self._lock:
            reports = await self._load()
            remaining = [r for r in reports if r.id != search_id]
            if len(remaining) == len(reports):
                raise BulkSearchNotFoundError(f"Bulk search {search_id} not found")
            await self._save(remaining)

    async def _load(self) -> list[BulkSearchReport]:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._read), timeout=self._timeout)
        except TimeoutError as e:
            raise PersistenceError(f"Reading {self._path} timed out") from e

    async def _save(self, reports: list[BulkSearchReport]) -> None:
        try:
            await asyncio.wait_for(asyncio.to_thread(self._write, reports), timeout=self._timeout)
        except TimeoutError as e:
            raise PersistenceError(f"Writing {self._path} timed out") from e

    def _read(self) -> list[BulkSearchReport]:
        if not self._path.exists():
            return []
        try:
            return _reports_adapter.validate_python(orjson.loads(self._path.read_bytes()))
        except OSError as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Corrupt bulk search history in {self._path}: {e}") from e

    def _write(self, reports: list[BulkSearchReport]) -> None:
        payload = orjson.dumps(
            _reports_adapter.dump_python(reports, mode="json", by_alias=True),
            option=orjson.OPT_INDENT_2,
        )
        try:
            write_atomic(self._path, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e
