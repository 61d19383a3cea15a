"""Whole-graph JSON persistence.

Every read loads the complete project graph and every write replaces it.
There are no partial updates and no transactions: callers serialize their
load-edit-save sequences, and two processes sharing the file can still lose
an update. Each write goes to its own temporary file that is then renamed over
the original so readers never see a half-written file.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import orjson
from pydantic import TypeAdapter, ValidationError

from repscope.core.exceptions import PersistenceError
from repscope.core.logging import get_logger
from repscope.storage.models import Project

logger = get_logger(__name__)

_graph_adapter: TypeAdapter[list[Project]] = TypeAdapter(list[Project])


@runtime_checkable
class GraphStore(Protocol):
    """Protocol for project graph persistence."""

    async def load_graph(self) -> list[Project]:
        """Read the whole graph.

        Raises:
            PersistenceError: If the graph cannot be read.
        """
        ...

    async def save_graph(self, graph: list[Project]) -> None:
        """Replace the whole graph.

        Raises:
            PersistenceError: If the graph cannot be written.
        """
        ...


class JsonGraphStore:
    """Project graph stored in a single JSON file."""

    def __init__(self, path: Path, timeout: float = 10.0) -> None:
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    async def load_graph(self) -> list[Project]:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._read), timeout=self._timeout)
        except TimeoutError as e:
            raise PersistenceError(f"Reading {self._path} timed out") from e

    async def save_graph(self, graph: list[Project]) -> None:
        try:
            await asyncio.wait_for(asyncio.to_thread(self._write, graph), timeout=self._timeout)
        except TimeoutError as e:
            raise PersistenceError(f"Writing {self._path} timed out") from e
        logger.debug("Project graph saved", path=str(self._path), projects=len(graph))

    def _read(self) -> list[Project]:
        if not self._path.exists():
            return []
        try:
            data = orjson.loads(self._path.read_bytes())
            return _graph_adapter.validate_python(data)
        except OSError as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Corrupt project graph in {self._path}: {e}") from e

    def _write(self, graph: list[Project]) -> None:
        payload = orjson.dumps(
            _graph_adapter.dump_python(graph, mode="json", by_alias=True),
            option=orjson.OPT_INDENT_2,
        )
        try:
            write_atomic(self._path, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e


def write_atomic(path: Path, payload: bytes) -> None:
    """Write ``payload`` to a fresh temporary file and rename it over ``path``.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    tmp: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as fh:
            tmp = Path(fh.name)
            fh.write(payload)
        os.replace(tmp, path)
    except OSError:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise
