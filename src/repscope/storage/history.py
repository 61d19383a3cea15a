"""Project, entity and parsing-history operations on top of a GraphStore.

Each operation loads the whole graph, edits it and saves it back. Edits hold
the history's lock from load to save so concurrent jobs in this process
cannot overwrite each other's changes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from repscope.core.constants import DEFAULT_REGION, REGIONS, SUPPORTED_ENGINES, VALID_DEPTHS
from repscope.core.exceptions import (
    EntityNotFoundError,
    InvalidRequestError,
    ParsingNotFoundError,
    ResultNotFoundError,
)
from repscope.core.logging import get_logger
from repscope.processing.metrics import MetricsAggregator
from repscope.processing.models import CamelModel, Sentiment
from repscope.storage.json_store import GraphStore
from repscope.storage.models import (
    Entity,
    EngineOutcome,
    Parsing,
    Project,
    find_entity,
    find_project,
)

logger = get_logger(__name__)


class EngineTrend(CamelModel):
    """Metric series of one engine across parsings, oldest first."""

    dates: list[str] = Field(default_factory=list)
    positive_percent: list[float] = Field(default_factory=list)
    negative_percent: list[float] = Field(default_factory=list)
    rating: list[float] = Field(default_factory=list)


class ParsingComparison(BaseModel):
    parsings: list[Parsing]
    trends: dict[str, EngineTrend]


def filter_engines(engines: Iterable[str]) -> list[str]:
    """Keep supported engines in the given order, dropping duplicates."""
    kept: list[str] = []
    for engine in engines:
        name = engine.strip().lower()
        if name in SUPPORTED_ENGINES and name not in kept:
            kept.append(name)
    return kept


class ParsingHistory:
    """Edits the persisted project graph."""

    def __init__(self, store: GraphStore, aggregator: MetricsAggregator | None = None) -> None:
        self._store = store
        self._aggregator = aggregator or MetricsAggregator()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Projects and entities
    # ------------------------------------------------------------------

    async def list_projects(self) -> list[Project]:
        return await self._store.load_graph()

    async def get_project(self, project_id: str) -> Project:
        project = find_project(await self._store.load_graph(), project_id)
        if project is None:
            raise EntityNotFoundError(f"Project {project_id} not found")
        return project

    async def create_project(self, name: str, region: str = DEFAULT_REGION) -> Project:
        name = name.strip()
        if not name:
            raise InvalidRequestError("Project name is required")
        if region not in REGIONS:
            raise InvalidRequestError(f"Unknown region: {region}")

        async with self._lock:
            graph = await self._store.load_graph()
            project = Project(name=name, region=region)
            graph.append(project)
            await self._store.save_graph(graph)
        logger.info("Project created", project_id=project.id, name=name)
        return project

    async def delete_project(self, project_id: str) -> None:
        async with self._lock:
            graph = await self._store.load_graph()
            remaining = [p for p in graph if p.id != project_id]
            if len(remaining) == len(graph):
                raise EntityNotFoundError(f"Project {project_id} not found")
            await self._store.save_graph(remaining)
        logger.info("Project deleted", project_id=project_id)

    async def get_entity(self, project_id: str, entity_id: str) -> Entity:
        entity = find_entity(await self._store.load_graph(), project_id, entity_id)
        if entity is None:
            raise EntityNotFoundError(f"Entity {entity_id} not found in project {project_id}")
        return entity

    async def add_entity(
        self,
        project_id: str,
        name: str,
        engines: Sequence[str] | None = None,
        depth: int = 20,
    ) -> Entity:
        name = name.strip()
        if not name:
            raise InvalidRequestError("Entity name is required")
        _check_depth(depth)
        selected = list(SUPPORTED_ENGINES) if engines is None else filter_engines(engines)

        async with self._lock:
            graph = await self._store.load_graph()
            project = find_project(graph, project_id)
            if project is None:
                raise EntityNotFoundError(f"Project {project_id} not found")

            entity = Entity(name=name, engines=selected, depth=depth)
            project.entities.append(entity)
            await self._store.save_graph(graph)
        logger.info("Entity added", project_id=project_id, entity_id=entity.id, name=name)
        return entity

    async def update_entity(
        self,
        project_id: str,
        entity_id: str,
        *,
        engines: Sequence[str] | None = None,
        depth: int | None = None,
    ) -> Entity:
        """Change an entity's engines and/or depth.

        Unsupported engine names are dropped; an update that leaves no
        engine is rejected.
        """
        if depth is not None:
            _check_depth(depth)
        selected = None
        if engines is not None:
            selected = filter_engines(engines)
            if not selected:
                raise InvalidRequestError("At least one supported engine is required")

        async with self._lock:
            graph = await self._store.load_graph()
            entity = find_entity(graph, project_id, entity_id)
            if entity is None:
                raise EntityNotFoundError(f"Entity {entity_id} not found in project {project_id}")

            if depth is not None:
                entity.depth = depth
            if selected is not None:
                entity.engines = selected
            await self._store.save_graph(graph)
        return entity

    async def delete_entity(self, project_id: str, entity_id: str) -> None:
        """Remove an entity with all its parsings.

        A job still running for the entity completes without saving its result.
        """
        async with self._lock:
            graph = await self._store.load_graph()
            project = find_project(graph, project_id)
            if project is None:
                raise EntityNotFoundError(f"Project {project_id} not found")

            remaining = [e for e in project.entities if e.id != entity_id]
            if len(remaining) == len(project.entities):
                raise EntityNotFoundError(f"Entity {entity_id} not found in project {project_id}")
            project.entities = remaining
            await self._store.save_graph(graph)
        logger.info("Entity deleted", project_id=project_id, entity_id=entity_id)

    # ------------------------------------------------------------------
    # Parsings
    # ------------------------------------------------------------------

    async def append_parsing(self, project_id: str, entity_id: str, parsing: Parsing) -> bool:
        """Append a finished parsing to the entity as it is stored now.

        Returns False when the entity no longer exists; nothing is saved then.
        """
        async with self._lock:
            graph = await self._store.load_graph()
            entity = find_entity(graph, project_id, entity_id)
            if entity is None:
                return False
            entity.parsings.append(parsing)
            await self._store.save_graph(graph)
        return True

    async def delete_parsing(self, project_id: str, entity_id: str, parsing_id: str) -> None:
        async with self._lock:
            graph = await self._store.load_graph()
            entity = find_entity(graph, project_id, entity_id)
            if entity is None:
                raise EntityNotFoundError(f"Entity {entity_id} not found in project {project_id}")

            remaining = [p for p in entity.parsings if p.id != parsing_id]
            if len(remaining) == len(entity.parsings):
                raise ParsingNotFoundError(f"Parsing {parsing_id} not found")
            entity.parsings = remaining
            await self._store.save_graph(graph)
        logger.info("Parsing deleted", entity_id=entity_id, parsing_id=parsing_id)

    async def compare(
        self,
        project_id: str,
        entity_id: str,
        parsing_ids: Sequence[str] | None = None,
    ) -> ParsingComparison:
        """Build per-engine metric trends over an entity's parsings."""
        entity = await self.get_entity(project_id, entity_id)
        parsings = entity.parsings
        if parsing_ids:
            wanted = set(parsing_ids)
            parsings = [p for p in parsings if p.id in wanted]
        parsings = sorted(parsings, key=lambda p: p.date)

        trends: dict[str, EngineTrend] = {}
        for parsing in parsings:
            for engine, outcome in parsing.engines.items():
                trend = trends.setdefault(engine, EngineTrend())
                trend.dates.append(parsing.date.isoformat())
                trend.positive_percent.append(float(outcome.metrics.positive_percent))
                trend.negative_percent.append(float(outcome.metrics.negative_percent))
                trend.rating.append(float(outcome.metrics.rating))

        return ParsingComparison(parsings=parsings, trends=trends)

    async def override_sentiment(
        self,
        parsing_id: str,
        engine: str,
        position: int,
        sentiment: Sentiment,
    ) -> EngineOutcome:
        """Set a result's sentiment by hand and recompute that engine's metrics.

        The new metrics are saved in the same call.
        """
        async with self._lock:
            graph = await self._store.load_graph()
            parsing = _find_parsing(graph, parsing_id)
            if parsing is None:
                raise ParsingNotFoundError(f"Parsing {parsing_id} not found")

            outcome = parsing.engines.get(engine)
            if outcome is None:
                raise ResultNotFoundError(f"Parsing {parsing_id} has no results for {engine}")

            index = next(
                (i for i, r in enumerate(outcome.results) if r.position == position), None
            )
            if index is None:
                raise ResultNotFoundError(f"No {engine} result at position {position}")

            outcome.results[index] = outcome.results[index].model_copy(
                update={
                    "sentiment": sentiment,
                    "confidence": 1.0,
                    "explanation": "Manually set",
                }
            )
            outcome.metrics = self._aggregator.aggregate(outcome.results)
            await self._store.save_graph(graph)

        logger.info(
            "Sentiment overridden",
            parsing_id=parsing_id,
            engine=engine,
            position=position,
            sentiment=sentiment.value,
        )
        return outcome


def _check_depth(depth: int) -> None:
    if depth not in VALID_DEPTHS:
        raise InvalidRequestError(f"Depth must be one of {VALID_DEPTHS}, got {depth}")


def _find_parsing(graph: list[Project], parsing_id: str) -> Parsing | None:
    for project in graph:
        for entity in project.entities:
            for parsing in entity.parsings:
                if parsing.id == parsing_id:
                    return parsing
    return None
