"""Project graph models persisted by the store.

The graph is a list of projects; each project holds monitored entities and
each entity the history of its parsings.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import Field

from repscope.core.constants import Region
from repscope.processing.models import CamelModel, ReputationMetrics, SearchResult


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class EngineOutcome(CamelModel):
    """Classified results of one engine and the metrics computed from them."""

    results: list[SearchResult] = Field(default_factory=list)
    metrics: ReputationMetrics = Field(default_factory=ReputationMetrics)


class ParsingRegion(CamelModel):
    code: str
    name: str

    @classmethod
    def from_region(cls, region: Region) -> ParsingRegion:
        return cls(code=region.code, name=region.name)


class Parsing(CamelModel):
    """One completed run across an entity's engines."""

    id: str = Field(default_factory=new_id)
    date: datetime = Field(default_factory=utcnow)
    region: ParsingRegion
    engines: dict[str, EngineOutcome] = Field(default_factory=dict)


class Entity(CamelModel):
    """A monitored name."""

    id: str = Field(default_factory=new_id)
    name: str
    engines: list[str] = Field(default_factory=lambda: ["google", "yandex"])
    depth: int = 20
    created_at: datetime = Field(default_factory=utcnow)
    parsings: list[Parsing] = Field(default_factory=list)


class Project(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    region: str = "ru"
    created_at: datetime = Field(default_factory=utcnow)
    entities: list[Entity] = Field(default_factory=list)

    def find_entity(self, entity_id: str) -> Entity | None:
        return next((e for e in self.entities if e.id == entity_id), None)


def find_project(graph: list[Project], project_id: str) -> Project | None:
    return next((p for p in graph if p.id == project_id), None)


def find_entity(graph: list[Project], project_id: str, entity_id: str) -> Entity | None:
    project = find_project(graph, project_id)
    return project.find_entity(entity_id) if project else None
