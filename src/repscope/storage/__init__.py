"""Project graph persistence."""

from repscope.storage.config_store import RuntimeConfig, RuntimeConfigStore
from repscope.storage.history import EngineTrend, ParsingComparison, ParsingHistory
from repscope.storage.json_store import GraphStore, JsonGraphStore
from repscope.storage.models import EngineOutcome, Entity, Parsing, ParsingRegion, Project

__all__ = [
    "EngineOutcome",
    "EngineTrend",
    "Entity",
    "GraphStore",
    "JsonGraphStore",
    "Parsing",
    "ParsingComparison",
    "ParsingHistory",
    "ParsingRegion",
    "Project",
    "RuntimeConfig",
    "RuntimeConfigStore",
]
