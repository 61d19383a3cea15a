"""Unit tests for the JSON graph store and parsing-history operations."""

from __future__ import annotations

import asyncio
from pathlib import Path

import orjson
import pytest

from repscope.core.exceptions import (
    EntityNotFoundError,
    InvalidRequestError,
    ParsingNotFoundError,
    PersistenceError,
    ResultNotFoundError,
)
from repscope.processing.metrics import MetricsAggregator
from repscope.processing.models import RiskLevel, SearchResult, Sentiment
from repscope.storage import (
    EngineOutcome,
    JsonGraphStore,
    Parsing,
    ParsingHistory,
    ParsingRegion,
)


def _outcome(*sentiments: Sentiment) -> EngineOutcome:
    results = [
        SearchResult(position=i, url=f"https://example.com/{i}", sentiment=s)
        for i, s in enumerate(sentiments, start=1)
    ]
    return EngineOutcome(results=results, metrics=MetricsAggregator().aggregate(results))


@pytest.fixture
def store(tmp_path: Path) -> JsonGraphStore:
    return JsonGraphStore(tmp_path / "data" / "projects.json")


@pytest.fixture
def history(store: JsonGraphStore) -> ParsingHistory:
    return ParsingHistory(store)


async def _seed(history: ParsingHistory) -> tuple[str, str]:
    project = await history.create_project("Клиенты", "ru-msk")
    entity = await history.add_entity(project.id, "Иван Петров", ["yandex"], 10)
    return project.id, entity.id


class TestJsonGraphStore:
    async def test_missing_file_is_empty_graph(self, store: JsonGraphStore) -> None:
        assert await store.load_graph() == []

    async def test_writes_camel_case_json(self, history: ParsingHistory, store: JsonGraphStore) -> None:
        await _seed(history)
        data = orjson.loads(store.path.read_bytes())
        entity = data[0]["entities"][0]
        assert "createdAt" in entity
        assert entity["engines"] == ["yandex"]
        assert [p.name for p in store.path.parent.iterdir()] == ["projects.json"]

    async def test_roundtrip(self, history: ParsingHistory, store: JsonGraphStore) -> None:
        project_id, entity_id = await _seed(history)
        graph = await store.load_graph()
        assert graph[0].id == project_id
        assert graph[0].entities[0].id == entity_id

    async def test_corrupt_file_raises(self, store: JsonGraphStore) -> None:
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        with pytest.raises(PersistenceError, match="Corrupt project graph"):
            await store.load_graph()

    async def test_unwritable_location_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = JsonGraphStore(blocker / "projects.json")
        with pytest.raises(PersistenceError, match="Cannot write"):
            await store.save_graph([])

    async def test_timeout_raises(self, store: JsonGraphStore, monkeypatch: pytest.MonkeyPatch) -> None:
        async def slow_to_thread(*args: object, **kwargs: object) -> None:
            await asyncio.sleep(1)

        monkeypatch.setattr("repscope.storage.json_store.asyncio.to_thread", slow_to_thread)
        slow = JsonGraphStore(store.path, timeout=0.01)
        with pytest.raises(PersistenceError, match="timed out"):
            await slow.load_graph()

    async def test_concurrent_saves_leave_no_temp_files(self, store: JsonGraphStore) -> None:
        await asyncio.gather(*(store.save_graph([]) for _ in range(8)))
        assert [p.name for p in store.path.parent.iterdir()] == ["projects.json"]
        assert await store.load_graph() == []


class TestProjectsAndEntities:
    async def test_create_project_requires_name(self, history: ParsingHistory) -> None:
        with pytest.raises(InvalidRequestError):
            await history.create_project("  ")

    async def test_create_project_rejects_unknown_region(self, history: ParsingHistory) -> None:
        with pytest.raises(InvalidRequestError, match="Unknown region"):
            await history.create_project("P", "mars")

    async def test_add_entity_defaults(self, history: ParsingHistory) -> None:
        project = await history.create_project("P")
        entity = await history.add_entity(project.id, "Иван Петров")
        assert entity.engines == ["google", "yandex"]
        assert entity.depth == 20
        assert project.region == "ru"

    async def test_add_entity_to_missing_project(self, history: ParsingHistory) -> None:
        with pytest.raises(EntityNotFoundError):
            await history.add_entity("missing", "Иван Петров")

    async def test_add_entity_rejects_depth(self, history: ParsingHistory) -> None:
        project = await history.create_project("P")
        with pytest.raises(InvalidRequestError, match="Depth"):
            await history.add_entity(project.id, "Иван", depth=30)

    async def test_update_entity(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        entity = await history.update_entity(
            project_id, entity_id, engines=["Google", "bing", "google"], depth=50
        )
        assert entity.engines == ["google"]
        assert entity.depth == 50
        stored = await history.get_entity(project_id, entity_id)
        assert stored.engines == ["google"]

    async def test_update_entity_needs_an_engine(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        with pytest.raises(InvalidRequestError, match="engine"):
            await history.update_entity(project_id, entity_id, engines=["bing"])

    async def test_get_missing_entity(self, history: ParsingHistory) -> None:
        project_id, _ = await _seed(history)
        with pytest.raises(EntityNotFoundError):
            await history.get_entity(project_id, "missing")

    async def test_delete_entity(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        await history.delete_entity(project_id, entity_id)
        assert (await history.get_project(project_id)).entities == []
        with pytest.raises(EntityNotFoundError):
            await history.delete_entity(project_id, entity_id)

    async def test_delete_project(self, history: ParsingHistory) -> None:
        project_id, _ = await _seed(history)
        other = await history.create_project("Другой")
        await history.delete_project(project_id)
        assert [p.id for p in await history.list_projects()] == [other.id]
        with pytest.raises(EntityNotFoundError):
            await history.delete_project(project_id)


class TestParsings:
    async def test_append_parsing(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        parsing = Parsing(
            region=ParsingRegion(code="ru", name="Россия"),
            engines={"yandex": _outcome(Sentiment.neutral)},
        )
        assert await history.append_parsing(project_id, entity_id, parsing)
        entity = await history.get_entity(project_id, entity_id)
        assert [p.id for p in entity.parsings] == [parsing.id]

    async def test_append_to_missing_entity(self, history: ParsingHistory) -> None:
        project_id, _ = await _seed(history)
        parsing = Parsing(region=ParsingRegion(code="ru", name="Россия"))
        assert not await history.append_parsing(project_id, "gone", parsing)

    async def test_delete_parsing(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        parsing = Parsing(region=ParsingRegion(code="ru", name="Россия"))
        await history.append_parsing(project_id, entity_id, parsing)

        await history.delete_parsing(project_id, entity_id, parsing.id)
        assert (await history.get_entity(project_id, entity_id)).parsings == []
        with pytest.raises(ParsingNotFoundError):
            await history.delete_parsing(project_id, entity_id, parsing.id)

    async def test_compare_builds_trends(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        first = Parsing(
            region=ParsingRegion(code="ru", name="Россия"),
            engines={"yandex": _outcome(*[Sentiment.neutral] * 10)},
        )
        second = Parsing(
            region=ParsingRegion(code="ru", name="Россия"),
            engines={"yandex": _outcome(*[Sentiment.positive] * 10)},
        )
        await history.append_parsing(project_id, entity_id, first)
        await history.append_parsing(project_id, entity_id, second)

        comparison = await history.compare(project_id, entity_id)
        trend = comparison.trends["yandex"]
        assert trend.rating == [87.5, 100.0]
        assert trend.positive_percent == [0.0, 100.0]
        assert len(trend.dates) == 2

        only_second = await history.compare(project_id, entity_id, [second.id])
        assert [p.id for p in only_second.parsings] == [second.id]
        assert only_second.trends["yandex"].rating == [100.0]


class TestOverrideSentiment:
    async def _seed_parsing(self, history: ParsingHistory) -> str:
        project_id, entity_id = await _seed(history)
        parsing = Parsing(
            region=ParsingRegion(code="ru", name="Россия"),
            engines={"yandex": _outcome(*[Sentiment.neutral] * 10)},
        )
        await history.append_parsing(project_id, entity_id, parsing)
        return parsing.id

    async def test_override_recomputes_and_persists(
        self, history: ParsingHistory, store: JsonGraphStore
    ) -> None:
        parsing_id = await self._seed_parsing(history)

        outcome = await history.override_sentiment(parsing_id, "yandex", 1, Sentiment.negative)

        # -30 + 0.75 * 70 = 22.5 -> rating 61.25
        assert outcome.metrics.rating == "61.3"
        assert outcome.metrics.negative_count == 1
        assert outcome.metrics.risk_level == RiskLevel.low
        assert outcome.results[0].sentiment == Sentiment.negative
        assert outcome.results[0].confidence == 1.0

        stored = orjson.loads(store.path.read_bytes())
        saved = stored[0]["entities"][0]["parsings"][0]["engines"]["yandex"]
        assert saved["metrics"]["rating"] == "61.3"
        assert saved["results"][0]["sentiment"] == "negative"

    async def test_unknown_parsing(self, history: ParsingHistory) -> None:
        await self._seed_parsing(history)
        with pytest.raises(ParsingNotFoundError):
            await history.override_sentiment("missing", "yandex", 1, Sentiment.positive)

    async def test_unknown_engine(self, history: ParsingHistory) -> None:
        parsing_id = await self._seed_parsing(history)
        with pytest.raises(ResultNotFoundError):
            await history.override_sentiment(parsing_id, "google", 1, Sentiment.positive)

    async def test_unknown_position(self, history: ParsingHistory) -> None:
        parsing_id = await self._seed_parsing(history)
        with pytest.raises(ResultNotFoundError):
            await history.override_sentiment(parsing_id, "yandex", 11, Sentiment.positive)


class TestConcurrentEdits:
    async def test_concurrent_appends_are_all_saved(self, history: ParsingHistory) -> None:
        project = await history.create_project("P")
        entities = [await history.add_entity(project.id, f"Персона {i}") for i in range(6)]
        parsings = {
            e.id: Parsing(region=ParsingRegion(code="ru", name="Россия")) for e in entities
        }

        saved = await asyncio.gather(
            *(history.append_parsing(project.id, eid, p) for eid, p in parsings.items())
        )

        assert all(saved)
        stored = await history.get_project(project.id)
        assert {e.id: [p.id for p in e.parsings] for e in stored.entities} == {
            eid: [p.id] for eid, p in parsings.items()
        }

    async def test_override_and_append_do_not_clobber(self, history: ParsingHistory) -> None:
        project_id, entity_id = await _seed(history)
        first = Parsing(
            region=ParsingRegion(code="ru", name="Россия"),
            engines={"yandex": _outcome(*[Sentiment.neutral] * 10)},
        )
        await history.append_parsing(project_id, entity_id, first)
        second = Parsing(region=ParsingRegion(code="ru", name="Россия"))

        await asyncio.gather(
            history.override_sentiment(first.id, "yandex", 1, Sentiment.negative),
            history.append_parsing(project_id, entity_id, second),
        )

        entity = await history.get_entity(project_id, entity_id)
        assert [p.id for p in entity.parsings] == [first.id, second.id]
        assert entity.parsings[0].engines["yandex"].results[0].sentiment == Sentiment.negative
