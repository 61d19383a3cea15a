"""Unit tests for the sentiment classifier adapter and its fallbacks."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic_ai.exceptions import UnexpectedModelBehavior

from repscope.config import Settings
from repscope.core.exceptions import ClassifierError
from repscope.processing.models import SearchResult, Sentiment
from repscope.processing.sentiment import (
    BackendVerdict,
    LexicalClassifier,
    PydanticAISentimentBackend,
    SentimentClassifier,
    create_sentiment_classifier,
)


def _backend(
    verdict: BackendVerdict | None = None, error: Exception | None = None
) -> AsyncMock:
    backend = AsyncMock()
    if error is not None:
        backend.judge.side_effect = error
    else:
        backend.judge.return_value = verdict
    return backend


def _results() -> list[SearchResult]:
    return [
        SearchResult(position=1, url="https://a.test", title="Триумф и успех"),
        SearchResult(position=2, url="https://b.test", title="Мошенник арестован"),
        SearchResult(position=3, url="https://c.test", title="Иван Петров"),
    ]


@pytest.fixture
def lexical() -> LexicalClassifier:
    return LexicalClassifier()


class TestPydanticAISentimentBackend:
    @pytest.fixture
    def backend(self) -> PydanticAISentimentBackend:
        return PydanticAISentimentBackend("test")

    async def test_judge_returns_agent_output(self, backend: PydanticAISentimentBackend) -> None:
        result = MagicMock()
        result.output = BackendVerdict(
            sentiment=Sentiment.negative, confidence=0.9, explanation="fraud"
        )
        agent = AsyncMock()
        agent.run = AsyncMock(return_value=result)
        backend._agent = agent

        verdict = await backend.judge("Мошенник", "", "https://a.test")

        assert verdict.sentiment == Sentiment.negative
        assert verdict.confidence == 0.9
        prompt = agent.run.call_args.args[0]
        assert "Title: Мошенник" in prompt
        assert "Snippet: not given" in prompt
        assert "URL: https://a.test" in prompt

    async def test_invalid_output_raises_classifier_error(
        self, backend: PydanticAISentimentBackend
    ) -> None:
        agent = AsyncMock()
        agent.run = AsyncMock(
            side_effect=UnexpectedModelBehavior("Exceeded maximum retries (1) for output validation")
        )
        backend._agent = agent

        with pytest.raises(ClassifierError):
            await backend.judge("Триумф", "", "https://a.test")

    def test_verdict_defaults(self) -> None:
        verdict = BackendVerdict.model_validate({"sentiment": "positive"})
        assert verdict.confidence == 0.7
        assert verdict.explanation == ""


class TestSentimentClassifier:
    async def test_no_backend_uses_lexicon(self, lexical: LexicalClassifier) -> None:
        classifier = SentimentClassifier(lexical, None, use_backend=True)
        verdict = await classifier.classify("Мошенник арестован", "", "https://a.test")
        assert verdict.sentiment == Sentiment.negative
        assert verdict.confidence == 0.5
        assert verdict.explanation == "Local analysis (LLM classifier not configured)"

    async def test_backend_verdict_is_used(self, lexical: LexicalClassifier) -> None:
        backend = _backend(
            BackendVerdict(sentiment=Sentiment.positive, confidence=0.95, explanation="award")
        )
        classifier = SentimentClassifier(lexical, backend, use_backend=True)
        verdict = await classifier.classify("Мошенник арестован", "", "https://a.test")
        assert verdict.sentiment == Sentiment.positive
        assert verdict.confidence == 0.95
        assert verdict.explanation == "award"
        backend.judge.assert_awaited_once_with("Мошенник арестован", "", "https://a.test")

    async def test_unreadable_reply_falls_back(self, lexical: LexicalClassifier) -> None:
        backend = _backend(error=ClassifierError("No valid verdict from model"))
        classifier = SentimentClassifier(lexical, backend, use_backend=True)
        verdict = await classifier.classify("Триумф", "", "https://a.test")
        assert verdict.sentiment == Sentiment.positive
        assert verdict.confidence == 0.5
        assert verdict.explanation == "Local analysis (unreadable LLM reply)"

    async def test_backend_error_falls_back(self, lexical: LexicalClassifier) -> None:
        classifier = SentimentClassifier(
            lexical, _backend(error=RuntimeError("rate limited")), use_backend=True
        )
        verdict = await classifier.classify("Мошенник", "", "https://a.test")
        assert verdict.sentiment == Sentiment.negative
        assert verdict.confidence == 0.3
        assert verdict.explanation == "LLM classifier error: rate limited"

    async def test_backend_timeout_falls_back(self, lexical: LexicalClassifier) -> None:
        class SlowBackend:
            async def judge(self, title: str, snippet: str, url: str) -> BackendVerdict:
                await asyncio.sleep(1)
                return BackendVerdict()

        classifier = SentimentClassifier(lexical, SlowBackend(), use_backend=True, timeout=0.01)
        verdict = await classifier.classify("Иван Петров", "", "https://a.test")
        assert verdict.sentiment == Sentiment.neutral
        assert verdict.confidence == 0.3
        assert verdict.explanation == "LLM classifier error: timed out after 0.01s"

    async def test_domain_bias_applies_in_fallback(self, lexical: LexicalClassifier) -> None:
        classifier = SentimentClassifier(lexical, None, use_backend=True)
        verdict = await classifier.classify("Иван Петров", "", "https://x.test", "compromat.ru")
        assert verdict.sentiment == Sentiment.negative


class TestClassifyBatch:
    async def test_lexical_batch(self, lexical: LexicalClassifier) -> None:
        backend = _backend(BackendVerdict())
        classifier = SentimentClassifier(lexical, backend, use_backend=False)
        progress: list[float] = []

        classified = await classifier.classify_batch(
            _results(), on_progress=lambda f, _label: progress.append(f)
        )

        assert [r.sentiment for r in classified] == [
            Sentiment.positive,
            Sentiment.negative,
            Sentiment.neutral,
        ]
        assert all(r.confidence == 0.5 for r in classified)
        assert [r.position for r in classified] == [1, 2, 3]
        backend.judge.assert_not_awaited()
        assert progress[-1] == 1.0
        assert progress == sorted(progress)

    async def test_backend_batch_runs_in_order(self, lexical: LexicalClassifier) -> None:
        backend = _backend(BackendVerdict(confidence=0.8))
        classifier = SentimentClassifier(lexical, backend, use_backend=True, item_delay=0)
        progress: list[float] = []

        classified = await classifier.classify_batch(
            _results(), on_progress=lambda f, _label: progress.append(f)
        )

        assert [call.args[2] for call in backend.judge.await_args_list] == [
            "https://a.test",
            "https://b.test",
            "https://c.test",
        ]
        assert all(r.sentiment == Sentiment.neutral for r in classified)
        assert all(r.confidence == 0.8 for r in classified)
        assert progress == pytest.approx([0.0, 1 / 3, 2 / 3, 1.0])

    async def test_empty_batch(self, lexical: LexicalClassifier) -> None:
        classifier = SentimentClassifier(lexical, None, use_backend=True, item_delay=0)
        assert await classifier.classify_batch([]) == []

    async def test_unconfigured_backend_skips_item_delay(self, lexical: LexicalClassifier) -> None:
        classifier = SentimentClassifier(lexical, None, use_backend=True, item_delay=10)

        classified = await asyncio.wait_for(classifier.classify_batch(_results()), timeout=1)

        assert [r.sentiment for r in classified] == [
            Sentiment.positive,
            Sentiment.negative,
            Sentiment.neutral,
        ]
        assert all(r.confidence == 0.5 for r in classified)


class TestCreateSentimentClassifier:
    def test_lexical_only_by_default(self) -> None:
        classifier = create_sentiment_classifier(Settings(_env_file=None))  # type: ignore[call-arg]
        assert not classifier.uses_backend
        assert classifier.lexical.threshold == 0.3

    def test_backend_built_when_enabled_and_configured(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            use_llm_classifier=True,
            anthropic_api_key="sk-ant-test",
        )
        classifier = create_sentiment_classifier(settings)
        assert classifier.uses_backend
        assert isinstance(classifier._backend, PydanticAISentimentBackend)

    def test_enabled_without_key_has_no_backend(self) -> None:
        settings = Settings(_env_file=None, use_llm_classifier=True)  # type: ignore[call-arg]
        classifier = create_sentiment_classifier(settings)
        assert classifier.uses_backend
        assert classifier._backend is None
