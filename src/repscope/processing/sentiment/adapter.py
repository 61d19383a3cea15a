"""Sentiment classification with an optional LLM backend.

The backend returns a validated verdict per result. Whenever it is missing,
replies with something unreadable, errors or times out, the lexical classifier
answers instead, so a classification call never fails:

    backend not configured  -> lexical verdict, confidence 0.5
    unreadable reply        -> lexical verdict, confidence 0.5
    error / timeout         -> lexical verdict, confidence 0.3
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic_ai import Agent
from pydantic_ai.exceptions import UnexpectedModelBehavior
from pydantic_ai.output import PromptedOutput

from repscope.core.exceptions import ClassifierError
from repscope.core.logging import get_logger
from repscope.processing.common.llm import create_model, llm_configured
from repscope.processing.models import SearchResult, Verdict
from repscope.processing.sentiment.analyzer import LexicalClassifier
from repscope.processing.sentiment.lexicon import Lexicon
from repscope.processing.sentiment.models import BackendVerdict

if TYPE_CHECKING:
    from pydantic_ai.models import Model

    from repscope.config import Settings

logger = get_logger(__name__)

UNCONFIGURED_CONFIDENCE = 0.5
UNPARSEABLE_CONFIDENCE = 0.5
FAILURE_CONFIDENCE = 0.3

# (fraction in [0, 1], human-readable stage label)
ProgressCallback = Callable[[float, str], None]


SENTIMENT_SYSTEM_PROMPT = """You assess how a single search result affects the reputation of the person or brand it mentions.

Criteria:
- positive: praise, achievements, successes, gratitude, good reviews
- negative: criticism, scandals, problems, complaints, deception, fraud, compromising material
- neutral: informational article without evaluation, biography, plain facts

Give the sentiment, your confidence from 0.0 to 1.0 and a short reason of up to 100 characters."""


@runtime_checkable
class SentimentBackend(Protocol):
    """Model-backed judge returning a verdict for one result.

    Raises ``ClassifierError`` when the model never produces a valid verdict.
    """

    async def judge(self, title: str, snippet: str, url: str) -> BackendVerdict: ...


class PydanticAISentimentBackend:
    """LLM judge built on a PydanticAI agent with prompted structured output."""

    def __init__(self, model: Model | str) -> None:
        self._agent: Agent[None, BackendVerdict] = Agent(
            model,
            output_type=PromptedOutput(BackendVerdict),
            system_prompt=SENTIMENT_SYSTEM_PROMPT,
        )

    async def judge(self, title: str, snippet: str, url: str) -> BackendVerdict:
        prompt = (
            f"Title: {title or 'not given'}\n"
            f"Snippet: {snippet or 'not given'}\n"
            f"URL: {url or 'not given'}"
        )
        try:
            result = await self._agent.run(prompt)
        except UnexpectedModelBehavior as e:
            raise ClassifierError(f"No valid verdict from model: {e.message}") from e
        return result.output


class SentimentClassifier:
    """Classify results with the LLM backend when enabled, else lexically."""

    def __init__(
        self,
        lexical: LexicalClassifier,
        backend: SentimentBackend | None = None,
        *,
        use_backend: bool = False,
        timeout: float = 30.0,
        item_delay: float = 0.1,
    ) -> None:
        self._lexical = lexical
        self._backend = backend
        self._use_backend = use_backend
        self._timeout = timeout
        self._item_delay = item_delay

    @property
    def lexical(self) -> LexicalClassifier:
        return self._lexical

    @property
    def uses_backend(self) -> bool:
        return self._use_backend

    async def classify(self, title: str, snippet: str, url: str, domain: str = "") -> Verdict:
        """Classify one result through the backend, falling back to the lexicon."""
        if self._backend is None:
            logger.debug("LLM classifier not configured, using lexical analysis")
            return self._fallback(
                title, snippet, domain,
                UNCONFIGURED_CONFIDENCE,
                "Local analysis (LLM classifier not configured)",
            )  # fmt: skip

        try:
            parsed = await asyncio.wait_for(
                self._backend.judge(title, snippet, url),
                timeout=self._timeout,
            )
        except TimeoutError:
            logger.warning("LLM classifier timed out", url=url, timeout=self._timeout)
            return self._fallback(
                title, snippet, domain,
                FAILURE_CONFIDENCE,
                f"LLM classifier error: timed out after {self._timeout:g}s",
            )  # fmt: skip
        except ClassifierError as e:
            logger.warning("Unreadable LLM verdict", url=url, error=e.message)
            return self._fallback(
                title, snippet, domain,
                UNPARSEABLE_CONFIDENCE,
                "Local analysis (unreadable LLM reply)",
            )  # fmt: skip
        except Exception as e:
            logger.warning("LLM classifier failed", url=url, error=str(e))
            return self._fallback(
                title, snippet, domain, FAILURE_CONFIDENCE, f"LLM classifier error: {e}"
            )

        logger.debug(
            "LLM verdict",
            sentiment=parsed.sentiment.value,
            confidence=parsed.confidence,
            title=(title or "")[:50],
        )
        return Verdict(
            sentiment=parsed.sentiment,
            confidence=parsed.confidence,
            explanation=parsed.explanation,
        )

    async def classify_batch(
        self,
        results: Sequence[SearchResult],
        on_progress: ProgressCallback | None = None,
    ) -> list[SearchResult]:
        """Classify a ranked list, one result at a time.

        Backend calls run strictly in order with a pause between items.
        Progress is reported as i/total before each item and 1.0 at the end.
        """
        if not self._use_backend or self._backend is None:
            return self.classify_local(results, on_progress)

        total = len(results)
        classified: list[SearchResult] = []
        for i, result in enumerate(results):
            if on_progress:
                on_progress(i / total, f"Analysing {i + 1}/{total}")
            verdict = await self.classify(result.title, result.snippet, result.url, result.domain)
            classified.append(_apply(result, verdict))
            if i < total - 1 and self._item_delay > 0:
                await asyncio.sleep(self._item_delay)

        if on_progress:
            on_progress(1.0, "Analysis complete")
        return classified

    def classify_local(
        self,
        results: Sequence[SearchResult],
        on_progress: ProgressCallback | None = None,
    ) -> list[SearchResult]:
        """Classify a ranked list with the lexical classifier only."""
        total = len(results)
        classified: list[SearchResult] = []
        for i, result in enumerate(results):
            if on_progress:
                on_progress(i / total, f"Local analysis {i + 1}/{total}")
            verdict = self._lexical.classify(result.title, result.snippet, result.domain)
            classified.append(_apply(result, verdict))
        if on_progress:
            on_progress(1.0, "Analysis complete")
        return classified

    def _fallback(
        self,
        title: str,
        snippet: str,
        domain: str,
        confidence: float,
        explanation: str,
    ) -> Verdict:
        sentiment = self._lexical.sentiment(title, snippet, domain)
        return Verdict(sentiment=sentiment, confidence=confidence, explanation=explanation)


def _apply(result: SearchResult, verdict: Verdict) -> SearchResult:
    return result.model_copy(
        update={
            "sentiment": verdict.sentiment,
            "confidence": verdict.confidence,
            "explanation": verdict.explanation,
        }
    )


def load_lexicon(settings: Settings) -> Lexicon:
    """Lexicon from ``settings.lexicon_path`` or the built-in tables."""
    if settings.lexicon_path is not None:
        logger.info("Loading lexicon", path=str(settings.lexicon_path))
        return Lexicon.from_json_file(settings.lexicon_path)
    return Lexicon.default()


def create_sentiment_classifier(
    settings: Settings,
    lexicon: Lexicon | None = None,
) -> SentimentClassifier:
    """Build a classifier from the configuration passed in.

    No instance is cached; callers create one per job so configuration
    changes apply to the next job.
    """
    lexical = LexicalClassifier(
        lexicon if lexicon is not None else load_lexicon(settings),
        threshold=settings.sentiment_threshold,
    )
    backend: SentimentBackend | None = None
    if settings.use_llm_classifier and llm_configured(settings):
        backend = PydanticAISentimentBackend(create_model(settings))

    return SentimentClassifier(
        lexical,
        backend,
        use_backend=settings.use_llm_classifier,
        timeout=settings.llm_timeout,
        item_delay=settings.classifier_item_delay,
    )
