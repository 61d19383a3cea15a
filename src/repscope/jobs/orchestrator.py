"""Background parsing-job orchestrator.

A job runs an entity's engines one after another. For each engine:

    retrieve (provider, paged) -> renumber -> classify -> aggregate

When every engine is done the parsing is appended to the entity as it is
stored at that moment and saved. Nothing is saved if a job fails midway.

At most one job runs per entity. Terminal jobs stay queryable for
``Settings.job_retention_seconds`` and are then dropped from the registry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from repscope.core.constants import ENGINE_DISPLAY_NAMES, Region, get_region
from repscope.core.exceptions import EntityNotFoundError, RepscopeError
from repscope.core.logging import get_logger, job_context
from repscope.jobs.models import Job, JobStatus
from repscope.jobs.progress import ProgressEvent, ProgressStream, compute_progress
from repscope.jobs.registry import JobRegistry
from repscope.processing.metrics import MetricsAggregator, create_metrics_aggregator
from repscope.processing.models import SearchResult, renumber
from repscope.processing.sentiment import SentimentClassifier, create_sentiment_classifier
from repscope.providers import ResultProvider, create_result_provider
from repscope.storage.history import ParsingHistory
from repscope.storage.models import EngineOutcome, Entity, Parsing, ParsingRegion

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)

ProviderFactory = Callable[["Settings"], ResultProvider]
ClassifierFactory = Callable[["Settings"], SentimentClassifier]
AggregatorFactory = Callable[["Settings"], MetricsAggregator]


class ParsingOrchestrator:
    """Starts parsing jobs and tracks them until retention expires.

    Collaborators are built per job from the settings so configuration
    changes apply to the next job without restarting.
    """

    def __init__(
        self,
        history: ParsingHistory,
        settings: Settings,
        *,
        registry: JobRegistry | None = None,
        stream: ProgressStream | None = None,
        provider_factory: ProviderFactory = create_result_provider,
        classifier_factory: ClassifierFactory = create_sentiment_classifier,
        aggregator_factory: AggregatorFactory = create_metrics_aggregator,
    ) -> None:
        self._history = history
        self._settings = settings
        self._registry = registry if registry is not None else JobRegistry()
        self._stream = stream if stream is not None else ProgressStream()
        self._provider_factory = provider_factory
        self._classifier_factory = classifier_factory
        self._aggregator_factory = aggregator_factory
        self._tasks: set[asyncio.Task[None]] = set()
        self._removals: dict[str, asyncio.TimerHandle] = {}

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    @property
    def stream(self) -> ProgressStream:
        return self._stream

    async def start(
        self,
        project_id: str,
        entity_id: str,
        region: str | None = None,
    ) -> tuple[str, bool]:
        """Start a parsing job for an entity.

        Args:
            project_id: Project owning the entity.
            entity_id: Entity to parse.
            region: Region code; defaults to the project's region.

        Returns:
            ``(job_id, already_running)``. When a job is already running for
            the entity its id is returned and no new job is created.

        Raises:
            EntityNotFoundError: If the project or entity does not exist.
        """
        project = await self._history.get_project(project_id)
        entity = project.find_entity(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"Entity {entity_id} not found in project {project_id}")

        # Check and register without yielding to the loop in between.
        running = self._registry.find_running(entity_id)
        if running is not None:
            logger.info("Parsing already running", job_id=running.id, entity_id=entity_id)
            return running.id, True

        job = Job(project_id=project_id, entity_id=entity_id, entity_name=entity.name)
        self._registry.add(job)

        task = asyncio.create_task(
            self._run(job, entity, get_region(region or project.region)),
            name=f"parsing-{job.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(
            "Parsing started",
            job_id=job.id,
            entity_id=entity_id,
            entity=entity.name,
            engines=entity.engines,
            depth=entity.depth,
        )
        return job.id, False

    def get_job(self, job_id: str) -> Job | None:
        return self._registry.get(job_id)

    def list_active_jobs(self) -> list[Job]:
        return self._registry.list()

    async def wait_idle(self) -> None:
        """Wait until every started job has reached a terminal state."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel pending registry removals."""
        for handle in self._removals.values():
            handle.cancel()
        self._removals.clear()

    async def shutdown(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for running jobs, then cancel the rest.

        Cancelled jobs stay ``running`` in the registry and save nothing.
        """
        tasks = list(self._tasks)
        if tasks:
            logger.info("Waiting for parsing jobs", running=len(tasks))
            _, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                abandoned = [j.id for j in self._registry.list() if not j.is_terminal]
                logger.warning("Parsing jobs abandoned at shutdown", job_ids=abandoned)
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        self.close()

    # ------------------------------------------------------------------
    # Job execution
    # ------------------------------------------------------------------

    async def _run(self, job: Job, entity: Entity, region: Region) -> None:
        with job_context(job_id=job.id, entity_id=job.entity_id):
            await self._execute(job, entity, region)

    async def _execute(self, job: Job, entity: Entity, region: Region) -> None:
        provider: ResultProvider | None = None
        try:
            provider = self._provider_factory(self._settings)
            classifier = self._classifier_factory(self._settings)
            aggregator = self._aggregator_factory(self._settings)

            engines = list(entity.engines)
            outcomes: dict[str, EngineOutcome] = {}
            for index, engine in enumerate(engines):
                outcomes[engine] = await self._run_engine(
                    job, entity, engine, index, len(engines), region,
                    provider, classifier, aggregator,
                )  # fmt: skip

            parsing = Parsing(region=ParsingRegion.from_region(region), engines=outcomes)
            self._update(job, job.progress, "Saving results")
            saved = await self._history.append_parsing(job.project_id, job.entity_id, parsing)
            if not saved:
                logger.warning(
                    "Entity removed before parsing finished, result not saved"
                )

            job.complete(parsing)
            self._publish(job)
            logger.info(
                "Parsing completed",
                entity=job.entity_name,
                engines={e: o.metrics.rating for e, o in outcomes.items()},
            )
        except RepscopeError as e:
            logger.error("Parsing failed", error=e.message)
            job.fail(e.message)
            self._publish(job)
        except Exception as e:
            logger.exception("Parsing crashed", error=str(e))
            job.fail(str(e) or type(e).__name__)
            self._publish(job)
        finally:
            if provider is not None:
                try:
                    await provider.close()
                except Exception as e:
                    logger.warning("Provider close failed", error=str(e))
            self._schedule_removal(job)

    async def _run_engine(
        self,
        job: Job,
        entity: Entity,
        engine: str,
        index: int,
        count: int,
        region: Region,
        provider: ResultProvider,
        classifier: SentimentClassifier,
        aggregator: MetricsAggregator,
    ) -> EngineOutcome:
        name = ENGINE_DISPLAY_NAMES.get(engine, engine)

        def report(sub_step: int, fraction: float, label: str) -> None:
            self._update(job, compute_progress(index, count, sub_step, fraction), label, engine)

        # Stage A: retrieval
        report(0, 0.0, f"{name}: searching")
        raw = await provider.retrieve(
            entity.name,
            engine,
            entity.depth,
            region.code,
            on_progress=lambda fraction, label: report(0, fraction, f"{name}: {label}"),
        )
        results = renumber(
            [
                SearchResult(
                    position=item.position,
                    url=item.url,
                    title=item.title,
                    snippet=item.snippet,
                    domain=item.domain,
                    type=item.type,
                )
                for item in raw[: entity.depth]
            ]
        )
        results = [
            r.model_copy(update={"ctr": aggregator.weight_for(r.position)}) for r in results
        ]
        logger.debug("Results retrieved", engine=engine, count=len(results))

        # Stage B: classification
        report(1, 0.0, f"{name}: analysing {len(results)} results")
        classified = await classifier.classify_batch(
            results,
            on_progress=lambda fraction, label: report(1, fraction, f"{name}: {label}"),
        )
        metrics = aggregator.aggregate(classified)
        report(2, 0.0, f"{name}: done")

        logger.info(
            "Engine processed",
            engine=engine,
            results=metrics.total_results,
            rating=metrics.rating,
            risk=metrics.risk_level.value,
        )
        return EngineOutcome(results=classified, metrics=metrics)

    def _update(self, job: Job, progress: int, stage: str, engine: str | None = None) -> None:
        job.progress = max(job.progress, progress)
        job.stage = stage
        self._publish(job, engine)

    def _publish(self, job: Job, engine: str | None = None) -> None:
        self._stream.publish(
            ProgressEvent(
                job_id=job.id,
                entity_id=job.entity_id,
                status=job.status,
                progress=job.progress,
                stage=job.stage,
                engine=engine,
            )
        )

    def _schedule_removal(self, job: Job) -> None:
        if job.status == JobStatus.running:
            return
        delay = self._settings.job_retention_seconds
        loop = asyncio.get_running_loop()
        self._removals[job.id] = loop.call_later(delay, self._remove, job.id)

    def _remove(self, job_id: str) -> None:
        self._removals.pop(job_id, None)
        if self._registry.remove(job_id) is not None:
            logger.debug("Job purged", job_id=job_id)
