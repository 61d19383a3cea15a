"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from repscope import __version__
from repscope.api import api_router
from repscope.bulk import BulkSearchHistory, BulkSearchRunner
from repscope.config import get_settings
from repscope.core.logging import get_logger, setup_logging
from repscope.jobs import ParsingOrchestrator
from repscope.processing.metrics import create_metrics_aggregator
from repscope.storage import JsonGraphStore, ParsingHistory, RuntimeConfigStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: wires the stores, history and background runners."""
    settings = get_settings()
    setup_logging(settings)

    config_store = RuntimeConfigStore(
        settings.runtime_config_file, timeout=settings.persistence_timeout
    )
    (await config_store.load()).apply(settings)

    store = JsonGraphStore(settings.projects_file, timeout=settings.persistence_timeout)
    history = ParsingHistory(store, create_metrics_aggregator(settings))
    orchestrator = ParsingOrchestrator(history, settings)
    bulk_runner = BulkSearchRunner(
        BulkSearchHistory(
            settings.bulk_history_file,
            limit=settings.bulk_history_limit,
            timeout=settings.persistence_timeout,
        ),
        settings,
    )

    app.state.config_store = config_store
    app.state.history = history
    app.state.orchestrator = orchestrator
    app.state.bulk_runner = bulk_runner
    logger.info(
        "Repscope ready",
        env=settings.env,
        data=str(settings.projects_file),
        xmlstock=settings.xmlstock_configured,
        llm_classifier=settings.use_llm_classifier,
    )
    try:
        yield
    finally:
        await orchestrator.shutdown(settings.job_shutdown_timeout)
        await bulk_runner.shutdown(settings.job_shutdown_timeout)
        logger.info("Repscope stopped", active_jobs=len(orchestrator.list_active_jobs()))


app = FastAPI(
    title="Repscope",
    description="Search reputation monitoring: weighted sentiment scoring of search results",
    version=__version__,
    lifespan=lifespan,
)

# Infrastructure (no prefix, not versioned)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check, always ok if process is running."""
    return {"status": "ok"}


# Domain API
app.include_router(api_router, prefix="/api/v1")
