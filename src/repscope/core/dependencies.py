"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request

from repscope.bulk import BulkSearchRunner
from repscope.config import Settings, get_settings
from repscope.jobs import ParsingOrchestrator
from repscope.processing.common.llm import create_model, llm_configured
from repscope.processing.sentiment import PydanticAISentimentBackend, SentimentBackend
from repscope.providers.xmlstock import XMLStockProvider
from repscope.storage import ParsingHistory, RuntimeConfigStore

# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_history(request: Request) -> ParsingHistory:
    """Get ParsingHistory from app.state (set during lifespan)."""
    return request.app.state.history  # type: ignore[no-any-return]


def get_orchestrator(request: Request) -> ParsingOrchestrator:
    """Get ParsingOrchestrator from app.state (set during lifespan)."""
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def get_config_store(request: Request) -> RuntimeConfigStore:
    """Get RuntimeConfigStore from app.state (set during lifespan)."""
    return request.app.state.config_store  # type: ignore[no-any-return]


def get_bulk_runner(request: Request) -> BulkSearchRunner:
    """Get BulkSearchRunner from app.state (set during lifespan)."""
    return request.app.state.bulk_runner  # type: ignore[no-any-return]


def get_sentiment_backend(settings: SettingsDep) -> SentimentBackend | None:
    """LLM backend for the current settings, or None without an API key."""
    if not llm_configured(settings):
        return None
    return PydanticAISentimentBackend(create_model(settings))


async def get_xmlstock_client(settings: SettingsDep) -> AsyncIterator[XMLStockProvider]:
    """XMLStock client for the current settings, closed after the request."""
    client = XMLStockProvider.from_settings(settings)
    try:
        yield client
    finally:
        await client.close()


# Annotated dependencies for use in route handlers
HistoryDep = Annotated[ParsingHistory, Depends(get_history)]
OrchestratorDep = Annotated[ParsingOrchestrator, Depends(get_orchestrator)]
XMLStockClientDep = Annotated[XMLStockProvider, Depends(get_xmlstock_client)]
ConfigStoreDep = Annotated[RuntimeConfigStore, Depends(get_config_store)]
BulkRunnerDep = Annotated[BulkSearchRunner, Depends(get_bulk_runner)]
SentimentBackendDep = Annotated[SentimentBackend | None, Depends(get_sentiment_backend)]
