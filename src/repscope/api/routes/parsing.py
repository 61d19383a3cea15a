"""Background parsing and manual override endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException
from pydantic import Field

from repscope.api.errors import raise_http
from repscope.core.dependencies import HistoryDep, OrchestratorDep
from repscope.core.exceptions import RepscopeError
from repscope.processing.models import CamelModel, Sentiment

router = APIRouter()


class StartParsingRequest(CamelModel):
    region: str | None = Field(default=None, description="Overrides the project's region")


class OverrideSentimentRequest(CamelModel):
    engine: str = Field(..., description="Engine the result belongs to")
    sentiment: Sentiment


@router.post("/projects/{project_id}/entities/{entity_id}/parse-background", status_code=202)
async def start_parsing(
    project_id: str,
    entity_id: str,
    orchestrator: OrchestratorDep,
    body: StartParsingRequest | None = Body(default=None),
) -> dict[str, Any]:
    """Start a background parsing job, or report the one already running."""
    try:
        job_id, already_running = await orchestrator.start(
            project_id, entity_id, body.region if body else None
        )
    except RepscopeError as e:
        raise_http(e)

    if already_running:
        return {"taskId": job_id, "alreadyRunning": True}
    return {"taskId": job_id, "status": "running"}


@router.get("/parsing-tasks")
async def list_parsing_tasks(orchestrator: OrchestratorDep) -> list[dict[str, Any]]:
    return [job.to_dict() for job in orchestrator.list_active_jobs()]


@router.get("/parsing-tasks/{task_id}")
async def get_parsing_task(task_id: str, orchestrator: OrchestratorDep) -> dict[str, Any]:
    job = orchestrator.get_job(task_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return job.to_dict()


@router.patch("/parsings/{parsing_id}/results/{position}")
async def override_sentiment(
    parsing_id: str,
    position: int,
    body: OverrideSentimentRequest,
    history: HistoryDep,
) -> dict[str, Any]:
    """Set a result's sentiment by hand; returns the engine's updated results and metrics."""
    try:
        outcome = await history.override_sentiment(
            parsing_id, body.engine, position, body.sentiment
        )
    except RepscopeError as e:
        raise_http(e)
    return outcome.to_json_dict()
