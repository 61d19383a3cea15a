"""Bulk position-tracking endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response
from pydantic import Field

from repscope.api.errors import raise_http
from repscope.core.dependencies import BulkRunnerDep
from repscope.core.exceptions import RepscopeError
from repscope.processing.models import CamelModel

router = APIRouter()


class StartBulkSearchRequest(CamelModel):
    queries: list[str] = Field(..., description="Search queries, one Yandex search each")
    target_urls: list[str] = Field(..., description="URLs whose positions are tracked")
    depth: int | None = Field(default=None, description="10, 20, 50 or 100")
    region: str | None = Field(default=None, description="Region code; defaults to DEFAULT_REGION")


@router.post("/start", status_code=202)
async def start_bulk_search(body: StartBulkSearchRequest, runner: BulkRunnerDep) -> dict[str, Any]:
    try:
        search_id = runner.start(body.queries, body.target_urls, body.depth, body.region)
    except RepscopeError as e:
        raise_http(e)
    return {
        "searchId": search_id,
        "queriesCount": runner.status.total,
        "targetUrlsCount": runner.status.targets,
        "depth": runner.status.depth,
    }


@router.get("/status")
async def bulk_search_status(runner: BulkRunnerDep) -> dict[str, object]:
    return runner.status.to_dict()


@router.get("/history")
async def list_bulk_searches(runner: BulkRunnerDep) -> list[dict[str, object]]:
    try:
        summaries = await runner.history.list_summaries()
    except RepscopeError as e:
        raise_http(e)
    return [s.to_json_dict() for s in summaries]


@router.get("/history/{search_id}")
async def get_bulk_search(search_id: str, runner: BulkRunnerDep) -> dict[str, object]:
    try:
        report = await runner.history.get(search_id)
    except RepscopeError as e:
        raise_http(e)
    return report.to_json_dict()


@router.delete("/history/{search_id}", status_code=204)
async def delete_bulk_search(search_id: str, runner: BulkRunnerDep) -> Response:
    try:
        await runner.history.delete(search_id)
    except RepscopeError as e:
        raise_http(e)
    return Response(status_code=204)
