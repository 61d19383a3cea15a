"""Project, entity and parsing-history endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Response
from pydantic import Field

from repscope.api.errors import raise_http
from repscope.core.dependencies import HistoryDep, SettingsDep
from repscope.core.exceptions import RepscopeError
from repscope.processing.models import CamelModel

router = APIRouter()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateProjectRequest(CamelModel):
    name: str = Field(..., min_length=1, description="Project name")
    region: str | None = Field(default=None, description="Region code; defaults to DEFAULT_REGION")


class CreateEntityRequest(CamelModel):
    name: str = Field(..., min_length=1, description="Monitored name")
    engines: list[str] | None = Field(default=None, description="Defaults to configured engines")
    depth: int | None = Field(default=None, description="10, 20, 50 or 100")


class UpdateEntityRequest(CamelModel):
    engines: list[str] | None = None
    depth: int | None = None


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get("")
async def list_projects(history: HistoryDep) -> list[dict[str, Any]]:
    try:
        projects = await history.list_projects()
    except RepscopeError as e:
        raise_http(e)
    return [p.to_json_dict() for p in projects]


@router.post("", status_code=201)
async def create_project(
    body: CreateProjectRequest, history: HistoryDep, settings: SettingsDep
) -> dict[str, Any]:
    try:
        project = await history.create_project(body.name, body.region or settings.default_region)
    except RepscopeError as e:
        raise_http(e)
    return project.to_json_dict()


@router.get("/{project_id}")
async def get_project(project_id: str, history: HistoryDep) -> dict[str, Any]:
    try:
        project = await history.get_project(project_id)
    except RepscopeError as e:
        raise_http(e)
    return project.to_json_dict()


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str, history: HistoryDep) -> Response:
    try:
        await history.delete_project(project_id)
    except RepscopeError as e:
        raise_http(e)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@router.post("/{project_id}/entities", status_code=201)
async def add_entity(
    project_id: str,
    body: CreateEntityRequest,
    history: HistoryDep,
    settings: SettingsDep,
) -> dict[str, Any]:
    engines = body.engines if body.engines is not None else settings.default_engines
    depth = body.depth if body.depth is not None else settings.default_depth
    try:
        entity = await history.add_entity(project_id, body.name, engines, depth)
    except RepscopeError as e:
        raise_http(e)
    return entity.to_json_dict()


@router.get("/{project_id}/entities/{entity_id}")
async def get_entity(project_id: str, entity_id: str, history: HistoryDep) -> dict[str, Any]:
    try:
        entity = await history.get_entity(project_id, entity_id)
    except RepscopeError as e:
        raise_http(e)
    return entity.to_json_dict()


@router.patch("/{project_id}/entities/{entity_id}")
async def update_entity(
    project_id: str,
    entity_id: str,
    body: UpdateEntityRequest,
    history: HistoryDep,
) -> dict[str, Any]:
    try:
        entity = await history.update_entity(
            project_id, entity_id, engines=body.engines, depth=body.depth
        )
    except RepscopeError as e:
        raise_http(e)
    return entity.to_json_dict()


@router.delete("/{project_id}/entities/{entity_id}", status_code=204)
async def delete_entity(project_id: str, entity_id: str, history: HistoryDep) -> Response:
    try:
        await history.delete_entity(project_id, entity_id)
    except RepscopeError as e:
        raise_http(e)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Parsing history
# ---------------------------------------------------------------------------


@router.get("/{project_id}/entities/{entity_id}/compare")
async def compare_parsings(
    project_id: str,
    entity_id: str,
    history: HistoryDep,
    parsing_ids: str | None = Query(
        default=None,
        alias="parsingIds",
        description="Comma-separated parsing ids; all parsings when omitted",
    ),
) -> dict[str, Any]:
    ids = [p.strip() for p in parsing_ids.split(",") if p.strip()] if parsing_ids else None
    try:
        comparison = await history.compare(project_id, entity_id, ids)
    except RepscopeError as e:
        raise_http(e)
    return {
        "parsings": [p.to_json_dict() for p in comparison.parsings],
        "trends": {engine: t.to_json_dict() for engine, t in comparison.trends.items()},
    }


@router.delete("/{project_id}/entities/{entity_id}/parsings/{parsing_id}", status_code=204)
async def delete_parsing(
    project_id: str,
    entity_id: str,
    parsing_id: str,
    history: HistoryDep,
) -> Response:
    try:
        await history.delete_parsing(project_id, entity_id, parsing_id)
    except RepscopeError as e:
        raise_http(e)
    return Response(status_code=204)
