"""Top-level API router. Mounts all domain routers under /api/v1."""

from fastapi import APIRouter

from repscope.api.routes import bulk, parsing, projects, system

api_router = APIRouter()
api_router.include_router(system.router, tags=["system"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(parsing.router, tags=["parsing"])
api_router.include_router(bulk.router, prefix="/bulk-search", tags=["bulk-search"])
