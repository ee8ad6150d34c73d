"""Project and documentation records, backed by the configured :class:`~specshift.store.Store`."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from specshift.store import DOCUMENTATION, PROJECTS, USERS, Row, Store

from ..dependencies import get_store

router = APIRouter(tags=["Projects"])


class ProjectCreate(BaseModel):
    project_name: Optional[str] = None
    description: Optional[str] = None
    user_id: Optional[Any] = None


class DocumentationCreate(BaseModel):
    project_id: Optional[Any] = None
    title: Optional[str] = None
    description: Optional[str] = None


@router.get("/api")
async def list_users(store: Store = Depends(get_store)) -> list[Row]:
    return await store.list(USERS)


@router.get("/api/v1/projects")
async def list_projects(store: Store = Depends(get_store)) -> list[Row]:
    return await store.list(PROJECTS)


@router.post("/api/v1/projects/add")
async def add_project(
    project: ProjectCreate,
    store: Store = Depends(get_store),
) -> list[Row]:
    """Insert a project and return the stored row(s)."""
    return await store.insert(PROJECTS, project.model_dump())


@router.get("/api/v1/documentations")
async def list_documentations(store: Store = Depends(get_store)) -> list[Row]:
    return await store.list(DOCUMENTATION)


@router.get("/api/v1/documentations/{project_id}")
async def list_project_documentations(
    project_id: str,
    store: Store = Depends(get_store),
) -> list[Row]:
    """Documentation records belonging to one project."""
    return await store.list_by_field(DOCUMENTATION, "project_id", project_id)


@router.post("/api/v1/documentations/add", status_code=201)
async def add_documentation(
    documentation: DocumentationCreate,
    store: Store = Depends(get_store),
) -> list[Row]:
    return await store.insert(DOCUMENTATION, documentation.model_dump())


@router.get("/api/v1/documentation/{doc_id}/schema")
async def get_documentation_schema(
    doc_id: str,
    store: Store = Depends(get_store),
) -> list[Row]:
    """Documentation record(s) whose ``api_id`` is *doc_id*, schema included."""
    return await store.list_by_field(DOCUMENTATION, "api_id", doc_id)


@router.post("/api/v1/documentations/{doc_id}/add/schema", status_code=201)
async def set_documentation_schema(
    doc_id: str,
    schema: Any = Body(default=None),
    store: Store = Depends(get_store),
) -> list[Row]:
    """Replace ``openapi_schema`` on the record(s) with ``api_id == doc_id``.

    The body is stored as-is; it is not validated.
    """
    return await store.update_by_field(DOCUMENTATION, "api_id", doc_id, {"openapi_schema": schema})
