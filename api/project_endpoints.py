"""
Project Endpoints.

Projects are public and addressed by slug for reads; writes use the id and
require an admin. Featured projects sort first, then by `order`, then newest.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin
from api.schemas import MessageOut, ProjectCreate, ProjectOut, ProjectUpdate
from core.auth import Principal
from core.database import get_session
from core.models import Project
from services.resource_service import ResourceService

router = APIRouter(prefix="/projects", tags=["Projects"])


def _projects(session: AsyncSession) -> ResourceService[Project]:
    return ResourceService(session, Project, "Project")


@router.get("")
async def list_projects(
    featured: Optional[bool] = Query(default=None),
    session: AsyncSession = Depends(get_session),
):
    """All projects, or only featured ones with `?featured=true`"""
    projects = await _projects(session).list(
        Project.featured.desc(),
        Project.order,
        Project.created_at.desc(),
        where=Project.featured == True if featured else None,  # noqa: E712
    )
    return {"projects": [ProjectOut.model_validate(p) for p in projects]}


@router.get("/{slug}")
async def get_project(slug: str, session: AsyncSession = Depends(get_session)):
    project = await _projects(session).get(slug, column="slug")
    return {"project": ProjectOut.model_validate(project)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    project = await _projects(session).create(payload.model_dump())
    return {"project": ProjectOut.model_validate(project)}


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    project = await _projects(session).update(
        project_id, payload.model_dump(exclude_unset=True)
    )
    return {"project": ProjectOut.model_validate(project)}


@router.delete("/{project_id}", response_model=MessageOut)
async def delete_project(
    project_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    await _projects(session).delete(project_id)
    return MessageOut(message="Project deleted successfully")
