"""
api/routes/projects.py -- Projects that interns can be assigned to.

Routes (all require authentication):
  GET    /api/projects               -- list (status, search)
  GET    /api/projects/{project_id}  -- active projects only
  POST   /api/projects               -- admin only
  PUT    /api/projects/{project_id}  -- admin only
  DELETE /api/projects/{project_id}  -- admin only (soft delete)

Projects live in the intern store; POST /api/interns/{id}/projects resolves
projectId against this collection.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import ProjectCreate, ProjectOut, ProjectStatusEnum, ProjectUpdate
from api.pagination import PageParams, RowId, page_params, paginated
from auth.dependencies import authenticate, require_admin
from auth.models import Identity
from core.exceptions import BadRequestError, NotFoundError
from interns.models import Project
from interns.store import InternStore

logger = logging.getLogger("dashboard.api")

router = APIRouter(prefix="/projects", dependencies=[Depends(authenticate)])

NOT_FOUND_MESSAGE = "Project not found"


def _wire(project: Project) -> dict:
    return ProjectOut.from_project(project).to_wire()


def _get_project(store: InternStore, project_id: int) -> Project:
    project = store.get_project(project_id)
    if project is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return project


@router.get("")
def list_projects(
    request: Request,
    params: PageParams = Depends(page_params),
    status: Optional[ProjectStatusEnum] = None,
    search: Optional[str] = Query(default=None, max_length=200),
) -> dict:
    store: InternStore = request.app.state.interns
    result = store.list_projects(
        status=status.value if status else None,
        search=search,
        page=params.page,
        limit=params.limit,
    )
    return paginated(result, _wire)


@router.get("/{project_id}")
def get_project(request: Request, project_id: RowId) -> dict:
    store: InternStore = request.app.state.interns
    project = store.get_project(project_id)
    if project is None or not project.is_active:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "data": _wire(project)}


@router.post("", status_code=201)
def create_project(
    request: Request,
    body: ProjectCreate,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    doc = body.to_wire()
    project = Project(
        project_name=body.project_name,
        description=body.description,
        status=body.status.value,
        start_date=doc["startDate"],
        end_date=doc["endDate"],
        project_url=body.project_url,
        repository_url=body.repository_url,
        documentation_url=body.documentation_url,
        technologies=body.technologies,
        team_members=[m.to_document() for m in body.team_members],
        manager=body.manager.to_document() if body.manager else None,
        created_by=identity.account_id,
    )
    project_id = store.create_project(project)
    logger.info("Admin %s created project %s", identity.account_id, project_id)
    return {"success": True, "message": "Project created", "data": _wire(_get_project(store, project_id))}


@router.put("/{project_id}")
def update_project(
    request: Request,
    project_id: RowId,
    body: ProjectUpdate,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    project = _get_project(store, project_id)

    changes: dict[str, Any] = body.model_dump(
        mode="json",
        exclude_unset=True,
        exclude_none=True,
        exclude={"team_members", "manager"},
    )
    if body.team_members is not None:
        changes["team_members"] = [m.to_document() for m in body.team_members]
    if body.manager is not None:
        changes["manager"] = body.manager.to_document()

    updated = dataclasses.replace(project, **changes, updated_by=identity.account_id)
    if updated.start_date and updated.end_date and updated.end_date < updated.start_date:
        raise BadRequestError("End date cannot be before start date")
    store.save_project(updated)
    return {"success": True, "message": "Project updated", "data": _wire(_get_project(store, project_id))}


@router.delete("/{project_id}")
def delete_project(
    request: Request,
    project_id: RowId,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    project = _get_project(store, project_id)
    store.save_project(dataclasses.replace(project, is_active=False, updated_by=identity.account_id))
    logger.info("Admin %s deleted project %s", identity.account_id, project_id)
    return {"success": True, "message": "Project deleted"}
