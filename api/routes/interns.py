"""
api/routes/interns.py -- Intern records, daily comments and meeting notes.

Routes (all require authentication):
  GET    /api/interns                          -- list (status, department, search)
  GET    /api/interns/{intern_id}              -- active interns only
  POST   /api/interns                          -- admin only
  PUT    /api/interns/{intern_id}              -- admin only; replaces supplied sections
  DELETE /api/interns/{intern_id}              -- admin only (soft delete)
  POST   /api/interns/{intern_id}/comments     -- any authenticated account
  POST   /api/interns/{intern_id}/meeting-notes -- any authenticated account
  POST   /api/interns/{intern_id}/projects     -- admin only

Interns have no ownership path: mutations are admin-only, while comments and
meeting notes are open to every signed-in account and carry an addedBy
{userId, userName, role} block naming who wrote them. Those two lists are
append-only; there is no route that edits or removes an entry.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from api.models import (
    DailyCommentCreate,
    InternCreate,
    InternOut,
    InternProjectCreate,
    InternStatusEnum,
    InternUpdate,
    MeetingNoteCreate,
)
from api.pagination import PageParams, RowId, page_params, paginated
from auth.dependencies import authenticate, require_admin
from auth.models import Identity
from core.database import now_iso
from core.exceptions import ConflictError, NotFoundError
from interns.models import Intern
from interns.store import InternStore

logger = logging.getLogger("dashboard.api")

# Every intern route requires authentication; admin-only routes add
# require_admin on top.
router = APIRouter(prefix="/interns", dependencies=[Depends(authenticate)])

NOT_FOUND_MESSAGE = "Intern not found"
DUPLICATE_EMAIL_MESSAGE = "Intern with this email already exists"


def _wire(intern: Intern) -> dict:
    return InternOut.from_intern(intern).to_wire()


def _get_intern(store: InternStore, intern_id: int) -> Intern:
    intern = store.get_intern(intern_id)
    if intern is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return intern


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _added_by(identity: Identity) -> dict:
    return {"userId": identity.account_id, "userName": identity.username, "role": identity.role}


def _assignment(store: InternStore, body: InternProjectCreate) -> dict:
    """Build a projects entry, resolving projectId against the projects collection."""
    entry = body.to_document()
    if body.project_id is not None:
        project = store.get_project(body.project_id)
        if project is None or not project.is_active:
            raise NotFoundError("Project not found")
        entry.setdefault("projectName", project.project_name)
    return entry


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("")
def list_interns(
    request: Request,
    params: PageParams = Depends(page_params),
    status: Optional[InternStatusEnum] = None,
    department: Optional[str] = Query(default=None, max_length=100),
    search: Optional[str] = Query(default=None, max_length=200),
) -> dict:
    store: InternStore = request.app.state.interns
    result = store.list_interns(
        status=status.value if status else None,
        department=department,
        search=search,
        page=params.page,
        limit=params.limit,
    )
    return paginated(result, _wire)


@router.get("/{intern_id}")
def get_intern(request: Request, intern_id: RowId) -> dict:
    store: InternStore = request.app.state.interns
    intern = store.get_intern(intern_id)
    if intern is None or not intern.is_active:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "data": _wire(intern)}


# ---------------------------------------------------------------------------
# Admin mutations
# ---------------------------------------------------------------------------


@router.post("", status_code=201)
def create_intern(
    request: Request,
    body: InternCreate,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    intern = Intern(
        personal_info=body.personal_info.to_document(),
        internship_details=body.internship_details.to_document(),
        projects=[_assignment(store, p) for p in body.projects],
        skills=body.skills.to_document() if body.skills else {},
        performance=body.performance.to_document() if body.performance else {},
        documents=[d.to_document() for d in body.documents],
        created_by=identity.account_id,
    )
    try:
        intern_id = store.create_intern(intern)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
    logger.info("Admin %s created intern %s", identity.account_id, intern_id)
    return {"success": True, "message": "Intern created", "data": _wire(_get_intern(store, intern_id))}


@router.put("/{intern_id}")
def update_intern(
    request: Request,
    intern_id: RowId,
    body: InternUpdate,
    identity: Identity = Depends(require_admin),
) -> dict:
    """Replace each supplied top-level section; absent sections are kept."""
    store: InternStore = request.app.state.interns
    intern = _get_intern(store, intern_id)

    changes: dict[str, Any] = {"updated_by": identity.account_id}
    if body.personal_info is not None:
        changes["personal_info"] = body.personal_info.to_document()
    if body.internship_details is not None:
        changes["internship_details"] = body.internship_details.to_document()
    if body.projects is not None:
        changes["projects"] = [_assignment(store, p) for p in body.projects]
    if body.skills is not None:
        changes["skills"] = body.skills.to_document()
    if body.performance is not None:
        changes["performance"] = body.performance.to_document()
    if body.documents is not None:
        changes["documents"] = [d.to_document() for d in body.documents]
    if body.is_active is not None:
        changes["is_active"] = body.is_active

    try:
        store.save_intern(dataclasses.replace(intern, **changes))
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
    return {"success": True, "message": "Intern updated", "data": _wire(_get_intern(store, intern_id))}


@router.delete("/{intern_id}")
def delete_intern(
    request: Request,
    intern_id: RowId,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    intern = _get_intern(store, intern_id)
    store.save_intern(dataclasses.replace(intern, is_active=False, updated_by=identity.account_id))
    logger.info("Admin %s deleted intern %s", identity.account_id, intern_id)
    return {"success": True, "message": "Intern deleted"}


@router.post("/{intern_id}/projects", status_code=201)
def add_project(
    request: Request,
    intern_id: RowId,
    body: InternProjectCreate,
    identity: Identity = Depends(require_admin),
) -> dict:
    store: InternStore = request.app.state.interns
    _get_intern(store, intern_id)
    updated = store.append_entry(intern_id, "projects", _assignment(store, body))
    if updated is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "message": "Project added", "data": _wire(updated)}


# ---------------------------------------------------------------------------
# Comments and meeting notes (any authenticated account)
# ---------------------------------------------------------------------------


@router.post("/{intern_id}/comments", status_code=201)
def add_comment(
    request: Request,
    intern_id: RowId,
    body: DailyCommentCreate,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: InternStore = request.app.state.interns
    entry = body.to_document()
    entry.setdefault("date", _today())
    entry["addedBy"] = _added_by(identity)
    entry["createdAt"] = now_iso()
    updated = store.append_entry(intern_id, "daily_comments", entry)
    if updated is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "message": "Daily comment added", "data": _wire(updated)}


@router.post("/{intern_id}/meeting-notes", status_code=201)
def add_meeting_note(
    request: Request,
    intern_id: RowId,
    body: MeetingNoteCreate,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: InternStore = request.app.state.interns
    entry = body.to_document()
    entry.setdefault("date", _today())
    entry["addedBy"] = _added_by(identity)
    entry["createdAt"] = now_iso()
    updated = store.append_entry(intern_id, "meeting_notes", entry)
    if updated is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "message": "Meeting note added", "data": _wire(updated)}
