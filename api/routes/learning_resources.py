"""
api/routes/learning_resources.py -- Shared learning material endpoints.

Routes:
  GET    /api/learning-resources                     -- public list (category, difficulty, search)
  GET    /api/learning-resources/{resource_id}       -- public; counts a view
  POST   /api/learning-resources                     -- any authenticated account
  PUT    /api/learning-resources/{resource_id}       -- owner or admin
  DELETE /api/learning-resources/{resource_id}       -- owner or admin (soft delete)
  POST   /api/learning-resources/{resource_id}/like  -- any authenticated account

Ownership: require_owner_or_role() with _learning_owner as the lookup, so a
non-admin who did not create the resource gets 403 before the handler runs.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    DifficultyEnum,
    LearningCategoryEnum,
    LearningResourceCreate,
    LearningResourceOut,
    LearningResourceUpdate,
)
from api.pagination import PageParams, RowId, page_params, paginated
from auth.dependencies import authenticate, require_owner_or_role
from auth.models import ROLE_ADMIN, Identity
from core.exceptions import NotFoundError
from resources.models import LearningResource, OwnerSnapshot
from resources.store import ResourceStore

logger = logging.getLogger("dashboard.api")

router = APIRouter(prefix="/learning-resources")

NOT_FOUND_MESSAGE = "Resource not found"


def _learning_owner(request: Request, resource_id: int) -> Optional[int]:
    store: ResourceStore = request.app.state.resources
    return store.learning_resource_owner(resource_id)


require_learning_owner = require_owner_or_role(ROLE_ADMIN, _learning_owner, NOT_FOUND_MESSAGE)


def _snapshot(identity: Identity) -> OwnerSnapshot:
    return OwnerSnapshot(user_id=identity.account_id, user_name=identity.username, email=identity.email)


def _wire(resource: LearningResource) -> dict:
    return LearningResourceOut.from_resource(resource).to_wire()


def _get_resource(store: ResourceStore, resource_id: int) -> LearningResource:
    resource = store.get_learning_resource(resource_id)
    if resource is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return resource


@router.get("")
def list_resources(
    request: Request,
    params: PageParams = Depends(page_params),
    category: Optional[LearningCategoryEnum] = None,
    difficulty: Optional[DifficultyEnum] = None,
    search: Optional[str] = Query(default=None, max_length=200),
) -> dict:
    store: ResourceStore = request.app.state.resources
    result = store.list_learning_resources(
        category=category.value if category else None,
        difficulty=difficulty.value if difficulty else None,
        search=search,
        page=params.page,
        limit=params.limit,
    )
    return paginated(result, _wire)


@router.get("/{resource_id}")
def get_resource(request: Request, resource_id: RowId) -> dict:
    """Return an active resource, counting the read as a view."""
    store: ResourceStore = request.app.state.resources
    resource = store.get_learning_resource(resource_id)
    if resource is None or not resource.is_active:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    store.increment_views(resource_id)
    return {"success": True, "data": _wire(_get_resource(store, resource_id))}


@router.post("", status_code=201)
def create_resource(
    request: Request,
    body: LearningResourceCreate,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: ResourceStore = request.app.state.resources
    resource = LearningResource(
        title=body.title,
        description=body.description,
        category=body.category.value,
        url=body.url,
        tags=body.tags,
        difficulty=body.difficulty.value,
        created_by=_snapshot(identity),
    )
    resource_id = store.create_learning_resource(resource)
    logger.info("Account %s created learning resource %s", identity.account_id, resource_id)
    return {"success": True, "message": "Resource created", "data": _wire(_get_resource(store, resource_id))}


@router.put("/{resource_id}")
def update_resource(
    request: Request,
    resource_id: RowId,
    body: LearningResourceUpdate,
    identity: Identity = Depends(require_learning_owner),
) -> dict:
    """Apply the supplied fields and stamp updatedBy with the caller."""
    store: ResourceStore = request.app.state.resources
    resource = _get_resource(store, resource_id)
    changes = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    updated = dataclasses.replace(resource, **changes, updated_by=_snapshot(identity))
    store.save_learning_resource(updated)
    return {"success": True, "message": "Resource updated", "data": _wire(_get_resource(store, resource_id))}


@router.delete("/{resource_id}")
def delete_resource(
    request: Request,
    resource_id: RowId,
    identity: Identity = Depends(require_learning_owner),
) -> dict:
    store: ResourceStore = request.app.state.resources
    resource = _get_resource(store, resource_id)
    store.save_learning_resource(dataclasses.replace(resource, is_active=False, updated_by=_snapshot(identity)))
    logger.info("Account %s deleted learning resource %s", identity.account_id, resource_id)
    return {"success": True, "message": "Resource deleted"}


@router.post("/{resource_id}/like")
def like_resource(
    request: Request,
    resource_id: RowId,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: ResourceStore = request.app.state.resources
    likes = store.add_like(resource_id)
    if likes is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "message": "Resource liked", "likes": likes}
