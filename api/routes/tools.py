"""
api/routes/tools.py -- Developer tool catalogue endpoints.

Routes:
  GET    /api/tools                -- public list (category, pricing, search)
  GET    /api/tools/{resource_id}  -- public
  POST   /api/tools                -- any authenticated account
  PUT    /api/tools/{resource_id}  -- owner or admin
  DELETE /api/tools/{resource_id}  -- owner or admin (soft delete)

Same ownership model as learning resources, with tool_owner() as the lookup.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import PricingEnum, ToolCategoryEnum, ToolCreate, ToolOut, ToolUpdate
from api.pagination import PageParams, RowId, page_params, paginated
from auth.dependencies import authenticate, require_owner_or_role
from auth.models import ROLE_ADMIN, Identity
from core.exceptions import NotFoundError
from resources.models import OwnerSnapshot, ToolResource
from resources.store import ResourceStore

logger = logging.getLogger("dashboard.api")

router = APIRouter(prefix="/tools")

NOT_FOUND_MESSAGE = "Tool not found"


def _tool_owner(request: Request, tool_id: int) -> Optional[int]:
    store: ResourceStore = request.app.state.resources
    return store.tool_owner(tool_id)


require_tool_owner = require_owner_or_role(ROLE_ADMIN, _tool_owner, NOT_FOUND_MESSAGE)


def _snapshot(identity: Identity) -> OwnerSnapshot:
    return OwnerSnapshot(user_id=identity.account_id, user_name=identity.username, email=identity.email)


def _wire(tool: ToolResource) -> dict:
    return ToolOut.from_tool(tool).to_wire()


def _get_tool(store: ResourceStore, tool_id: int) -> ToolResource:
    tool = store.get_tool(tool_id)
    if tool is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return tool


@router.get("")
def list_tools(
    request: Request,
    params: PageParams = Depends(page_params),
    category: Optional[ToolCategoryEnum] = None,
    pricing: Optional[PricingEnum] = None,
    search: Optional[str] = Query(default=None, max_length=200),
) -> dict:
    store: ResourceStore = request.app.state.resources
    result = store.list_tools(
        category=category.value if category else None,
        pricing=pricing.value if pricing else None,
        search=search,
        page=params.page,
        limit=params.limit,
    )
    return paginated(result, _wire)


@router.get("/{resource_id}")
def get_tool(request: Request, resource_id: RowId) -> dict:
    store: ResourceStore = request.app.state.resources
    tool = store.get_tool(resource_id)
    if tool is None or not tool.is_active:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"success": True, "data": _wire(tool)}


@router.post("", status_code=201)
def create_tool(
    request: Request,
    body: ToolCreate,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: ResourceStore = request.app.state.resources
    tool = ToolResource(
        tool_name=body.tool_name,
        description=body.description,
        category=body.category.value,
        official_url=body.official_url,
        documentation_url=body.documentation_url,
        logo_url=body.logo_url,
        tags=body.tags,
        tech_stack=body.tech_stack,
        pricing=body.pricing.value,
        features=body.features,
        use_cases=body.use_cases,
        rating=body.rating,
        created_by=_snapshot(identity),
    )
    tool_id = store.create_tool(tool)
    logger.info("Account %s created tool %s", identity.account_id, tool_id)
    return {"success": True, "message": "Tool created", "data": _wire(_get_tool(store, tool_id))}


@router.put("/{resource_id}")
def update_tool(
    request: Request,
    resource_id: RowId,
    body: ToolUpdate,
    identity: Identity = Depends(require_tool_owner),
) -> dict:
    store: ResourceStore = request.app.state.resources
    tool = _get_tool(store, resource_id)
    changes = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    store.save_tool(dataclasses.replace(tool, **changes, updated_by=_snapshot(identity)))
    return {"success": True, "message": "Tool updated", "data": _wire(_get_tool(store, resource_id))}


@router.delete("/{resource_id}")
def delete_tool(
    request: Request,
    resource_id: RowId,
    identity: Identity = Depends(require_tool_owner),
) -> dict:
    store: ResourceStore = request.app.state.resources
    tool = _get_tool(store, resource_id)
    store.save_tool(dataclasses.replace(tool, is_active=False, updated_by=_snapshot(identity)))
    logger.info("Account %s deleted tool %s", identity.account_id, resource_id)
    return {"success": True, "message": "Tool deleted"}
