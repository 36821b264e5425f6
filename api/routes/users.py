"""
api/routes/users.py -- Account management endpoints.

Routes:
  GET    /api/users                          -- paginated list with search (admin only)
  POST   /api/users                          -- create account (admin only)
  GET    /api/users/{user_id}                -- self or admin
  PUT    /api/users/{user_id}                -- self or admin; role/isActive admin only
  DELETE /api/users/{user_id}                -- deactivate (admin only, never self)
  POST   /api/users/{user_id}/reset-password -- set or generate a password (admin only)
  PUT    /api/users/{user_id}/settings       -- strictly self, even for admins

Accounts do not go through require_owner_or_role(): each operation has its
own self-or-admin rule, spelled out in the handler.

Self-protection: an admin can neither DELETE their own account nor set
isActive=false on it through PUT, so the last admin cannot lock everyone out
by accident.

Non-admin updates: role and isActive are silently dropped from the body
rather than rejected.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from api.models import AccountOut, ResetPasswordRequest, RoleEnum, UserCreate, UserUpdate
from api.pagination import PageParams, RowId, page_params, paginated
from api.routes.auth import DUPLICATE_ACCOUNT_MESSAGE
from auth.dependencies import authenticate, require_admin
from auth.models import Account, Identity
from auth.store import AccountStore
from auth.tokens import generate_password, hash_password
from core.config import Settings
from core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger("dashboard.api")

router = APIRouter(prefix="/users")


def _get_account(store: AccountStore, user_id: int) -> Account:
    account = store.get_by_id(user_id)
    if account is None:
        raise NotFoundError("User not found")
    return account


def _account_wire(account: Account) -> dict:
    return AccountOut.from_account(account).to_wire()


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("")
def list_users(
    request: Request,
    params: PageParams = Depends(page_params),
    search: Optional[str] = Query(default=None, max_length=200),
    role: Optional[RoleEnum] = None,
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    identity: Identity = Depends(require_admin),
) -> dict:
    """List accounts, inactive ones included, newest first."""
    store: AccountStore = request.app.state.accounts
    result = store.list_accounts(
        search=search,
        role=role.value if role else None,
        is_active=is_active,
        page=params.page,
        limit=params.limit,
    )
    return paginated(result, _account_wire)


@router.post("", status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    identity: Identity = Depends(require_admin),
) -> dict:
    """Create an account on someone's behalf.

    When no password is supplied one is generated and returned once, as
    generatedPassword. Only its hash is stored.
    """
    store: AccountStore = request.app.state.accounts
    settings: Settings = request.app.state.settings

    if store.find_conflict(body.username, body.email) is not None:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    generated = None
    password = body.password
    if password is None:
        generated = password = generate_password(settings.generated_password_length)

    account = Account(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(password, rounds=settings.bcrypt_rounds),
        role=body.role.value,
        profile=body.profile.to_document() if body.profile else {},
    )
    try:
        account_id = store.create_account(account)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from exc

    logger.info("Admin %s created account %s (role=%s)", identity.account_id, account_id, account.role)
    content: dict[str, Any] = {
        "success": True,
        "message": "User created successfully",
        "data": _account_wire(store.get_by_id(account_id)),
    }
    if generated is not None:
        content["generatedPassword"] = generated
    return content


# ---------------------------------------------------------------------------
# Single account
# ---------------------------------------------------------------------------


@router.get("/{user_id}")
def get_user(
    request: Request,
    user_id: RowId,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: AccountStore = request.app.state.accounts
    account = _get_account(store, user_id)
    if not identity.is_admin and identity.account_id != account.id:
        raise ForbiddenError("Access denied")
    return {"success": True, "data": _account_wire(account)}


@router.put("/{user_id}")
def update_user(
    request: Request,
    user_id: RowId,
    body: UserUpdate,
    identity: Identity = Depends(authenticate),
) -> dict:
    """Apply the supplied fields to an account.

    Builds the new Account value from the stored one and saves it whole;
    concurrent updates to the same account are last-write-wins.
    """
    store: AccountStore = request.app.state.accounts
    account = _get_account(store, user_id)
    is_self = identity.account_id == account.id
    if not identity.is_admin and not is_self:
        raise ForbiddenError("Not authorized")

    changes: dict[str, Any] = {}
    if body.username is not None:
        changes["username"] = body.username
    if body.email is not None:
        changes["email"] = body.email
    if body.profile is not None:
        changes["profile"] = {**account.profile, **body.profile.to_document()}
    if identity.is_admin:
        if body.role is not None:
            changes["role"] = body.role.value
        if body.is_active is not None:
            if is_self and not body.is_active:
                raise BadRequestError("Cannot deactivate your own account")
            changes["is_active"] = body.is_active

    updated = dataclasses.replace(account, **changes)
    if "username" in changes or "email" in changes:
        if store.find_conflict(updated.username, updated.email, exclude_id=account.id) is not None:
            raise ConflictError("Username or email already in use")
    try:
        store.save_account(updated)
    except IntegrityError as exc:
        raise ConflictError("Username or email already in use") from exc

    if "role" in changes or "is_active" in changes:
        logger.info(
            "Admin %s changed account %s (role=%s, active=%s)",
            identity.account_id,
            account.id,
            updated.role,
            updated.is_active,
        )
    return {
        "success": True,
        "message": "User updated",
        "data": _account_wire(store.get_by_id(account.id)),
    }


@router.delete("/{user_id}")
def delete_user(
    request: Request,
    user_id: RowId,
    identity: Identity = Depends(require_admin),
) -> dict:
    """Deactivate an account. Accounts are never hard-deleted."""
    if user_id == identity.account_id:
        raise BadRequestError("Cannot delete your own account")
    store: AccountStore = request.app.state.accounts
    account = _get_account(store, user_id)
    store.save_account(dataclasses.replace(account, is_active=False))
    logger.info("Admin %s deactivated account %s", identity.account_id, account.id)
    return {"success": True, "message": "User deactivated"}


@router.post("/{user_id}/reset-password")
def reset_password(
    request: Request,
    user_id: RowId,
    body: Optional[ResetPasswordRequest] = None,
    identity: Identity = Depends(require_admin),
) -> dict:
    """Set a new password, generating one when the body carries none.

    A generated password is returned exactly once as newPassword.
    """
    store: AccountStore = request.app.state.accounts
    settings: Settings = request.app.state.settings
    account = _get_account(store, user_id)

    generated = None
    password = body.password if body is not None else None
    if password is None:
        generated = password = generate_password(settings.generated_password_length)

    store.save_account(
        dataclasses.replace(account, hashed_password=hash_password(password, rounds=settings.bcrypt_rounds))
    )
    logger.info("Admin %s reset the password of account %s", identity.account_id, account.id)
    content: dict[str, Any] = {"success": True, "message": "Password reset successfully"}
    if generated is not None:
        content["newPassword"] = generated
    return content


@router.put("/{user_id}/settings")
def update_settings(
    request: Request,
    user_id: RowId,
    body: dict[str, Any] = Body(...),
    identity: Identity = Depends(authenticate),
) -> dict:
    """Merge free-form keys into the caller's own settings document."""
    if identity.account_id != user_id:
        raise ForbiddenError("Not authorized to update these settings")
    store: AccountStore = request.app.state.accounts
    account = _get_account(store, user_id)
    merged = {**account.settings, **body}
    store.save_account(dataclasses.replace(account, settings=merged))
    return {"success": True, "message": "Settings updated", "data": merged}
