"""
api/routes/auth.py -- Registration, login and self-service account endpoints.

Routes:
  POST /api/auth/register         -- create a "user" account; returns token + user
  POST /api/auth/login            -- email/password login; returns token + user
  GET  /api/auth/profile          -- current account (requires auth)
  PUT  /api/auth/profile          -- merge profile fields (requires auth)
  PUT  /api/auth/change-password  -- verify current password, set a new one (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login answers the same "Invalid credentials" for unknown email and wrong
  password. A correct password on a deactivated account is a 403, not a 401.
  Responses carrying a token are sent with Cache-Control: no-store.
"""

from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.models import AccountOut, ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest
from auth.dependencies import authenticate
from auth.models import ROLE_USER, Account, Identity
from auth.store import AccountStore
from auth.tokens import TokenService, authenticate_user, hash_password, verify_password
from core.config import Settings
from core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError

logger = logging.getLogger("dashboard.auth")

# Auth policy:
# - POST /api/auth/register:         public
# - POST /api/auth/login:            public
# - GET  /api/auth/profile:          requires auth (authenticate)
# - PUT  /api/auth/profile:          requires auth (authenticate)
# - PUT  /api/auth/change-password:  requires auth (authenticate)
router = APIRouter(prefix="/auth")

DUPLICATE_ACCOUNT_MESSAGE = "User with this email or username already exists"


def _token_response(status_code: int, message: str, token: str, account: Account) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "token": token,
            "user": AccountOut.from_account(account).to_wire(),
        },
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a regular user account and sign it in.

    The database UNIQUE constraints are the real duplicate guard; the
    find_conflict() pre-check only exists to answer 409 without a failed
    INSERT in the common case.
    """
    store: AccountStore = request.app.state.accounts
    settings: Settings = request.app.state.settings
    tokens: TokenService = request.app.state.tokens

    if store.find_conflict(body.username, body.email) is not None:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    account = Account(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(body.password, rounds=settings.bcrypt_rounds),
        role=ROLE_USER,
        profile=body.profile.to_document() if body.profile else {},
    )
    try:
        account_id = store.create_account(account)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from exc

    created = store.get_by_id(account_id)
    logger.info("Registered account %s (%s)", created.id, created.username)
    return _token_response(201, "User registered successfully", tokens.issue(created.id), created)


@router.post("/login")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password."""
    store: AccountStore = request.app.state.accounts
    tokens: TokenService = request.app.state.tokens

    account = authenticate_user(store, body.email, body.password)
    if account is None:
        logger.info("Failed login attempt from %s", request.client.host if request.client else "unknown")
        raise UnauthorizedError("Invalid credentials")
    if not account.is_active:
        logger.info("Login refused for deactivated account %s", account.id)
        raise ForbiddenError("Account is deactivated")

    store.update_last_login(account.id)
    account = store.get_by_id(account.id)
    return _token_response(200, "Login successful", tokens.issue(account.id), account)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


def _load_self(request: Request, identity: Identity) -> Account:
    store: AccountStore = request.app.state.accounts
    account = store.get_by_id(identity.account_id)
    if account is None:
        raise NotFoundError("User not found")
    return account


@router.get("/profile")
def get_profile(request: Request, identity: Identity = Depends(authenticate)) -> dict:
    account = _load_self(request, identity)
    return {"success": True, "user": AccountOut.from_account(account).to_wire()}


@router.put("/profile")
def update_profile(
    request: Request,
    body: ProfileUpdate,
    identity: Identity = Depends(authenticate),
) -> dict:
    """Merge the supplied profile fields into the stored profile."""
    store: AccountStore = request.app.state.accounts
    account = _load_self(request, identity)
    updated = dataclasses.replace(account, profile={**account.profile, **body.profile.to_document()})
    store.save_account(updated)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": AccountOut.from_account(store.get_by_id(account.id)).to_wire(),
    }


@router.put("/change-password")
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    identity: Identity = Depends(authenticate),
) -> dict:
    store: AccountStore = request.app.state.accounts
    settings: Settings = request.app.state.settings
    account = _load_self(request, identity)

    if not verify_password(body.current_password, account.hashed_password):
        raise BadRequestError("Current password is incorrect")

    updated = dataclasses.replace(
        account,
        hashed_password=hash_password(body.new_password, rounds=settings.bcrypt_rounds),
    )
    store.save_account(updated)
    logger.info("Account %s changed its password", account.id)
    return {"success": True, "message": "Password changed successfully"}
