"""
auth/dependencies.py -- FastAPI Depends() helpers for access control.

Every protected request converges on an Identity (account id, role, username,
email) resolved from an "Authorization: Bearer <token>" header:

  1. Header missing or not of the form "Bearer <token>"   -> 401
  2. TokenService.verify() fails (signature, shape, expiry) -> 401
  3. Account not found, or is_active == False               -> 401
  4. Identity attached to request.state.identity and returned.

Step 3 runs on every request, so deactivating an account revokes its
outstanding tokens immediately even though tokens themselves are stateless.

On top of that:
  require_role(role)            -> 403 unless identity.role == role
  require_owner_or_role(role, owner_lookup)
                                -> role holders pass; everyone else must own
                                   the resource named by the {resource_id}
                                   path parameter (404 if it does not exist,
                                   403 on mismatch).

owner_lookup is an explicit callback per resource type returning the
createdBy account id (or None if there is no such resource), so each
ownership rule is spelled out next to the router that uses it.

Accounts and interns do NOT use require_owner_or_role: accounts have
self-or-admin rules that differ per operation (api/routes/users.py) and
intern mutations are admin-only.

Layer rule: no imports from api/, resources/, or interns/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from fastapi import Depends, Path, Request

from auth.models import ROLE_ADMIN, Identity
from auth.store import AccountStore
from auth.tokens import InvalidTokenError, TokenService
from core.database import MAX_ROW_ID
from core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError

logger = logging.getLogger("dashboard.auth")

# (request, resource_id) -> createdBy account id, or None if the resource is absent
OwnerLookup = Callable[[Request, int], Optional[int]]


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise UnauthorizedError("Authorization header missing or malformed")
    return token.strip()


def authenticate(request: Request) -> Identity:
    """Resolve the requester's Identity or raise UnauthorizedError.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(authenticate)): ...
    """
    token = _bearer_token(request)
    tokens: TokenService = request.app.state.tokens
    try:
        account_id = tokens.verify(token)
    except InvalidTokenError as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc)
        raise UnauthorizedError("Invalid or expired token") from exc

    store: AccountStore = request.app.state.accounts
    account = store.get_by_id(account_id)
    if account is None or not account.is_active:
        logger.info("Token for missing or inactive account %s on %s", account_id, request.url.path)
        raise UnauthorizedError("Invalid token or user inactive")

    identity = Identity.from_account(account)
    request.state.identity = identity
    return identity


def require_role(role: str) -> Callable[..., Identity]:
    """Build a dependency that admits only identities holding role.

    Use as a FastAPI dependency:
        @router.post("/admin-only")
        def route(identity: Identity = Depends(require_role("admin"))): ...
    """

    def dependency(identity: Identity = Depends(authenticate)) -> Identity:
        if identity.role != role:
            raise ForbiddenError(f"{role.capitalize()} access required")
        return identity

    return dependency


require_admin = require_role(ROLE_ADMIN)


def require_owner_or_role(
    role: str,
    owner_lookup: OwnerLookup,
    not_found_message: str = "Resource not found",
) -> Callable[..., Identity]:
    """Build a dependency enforcing "owner of {resource_id}, or holds role".

    Role holders are admitted without touching the store. Everyone else costs
    one owner lookup: None means the resource does not exist (404); a
    different owner id means 403.
    """

    def dependency(
        request: Request,
        resource_id: int = Path(le=MAX_ROW_ID),
        identity: Identity = Depends(authenticate),
    ) -> Identity:
        if identity.role == role:
            return identity
        owner_id = owner_lookup(request, resource_id)
        if owner_id is None:
            raise NotFoundError(not_found_message)
        if owner_id != identity.account_id:
            logger.info(
                "Ownership check failed: account %s on %s %s",
                identity.account_id,
                request.method,
                request.url.path,
            )
            raise ForbiddenError("Not authorized to modify this resource")
        return identity

    return dependency
