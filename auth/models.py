"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in resources/models.py and interns/models.py -- dataclasses own domain shape;
stores and routes do the work.

Layer rule: no imports from api/, resources/, or interns/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass
class Account:
    """A dashboard user account.

    hashed_password is a bcrypt hash; the plaintext never reaches this object
    after hashing and the hash itself never leaves the API (see
    api/models.AccountOut, which has no password field at all).

    profile and settings are free-form sub-documents (firstName, lastName,
    avatar, phone, department / notifications, display, theme, ...). Both are
    stored as JSON and shallow-merged on update.

    Accounts are never hard-deleted: deactivation flips is_active.
    """

    username: str
    email: str  # always stored lower-cased
    hashed_password: str
    role: str = ROLE_USER  # "admin" | "user"
    id: int | None = None
    profile: dict = field(default_factory=dict)
    settings: dict = field(default_factory=dict)
    is_active: bool = True
    last_login: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The resolved requester attached to an authenticated request.

    Built from the Account loaded during authentication; downstream handlers
    read it from request.state.identity (or receive it via Depends) instead of
    touching the Account, so the credential hash never travels further.
    """

    account_id: int
    role: str
    username: str
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_account(cls, account: Account) -> "Identity":
        return cls(
            account_id=account.id,
            role=account.role,
            username=account.username,
            email=account.email,
        )
