"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as resources/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) and UNIQUE(email) are enforced by the database. Routes do
  a friendly pre-check for a clean 409, but the constraint is the real guard:
  two concurrent registrations for the same email cannot both commit, and the
  loser surfaces as sqlalchemy.exc.IntegrityError.

  Emails are lower-cased before every write and lookup so the unique index is
  effectively case-insensitive. Usernames are matched exactly.

Updates:
  save_account() writes the whole record. Callers load the current Account,
  build the new value with dataclasses.replace(), and persist it -- there is
  no partial in-place mutation. Concurrent saves of the same row are
  last-write-wins.

Layer rule: no imports from api/, resources/, or interns/.
"""

from __future__ import annotations

import json
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, or_
from sqlalchemy.engine import Engine

from auth.models import Account
from core.database import Page, fetch_page, make_engine, now_iso, search_clause


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("profile", Text),  # JSON object
    Column("settings", Text),  # JSON object
    # Denormalized from profile so the admin search can match names in SQL.
    Column("first_name", String(255)),
    Column("last_name", String(255)),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("last_login", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///dashboard.db")
        account_id = store.create_account(Account(username="admin", email="a@x.com", hashed_password=h))
        account = store.get_by_email("A@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username or email already
        exists. Callers convert that into a 409.
        """
        ts = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    username=account.username,
                    email=account.email.lower(),
                    hashed_password=account.hashed_password,
                    role=account.role,
                    profile=json.dumps(account.profile or {}),
                    settings=json.dumps(account.settings or {}),
                    first_name=(account.profile or {}).get("firstName"),
                    last_name=(account.profile or {}).get("lastName"),
                    is_active=1 if account.is_active else 0,
                    last_login=account.last_login,
                    created_at=ts,
                    updated_at=ts,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def save_account(self, account: Account) -> bool:
        """Persist every mutable field of account in one UPDATE.

        Returns True if a row was updated, False if account.id was not found.
        Raises sqlalchemy.exc.IntegrityError if a changed username/email
        collides with another account.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update()
                .where(_accounts.c.id == account.id)
                .values(
                    username=account.username,
                    email=account.email.lower(),
                    hashed_password=account.hashed_password,
                    role=account.role,
                    profile=json.dumps(account.profile or {}),
                    settings=json.dumps(account.settings or {}),
                    first_name=(account.profile or {}).get("firstName"),
                    last_name=(account.profile or {}).get("lastName"),
                    is_active=1 if account.is_active else 0,
                    last_login=account.last_login,
                    updated_at=now_iso(),
                )
            )
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, account_id: int) -> None:
        """Stamp the current UTC timestamp as last_login.

        Deliberately leaves updated_at alone: a login is not a profile edit.
        """
        with self.engine.connect() as conn:
            conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(last_login=now_iso()))
            conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, account_id: int) -> Optional[Account]:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_email(self, email: str) -> Optional[Account]:
        """Look up an account by email, case-insensitively."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email.strip().lower())).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_username(self, username: str) -> Optional[Account]:
        """Look up an account by exact username (case-sensitive)."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_conflict(self, username: str, email: str, exclude_id: int | None = None) -> Optional[Account]:
        """Return an account already holding username or email, if any.

        exclude_id skips the account being edited so saving an unchanged
        username/email is not reported as a clash with itself.
        """
        stmt = _accounts.select().where(
            or_(_accounts.c.username == username, _accounts.c.email == email.strip().lower())
        )
        if exclude_id is not None:
            stmt = stmt.where(_accounts.c.id != exclude_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt.limit(1)).fetchone()
        return _row_to_account(row) if row is not None else None

    def list_accounts(
        self,
        search: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Return one page of accounts, newest first.

        search matches username, email, profile.firstName and profile.lastName
        case-insensitively. Inactive accounts are included unless is_active
        filters them out -- this listing is the admin's management view.
        """
        filters = []
        clause = search_clause(
            (_accounts.c.username, _accounts.c.email, _accounts.c.first_name, _accounts.c.last_name),
            search,
        )
        if clause is not None:
            filters.append(clause)
        if role:
            filters.append(_accounts.c.role == role)
        if is_active is not None:
            filters.append(_accounts.c.is_active == (1 if is_active else 0))
        return fetch_page(self.engine, _accounts, filters, page, limit, _row_to_account)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        profile=json.loads(row.profile) if row.profile else {},
        settings=json.loads(row.settings) if row.settings else {},
        is_active=bool(row.is_active),
        last_login=row.last_login,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
