"""
tests/conftest.py -- Shared fixtures for the dashboard test suite.

This module provides:
  - make_settings(): Settings for tests (fast bcrypt, huge rate limit)
  - db_url: a fresh named shared-memory SQLite URI per test
  - client: TestClient over create_app() wired to that database
  - admin / user / other_user: seeded Principals with ready Authorization headers

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The seeding AccountStore stays open for the life of the test so the shared
in-memory database is not dropped between the seed and the app's lifespan.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.models import ROLE_ADMIN, ROLE_USER, Account
from auth.store import AccountStore
from auth.tokens import TokenService, hash_password
from core.config import Settings

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"

ADMIN_PASSWORD = "AdminPass1"
USER_PASSWORD = "UserPass1"


def make_settings(db_url: str, **overrides) -> Settings:
    values = {
        "debug": True,
        "secret_key": TEST_SECRET,
        "database_url": db_url,
        "bcrypt_rounds": 4,
        "rate_limit_max_requests": 100_000,
        "allowed_origins": "http://localhost:3000",
    }
    values.update(overrides)
    return Settings(**values)


def memory_url(prefix: str = "dash") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@dataclass
class Principal:
    """A seeded account plus a ready-made Authorization header."""

    id: int
    username: str
    email: str
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def seed_account(
    store: AccountStore,
    settings: Settings,
    username: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
    is_active: bool = True,
) -> Principal:
    account_id = store.create_account(
        Account(
            username=username,
            email=email,
            hashed_password=hash_password(password, rounds=4),
            role=role,
            is_active=is_active,
        )
    )
    token = TokenService(settings).issue(account_id)
    return Principal(id=account_id, username=username, email=email, password=password, token=token)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_url() -> str:
    return memory_url()


@pytest.fixture()
def settings(db_url: str) -> Settings:
    return make_settings(db_url)


@pytest.fixture()
def account_store(db_url: str) -> Generator[AccountStore, None, None]:
    store = AccountStore(db_url)
    yield store
    store.close()


@pytest.fixture()
def admin(account_store: AccountStore, settings: Settings) -> Principal:
    return seed_account(account_store, settings, "admin", "admin@company.com", ADMIN_PASSWORD, role=ROLE_ADMIN)


@pytest.fixture()
def user(account_store: AccountStore, settings: Settings) -> Principal:
    return seed_account(account_store, settings, "alice", "alice@x.com", USER_PASSWORD)


@pytest.fixture()
def other_user(account_store: AccountStore, settings: Settings) -> Principal:
    return seed_account(account_store, settings, "bob", "bob@x.com", USER_PASSWORD)


@pytest.fixture()
def client(settings: Settings, account_store: AccountStore) -> Generator[TestClient, None, None]:
    """TestClient over a fresh app wired to this test's in-memory database.

    Depends on account_store so the shared database already exists (and any
    seeded principals are in it) before the lifespan opens its own stores.
    """
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client
