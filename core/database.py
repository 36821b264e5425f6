"""
core/database.py -- Engine construction and the shared list-query helpers.

Every store (auth/store.py, resources/store.py, interns/store.py) lists its
collection the same way: optional equality filters, a case-insensitive
substring search over a fixed set of text columns, a total count, and a
skip/limit window ordered newest-first. That shape lives here once so the
stores only declare *which* columns take part.

Security: all filters go through SQLAlchemy bound parameters. Search terms
are matched with autoescape=True so a user-supplied "%" or "_" is a literal
character, not a LIKE wildcard.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Table, create_engine, event, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import ColumnElement

# SQLite INTEGER is signed 64-bit; larger Python ints fail to bind.
MAX_ROW_ID = 2**63 - 1
# With limit <= Settings.max_page_size the OFFSET stays inside MAX_ROW_ID.
MAX_PAGE = 1_000_000_000

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an Engine for db_url with the SQLite tweaks the stores rely on."""
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)
    connect_args = {"check_same_thread": False}
    if "mode=memory" in db_url or ":memory:" in db_url:
        # One connection for the engine's lifetime keeps the in-memory database alive.
        return create_engine(db_url, connect_args=connect_args, poolclass=StaticPool)
    engine = create_engine(db_url, connect_args=connect_args)
    event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@dataclass
class Page:
    """One window of a filtered, newest-first listing."""

    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict[str, int]:
        """The pagination block every list endpoint returns alongside data."""
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
            "itemsPerPage": self.limit,
        }


def search_clause(columns: Iterable, term: str | None) -> ColumnElement | None:
    """OR together a case-insensitive substring match across columns.

    Returns None when there is nothing to search for, so callers can append
    the result to their filter list unconditionally after a None check.
    """
    if not term:
        return None
    return or_(*(col.icontains(term, autoescape=True) for col in columns))


def fetch_page(
    engine: Engine,
    table: Table,
    filters: list[ColumnElement],
    page: int,
    limit: int,
    mapper: Callable[[Any], Any],
) -> Page:
    """Count and fetch one page of table rows matching all filters.

    Ordering is created_at DESC with id DESC as the tie-breaker, so rows
    written within the same timestamp still come back in a stable order.
    """
    count_stmt = select(func.count()).select_from(table)
    rows_stmt = table.select()
    for clause in filters:
        count_stmt = count_stmt.where(clause)
        rows_stmt = rows_stmt.where(clause)
    rows_stmt = (
        rows_stmt.order_by(table.c.created_at.desc(), table.c.id.desc()).offset((page - 1) * limit).limit(limit)
    )
    with engine.connect() as conn:
        total = conn.execute(count_stmt).scalar() or 0
        rows = conn.execute(rows_stmt).fetchall()
    return Page(items=[mapper(r) for r in rows], total=total, page=page, limit=limit)
