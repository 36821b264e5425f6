"""
resources/store.py -- SQLAlchemy-backed persistence for learning resources and tools.

Uses SQLAlchemy Core (not ORM) so the dataclasses in resources/models.py
remain the authoritative domain representation.

Pattern: Repository + Data Mapper. ResourceStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Storage notes:
  - tags / techStack / features / useCases are JSON arrays serialized as text.
    Searching "tags" is a case-insensitive substring match on that text.
  - The owner snapshot is flattened into created_by_* / updated_by_* columns
    so the ownership lookup is a single-column read.
  - List queries only ever return active rows; get_* returns a row whatever
    its is_active flag and leaves the decision to the caller.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ResourceStore("sqlite:///dashboard.db")
    rid = store.create_learning_resource(resource)
    page = store.list_learning_resources(search="python", page=1, limit=10)
    store.close()
"""

import json
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine

from core.database import Page, fetch_page, make_engine, now_iso, search_clause
from resources.models import LearningResource, OwnerSnapshot, ToolResource

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()


def _owner_columns() -> list[Column]:
    return [
        Column("created_by_id", Integer, nullable=False),
        Column("created_by_name", String(255)),
        Column("created_by_email", String(320)),
        Column("updated_by_id", Integer),
        Column("updated_by_name", String(255)),
        Column("updated_by_email", String(320)),
    ]


_learning = Table(
    "learning_resources",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(500), nullable=False),
    Column("description", Text),
    Column("category", String(50), nullable=False),
    Column("url", Text, nullable=False),
    Column("tags", Text),  # JSON array serialized as text
    Column("difficulty", String(30), nullable=False, server_default="Beginner"),
    *_owner_columns(),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("views", Integer, nullable=False, server_default="0"),
    Column("likes", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_tools = Table(
    "tool_resources",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tool_name", String(255), nullable=False),
    Column("description", Text),
    Column("category", String(50), nullable=False),
    Column("official_url", Text, nullable=False),
    Column("documentation_url", Text),
    Column("logo_url", Text),
    Column("tags", Text),  # JSON arrays serialized as text
    Column("tech_stack", Text),
    Column("features", Text),
    Column("use_cases", Text),
    Column("pricing", String(30), nullable=False, server_default="Free"),
    Column("rating", Integer),
    *_owner_columns(),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _owner_values(created_by: OwnerSnapshot, updated_by: Optional[OwnerSnapshot]) -> dict:
    return {
        "created_by_id": created_by.user_id,
        "created_by_name": created_by.user_name,
        "created_by_email": created_by.email,
        "updated_by_id": updated_by.user_id if updated_by else None,
        "updated_by_name": updated_by.user_name if updated_by else None,
        "updated_by_email": updated_by.email if updated_by else None,
    }


def _learning_values(r: LearningResource) -> dict:
    return {
        "title": r.title,
        "description": r.description,
        "category": r.category,
        "url": r.url,
        "tags": json.dumps(r.tags),
        "difficulty": r.difficulty,
        "is_active": 1 if r.is_active else 0,
        **_owner_values(r.created_by, r.updated_by),
    }


def _tool_values(t: ToolResource) -> dict:
    return {
        "tool_name": t.tool_name,
        "description": t.description,
        "category": t.category,
        "official_url": t.official_url,
        "documentation_url": t.documentation_url,
        "logo_url": t.logo_url,
        "tags": json.dumps(t.tags),
        "tech_stack": json.dumps(t.tech_stack),
        "features": json.dumps(t.features),
        "use_cases": json.dumps(t.use_cases),
        "pricing": t.pricing,
        "rating": t.rating,
        "is_active": 1 if t.is_active else 0,
        **_owner_values(t.created_by, t.updated_by),
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ResourceStore:
    """Repository for LearningResource and ToolResource entities."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Learning resources
    # ------------------------------------------------------------------

    def create_learning_resource(self, resource: LearningResource) -> int:
        """Insert a learning resource and return its ID. Counters start at 0."""
        ts = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _learning.insert().values(**_learning_values(resource), views=0, likes=0, created_at=ts, updated_at=ts)
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_learning_resource(self, resource_id: int) -> Optional[LearningResource]:
        """Return the resource regardless of is_active, or None if the id is unknown."""
        with self.engine.connect() as conn:
            row = conn.execute(_learning.select().where(_learning.c.id == resource_id)).fetchone()
        return _row_to_learning(row) if row is not None else None

    def save_learning_resource(self, resource: LearningResource) -> bool:
        """Persist every editable field (not the counters). Returns False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _learning.update()
                .where(_learning.c.id == resource.id)
                .values(**_learning_values(resource), updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def learning_resource_owner(self, resource_id: int) -> Optional[int]:
        """Return created_by account id, or None if the resource does not exist."""
        with self.engine.connect() as conn:
            return conn.execute(
                select(_learning.c.created_by_id).where(_learning.c.id == resource_id)
            ).scalar_one_or_none()

    def increment_views(self, resource_id: int) -> bool:
        """Atomically add one view. Returns False if the resource does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _learning.update().where(_learning.c.id == resource_id).values(views=_learning.c.views + 1)
            )
            conn.commit()
        return result.rowcount > 0

    def add_like(self, resource_id: int) -> Optional[int]:
        """Atomically add one like and return the new total (None if not found)."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _learning.update().where(_learning.c.id == resource_id).values(likes=_learning.c.likes + 1)
            )
            if result.rowcount == 0:
                conn.rollback()
                return None
            likes = conn.execute(select(_learning.c.likes).where(_learning.c.id == resource_id)).scalar_one()
            conn.commit()
        return likes

    def list_learning_resources(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Return one page of active learning resources, newest first.

        search matches title, description and tags case-insensitively.
        """
        filters = [_learning.c.is_active == 1]
        if category:
            filters.append(_learning.c.category == category)
        if difficulty:
            filters.append(_learning.c.difficulty == difficulty)
        clause = search_clause((_learning.c.title, _learning.c.description, _learning.c.tags), search)
        if clause is not None:
            filters.append(clause)
        return fetch_page(self.engine, _learning, filters, page, limit, _row_to_learning)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def create_tool(self, tool: ToolResource) -> int:
        ts = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_tools.insert().values(**_tool_values(tool), created_at=ts, updated_at=ts))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_tool(self, tool_id: int) -> Optional[ToolResource]:
        with self.engine.connect() as conn:
            row = conn.execute(_tools.select().where(_tools.c.id == tool_id)).fetchone()
        return _row_to_tool(row) if row is not None else None

    def save_tool(self, tool: ToolResource) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _tools.update().where(_tools.c.id == tool.id).values(**_tool_values(tool), updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def tool_owner(self, tool_id: int) -> Optional[int]:
        """Return created_by account id, or None if the tool does not exist."""
        with self.engine.connect() as conn:
            return conn.execute(select(_tools.c.created_by_id).where(_tools.c.id == tool_id)).scalar_one_or_none()

    def list_tools(
        self,
        category: Optional[str] = None,
        pricing: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Return one page of active tools; search covers toolName, description, tags."""
        filters = [_tools.c.is_active == 1]
        if category:
            filters.append(_tools.c.category == category)
        if pricing:
            filters.append(_tools.c.pricing == pricing)
        clause = search_clause((_tools.c.tool_name, _tools.c.description, _tools.c.tags), search)
        if clause is not None:
            filters.append(clause)
        return fetch_page(self.engine, _tools, filters, page, limit, _row_to_tool)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_owners(row) -> tuple[OwnerSnapshot, Optional[OwnerSnapshot]]:
    created = OwnerSnapshot(
        user_id=row.created_by_id,
        user_name=row.created_by_name or "",
        email=row.created_by_email or "",
    )
    updated = None
    if row.updated_by_id is not None:
        updated = OwnerSnapshot(
            user_id=row.updated_by_id,
            user_name=row.updated_by_name or "",
            email=row.updated_by_email or "",
        )
    return created, updated


def _row_to_learning(row) -> LearningResource:
    created, updated = _row_to_owners(row)
    return LearningResource(
        id=row.id,
        title=row.title,
        description=row.description,
        category=row.category,
        url=row.url,
        tags=json.loads(row.tags) if row.tags else [],
        difficulty=row.difficulty,
        created_by=created,
        updated_by=updated,
        is_active=bool(row.is_active),
        views=row.views,
        likes=row.likes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_tool(row) -> ToolResource:
    created, updated = _row_to_owners(row)
    return ToolResource(
        id=row.id,
        tool_name=row.tool_name,
        description=row.description,
        category=row.category,
        official_url=row.official_url,
        documentation_url=row.documentation_url,
        logo_url=row.logo_url,
        tags=json.loads(row.tags) if row.tags else [],
        tech_stack=json.loads(row.tech_stack) if row.tech_stack else [],
        features=json.loads(row.features) if row.features else [],
        use_cases=json.loads(row.use_cases) if row.use_cases else [],
        pricing=row.pricing,
        rating=row.rating,
        created_by=created,
        updated_by=updated,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
