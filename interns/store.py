"""
interns/store.py -- SQLAlchemy-backed persistence for interns and projects.

Uses SQLAlchemy Core (not ORM) so the dataclasses in interns/models.py remain
the authoritative domain representation.

Storage notes:
  An intern row holds each sub-document as JSON text, plus denormalized
  columns for what the list endpoint filters and searches on:
    first_name, last_name, email   <- personalInfo
    department, status             <- internshipDetails
  UNIQUE(email) backs the personalInfo.email uniqueness rule; email is
  lower-cased on every write so the constraint is case-insensitive.

  append_entry() adds one dailyComments / meetingNotes / projects element
  with a single UPDATE that calls SQLite's json_insert() on the stored
  array, so the database serialises concurrent appends and none is lost.
  save_intern() rewrites the whole document and stays last-write-wins.

Security: all queries use bound parameters. No f-strings in SQL.
"""

import json
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func
from sqlalchemy.engine import Engine

from core.database import Page, fetch_page, make_engine, now_iso, search_clause
from interns.models import Intern, Project

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_interns = Table(
    "interns",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("email", String(320), nullable=False, unique=True),
    Column("department", String(255)),
    Column("status", String(30), nullable=False, server_default="Active"),
    Column("personal_info", Text, nullable=False),  # JSON object
    Column("internship_details", Text, nullable=False),  # JSON object
    Column("projects", Text),  # JSON array
    Column("daily_comments", Text),  # JSON array
    Column("meeting_notes", Text),  # JSON array
    Column("skills", Text),  # JSON object
    Column("performance", Text),  # JSON object
    Column("documents", Text),  # JSON array
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_by", Integer),
    Column("updated_by", Integer),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("project_name", String(255), nullable=False),
    Column("description", Text),
    Column("status", String(30), nullable=False, server_default="Planning"),
    Column("start_date", String(32)),
    Column("end_date", String(32)),
    Column("project_url", Text),
    Column("repository_url", Text),
    Column("documentation_url", Text),
    Column("technologies", Text),  # JSON array
    Column("team_members", Text),  # JSON array
    Column("manager", Text),  # JSON object
    Column("pdf_documents", Text),  # JSON array
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_by", Integer),
    Column("updated_by", Integer),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# intern sub-document lists that append_entry() may extend
_APPENDABLE = {"daily_comments", "meeting_notes", "projects"}


def _intern_values(intern: Intern) -> dict:
    personal = dict(intern.personal_info)
    personal["email"] = str(personal.get("email", "")).strip().lower()
    details = intern.internship_details
    return {
        "first_name": personal.get("firstName", ""),
        "last_name": personal.get("lastName", ""),
        "email": personal["email"],
        "department": details.get("department"),
        "status": details.get("status") or "Active",
        "personal_info": json.dumps(personal),
        "internship_details": json.dumps(details),
        "projects": json.dumps(intern.projects),
        "daily_comments": json.dumps(intern.daily_comments),
        "meeting_notes": json.dumps(intern.meeting_notes),
        "skills": json.dumps(intern.skills),
        "performance": json.dumps(intern.performance),
        "documents": json.dumps(intern.documents),
        "is_active": 1 if intern.is_active else 0,
        "created_by": intern.created_by,
        "updated_by": intern.updated_by,
    }


def _project_values(project: Project) -> dict:
    return {
        "project_name": project.project_name,
        "description": project.description,
        "status": project.status,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "project_url": project.project_url,
        "repository_url": project.repository_url,
        "documentation_url": project.documentation_url,
        "technologies": json.dumps(project.technologies),
        "team_members": json.dumps(project.team_members),
        "manager": json.dumps(project.manager) if project.manager is not None else None,
        "pdf_documents": json.dumps(project.pdf_documents),
        "is_active": 1 if project.is_active else 0,
        "created_by": project.created_by,
        "updated_by": project.updated_by,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InternStore:
    """Repository for Intern and Project entities."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Interns
    # ------------------------------------------------------------------

    def create_intern(self, intern: Intern) -> int:
        """Insert an intern and return its ID.

        Raises sqlalchemy.exc.IntegrityError if personalInfo.email is taken.
        """
        ts = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_interns.insert().values(**_intern_values(intern), created_at=ts, updated_at=ts))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_intern(self, intern_id: int) -> Optional[Intern]:
        """Return the intern regardless of is_active, or None if the id is unknown."""
        with self.engine.connect() as conn:
            row = conn.execute(_interns.select().where(_interns.c.id == intern_id)).fetchone()
        return _row_to_intern(row) if row is not None else None

    def save_intern(self, intern: Intern) -> bool:
        """Persist the whole intern document. Returns False if not found.

        Raises sqlalchemy.exc.IntegrityError if a changed email is taken.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _interns.update()
                .where(_interns.c.id == intern.id)
                .values(**_intern_values(intern), updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def append_entry(self, intern_id: int, section: str, entry: dict) -> Optional[Intern]:
        """Append entry to one of the intern's list sections; return the updated intern.

        section is one of "daily_comments", "meeting_notes", "projects".
        Returns None if the intern does not exist.
        """
        if section not in _APPENDABLE:
            raise ValueError(f"Unknown intern section: {section!r}")
        column = _interns.c[section]
        # "$[#]" addresses one past the last element; SQLite extends the array in place.
        extended = func.json_insert(func.coalesce(column, "[]"), "$[#]", func.json(json.dumps(entry)))
        with self.engine.connect() as conn:
            result = conn.execute(
                _interns.update().where(_interns.c.id == intern_id).values({section: extended, "updated_at": now_iso()})
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_intern(intern_id)

    def list_interns(
        self,
        status: Optional[str] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Return one page of active interns; search covers first/last name and email."""
        filters = [_interns.c.is_active == 1]
        if status:
            filters.append(_interns.c.status == status)
        if department:
            filters.append(_interns.c.department == department)
        clause = search_clause((_interns.c.first_name, _interns.c.last_name, _interns.c.email), search)
        if clause is not None:
            filters.append(clause)
        return fetch_page(self.engine, _interns, filters, page, limit, _row_to_intern)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, project: Project) -> int:
        ts = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_projects.insert().values(**_project_values(project), created_at=ts, updated_at=ts))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_project(self, project_id: int) -> Optional[Project]:
        with self.engine.connect() as conn:
            row = conn.execute(_projects.select().where(_projects.c.id == project_id)).fetchone()
        return _row_to_project(row) if row is not None else None

    def save_project(self, project: Project) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _projects.update()
                .where(_projects.c.id == project.id)
                .values(**_project_values(project), updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def list_projects(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Return one page of active projects; search covers name and description."""
        filters = [_projects.c.is_active == 1]
        if status:
            filters.append(_projects.c.status == status)
        clause = search_clause((_projects.c.project_name, _projects.c.description), search)
        if clause is not None:
            filters.append(clause)
        return fetch_page(self.engine, _projects, filters, page, limit, _row_to_project)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _json(value, default):
    return json.loads(value) if value else default


def _row_to_intern(row) -> Intern:
    return Intern(
        id=row.id,
        personal_info=_json(row.personal_info, {}),
        internship_details=_json(row.internship_details, {}),
        projects=_json(row.projects, []),
        daily_comments=_json(row.daily_comments, []),
        meeting_notes=_json(row.meeting_notes, []),
        skills=_json(row.skills, {}),
        performance=_json(row.performance, {}),
        documents=_json(row.documents, []),
        is_active=bool(row.is_active),
        created_by=row.created_by,
        updated_by=row.updated_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_project(row) -> Project:
    return Project(
        id=row.id,
        project_name=row.project_name,
        description=row.description,
        status=row.status,
        start_date=row.start_date,
        end_date=row.end_date,
        project_url=row.project_url,
        repository_url=row.repository_url,
        documentation_url=row.documentation_url,
        technologies=_json(row.technologies, []),
        team_members=_json(row.team_members, []),
        manager=_json(row.manager, None),
        pdf_documents=_json(row.pdf_documents, []),
        is_active=bool(row.is_active),
        created_by=row.created_by,
        updated_by=row.updated_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
