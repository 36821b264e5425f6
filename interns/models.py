"""
interns/models.py -- Domain dataclasses for interns and the projects they join.

These are pure data containers with zero logic. An Intern is a document: its
sub-records (personalInfo, internshipDetails, projects, dailyComments,
meetingNotes, skills, performance, documents) are kept as plain dicts/lists
in their wire shape (camelCase keys) after the API layer has validated them.
interns/store.py lifts the few fields it filters and searches on into
columns.

Unlike learning resources, created_by / updated_by here are bare account
ids: intern records are admin-managed and carry no ownership semantics.
"""

from dataclasses import dataclass, field
from typing import Optional

INTERN_STATUSES = ("Active", "Completed", "On Leave", "Terminated")
COMMENT_STATUSES = ("Completed", "In Progress", "Blocked")
ASSIGNMENT_STATUSES = ("In Progress", "Completed", "On Hold")
PROJECT_STATUSES = ("Planning", "In Progress", "Completed", "On Hold")


@dataclass
class Intern:
    """An intern and everything recorded about their internship.

    daily_comments and meeting_notes are append-only logs; each entry carries
    an addedBy {userId, userName, role} provenance block.

    id is None before the record is written to the database.
    """

    personal_info: dict  # firstName, lastName, email (lower-cased), phone, ...
    internship_details: dict  # startDate, endDate, department, status, mentor, ...
    projects: list[dict] = field(default_factory=list)
    daily_comments: list[dict] = field(default_factory=list)
    meeting_notes: list[dict] = field(default_factory=list)
    skills: dict = field(default_factory=dict)
    performance: dict = field(default_factory=dict)
    documents: list[dict] = field(default_factory=list)
    is_active: bool = True
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Project:
    """A project interns (and staff) can be assigned to.

    id is None before the record is written to the database.
    """

    project_name: str
    description: Optional[str] = None
    status: str = "Planning"  # one of PROJECT_STATUSES
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    project_url: Optional[str] = None
    repository_url: Optional[str] = None
    documentation_url: Optional[str] = None
    technologies: list[str] = field(default_factory=list)
    team_members: list[dict] = field(default_factory=list)
    manager: Optional[dict] = None  # {userId, name}
    pdf_documents: list[dict] = field(default_factory=list)
    is_active: bool = True
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
