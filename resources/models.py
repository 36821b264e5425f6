"""
resources/models.py -- Domain dataclasses for shared learning material.

These are pure data containers with zero logic. Ownership checks live in
auth/dependencies.py; persistence lives in resources/store.py.

Both record types carry a denormalized OwnerSnapshot of the account that
created them (and, after the first edit, of the last editor). Ownership of a
record is created_by.user_id.
"""

from dataclasses import dataclass, field
from typing import Optional

LEARNING_CATEGORIES = ("Tutorial", "Article", "Video", "Course", "Documentation")
DIFFICULTIES = ("Beginner", "Intermediate", "Advanced")

TOOL_CATEGORIES = ("DevOps", "Frontend", "Backend", "Database", "Design", "Testing")
PRICING_MODELS = ("Free", "Freemium", "Paid", "Open Source")


@dataclass(frozen=True)
class OwnerSnapshot:
    """Who created or last edited a record, frozen at the time of the write."""

    user_id: int
    user_name: str
    email: str


@dataclass
class LearningResource:
    """A link to a tutorial, article, video, course or documentation page.

    views and likes are counters updated atomically in SQL, never through
    save_learning_resource(), so a concurrent edit cannot roll them back.

    id is None before the record is written to the database.
    """

    title: str
    category: str  # one of LEARNING_CATEGORIES
    url: str
    created_by: OwnerSnapshot
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    difficulty: str = "Beginner"  # one of DIFFICULTIES
    updated_by: Optional[OwnerSnapshot] = None
    is_active: bool = True
    views: int = 0
    likes: int = 0
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class ToolResource:
    """A developer tool entry (DevOps, frontend, backend, ...).

    id is None before the record is written to the database.
    """

    tool_name: str
    category: str  # one of TOOL_CATEGORIES
    official_url: str
    created_by: OwnerSnapshot
    description: Optional[str] = None
    documentation_url: Optional[str] = None
    logo_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    tech_stack: list[str] = field(default_factory=list)
    pricing: str = "Free"  # one of PRICING_MODELS
    features: list[str] = field(default_factory=list)
    use_cases: list[str] = field(default_factory=list)
    rating: Optional[int] = None  # 1..5
    updated_by: Optional[OwnerSnapshot] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
