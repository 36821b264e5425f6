"""
API request and response models for the dashboard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py,
resources/models.py and interns/models.py, which own the internal domain
representation. Route handlers map between the two.

Wire format: JSON keys are camelCase (createdBy, isActive, personalInfo, ...).
Every model derives from ApiModel, whose alias generator maps the snake_case
attribute names onto those keys; populate_by_name lets Python code construct
models with the attribute names.

Separation of concerns: domain models = domain truth; api/ models = API contract.
"""

import datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Account
from core.database import MAX_ROW_ID
from interns.models import Intern, Project
from resources.models import LearningResource, OwnerSnapshot, ToolResource

# ---------------------------------------------------------------------------
# Constants and constrained types
# ---------------------------------------------------------------------------

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
URL_PATTERN = r"^https?://[^\s/$.?#][^\s]*$"

PASSWORD_MIN_LENGTH = 6
# bcrypt truncates input at 72 bytes
PASSWORD_MAX_LENGTH = 128

Username = Annotated[
    str,
    Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN),
]


def _lower(value: str) -> str:
    return value.lower()


# Trimmed by str_strip_whitespace, checked against the pattern, then lower-cased.
Email = Annotated[
    str,
    Field(max_length=320, pattern=EMAIL_PATTERN),
    AfterValidator(_lower),
]

Url = Annotated[str, Field(max_length=2048, pattern=URL_PATTERN)]


def _check_password_strength(value: str) -> str:
    if not (
        any(c.islower() for c in value)
        and any(c.isupper() for c in value)
        and any(c.isdigit() for c in value)
    ):
        raise ValueError("Password must include uppercase, lowercase, and number")
    return value


Password = Annotated[
    str,
    Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH),
    AfterValidator(_check_password_strength),
]

Rating = Annotated[int, Field(ge=1, le=5)]

# Account or project id referenced from inside a body.
RefId = Annotated[int, Field(le=MAX_ROW_ID)]


class ApiModel(BaseModel):
    """Base for every API model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict keyed by the camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True)

    def to_document(self) -> dict[str, Any]:
        """Like to_wire() but without unset optional fields.

        Used for sub-documents that are persisted as-is (intern sections,
        profile patches), so absent keys stay absent instead of becoming null.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    admin = "admin"
    user = "user"


class LearningCategoryEnum(str, Enum):
    tutorial = "Tutorial"
    article = "Article"
    video = "Video"
    course = "Course"
    documentation = "Documentation"


class DifficultyEnum(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"


class ToolCategoryEnum(str, Enum):
    devops = "DevOps"
    frontend = "Frontend"
    backend = "Backend"
    database = "Database"
    design = "Design"
    testing = "Testing"


class PricingEnum(str, Enum):
    free = "Free"
    freemium = "Freemium"
    paid = "Paid"
    open_source = "Open Source"


class InternStatusEnum(str, Enum):
    active = "Active"
    completed = "Completed"
    on_leave = "On Leave"
    terminated = "Terminated"


class CommentStatusEnum(str, Enum):
    completed = "Completed"
    in_progress = "In Progress"
    blocked = "Blocked"


class AssignmentStatusEnum(str, Enum):
    in_progress = "In Progress"
    completed = "Completed"
    on_hold = "On Hold"


class ProjectStatusEnum(str, Enum):
    planning = "Planning"
    in_progress = "In Progress"
    completed = "Completed"
    on_hold = "On Hold"


class MemberTypeEnum(str, Enum):
    user = "User"
    intern = "Intern"


class DocumentTypeEnum(str, Enum):
    resume = "Resume"
    certificate = "Certificate"
    id_proof = "ID Proof"
    offer_letter = "Offer Letter"
    other = "Other"


# ---------------------------------------------------------------------------
# Accounts: request models
# ---------------------------------------------------------------------------


class ProfileIn(ApiModel):
    """Profile fields a caller may set. Merged key-by-key into the stored profile."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=2048)
    phone: Optional[str] = Field(default=None, max_length=30)
    department: Optional[str] = Field(default=None, max_length=100)


class RegisterRequest(ApiModel):
    """Body for POST /api/auth/register.

    There is no role field: self-registration always yields a "user" account.
    A role key sent anyway is ignored like any other unknown key.
    """

    username: Username
    email: Email
    password: Password
    profile: Optional[ProfileIn] = None


class LoginRequest(ApiModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class ProfileUpdate(ApiModel):
    profile: ProfileIn


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: Password


class UserCreate(ApiModel):
    """Body for POST /api/users (admin). password is generated when omitted."""

    username: Username
    email: Email
    password: Optional[Password] = None
    role: RoleEnum = RoleEnum.user
    profile: Optional[ProfileIn] = None


class UserUpdate(ApiModel):
    """Body for PUT /api/users/{id}. Only supplied fields are applied.

    role and is_active are honoured for admins only; the route drops them
    for everyone else.
    """

    username: Optional[Username] = None
    email: Optional[Email] = None
    role: Optional[RoleEnum] = None
    is_active: Optional[bool] = None
    profile: Optional[ProfileIn] = None


class ResetPasswordRequest(ApiModel):
    password: Optional[Password] = None


# ---------------------------------------------------------------------------
# Accounts: response models
# ---------------------------------------------------------------------------


class AccountOut(ApiModel):
    """Sanitised account representation.

    There is no password field on this model at all, so no code path that
    serialises an account through it can leak the credential hash.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: str
    profile: dict = Field(default_factory=dict)
    settings: dict = Field(default_factory=dict)
    is_active: bool
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            role=account.role,
            profile=account.profile,
            settings=account.settings,
            is_active=account.is_active,
            last_login=account.last_login,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


# ---------------------------------------------------------------------------
# Learning resources and tools
# ---------------------------------------------------------------------------


class OwnerOut(ApiModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    user_name: str
    email: str

    @classmethod
    def from_snapshot(cls, snapshot: Optional[OwnerSnapshot]) -> Optional["OwnerOut"]:
        if snapshot is None:
            return None
        return cls(user_id=snapshot.user_id, user_name=snapshot.user_name, email=snapshot.email)


class LearningResourceCreate(ApiModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: LearningCategoryEnum
    url: Url
    tags: list[str] = Field(default_factory=list, max_length=50)
    difficulty: DifficultyEnum = DifficultyEnum.beginner


class LearningResourceUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[LearningCategoryEnum] = None
    url: Optional[Url] = None
    tags: Optional[list[str]] = Field(default=None, max_length=50)
    difficulty: Optional[DifficultyEnum] = None


class LearningResourceOut(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: Optional[str] = None
    category: str
    url: str
    tags: list[str] = Field(default_factory=list)
    difficulty: str
    created_by: OwnerOut
    updated_by: Optional[OwnerOut] = None
    is_active: bool
    views: int
    likes: int
    created_at: str
    updated_at: str

    @classmethod
    def from_resource(cls, r: LearningResource) -> "LearningResourceOut":
        return cls(
            id=r.id,
            title=r.title,
            description=r.description,
            category=r.category,
            url=r.url,
            tags=r.tags,
            difficulty=r.difficulty,
            created_by=OwnerOut.from_snapshot(r.created_by),
            updated_by=OwnerOut.from_snapshot(r.updated_by),
            is_active=r.is_active,
            views=r.views,
            likes=r.likes,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


class ToolCreate(ApiModel):
    tool_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: ToolCategoryEnum
    official_url: Url
    documentation_url: Optional[Url] = None
    logo_url: Optional[Url] = None
    tags: list[str] = Field(default_factory=list, max_length=50)
    tech_stack: list[str] = Field(default_factory=list, max_length=50)
    pricing: PricingEnum = PricingEnum.free
    features: list[str] = Field(default_factory=list, max_length=50)
    use_cases: list[str] = Field(default_factory=list, max_length=50)
    rating: Optional[Rating] = None


class ToolUpdate(ApiModel):
    tool_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[ToolCategoryEnum] = None
    official_url: Optional[Url] = None
    documentation_url: Optional[Url] = None
    logo_url: Optional[Url] = None
    tags: Optional[list[str]] = Field(default=None, max_length=50)
    tech_stack: Optional[list[str]] = Field(default=None, max_length=50)
    pricing: Optional[PricingEnum] = None
    features: Optional[list[str]] = Field(default=None, max_length=50)
    use_cases: Optional[list[str]] = Field(default=None, max_length=50)
    rating: Optional[Rating] = None


class ToolOut(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    tool_name: str
    description: Optional[str] = None
    category: str
    official_url: str
    documentation_url: Optional[str] = None
    logo_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    pricing: str
    features: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list)
    rating: Optional[int] = None
    created_by: OwnerOut
    updated_by: Optional[OwnerOut] = None
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_tool(cls, t: ToolResource) -> "ToolOut":
        return cls(
            id=t.id,
            tool_name=t.tool_name,
            description=t.description,
            category=t.category,
            official_url=t.official_url,
            documentation_url=t.documentation_url,
            logo_url=t.logo_url,
            tags=t.tags,
            tech_stack=t.tech_stack,
            pricing=t.pricing,
            features=t.features,
            use_cases=t.use_cases,
            rating=t.rating,
            created_by=OwnerOut.from_snapshot(t.created_by),
            updated_by=OwnerOut.from_snapshot(t.updated_by),
            is_active=t.is_active,
            created_at=t.created_at,
            updated_at=t.updated_at,
        )


# ---------------------------------------------------------------------------
# Interns: sub-documents
#
# Validated here, then stored verbatim (to_document()) inside the intern row.
# ---------------------------------------------------------------------------


class PersonRef(ApiModel):
    """{userId, name} reference used for mentors, managers and reviewers."""

    user_id: Optional[RefId] = None
    name: Optional[str] = Field(default=None, max_length=200)


class TeamMemberIn(ApiModel):
    member_id: Optional[RefId] = None
    member_type: Optional[MemberTypeEnum] = None
    name: Optional[str] = Field(default=None, max_length=200)
    role: Optional[str] = Field(default=None, max_length=100)


class PersonalInfo(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: Email
    phone: Optional[str] = Field(default=None, max_length=30)
    profile_image: Optional[str] = Field(default=None, max_length=2048)
    date_of_birth: Optional[datetime.date] = None
    address: Optional[str] = Field(default=None, max_length=500)


class InternshipDetails(ApiModel):
    start_date: datetime.date
    end_date: Optional[datetime.date] = None
    duration: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    position: Optional[str] = Field(default=None, max_length=100)
    mentor: Optional[PersonRef] = None
    status: InternStatusEnum = InternStatusEnum.active


class InternProjectCreate(ApiModel):
    """One entry of an intern's projects list.

    project_id, when given, must name an existing Project; project_name then
    defaults to that project's name.
    """

    project_id: Optional[RefId] = None
    project_name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=100)
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    status: Optional[AssignmentStatusEnum] = None
    project_url: Optional[Url] = None
    pdf_url: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = Field(default=None, max_length=5000)
    technologies: list[str] = Field(default_factory=list, max_length=50)
    team_members: list[TeamMemberIn] = Field(default_factory=list, max_length=50)


class SkillsIn(ApiModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    learning: list[str] = Field(default_factory=list)


class ReviewIn(ApiModel):
    review_date: Optional[datetime.date] = None
    rating: Optional[Rating] = None
    feedback: Optional[str] = Field(default=None, max_length=5000)
    reviewed_by: Optional[PersonRef] = None


class PerformanceIn(ApiModel):
    overall_rating: Optional[Rating] = None
    punctuality: Optional[Rating] = None
    code_quality: Optional[Rating] = None
    communication: Optional[Rating] = None
    teamwork: Optional[Rating] = None
    last_review_date: Optional[datetime.date] = None
    reviews: list[ReviewIn] = Field(default_factory=list)


class DocumentIn(ApiModel):
    document_type: Optional[DocumentTypeEnum] = None
    document_url: str = Field(min_length=1, max_length=2048)
    uploaded_at: Optional[datetime.datetime] = None
    uploaded_by: Optional[int] = None


class InternCreate(ApiModel):
    personal_info: PersonalInfo
    internship_details: InternshipDetails
    projects: list[InternProjectCreate] = Field(default_factory=list)
    skills: Optional[SkillsIn] = None
    performance: Optional[PerformanceIn] = None
    documents: list[DocumentIn] = Field(default_factory=list)


class InternUpdate(ApiModel):
    """Body for PUT /api/interns/{id}. Each supplied section replaces the stored one."""

    personal_info: Optional[PersonalInfo] = None
    internship_details: Optional[InternshipDetails] = None
    projects: Optional[list[InternProjectCreate]] = None
    skills: Optional[SkillsIn] = None
    performance: Optional[PerformanceIn] = None
    documents: Optional[list[DocumentIn]] = None
    is_active: Optional[bool] = None


class DailyCommentCreate(ApiModel):
    comment: str = Field(min_length=1, max_length=5000)
    date: Optional[datetime.date] = None
    task_description: Optional[str] = Field(default=None, max_length=5000)
    hours_worked: Optional[float] = Field(default=None, ge=0, le=24)
    status: Optional[CommentStatusEnum] = None


class MeetingNoteCreate(ApiModel):
    notes: str = Field(min_length=1, max_length=10000)
    date: Optional[datetime.date] = None
    title: Optional[str] = Field(default=None, max_length=255)
    agenda: Optional[str] = Field(default=None, max_length=5000)
    attendees: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    next_meeting_date: Optional[datetime.date] = None


class InternOut(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    personal_info: dict
    internship_details: dict
    projects: list[dict] = Field(default_factory=list)
    daily_comments: list[dict] = Field(default_factory=list)
    meeting_notes: list[dict] = Field(default_factory=list)
    skills: dict = Field(default_factory=dict)
    performance: dict = Field(default_factory=dict)
    documents: list[dict] = Field(default_factory=list)
    is_active: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_intern(cls, intern: Intern) -> "InternOut":
        return cls(
            id=intern.id,
            personal_info=intern.personal_info,
            internship_details=intern.internship_details,
            projects=intern.projects,
            daily_comments=intern.daily_comments,
            meeting_notes=intern.meeting_notes,
            skills=intern.skills,
            performance=intern.performance,
            documents=intern.documents,
            is_active=intern.is_active,
            created_by=intern.created_by,
            updated_by=intern.updated_by,
            created_at=intern.created_at,
            updated_at=intern.updated_at,
        )


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(ApiModel):
    project_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: ProjectStatusEnum = ProjectStatusEnum.planning
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    project_url: Optional[Url] = None
    repository_url: Optional[Url] = None
    documentation_url: Optional[Url] = None
    technologies: list[str] = Field(default_factory=list, max_length=50)
    team_members: list[TeamMemberIn] = Field(default_factory=list, max_length=100)
    manager: Optional[PersonRef] = None

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value, info):
        start = info.data.get("start_date")
        if value is not None and start is not None and value < start:
            raise ValueError("End date cannot be before start date")
        return value


class ProjectUpdate(ApiModel):
    project_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: Optional[ProjectStatusEnum] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    project_url: Optional[Url] = None
    repository_url: Optional[Url] = None
    documentation_url: Optional[Url] = None
    technologies: Optional[list[str]] = Field(default=None, max_length=50)
    team_members: Optional[list[TeamMemberIn]] = Field(default=None, max_length=100)
    manager: Optional[PersonRef] = None


class ProjectOut(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    project_name: str
    description: Optional[str] = None
    status: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    project_url: Optional[str] = None
    repository_url: Optional[str] = None
    documentation_url: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    team_members: list[dict] = Field(default_factory=list)
    manager: Optional[dict] = None
    pdf_documents: list[dict] = Field(default_factory=list)
    is_active: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_project(cls, p: Project) -> "ProjectOut":
        return cls(
            id=p.id,
            project_name=p.project_name,
            description=p.description,
            status=p.status,
            start_date=p.start_date,
            end_date=p.end_date,
            project_url=p.project_url,
            repository_url=p.repository_url,
            documentation_url=p.documentation_url,
            technologies=p.technologies,
            team_members=p.team_members,
            manager=p.manager,
            pdf_documents=p.pdf_documents,
            is_active=p.is_active,
            created_by=p.created_by,
            updated_by=p.updated_by,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class HealthResponse(ApiModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Server is running"
    timestamp: str
