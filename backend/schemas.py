# schemas.py — Request/response schemas shared by the store and the routers
# JSON bodies use camelCase; Python code uses snake_case.
from datetime import datetime, timezone
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models import (
    User, BoardColumn, Task, Adr, PrReview, Activity, Notification,
    UserRole, UserStatus, TaskTag, TaskPriority, AdrStatus, RiskLevel,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    if not isinstance(dt, datetime):
        return str(dt)
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _enum(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


# ============================================================
# USERS
# ============================================================

class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    avatar: Optional[str] = None
    role: UserRole = UserRole.ENGINEER
    timezone: str = Field(default="UTC", min_length=1)
    utc_offset: int = Field(default=0, ge=-12, le=14)
    status: UserStatus = UserStatus.OFFLINE


class UserStatusUpdate(CamelModel):
    status: UserStatus


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    role: str
    timezone: str
    utc_offset: int
    status: str
    created_at: str


def user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id, name=u.name, email=u.email, avatar=u.avatar,
        role=_enum(u.role), timezone=u.timezone, utc_offset=u.utc_offset,
        status=_enum(u.status), created_at=_ts(u.created_at),
    )


# ============================================================
# COLUMNS & TASKS
# ============================================================

class ColumnCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    position: int = 0


class ColumnOut(CamelModel):
    id: str
    title: str
    position: int
    created_at: str


def column_out(c: BoardColumn) -> ColumnOut:
    return ColumnOut(id=c.id, title=c.title, position=c.position, created_at=_ts(c.created_at))


class TaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    tag: TaskTag = TaskTag.ENGINEERING
    priority: TaskPriority = TaskPriority.MEDIUM
    column_id: str = Field(..., min_length=1)
    assigned_to: List[str] = Field(default_factory=list)
    active_viewers: List[str] = Field(default_factory=list)
    comments: int = Field(default=0, ge=0)


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    tag: Optional[TaskTag] = None
    priority: Optional[TaskPriority] = None
    column_id: Optional[str] = Field(None, min_length=1)
    assigned_to: Optional[List[str]] = None
    active_viewers: Optional[List[str]] = None
    comments: Optional[int] = Field(None, ge=0)


class TaskViewersUpdate(CamelModel):
    viewer_ids: List[str]


class TaskOut(CamelModel):
    id: str
    title: str
    description: str
    tag: str
    priority: str
    column_id: str
    assigned_to: List[str] = []
    active_viewers: List[str] = []
    comments: int = 0
    created_at: str
    updated_at: str


def task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id, title=t.title, description=t.description or "",
        tag=_enum(t.tag), priority=_enum(t.priority), column_id=t.column_id,
        assigned_to=list(t.assigned_to or []),
        active_viewers=list(t.active_viewers or []),
        comments=t.comments or 0,
        created_at=_ts(t.created_at), updated_at=_ts(t.updated_at),
    )


class BoardColumnOut(ColumnOut):
    tasks: List[TaskOut] = []


# ============================================================
# ADRs
# ============================================================

class AdrCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    status: AdrStatus = AdrStatus.PROPOSED
    summary: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)


class AdrUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    status: Optional[AdrStatus] = None
    summary: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = None


class AdrOut(CamelModel):
    id: str
    title: str
    status: str
    summary: str
    author_id: str
    tags: List[str] = []
    created_at: str
    updated_at: str


def adr_out(a: Adr) -> AdrOut:
    return AdrOut(
        id=a.id, title=a.title, status=_enum(a.status), summary=a.summary,
        author_id=a.author_id, tags=list(a.tags or []),
        created_at=_ts(a.created_at), updated_at=_ts(a.updated_at),
    )


# ============================================================
# PR REVIEWS
# ============================================================

class ChecklistItem(CamelModel):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    checked: bool = False


class PrReviewCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    author_id: str = Field(..., min_length=1)
    risk_level: RiskLevel = RiskLevel.MEDIUM
    summary: str = Field(..., min_length=1)
    checklist: List[ChecklistItem] = Field(default_factory=list)


class PrAnalyzeRequest(CamelModel):
    # Presence rules (diff or URL, author) are enforced by the analyzer so
    # that every missing piece is reported together.
    pr_url: Optional[str] = None
    diff_content: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    author_id: Optional[str] = None


class PrReviewOut(CamelModel):
    id: str
    title: str
    author_id: str
    risk_level: str
    summary: str
    checklist: List[ChecklistItem] = []
    created_at: str


def pr_review_out(p: PrReview) -> PrReviewOut:
    return PrReviewOut(
        id=p.id, title=p.title, author_id=p.author_id,
        risk_level=_enum(p.risk_level), summary=p.summary,
        checklist=[ChecklistItem.model_validate(item) for item in (p.checklist or [])],
        created_at=_ts(p.created_at),
    )


# ============================================================
# ACTIVITIES & NOTIFICATIONS
# ============================================================

class ActivityCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1, max_length=100)
    target: str = Field(..., min_length=1, max_length=500)


class ActivityOut(CamelModel):
    id: str
    user_id: str
    action: str
    target: str
    created_at: str


def activity_out(a: Activity) -> ActivityOut:
    return ActivityOut(
        id=a.id, user_id=a.user_id, action=a.action, target=a.target,
        created_at=_ts(a.created_at),
    )


class NotificationCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    link: Optional[str] = None
    read: bool = False


class NotificationOut(CamelModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    link: Optional[str] = None
    read: bool
    created_at: str


def notification_out(n: Notification) -> NotificationOut:
    return NotificationOut(
        id=n.id, user_id=n.user_id, type=n.type, title=n.title,
        message=n.message, link=n.link, read=bool(n.read),
        created_at=_ts(n.created_at),
    )


# ============================================================
# CHAT
# ============================================================

class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=10000)
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(CamelModel):
    reply: str
