# models.py — Database models for SyncFlow
# - UUID string primary keys everywhere
# - Board columns + task cards (cascade on column delete)
# - Architecture decision records, PR reviews
# - Append-only activity feed, per-user notifications

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, JSON, Boolean, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, PyEnum):
    ENGINEER = "Engineer"
    REVIEWER = "Reviewer"
    ARCHITECT = "Architect"


class UserStatus(str, PyEnum):
    ONLINE = "online"
    IDLE = "idle"
    OFFLINE = "offline"


class TaskTag(str, PyEnum):
    DESIGN = "Design"
    ENGINEERING = "Engineering"
    PRODUCT = "Product"
    BUG = "Bug"


class TaskPriority(str, PyEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AdrStatus(str, PyEnum):
    PROPOSED = "Proposed"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    DEPRECATED = "Deprecated"


class RiskLevel(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    avatar = Column(String, nullable=True)
    role = Column(SQLEnum(UserRole), default=UserRole.ENGINEER, nullable=False)
    timezone = Column(String, nullable=False, default="UTC")
    utc_offset = Column(Integer, nullable=False, default=0)  # whole hours
    status = Column(SQLEnum(UserStatus), default=UserStatus.OFFLINE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Relationships
    adrs = relationship("Adr", back_populates="author")
    pr_reviews = relationship("PrReview", back_populates="author")
    activities = relationship("Activity", back_populates="user")
    notifications = relationship("Notification", back_populates="user")


# ============================================================
# KANBAN BOARD
# ============================================================

class BoardColumn(Base):
    """Swim lane on the board. Position is a sort key only."""
    __tablename__ = "columns"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    tasks = relationship(
        "Task", back_populates="column",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_col_position", "position", "created_at"),
    )


class Task(Base):
    """Task card. Deleting its column deletes the card."""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    tag = Column(SQLEnum(TaskTag), nullable=False, default=TaskTag.ENGINEERING)
    priority = Column(SQLEnum(TaskPriority), nullable=False, default=TaskPriority.MEDIUM)
    column_id = Column(
        String, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    assigned_to = Column(JSON, nullable=False, default=list)  # ordered user ids
    active_viewers = Column(JSON, nullable=False, default=list)  # advisory, never expires
    comments = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    column = relationship("BoardColumn", back_populates="tasks")


# ============================================================
# ARCHITECTURE DECISION RECORDS
# ============================================================

class Adr(Base):
    __tablename__ = "adrs"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    status = Column(SQLEnum(AdrStatus), nullable=False, default=AdrStatus.PROPOSED)
    summary = Column(Text, nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    author = relationship("User", back_populates="adrs")


# ============================================================
# PULL REQUEST REVIEWS
# ============================================================

class PrReview(Base):
    __tablename__ = "pr_reviews"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    risk_level = Column(SQLEnum(RiskLevel), nullable=False, default=RiskLevel.MEDIUM)
    summary = Column(Text, nullable=False)
    checklist = Column(JSON, nullable=False, default=list)  # [{id, text, checked}]
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    author = relationship("User", back_populates="pr_reviews")


# ============================================================
# ACTIVITY FEED & NOTIFICATIONS
# ============================================================

class Activity(Base):
    """Append-only feed entry"""
    __tablename__ = "activities"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String, nullable=False)  # "created", "moved", "proposed", "analyzed PR", ...
    target = Column(String, nullable=False)  # usually the entity title
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="activities")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)  # task_assigned, comment, pr_review, adr_update, mention
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("idx_notif_user_read", "user_id", "read"),
    )
