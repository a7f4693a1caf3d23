# storage.py — Entity store: the only code that creates, mutates or deletes rows
import logging
from contextlib import asynccontextmanager
from datetime import timedelta, timezone
from typing import Optional, List, Any, Type, TypeVar

import pydantic
from fastapi import Depends
from sqlalchemy import select, func, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from exceptions import ValidationError, NotFoundError, StorageError
from models import (
    User, BoardColumn, Task, Adr, PrReview, Activity, Notification,
    UserStatus, utcnow,
)
from schemas import (
    UserCreate, UserStatusUpdate, ColumnCreate, TaskCreate, TaskUpdate, TaskViewersUpdate,
    AdrCreate, AdrUpdate, PrReviewCreate, ActivityCreate, NotificationCreate,
)

logger = logging.getLogger("syncflow.storage")

SchemaT = TypeVar("SchemaT", bound=pydantic.BaseModel)

DEFAULT_ACTIVITY_LIMIT = 20
MAX_ACTIVITY_LIMIT = 100
NOTIFICATION_LIMIT = 50


def _validate(schema: Type[SchemaT], fields: Any) -> SchemaT:
    if isinstance(fields, schema):
        return fields
    if isinstance(fields, pydantic.BaseModel):
        fields = fields.model_dump()
    try:
        return schema.model_validate(fields)
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def _next_timestamp(previous):
    """A fresh timestamp that sorts strictly after ``previous``."""
    now = utcnow()
    if previous is None:
        return now
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


class Storage:
    """Per-session CRUD operations for every entity kind.

    Each mutating call commits on its own. Inside ``async with store.atomic()``
    the calls only flush, and the whole block commits (or rolls back) once.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._atomic_depth = 0

    # ------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------

    @asynccontextmanager
    async def atomic(self):
        self._atomic_depth += 1
        try:
            yield self
            if self._atomic_depth == 1:
                await self._commit()
        except BaseException:
            if self._atomic_depth == 1:
                await self.db.rollback()
            raise
        finally:
            self._atomic_depth -= 1

    async def _commit(self):
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise StorageError(f"Storage rejected the operation: {e.orig}") from e

    async def _save(self, *instances):
        if self._atomic_depth:
            try:
                await self.db.flush()
            except IntegrityError as e:
                await self.db.rollback()
                raise StorageError(f"Storage rejected the operation: {e.orig}") from e
        else:
            await self._commit()
        for obj in instances:
            await self.db.refresh(obj)

    async def _execute(self, stmt):
        try:
            return await self.db.execute(stmt)
        except IntegrityError as e:
            await self.db.rollback()
            raise StorageError(f"Storage rejected the operation: {e.orig}") from e

    async def _get(self, model, entity_id: str):
        # Always hit the database: rows removed by a cascade may still sit in the identity map
        return await self.db.get(model, entity_id, populate_existing=True)

    async def _require_user(self, user_id: str, field: str = "userId") -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found ({field}={user_id})")
        return user

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.asc()))
        return list(result.scalars().all())

    async def create_user(self, fields) -> User:
        data = _validate(UserCreate, fields)
        if await self.get_user_by_email(data.email) is not None:
            raise ValidationError.single("email", f"A user with email {data.email} already exists")
        user = User(**data.model_dump())
        self.db.add(user)
        await self._save(user)
        return user

    async def update_user_status(self, user_id: str, status) -> User:
        data = _validate(UserStatusUpdate, {"status": status})
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        user.status = UserStatus(data.status)
        await self._save(user)
        return user

    async def delete_user(self, user_id: str) -> None:
        # Referenced users (authors, actors, recipients) are protected by their foreign keys
        try:
            await self._execute(delete(User).where(User.id == user_id))
            await self._save()
        except StorageError as e:
            logger.warning(f"Refused to delete user {user_id}: {e.message}")
            raise StorageError(
                "User is still referenced by ADRs, reviews, activities or notifications"
            ) from e

    # ------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------

    async def list_columns(self) -> List[BoardColumn]:
        stmt = select(BoardColumn).order_by(BoardColumn.position.asc(), BoardColumn.created_at.asc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_column(self, column_id: str) -> Optional[BoardColumn]:
        return await self._get(BoardColumn, column_id)

    async def max_column_position(self) -> Optional[int]:
        result = await self.db.execute(select(func.max(BoardColumn.position)))
        return result.scalar()

    async def create_column(self, fields) -> BoardColumn:
        data = _validate(ColumnCreate, fields)
        column = BoardColumn(**data.model_dump())
        self.db.add(column)
        await self._save(column)
        return column

    async def delete_column(self, column_id: str) -> None:
        # Tasks go with the column via ON DELETE CASCADE
        await self._execute(delete(BoardColumn).where(BoardColumn.id == column_id))
        await self._save()

    # ------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------

    async def list_tasks(self) -> List[Task]:
        result = await self.db.execute(select(Task).order_by(Task.created_at.desc()))
        return list(result.scalars().all())

    async def list_tasks_by_column(self, column_id: str) -> List[Task]:
        stmt = select(Task).where(Task.column_id == column_id).order_by(Task.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_task(self, task_id: str) -> Optional[Task]:
        return await self._get(Task, task_id)

    async def create_task(self, fields) -> Task:
        data = _validate(TaskCreate, fields)
        if await self.get_column(data.column_id) is None:
            raise NotFoundError(f"Column not found (columnId={data.column_id})")
        now = utcnow()
        task = Task(**data.model_dump(), created_at=now, updated_at=now)
        self.db.add(task)
        await self._save(task)
        return task

    async def update_task(self, task_id: str, fields) -> Task:
        data = _validate(TaskUpdate, fields)
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        # An explicit null means "leave unchanged"
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "column_id" in changes and await self.get_column(changes["column_id"]) is None:
            raise NotFoundError(f"Column not found (columnId={changes['column_id']})")
        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = _next_timestamp(task.updated_at)
        await self._save(task)
        return task

    async def update_task_viewers(self, task_id: str, viewer_ids) -> Task:
        """Replace the viewer list wholesale (last writer wins)."""
        data = _validate(TaskViewersUpdate, {"viewer_ids": viewer_ids})
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        task.active_viewers = list(data.viewer_ids)
        await self._save(task)
        return task

    async def delete_task(self, task_id: str) -> None:
        await self._execute(delete(Task).where(Task.id == task_id))
        await self._save()

    # ------------------------------------------------------------
    # ADRs
    # ------------------------------------------------------------

    async def list_adrs(self) -> List[Adr]:
        result = await self.db.execute(select(Adr).order_by(Adr.created_at.desc()))
        return list(result.scalars().all())

    async def get_adr(self, adr_id: str) -> Optional[Adr]:
        return await self._get(Adr, adr_id)

    async def create_adr(self, fields) -> Adr:
        data = _validate(AdrCreate, fields)
        await self._require_user(data.author_id, "authorId")
        now = utcnow()
        adr = Adr(**data.model_dump(), created_at=now, updated_at=now)
        self.db.add(adr)
        await self._save(adr)
        return adr

    async def update_adr(self, adr_id: str, fields) -> Adr:
        data = _validate(AdrUpdate, fields)
        adr = await self.get_adr(adr_id)
        if adr is None:
            raise NotFoundError("ADR not found")
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(adr, field, value)
        adr.updated_at = _next_timestamp(adr.updated_at)
        await self._save(adr)
        return adr

    async def delete_adr(self, adr_id: str) -> None:
        await self._execute(delete(Adr).where(Adr.id == adr_id))
        await self._save()

    # ------------------------------------------------------------
    # PR reviews
    # ------------------------------------------------------------

    async def list_pr_reviews(self) -> List[PrReview]:
        result = await self.db.execute(select(PrReview).order_by(PrReview.created_at.desc()))
        return list(result.scalars().all())

    async def get_pr_review(self, review_id: str) -> Optional[PrReview]:
        return await self._get(PrReview, review_id)

    async def create_pr_review(self, fields) -> PrReview:
        data = _validate(PrReviewCreate, fields)
        await self._require_user(data.author_id, "authorId")
        review = PrReview(**data.model_dump())
        self.db.add(review)
        await self._save(review)
        return review

    async def delete_pr_review(self, review_id: str) -> None:
        await self._execute(delete(PrReview).where(PrReview.id == review_id))
        await self._save()

    # ------------------------------------------------------------
    # Activities (append-only)
    # ------------------------------------------------------------

    async def list_recent_activities(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> List[Activity]:
        limit = max(1, min(int(limit), MAX_ACTIVITY_LIMIT))
        stmt = select(Activity).order_by(Activity.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_activity(self, fields) -> Activity:
        data = _validate(ActivityCreate, fields)
        await self._require_user(data.user_id)
        activity = Activity(**data.model_dump())
        self.db.add(activity)
        await self._save(activity)
        return activity

    # ------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------

    async def list_notifications(self, user_id: str) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(NOTIFICATION_LIMIT)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_unread_notifications(self, user_id: str) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def create_notification(self, fields) -> Notification:
        data = _validate(NotificationCreate, fields)
        await self._require_user(data.user_id)
        notification = Notification(**data.model_dump())
        self.db.add(notification)
        await self._save(notification)
        return notification

    async def mark_notification_read(self, notification_id: str) -> Notification:
        notification = await self._get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        notification.read = True
        await self._save(notification)
        return notification

    async def mark_all_notifications_read(self, user_id: str) -> int:
        """Flip every unread notification of one user in a single statement."""
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self._save()
        return result.rowcount or 0


async def get_storage(db: AsyncSession = Depends(get_db_session)) -> Storage:
    """FastAPI dependency: a store bound to the request's session"""
    return Storage(db)
