# routers/notifications.py — Per-user notification inbox
from typing import List

from fastapi import APIRouter, Depends

from schemas import NotificationCreate, NotificationOut, notification_out
from storage import Storage, get_storage

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("/{user_id}", response_model=List[NotificationOut])
async def list_notifications(user_id: str, store: Storage = Depends(get_storage)):
    """Newest 50 notifications for a user"""
    return [notification_out(n) for n in await store.list_notifications(user_id)]


@router.get("/{user_id}/unread-count")
async def unread_count(user_id: str, store: Storage = Depends(get_storage)):
    return {"count": await store.count_unread_notifications(user_id)}


@router.post("", response_model=NotificationOut, status_code=201)
async def create_notification(data: NotificationCreate, store: Storage = Depends(get_storage)):
    return notification_out(await store.create_notification(data))


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: str, store: Storage = Depends(get_storage)):
    return notification_out(await store.mark_notification_read(notification_id))


@router.patch("/{user_id}/read-all")
async def mark_all_read(user_id: str, store: Storage = Depends(get_storage)):
    marked = await store.mark_all_notifications_read(user_id)
    return {"success": True, "marked": marked}
