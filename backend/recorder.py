# recorder.py — Activity feed + notification side effects of mutations
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from exceptions import AppError
from models import Activity, Notification
from storage import Storage, get_storage

logger = logging.getLogger("syncflow.recorder")


class Recorder:
    """Appends activity rows and notifications through the store.

    Called inside ``store.atomic()`` these writes share the primary
    mutation's transaction; ``record_activity_best_effort`` is for callers
    whose primary write has already committed.
    """

    def __init__(self, store: Storage):
        self.store = store

    async def record_activity(self, user_id: str, action: str, target: str) -> Activity:
        return await self.store.create_activity({
            "user_id": user_id,
            "action": action,
            "target": target,
        })

    async def record_activity_best_effort(self, user_id: str, action: str, target: str) -> Optional[Activity]:
        try:
            return await self.record_activity(user_id, action, target)
        except AppError as e:
            logger.warning(f"Activity '{action}' on '{target}' by {user_id} not recorded: {e.message}")
            return None
        except SQLAlchemyError as e:
            await self.store.db.rollback()
            logger.warning(f"Activity '{action}' on '{target}' by {user_id} not recorded: {e}")
            return None

    async def record_notification(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> Notification:
        return await self.store.create_notification({
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "link": link,
            "read": False,
        })


async def get_recorder(store: Storage = Depends(get_storage)) -> Recorder:
    return Recorder(store)
