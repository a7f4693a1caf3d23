# routers/activities.py — Team activity feed
from typing import List

from fastapi import APIRouter, Depends, Query

from schemas import ActivityCreate, ActivityOut, activity_out
from storage import Storage, get_storage, DEFAULT_ACTIVITY_LIMIT

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


@router.get("", response_model=List[ActivityOut])
async def list_activities(
    limit: int = Query(DEFAULT_ACTIVITY_LIMIT),
    store: Storage = Depends(get_storage),
):
    """Most recent entries first; limit is clamped to 1..100"""
    return [activity_out(a) for a in await store.list_recent_activities(limit)]


@router.post("", response_model=ActivityOut, status_code=201)
async def create_activity(data: ActivityCreate, store: Storage = Depends(get_storage)):
    return activity_out(await store.create_activity(data))
