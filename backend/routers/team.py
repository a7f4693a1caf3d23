# routers/team.py — Distributed team overview
from fastapi import APIRouter, Depends

from storage import Storage, get_storage
from team import TeamTimezones, team_timezones

router = APIRouter(prefix="/api/v1/team", tags=["Team"])


@router.get("/timezones", response_model=TeamTimezones)
async def get_team_timezones(store: Storage = Depends(get_storage)):
    """Local time and workday window for every member, plus the best shared meeting hour"""
    return team_timezones(await store.list_users())
