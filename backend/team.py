# team.py — Timezone view for a distributed team
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import Field

from models import User
from schemas import CamelModel, _enum

WORKDAY_START_HOUR = 9
WORKDAY_HOURS = 8


class MemberTime(CamelModel):
    user_id: str
    name: str
    timezone: str
    utc_offset: int
    status: str
    local_time: str
    is_working_hours: bool
    work_start_utc_hour: int
    work_end_utc_hour: int


class TeamTimezones(CamelModel):
    generated_at: str
    members: List[MemberTime] = Field(default_factory=list)
    best_meeting_utc_hour: Optional[int] = None
    members_available_at_best_hour: int = 0


def local_time(utc_now: datetime, utc_offset: int) -> datetime:
    return utc_now.astimezone(timezone(timedelta(hours=utc_offset)))


def working_window_utc(utc_offset: int):
    """(start, end) of the 09:00-17:00 local workday expressed in UTC hours."""
    start = (WORKDAY_START_HOUR - utc_offset) % 24
    return start, (start + WORKDAY_HOURS) % 24


def is_working_at(utc_hour: int, utc_offset: int) -> bool:
    local_hour = (utc_hour + utc_offset) % 24
    return WORKDAY_START_HOUR <= local_hour < WORKDAY_START_HOUR + WORKDAY_HOURS


def best_meeting_hour(offsets: List[int]):
    """UTC hour with the most people inside their workday; earliest hour wins ties."""
    if not offsets:
        return None, 0
    best_hour, best_count = 0, -1
    for hour in range(24):
        count = sum(1 for off in offsets if is_working_at(hour, off))
        if count > best_count:
            best_hour, best_count = hour, count
    return best_hour, best_count


def team_timezones(users: List[User], now: Optional[datetime] = None) -> TeamTimezones:
    now = now or datetime.now(timezone.utc)
    members = []
    for u in users:
        offset = u.utc_offset or 0
        local = local_time(now, offset)
        start, end = working_window_utc(offset)
        members.append(MemberTime(
            user_id=u.id,
            name=u.name,
            timezone=u.timezone,
            utc_offset=offset,
            status=_enum(u.status),
            local_time=local.isoformat(),
            is_working_hours=is_working_at(now.hour, offset),
            work_start_utc_hour=start,
            work_end_utc_hour=end,
        ))
    hour, count = best_meeting_hour([m.utc_offset for m in members])
    return TeamTimezones(
        generated_at=now.isoformat(),
        members=members,
        best_meeting_utc_hour=hour,
        members_available_at_best_hour=count,
    )
