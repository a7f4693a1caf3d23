# tests/test_recorder.py — Activity and notification side effects
import pytest
from sqlalchemy.exc import OperationalError

from recorder import Recorder
from storage import Storage


@pytest.mark.asyncio
async def test_best_effort_skips_unknown_user(store: Storage):
    assert await Recorder(store).record_activity_best_effort("ghost", "moved", "T1") is None
    assert await store.list_recent_activities() == []


@pytest.mark.asyncio
async def test_best_effort_survives_database_error(store: Storage, ann, monkeypatch):
    async def failing_create(fields):
        raise OperationalError("INSERT INTO activities", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "create_activity", failing_create)
    assert await Recorder(store).record_activity_best_effort(ann.id, "moved", "T1") is None


@pytest.mark.asyncio
async def test_record_notification_is_unread(store: Storage, ann):
    note = await Recorder(store).record_notification(ann.id, "mention", "Hi", "You were mentioned", link="/board")
    assert note.read is False
    assert note.link == "/board"
    assert await store.count_unread_notifications(ann.id) == 1
