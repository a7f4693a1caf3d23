# tests/test_kanban.py — Columns, tasks and board view
from datetime import datetime

import pytest
from httpx import AsyncClient


async def _user(client: AsyncClient, name="Ann", email="ann@x.com"):
    resp = await client.post("/api/v1/users", json={"name": name, "email": email})
    return resp.json()


async def _column(client: AsyncClient, title, position=None):
    body = {"title": title}
    if position is not None:
        body["position"] = position
    resp = await client.post("/api/v1/columns", json=body)
    assert resp.status_code == 201
    return resp.json()


async def _task(client: AsyncClient, column_id, title, **extra):
    resp = await client.post("/api/v1/tasks", json={"title": title, "columnId": column_id, **extra})
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_task_with_creator_records_activity(client: AsyncClient):
    ann = await _user(client)
    backlog = await _column(client, "Backlog", 0)

    task = await _task(client, backlog["id"], "T1", createdBy=ann["id"])
    assert task["description"] == ""
    assert task["tag"] == "Engineering"
    assert task["priority"] == "Medium"
    assert task["assignedTo"] == []
    assert task["comments"] == 0
    assert "createdBy" not in task

    feed = (await client.get("/api/v1/activities")).json()
    assert len(feed) == 1
    assert feed[0]["userId"] == ann["id"]
    assert feed[0]["action"] == "created"
    assert feed[0]["target"] == "T1"


@pytest.mark.asyncio
async def test_create_task_unknown_creator_rolls_back(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    resp = await client.post(
        "/api/v1/tasks", json={"title": "T1", "columnId": backlog["id"], "createdBy": "ghost"},
    )
    assert resp.status_code == 404
    assert (await client.get("/api/v1/tasks")).json() == []


@pytest.mark.asyncio
async def test_create_task_validation(client: AsyncClient):
    resp = await client.post("/api/v1/tasks", json={"title": "", "priority": "Urgent"})
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert len(fields) == 3

    resp = await client.post("/api/v1/tasks", json={"title": "T1", "columnId": "missing"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_column_position_appends(client: AsyncClient):
    assert (await _column(client, "First"))["position"] == 0
    await _column(client, "Later", 5)
    assert (await _column(client, "Appended"))["position"] == 6

    titles = [c["title"] for c in (await client.get("/api/v1/columns")).json()]
    assert titles == ["First", "Later", "Appended"]


@pytest.mark.asyncio
async def test_move_task_updates_column_and_timestamp(client: AsyncClient):
    ann = await _user(client)
    backlog = await _column(client, "Backlog", 0)
    doing = await _column(client, "In Progress", 1)
    task = await _task(client, backlog["id"], "T1")

    resp = await client.patch(f"/api/v1/tasks/{task['id']}", json={"columnId": doing["id"], "movedBy": ann["id"]})
    assert resp.status_code == 200
    moved = resp.json()
    assert moved["columnId"] == doing["id"]
    assert moved["title"] == "T1"
    assert datetime.fromisoformat(moved["updatedAt"]) > datetime.fromisoformat(task["updatedAt"])

    feed = (await client.get("/api/v1/activities")).json()
    assert [(a["action"], a["target"]) for a in feed] == [("moved", "T1")]


@pytest.mark.asyncio
async def test_move_with_unknown_mover_still_succeeds(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    task = await _task(client, backlog["id"], "T1")
    resp = await client.patch(f"/api/v1/tasks/{task['id']}", json={"priority": "High", "movedBy": "ghost"})
    assert resp.status_code == 200
    assert resp.json()["priority"] == "High"
    assert (await client.get("/api/v1/activities")).json() == []


@pytest.mark.asyncio
async def test_patch_task_errors(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    task = await _task(client, backlog["id"], "T1")

    assert (await client.patch("/api/v1/tasks/missing", json={"title": "x"})).status_code == 404
    assert (await client.patch(f"/api/v1/tasks/{task['id']}", json={"columnId": "missing"})).status_code == 404
    assert (await client.patch(f"/api/v1/tasks/{task['id']}", json={"tag": "Marketing"})).status_code == 400


@pytest.mark.asyncio
async def test_get_task(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    task = await _task(client, backlog["id"], "T1", assignedTo=["a", "b"])
    resp = await client.get(f"/api/v1/tasks/{task['id']}")
    assert resp.status_code == 200
    assert resp.json()["assignedTo"] == ["a", "b"]
    assert (await client.get("/api/v1/tasks/missing")).status_code == 404


@pytest.mark.asyncio
async def test_update_viewers(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    task = await _task(client, backlog["id"], "T1", activeViewers=["a"])
    resp = await client.patch(f"/api/v1/tasks/{task['id']}/viewers", json={"viewerIds": ["b", "c"]})
    assert resp.status_code == 200
    assert resp.json()["activeViewers"] == ["b", "c"]


@pytest.mark.asyncio
async def test_delete_task_idempotent(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    task = await _task(client, backlog["id"], "T1")
    for _ in range(2):
        resp = await client.delete(f"/api/v1/tasks/{task['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
    assert (await client.get(f"/api/v1/tasks/{task['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_column_removes_its_tasks(client: AsyncClient):
    backlog = await _column(client, "Backlog", 0)
    done = await _column(client, "Done", 1)
    doomed = await _task(client, backlog["id"], "T1")
    kept = await _task(client, done["id"], "T2")

    resp = await client.delete(f"/api/v1/columns/{backlog['id']}")
    assert resp.status_code == 200

    assert (await client.get(f"/api/v1/tasks/{doomed['id']}")).status_code == 404
    assert [t["id"] for t in (await client.get("/api/v1/tasks")).json()] == [kept["id"]]
    assert (await client.get(f"/api/v1/columns/{backlog['id']}/tasks")).json() == []


@pytest.mark.asyncio
async def test_board_groups_tasks_by_column(client: AsyncClient):
    review = await _column(client, "Review", 2)
    backlog = await _column(client, "Backlog", 0)
    empty = await _column(client, "Empty", 1)
    t1 = await _task(client, backlog["id"], "T1")
    t2 = await _task(client, backlog["id"], "T2")
    t3 = await _task(client, review["id"], "T3")

    resp = await client.get("/api/v1/board")
    assert resp.status_code == 200
    board = resp.json()
    assert [c["id"] for c in board] == [backlog["id"], empty["id"], review["id"]]
    assert [t["id"] for t in board[0]["tasks"]] == [t2["id"], t1["id"]]
    assert board[1]["tasks"] == []
    assert [t["id"] for t in board[2]["tasks"]] == [t3["id"]]


@pytest.mark.asyncio
async def test_empty_board(client: AsyncClient):
    resp = await client.get("/api/v1/board")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_first_task_shows_on_board(client: AsyncClient):
    ann = await _user(client)
    backlog = await _column(client, "Backlog", 0)
    t1 = await _task(client, backlog["id"], "T1", assignedTo=[ann["id"]], createdBy=ann["id"])

    board = (await client.get("/api/v1/board")).json()
    assert len(board) == 1
    assert board[0]["title"] == "Backlog"
    assert [t["id"] for t in board[0]["tasks"]] == [t1["id"]]
    assert board[0]["tasks"][0]["assignedTo"] == [ann["id"]]
