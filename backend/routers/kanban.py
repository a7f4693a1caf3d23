# routers/kanban.py — Board columns, task cards and the aggregated board view
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import Field

from board import BoardAggregator, get_board_aggregator
from exceptions import NotFoundError
from recorder import Recorder, get_recorder
from schemas import (
    CamelModel, ColumnOut, TaskCreate, TaskUpdate, TaskViewersUpdate, TaskOut, BoardColumnOut,
    column_out, task_out,
)
from storage import Storage, get_storage

router = APIRouter(prefix="/api/v1", tags=["Kanban Board"])


# --- Request bodies carrying the acting user ---

class ColumnCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    position: Optional[int] = None  # None appends after the right-most column


class TaskCreateRequest(TaskCreate):
    created_by: Optional[str] = None


class TaskUpdateRequest(TaskUpdate):
    moved_by: Optional[str] = None


# ============================================================
# BOARD
# ============================================================

@router.get("/board", response_model=List[BoardColumnOut])
async def get_board(aggregator: BoardAggregator = Depends(get_board_aggregator)):
    """Columns in board order, each with its tasks (newest first)"""
    return await aggregator.get_board()


# ============================================================
# COLUMNS
# ============================================================

@router.get("/columns", response_model=List[ColumnOut])
async def list_columns(store: Storage = Depends(get_storage)):
    return [column_out(c) for c in await store.list_columns()]


@router.post("/columns", response_model=ColumnOut, status_code=201)
async def create_column(data: ColumnCreateRequest, store: Storage = Depends(get_storage)):
    if data.position is not None:
        position = data.position
    else:
        max_pos = await store.max_column_position()
        position = 0 if max_pos is None else max_pos + 1
    column = await store.create_column({"title": data.title, "position": position})
    return column_out(column)


@router.delete("/columns/{column_id}")
async def delete_column(column_id: str, store: Storage = Depends(get_storage)):
    """Delete a column together with its tasks"""
    await store.delete_column(column_id)
    return {"success": True}


@router.get("/columns/{column_id}/tasks", response_model=List[TaskOut])
async def list_column_tasks(column_id: str, store: Storage = Depends(get_storage)):
    return [task_out(t) for t in await store.list_tasks_by_column(column_id)]


# ============================================================
# TASKS
# ============================================================

@router.get("/tasks", response_model=List[TaskOut])
async def list_tasks(store: Storage = Depends(get_storage)):
    return [task_out(t) for t in await store.list_tasks()]


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: str, store: Storage = Depends(get_storage)):
    task = await store.get_task(task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task_out(task)


@router.post("/tasks", response_model=TaskOut, status_code=201)
async def create_task(
    data: TaskCreateRequest,
    store: Storage = Depends(get_storage),
    recorder: Recorder = Depends(get_recorder),
):
    """Create a task card; with createdBy the feed entry is written in the same transaction"""
    async with store.atomic():
        task = await store.create_task(data.model_dump(exclude={"created_by"}))
        if data.created_by:
            await recorder.record_activity(data.created_by, "created", task.title)
    return task_out(task)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    data: TaskUpdateRequest,
    store: Storage = Depends(get_storage),
    recorder: Recorder = Depends(get_recorder),
):
    """Partial update (including moves between columns)"""
    task = await store.update_task(task_id, data.model_dump(exclude_unset=True, exclude={"moved_by"}))
    if data.moved_by:
        await recorder.record_activity_best_effort(data.moved_by, "moved", task.title)
    return task_out(task)


@router.patch("/tasks/{task_id}/viewers", response_model=TaskOut)
async def update_task_viewers(
    task_id: str,
    data: TaskViewersUpdate,
    store: Storage = Depends(get_storage),
):
    """Replace the list of users currently looking at the card"""
    return task_out(await store.update_task_viewers(task_id, data.viewer_ids))


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, store: Storage = Depends(get_storage)):
    await store.delete_task(task_id)
    return {"success": True}
