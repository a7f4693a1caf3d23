# board.py — Board read view: columns in order, each carrying its tasks
import asyncio
from typing import List

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_session_factory
from schemas import BoardColumnOut, column_out, task_out
from storage import Storage


class BoardAggregator:
    """Composes columns and tasks into the nested board view.

    The two reads run concurrently on separate sessions, so the result is
    one snapshot per read rather than one snapshot overall.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch_columns(self):
        async with self.session_factory() as session:
            return await Storage(session).list_columns()

    async def _fetch_tasks(self):
        async with self.session_factory() as session:
            return await Storage(session).list_tasks()

    async def get_board(self) -> List[BoardColumnOut]:
        columns, tasks = await asyncio.gather(self._fetch_columns(), self._fetch_tasks())

        grouped = {c.id: [] for c in columns}
        for task in tasks:
            # Tasks are newest-first already; a task whose column vanished between reads is dropped
            if task.column_id in grouped:
                grouped[task.column_id].append(task_out(task))

        return [
            BoardColumnOut(**column_out(c).model_dump(), tasks=grouped[c.id])
            for c in columns
        ]


def get_board_aggregator(session_factory=Depends(get_session_factory)) -> BoardAggregator:
    return BoardAggregator(session_factory)
