"""Subtask store client: owner-scoped CRUD on the remote `subtasks` collection."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_rest import RestClient
from taskboard.models.task import Subtask
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

MALFORMED_SUBTASK_MESSAGE = "Received a malformed subtask from the data store"


def _to_subtasks(rows: list[dict]) -> list[Subtask]:
    try:
        return [Subtask.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.warning("Rejected subtask rows: %s", e)
        raise BackendError(MALFORMED_SUBTASK_MESSAGE) from e


def group_by_task(subtasks: list[Subtask]) -> dict[str, list[Subtask]]:
    """Group subtasks by parent task id, keeping their order within each group."""
    grouped: dict[str, list[Subtask]] = {}
    for subtask in subtasks:
        grouped.setdefault(subtask.task_id, []).append(subtask)
    return grouped


class SubtaskStore:
    """Reads and writes the current user's subtasks."""

    def __init__(self, rest: RestClient, session: Session, table: str = "subtasks") -> None:
        self._rest = rest
        self._session = session
        self._table = table

    def bind(self, session: Session) -> None:
        self._session = session

    @property
    def _owner(self) -> dict[str, str]:
        return {"user_id": self._session.user_id}

    async def list(self) -> list[Subtask]:
        """All of the user's subtasks, oldest first."""
        rows = await self._rest.select(
            self._table,
            access_token=self._session.access_token,
            filters=self._owner,
            order="created_at.asc",
        )
        return _to_subtasks(rows)

    async def list_grouped(self) -> dict[str, list[Subtask]]:
        return group_by_task(await self.list())

    async def create(self, task_id: str, title: str) -> Subtask:
        rows = await self._rest.insert(
            self._table,
            {
                "task_id": task_id,
                "title": title,
                "completed": False,
                "user_id": self._session.user_id,
            },
            access_token=self._session.access_token,
        )
        if not rows:
            raise BackendError("Subtask was not created")
        return _to_subtasks(rows[:1])[0]

    async def set_completed(self, subtask_id: str, completed: bool) -> None:
        await self._rest.update(
            self._table,
            {"completed": completed},
            access_token=self._session.access_token,
            filters={"id": subtask_id, **self._owner},
        )

    async def delete(self, subtask_id: str) -> None:
        await self._rest.delete(
            self._table,
            access_token=self._session.access_token,
            filters={"id": subtask_id, **self._owner},
        )
