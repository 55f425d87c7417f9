"""Task store client: owner-scoped CRUD on the remote `tasks` collection."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError
from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_rest import RestClient
from taskboard.models.task import Priority, Task, TaskStatus
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

MALFORMED_TASK_MESSAGE = "Received a malformed task from the data store"


def _to_tasks(rows: list[dict]) -> list[Task]:
    try:
        return [Task.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.warning("Rejected task rows: %s", e)
        raise BackendError(MALFORMED_TASK_MESSAGE) from e


class TaskStore:
    """Reads and writes the current user's tasks.

    Every query filters on `user_id`, so only the owner's rows are ever
    fetched or mutated.
    """

    def __init__(self, rest: RestClient, session: Session, table: str = "tasks") -> None:
        self._rest = rest
        self._session = session
        self._table = table

    def bind(self, session: Session) -> None:
        """Use a newer session for the same user."""
        self._session = session

    @property
    def _owner(self) -> dict[str, str]:
        return {"user_id": self._session.user_id}

    async def list(self) -> list[Task]:
        """All of the user's tasks, newest first."""
        rows = await self._rest.select(
            self._table,
            access_token=self._session.access_token,
            filters=self._owner,
            order="created_at.desc",
        )
        return _to_tasks(rows)

    async def create(self, title: str, priority: Priority) -> Task:
        """Insert a pending task owned by the current user."""
        rows = await self._rest.insert(
            self._table,
            {
                "title": title,
                "priority": priority,
                "status": "pending",
                "user_id": self._session.user_id,
            },
            access_token=self._session.access_token,
        )
        if not rows:
            raise BackendError("Task was not created")
        task = _to_tasks(rows[:1])[0]
        logger.info("Created task %s for user %s", task.id, self._session.user_id)
        return task

    async def update_status(self, task_id: str, status: TaskStatus) -> None:
        await self._rest.update(
            self._table,
            {"status": status, "updated_at": datetime.now(timezone.utc).isoformat()},
            access_token=self._session.access_token,
            filters={"id": task_id, **self._owner},
        )

    async def delete(self, task_id: str) -> None:
        """Remove a task. Its subtasks go with it through the store's own rules."""
        await self._rest.delete(
            self._table,
            access_token=self._session.access_token,
            filters={"id": task_id, **self._owner},
        )
        logger.info("Deleted task %s", task_id)
