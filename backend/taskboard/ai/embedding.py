"""Embedding trigger: best-effort background request after task creation.

The embedding only speeds up later searches, so the caller never waits for
it and a failure is logged, never surfaced.
"""

from __future__ import annotations

import asyncio
import logging

from taskboard.integrations.supabase_functions import FunctionsClient
from taskboard.security.session import Session

logger = logging.getLogger(__name__)


class EmbeddingTrigger:
    def __init__(self, functions: FunctionsClient, function_name: str = "generate-task-embedding") -> None:
        self._functions = functions
        self._function_name = function_name
        # Detached tasks are only weakly referenced by the loop
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def fire(self, session: Session | None, task_id: str, task_title: str) -> asyncio.Task:
        """Schedule the embedding request and return immediately."""
        task = asyncio.create_task(self._run(session, task_id, task_title))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, session: Session | None, task_id: str, task_title: str) -> None:
        try:
            await self._functions.invoke(
                self._function_name,
                {"taskId": task_id, "taskTitle": task_title},
                access_token=session.access_token if session else None,
            )
            logger.debug("Embedding requested for task %s", task_id)
        except Exception as e:
            logger.warning("Embedding generation failed for task %s: %s", task_id, e)

    async def aclose(self) -> None:
        """Let in-flight requests finish (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
