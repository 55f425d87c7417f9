"""AI augmentation client: subtask suggestions and semantic search.

Both calls go to remote functions with the viewer's bearer credential.
The credential is read immediately before each call; with no session the
call is aborted here and nothing is sent.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError
from taskboard.integrations.errors import BackendError, NotAuthenticatedError
from taskboard.integrations.supabase_functions import FunctionsClient
from taskboard.models.search import SearchResult
from taskboard.security.session import Session

logger = logging.getLogger(__name__)


class AugmentationClient:
    def __init__(
        self,
        functions: FunctionsClient,
        *,
        subtasks_function: str = "generate-subtasks",
        search_function: str = "semantic-search",
    ) -> None:
        self._functions = functions
        self._subtasks_function = subtasks_function
        self._search_function = search_function

    async def generate_subtasks(self, session: Session | None, task_id: str, task_title: str) -> list[str]:
        """Ask for suggested subtask titles for a task."""
        if session is None:
            raise NotAuthenticatedError()

        data = await self._functions.invoke(
            self._subtasks_function,
            {"taskTitle": task_title},
            access_token=session.access_token,
        )
        suggestions = [
            s.strip() for s in data.get("subtasks") or []
            if isinstance(s, str) and s.strip()
        ]
        logger.info("Got %d subtask suggestions for task %s", len(suggestions), task_id)
        return suggestions

    async def semantic_search(self, session: Session | None, query: str) -> list[SearchResult]:
        """Rank the user's tasks against a free-text query."""
        if session is None:
            raise NotAuthenticatedError()

        data = await self._functions.invoke(
            self._search_function,
            {"query": query},
            access_token=session.access_token,
        )
        try:
            results = [SearchResult.model_validate(r) for r in data.get("results") or []]
        except ValidationError as e:
            logger.warning("Malformed search results: %s", e)
            raise BackendError("Search returned malformed results") from e
        return results
