"""Dashboard view state: the task-list synchronization flow.

One DashboardView exists per mounted dashboard screen. It holds what the
screen shows and runs the user's actions against the remote stores:

- every mutation is followed by a full re-fetch of the owning collection
  (deleting a task re-fetches tasks and subtasks); nothing is patched locally
- every BackendError is reduced to a message string in `error`
- AI suggestions live in a side channel keyed by task id until saved
- `search_results` is None until a search has run, so "no matches" can be
  told apart from "not searched yet"

Requests are not deduplicated. The in-flight flags are exposed so the UI
can disable its controls.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from pydantic import BaseModel, Field
from taskboard.integrations.errors import BackendError
from taskboard.models.search import SearchResult
from taskboard.models.task import Priority, Subtask, Task, TaskStatus
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No matching tasks found."


class TaskSource(Protocol):
    def bind(self, session: Session) -> None: ...
    async def list(self) -> list[Task]: ...
    async def create(self, title: str, priority: Priority) -> Task: ...
    async def update_status(self, task_id: str, status: TaskStatus) -> None: ...
    async def delete(self, task_id: str) -> None: ...


class SubtaskSource(Protocol):
    def bind(self, session: Session) -> None: ...
    async def list_grouped(self) -> dict[str, list[Subtask]]: ...
    async def create(self, task_id: str, title: str) -> Subtask: ...
    async def set_completed(self, subtask_id: str, completed: bool) -> None: ...
    async def delete(self, subtask_id: str) -> None: ...


class Augmenter(Protocol):
    async def generate_subtasks(self, session: Session | None, task_id: str, task_title: str) -> list[str]: ...
    async def semantic_search(self, session: Session | None, query: str) -> list[SearchResult]: ...


class EmbeddingSink(Protocol):
    def fire(self, session: Session | None, task_id: str, task_title: str): ...


class DashboardState(BaseModel):
    """Serialized view state returned by every dashboard endpoint."""

    tasks: list[Task] = Field(default_factory=list)
    subtasks: dict[str, list[Subtask]] = Field(default_factory=dict)
    suggestions: dict[str, list[str]] = Field(default_factory=dict)
    search_query: str = ""
    search_results: list[SearchResult] | None = None
    search_message: str | None = None
    error: str = ""
    creating: bool = False
    searching: bool = False
    generating: list[str] = Field(default_factory=list)


class DashboardView:
    def __init__(
        self,
        *,
        tasks: TaskSource,
        subtasks: SubtaskSource,
        ai: Augmenter,
        embeddings: EmbeddingSink,
        session_provider: Callable[[], Session | None],
    ) -> None:
        self._task_store = tasks
        self._subtask_store = subtasks
        self._ai = ai
        self._embeddings = embeddings
        self._session_provider = session_provider

        self.tasks: list[Task] = []
        self.subtasks: dict[str, list[Subtask]] = {}
        self.suggestions: dict[str, list[str]] = {}
        self.search_query = ""
        self.search_results: list[SearchResult] | None = None
        self.error = ""
        self.creating = False
        self.searching = False
        self.generating: set[str] = set()

    def _report(self, action: str, exc: BackendError) -> None:
        logger.info("%s failed: %s", action, exc.message)
        self.error = exc.message

    def rebind(self, session: Session) -> None:
        """Point the stores at a newer session for the same user."""
        self._task_store.bind(session)
        self._subtask_store.bind(session)

    # === Re-fetch ===

    async def load(self) -> None:
        """Fetch both collections (on mount)."""
        await self.refresh_tasks()
        await self.refresh_subtasks()

    async def refresh_tasks(self) -> None:
        try:
            self.tasks = await self._task_store.list()
        except BackendError as e:
            self._report("Loading tasks", e)

    async def refresh_subtasks(self) -> None:
        try:
            self.subtasks = await self._subtask_store.list_grouped()
        except BackendError as e:
            self._report("Loading subtasks", e)

    # === Tasks ===

    async def create_task(self, title: str, priority: Priority = "medium") -> bool:
        """Create a pending task. Blank titles are ignored without a remote call.

        Returns True when a create request was issued.
        """
        title = title.strip()
        if not title:
            return False

        self.error = ""
        self.creating = True
        try:
            task = await self._task_store.create(title, priority)
            self._embeddings.fire(self._session_provider(), task.id, task.title)
        except BackendError as e:
            self._report("Creating task", e)
        finally:
            self.creating = False
        await self.refresh_tasks()
        return True

    async def update_status(self, task_id: str, status: TaskStatus) -> None:
        self.error = ""
        try:
            await self._task_store.update_status(task_id, status)
        except BackendError as e:
            self._report("Updating task", e)
        await self.refresh_tasks()

    async def delete_task(self, task_id: str) -> None:
        self.error = ""
        try:
            await self._task_store.delete(task_id)
            self.suggestions.pop(task_id, None)
        except BackendError as e:
            self._report("Deleting task", e)
        await self.refresh_tasks()
        await self.refresh_subtasks()

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    # === Subtasks ===

    def find_subtask(self, subtask_id: str) -> Subtask | None:
        for group in self.subtasks.values():
            for subtask in group:
                if subtask.id == subtask_id:
                    return subtask
        return None

    async def add_subtask(self, task_id: str, title: str) -> bool:
        title = title.strip()
        if not title:
            return False

        self.error = ""
        try:
            await self._subtask_store.create(task_id, title)
        except BackendError as e:
            self._report("Adding subtask", e)
        await self.refresh_subtasks()
        return True

    async def toggle_subtask(self, subtask_id: str) -> None:
        """Flip the completed flag of a subtask currently on screen."""
        subtask = self.find_subtask(subtask_id)
        if subtask is None:
            self.error = "Subtask not found"
            return

        self.error = ""
        try:
            await self._subtask_store.set_completed(subtask_id, not subtask.completed)
        except BackendError as e:
            self._report("Updating subtask", e)
        await self.refresh_subtasks()

    async def delete_subtask(self, subtask_id: str) -> None:
        self.error = ""
        try:
            await self._subtask_store.delete(subtask_id)
        except BackendError as e:
            self._report("Deleting subtask", e)
        await self.refresh_subtasks()

    # === AI suggestions ===

    async def generate_subtasks(self, task_id: str, task_title: str | None = None) -> None:
        """Fetch suggested subtasks for a task into the suggestion side channel."""
        if task_title is None:
            task = self.find_task(task_id)
            if task is None:
                self.error = "Task not found"
                return
            task_title = task.title

        self.error = ""
        self.generating.add(task_id)
        try:
            self.suggestions[task_id] = await self._ai.generate_subtasks(
                self._session_provider(), task_id, task_title,
            )
        except BackendError as e:
            self._report("Generating subtasks", e)
        finally:
            self.generating.discard(task_id)

    async def save_suggestion(self, task_id: str, title: str) -> bool:
        """Persist one suggestion as a subtask and drop it from the suggestions.

        A suggestion that is not (or no longer) pending is a no-op. Returns
        True when a subtask was created.
        """
        pending = self.suggestions.get(task_id, [])
        if title not in pending:
            return False

        # Claimed before the await so a repeated save cannot create it twice
        pending.remove(title)
        self.error = ""
        try:
            await self._subtask_store.create(task_id, title)
        except BackendError as e:
            pending.append(title)
            self._report("Saving subtask", e)
            return False

        if self.suggestions.get(task_id) == []:
            del self.suggestions[task_id]
        await self.refresh_subtasks()
        return True

    def dismiss_suggestions(self, task_id: str) -> None:
        self.suggestions.pop(task_id, None)

    # === Search ===

    async def search(self, query: str) -> bool:
        """Run a semantic search. Blank queries perform no call."""
        query = query.strip()
        if not query:
            return False

        self.error = ""
        self.searching = True
        try:
            results = await self._ai.semantic_search(self._session_provider(), query)
        except BackendError as e:
            self._report("Searching", e)
            self.search_query = ""
            self.search_results = None
        else:
            self.search_query = query
            self.search_results = results
        finally:
            self.searching = False
        return True

    def clear_search(self) -> None:
        self.search_query = ""
        self.search_results = None

    @property
    def search_message(self) -> str | None:
        if self.search_results is not None and not self.search_results:
            return NO_MATCHES_MESSAGE
        return None

    def snapshot(self) -> DashboardState:
        return DashboardState(
            tasks=list(self.tasks),
            subtasks={k: list(v) for k, v in self.subtasks.items()},
            suggestions={k: list(v) for k, v in self.suggestions.items()},
            search_query=self.search_query,
            search_results=list(self.search_results) if self.search_results is not None else None,
            search_message=self.search_message,
            error=self.error,
            creating=self.creating,
            searching=self.searching,
            generating=sorted(self.generating),
        )
