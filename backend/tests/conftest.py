"""Shared test fixtures for Taskboard backend tests.

The fakes below stand in for the remote collections and functions. They keep
the same contracts as the real store clients: owner scoping, creation order,
server-side timestamps and cascade of subtasks when a task is deleted.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from taskboard.dashboard.view import DashboardView
from taskboard.integrations.errors import BackendError, NotAuthenticatedError
from taskboard.models.search import SearchResult
from taskboard.models.task import Subtask, Task
from taskboard.security.session import Session
from taskboard.stores.subtasks import group_by_task

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeBackend:
    """In-memory stand-in for the remote tasks/subtasks collections."""

    def __init__(self):
        self.tasks: dict[str, dict] = {}
        self.subtasks: dict[str, dict] = {}
        self.calls: list[str] = []
        self.failures: dict[str, str] = {}  # operation -> message, raised once
        self._clock = 0

    def now(self) -> datetime:
        self._clock += 1
        return _EPOCH + timedelta(seconds=self._clock)

    def fail_once(self, operation: str, message: str) -> None:
        self.failures[operation] = message

    def record(self, operation: str) -> None:
        self.calls.append(operation)
        message = self.failures.pop(operation, None)
        if message:
            raise BackendError(message)


class FakeTaskStore:
    def __init__(self, backend: FakeBackend, user_id: str):
        self._backend = backend
        self._user_id = user_id
        self.bound: Session | None = None

    def bind(self, session) -> None:
        self.bound = session

    async def list(self) -> list[Task]:
        self._backend.record("tasks.list")
        rows = [r for r in self._backend.tasks.values() if r["user_id"] == self._user_id]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [Task.model_validate(r) for r in rows]

    async def create(self, title, priority) -> Task:
        self._backend.record("tasks.create")
        now = self._backend.now()
        row = {
            "id": str(uuid4()),
            "user_id": self._user_id,
            "title": title,
            "priority": priority,
            "status": "pending",
            "created_at": now,
            "updated_at": now,
        }
        self._backend.tasks[row["id"]] = row
        return Task.model_validate(row)

    async def update_status(self, task_id, status) -> None:
        self._backend.record("tasks.update_status")
        row = self._backend.tasks.get(task_id)
        if row and row["user_id"] == self._user_id:
            row["status"] = status
            row["updated_at"] = self._backend.now()

    async def delete(self, task_id) -> None:
        self._backend.record("tasks.delete")
        row = self._backend.tasks.get(task_id)
        if row and row["user_id"] == self._user_id:
            del self._backend.tasks[task_id]
            # Referential rule of the remote store
            for sid in [s for s, r in self._backend.subtasks.items() if r["task_id"] == task_id]:
                del self._backend.subtasks[sid]


class FakeSubtaskStore:
    def __init__(self, backend: FakeBackend, user_id: str):
        self._backend = backend
        self._user_id = user_id
        self.bound: Session | None = None

    def bind(self, session) -> None:
        self.bound = session

    async def list_grouped(self) -> dict[str, list[Subtask]]:
        self._backend.record("subtasks.list")
        rows = [r for r in self._backend.subtasks.values() if r["user_id"] == self._user_id]
        rows.sort(key=lambda r: r["created_at"])
        return group_by_task([Subtask.model_validate(r) for r in rows])

    async def create(self, task_id, title) -> Subtask:
        self._backend.record("subtasks.create")
        row = {
            "id": str(uuid4()),
            "task_id": task_id,
            "user_id": self._user_id,
            "title": title,
            "completed": False,
            "created_at": self._backend.now(),
        }
        self._backend.subtasks[row["id"]] = row
        return Subtask.model_validate(row)

    async def set_completed(self, subtask_id, completed) -> None:
        self._backend.record("subtasks.set_completed")
        row = self._backend.subtasks.get(subtask_id)
        if row and row["user_id"] == self._user_id:
            row["completed"] = completed

    async def delete(self, subtask_id) -> None:
        self._backend.record("subtasks.delete")
        self._backend.subtasks.pop(subtask_id, None)


class FakeAugmenter:
    """Answers the two AI functions from canned data."""

    def __init__(self, backend: FakeBackend):
        self._backend = backend
        self.suggestions: list[str] = ["Check the fridge", "Go to the store"]
        self.error: str | None = None

    async def generate_subtasks(self, session, task_id, task_title) -> list[str]:
        if session is None:
            raise NotAuthenticatedError()
        self._backend.record("ai.generate_subtasks")
        if self.error:
            raise BackendError(self.error)
        return list(self.suggestions)

    async def semantic_search(self, session, query) -> list[SearchResult]:
        if session is None:
            raise NotAuthenticatedError()
        self._backend.record("ai.semantic_search")
        if self.error:
            raise BackendError(self.error)
        words = query.lower().split()
        return [
            SearchResult(id=r["id"], title=r["title"], priority=r["priority"], status=r["status"], similarity=0.9)
            for r in self._backend.tasks.values()
            if any(w in r["title"].lower() for w in words)
        ]


class FakeEmbeddings:
    def __init__(self):
        self.fired: list[tuple] = []

    def fire(self, session, task_id, task_title):
        self.fired.append((session, task_id, task_title))


@pytest.fixture
def session():
    return Session(access_token="token-alice", user_id="user-alice", email="alice@example.com")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def embeddings():
    return FakeEmbeddings()


@pytest.fixture
def augmenter(backend):
    return FakeAugmenter(backend)


@pytest.fixture
def make_view(backend, augmenter, embeddings):
    """Build a DashboardView for a session over the shared fake backend."""

    def _make(session, session_provider=None):
        return DashboardView(
            tasks=FakeTaskStore(backend, session.user_id),
            subtasks=FakeSubtaskStore(backend, session.user_id),
            ai=augmenter,
            embeddings=embeddings,
            session_provider=session_provider or (lambda: session),
        )

    return _make


@pytest.fixture
def view(make_view, session):
    return make_view(session)
