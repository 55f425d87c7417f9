"""Dashboard API: tasks, subtasks, AI suggestions and search.

Every endpoint runs one action on the session's mounted dashboard view and
returns the whole view state. Remote failures do not change the HTTP status;
they show up in the state's `error` banner.

GET    /api/v1/dashboard: current view state (mounts on first use)
POST   /api/v1/dashboard/refresh: re-fetch tasks and subtasks
POST   /api/v1/dashboard/tasks: create a task
PATCH  /api/v1/dashboard/tasks/{id}: update a task's status
DELETE /api/v1/dashboard/tasks/{id}: delete a task
POST   /api/v1/dashboard/tasks/{id}/subtasks: add a subtask
POST   /api/v1/dashboard/subtasks/{id}/toggle: flip completed
DELETE /api/v1/dashboard/subtasks/{id}: delete a subtask
POST   /api/v1/dashboard/tasks/{id}/suggestions: generate AI suggestions
POST   /api/v1/dashboard/tasks/{id}/suggestions/save: persist one suggestion
DELETE /api/v1/dashboard/tasks/{id}/suggestions: dismiss suggestions
POST   /api/v1/dashboard/search: semantic search
DELETE /api/v1/dashboard/search: clear search results
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field
from taskboard.dashboard.registry import ViewRegistry
from taskboard.dashboard.view import DashboardState, DashboardView
from taskboard.models.task import Priority, TaskStatus
from taskboard.security.session import Session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])

# Module-level registry reference, set by main.py at startup
_registry: ViewRegistry | None = None


def set_registry(registry: ViewRegistry | None) -> None:
    """Wire up the view registry (called from main.py lifespan)."""
    global _registry
    _registry = registry


def get_registry() -> ViewRegistry:
    if _registry is None:
        raise HTTPException(status_code=503, detail="Dashboard not initialized.")
    return _registry


def request_session(request: Request) -> Session:
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session


async def _view(request: Request) -> DashboardView:
    return await get_registry().get(request_session(request))


# === Request Models ===


class CreateTaskRequest(BaseModel):
    title: str = Field(default="", max_length=500)
    priority: Priority = "medium"


class UpdateStatusRequest(BaseModel):
    status: TaskStatus


class AddSubtaskRequest(BaseModel):
    title: str = Field(default="", max_length=500)


class SaveSuggestionRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)


class SearchRequest(BaseModel):
    query: str = Field(default="", max_length=1000)


# === Endpoints ===


@router.get("", response_model=DashboardState)
async def get_dashboard(request: Request) -> DashboardState:
    view = await _view(request)
    return view.snapshot()


@router.post("/refresh", response_model=DashboardState)
async def refresh_dashboard(request: Request) -> DashboardState:
    view = await _view(request)
    await view.load()
    return view.snapshot()


@router.post("/tasks", response_model=DashboardState)
async def create_task(request: Request, body: CreateTaskRequest) -> DashboardState:
    view = await _view(request)
    await view.create_task(body.title, body.priority)
    return view.snapshot()


@router.patch("/tasks/{task_id}", response_model=DashboardState)
async def update_task_status(request: Request, task_id: str, body: UpdateStatusRequest) -> DashboardState:
    view = await _view(request)
    await view.update_status(task_id, body.status)
    return view.snapshot()


@router.delete("/tasks/{task_id}", response_model=DashboardState)
async def delete_task(request: Request, task_id: str) -> DashboardState:
    view = await _view(request)
    await view.delete_task(task_id)
    return view.snapshot()


@router.post("/tasks/{task_id}/subtasks", response_model=DashboardState)
async def add_subtask(request: Request, task_id: str, body: AddSubtaskRequest) -> DashboardState:
    view = await _view(request)
    await view.add_subtask(task_id, body.title)
    return view.snapshot()


@router.post("/subtasks/{subtask_id}/toggle", response_model=DashboardState)
async def toggle_subtask(request: Request, subtask_id: str) -> DashboardState:
    view = await _view(request)
    await view.toggle_subtask(subtask_id)
    return view.snapshot()


@router.delete("/subtasks/{subtask_id}", response_model=DashboardState)
async def delete_subtask(request: Request, subtask_id: str) -> DashboardState:
    view = await _view(request)
    await view.delete_subtask(subtask_id)
    return view.snapshot()


@router.post("/tasks/{task_id}/suggestions", response_model=DashboardState)
async def generate_suggestions(request: Request, task_id: str) -> DashboardState:
    view = await _view(request)
    await view.generate_subtasks(task_id)
    return view.snapshot()


@router.post("/tasks/{task_id}/suggestions/save", response_model=DashboardState)
async def save_suggestion(request: Request, task_id: str, body: SaveSuggestionRequest) -> DashboardState:
    view = await _view(request)
    await view.save_suggestion(task_id, body.title)
    return view.snapshot()


@router.delete("/tasks/{task_id}/suggestions", response_model=DashboardState)
async def dismiss_suggestions(request: Request, task_id: str) -> DashboardState:
    view = await _view(request)
    view.dismiss_suggestions(task_id)
    return view.snapshot()


@router.post("/search", response_model=DashboardState)
async def search_tasks(request: Request, body: SearchRequest) -> DashboardState:
    view = await _view(request)
    await view.search(body.query)
    return view.snapshot()


@router.delete("/search", response_model=DashboardState)
async def clear_search(request: Request) -> DashboardState:
    view = await _view(request)
    view.clear_search()
    return view.snapshot()
