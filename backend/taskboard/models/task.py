"""Task and Subtask models.

Rows live in the remote relational store; these models only validate what
comes back and shape what goes out.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Priority = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "in-progress", "done"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
STATUSES: tuple[str, ...] = ("pending", "in-progress", "done")


class Task(BaseModel):
    """A user-owned to-do item."""

    id: str
    user_id: str
    title: str = Field(min_length=1)
    priority: Priority = "medium"
    status: TaskStatus = "pending"
    created_at: datetime
    updated_at: datetime | None = None


class Subtask(BaseModel):
    """A checklist item belonging to exactly one task."""

    id: str
    task_id: str
    user_id: str
    title: str
    completed: bool = False
    created_at: datetime
