"""Semantic search result model."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field
from taskboard.models.task import Priority, TaskStatus


class SearchResult(BaseModel):
    """A stored task ranked against a free-text query.

    The search function may name the task identifier `id` or `task_id`.
    """

    id: str = Field(validation_alias=AliasChoices("id", "task_id"))
    title: str
    priority: Priority = "medium"
    status: TaskStatus = "pending"
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
