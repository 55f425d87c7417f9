"""Profile model: one row per user, keyed by the user id."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Profile(BaseModel):
    id: str
    email: str | None = None
    profile_picture_url: str | None = None
    updated_at: datetime | None = None
