"""Session model and token extraction."""

from __future__ import annotations

from pydantic import BaseModel
from starlette.requests import Request


class Session(BaseModel):
    """An authenticated viewer, as issued by the auth service."""

    access_token: str
    user_id: str
    email: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Extract the access token from the Bearer header or the session cookie."""
    # 1. Standard Bearer header
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None

    # 2. Session cookie set by /api/v1/auth/login
    return request.cookies.get(cookie_name) or None
