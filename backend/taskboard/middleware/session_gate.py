"""Session gate middleware.

Protected paths need a session: an access token from either
  1. Authorization: Bearer <token>, or
  2. the session cookie set at login,
verified against the auth service on every request.

Without a session, view paths redirect to /login and API paths answer 401.
A failed verification is treated exactly like a missing session. The
resolved Session is stored on `request.state.session`.
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse
from taskboard.config import settings
from taskboard.integrations.supabase_auth import AuthClient
from taskboard.security.session import extract_token

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

# Views redirect, APIs answer 401
_PROTECTED_VIEW_PATHS = ("/dashboard",)
_PROTECTED_API_PATHS = ("/api/v1/dashboard", "/api/v1/profile")


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == p or path.startswith(p + "/") for p in prefixes)


class SessionGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, auth_client: AuthClient) -> None:
        super().__init__(app)
        self._auth = auth_client

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        is_view = _matches(path, _PROTECTED_VIEW_PATHS)
        is_api = _matches(path, _PROTECTED_API_PATHS)
        if not (is_view or is_api):
            return await call_next(request)

        token = extract_token(request, settings.session_cookie_name)
        session = await self._auth.get_session(token) if token else None

        if session is None:
            logger.debug("No session for %s", path)
            if is_view:
                return RedirectResponse(url=LOGIN_PATH, status_code=303)
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        request.state.session = session
        return await call_next(request)
