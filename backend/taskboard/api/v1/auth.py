"""Authentication endpoints.

POST /api/v1/auth/login: password sign-in, sets the session cookie
POST /api/v1/auth/logout: sign out, clear the cookie, drop the dashboard view
POST /api/v1/auth/signup: not implemented yet (501)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field
from taskboard.config import settings
from taskboard.dashboard.registry import ViewRegistry
from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_auth import AuthClient
from taskboard.security.session import extract_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

_auth_client: AuthClient | None = None
_registry: ViewRegistry | None = None


def set_dependencies(auth_client: AuthClient | None, registry: ViewRegistry | None = None) -> None:
    """Wire up the auth client and view registry (called from main.py)."""
    global _auth_client, _registry
    _auth_client = auth_client
    _registry = registry


def _get_auth() -> AuthClient:
    if _auth_client is None:
        raise HTTPException(status_code=503, detail="Authentication not initialized.")
    return _auth_client


# === Request / Response Models ===


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


class SignupRequest(BaseModel):
    name: str = Field(default="", max_length=200)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


class LoginResponse(BaseModel):
    user_id: str
    email: str | None = None
    access_token: str
    redirect: str = "/dashboard"


# === Endpoints ===


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, response: Response) -> LoginResponse:
    """Sign in with email and password."""
    try:
        session = await _get_auth().sign_in_with_password(req.email, req.password)
    except BackendError as e:
        logger.info("Login rejected for %s: %s", req.email, e.message)
        raise HTTPException(status_code=401, detail=e.message)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    logger.info("User %s logged in", session.user_id)
    return LoginResponse(
        user_id=session.user_id,
        email=session.email,
        access_token=session.access_token,
    )


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict:
    """End the session. Always succeeds locally, even if the remote call fails."""
    token = extract_token(request, settings.session_cookie_name)
    if token:
        await _get_auth().sign_out(token)
        if _registry is not None:
            _registry.drop(token)
    response.delete_cookie(settings.session_cookie_name)
    return {"redirect": "/"}


@router.post("/signup", status_code=501)
async def signup(req: SignupRequest) -> dict:
    """Account creation is not available yet."""
    logger.info("Signup requested for %s (not implemented)", req.email)
    raise HTTPException(status_code=501, detail="Signup is not available yet.")
