"""View routes: landing, login, signup, dashboard.

Views are served as JSON descriptions for the front end to render.
`/dashboard` is gated by the session middleware; loading it mounts a fresh
dashboard view, as a page reload does.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from taskboard.api.v1.dashboard import get_registry, request_session
from taskboard.dashboard.view import DashboardState

router = APIRouter(tags=["views"])

APP_NAME = "Taskboard"
VERSION = "0.1.0"


@router.get("/")
async def landing() -> dict:
    return {
        "name": APP_NAME,
        "version": VERSION,
        "title": "Welcome to My Task Manager",
        "links": {"login": "/login", "signup": "/signup", "dashboard": "/dashboard"},
    }


@router.get("/login")
async def login_view() -> dict:
    return {
        "view": "login",
        "action": "/api/v1/auth/login",
        "fields": ["email", "password"],
        "back": "/",
    }


@router.get("/signup")
async def signup_view() -> dict:
    return {
        "view": "signup",
        "action": "/api/v1/auth/signup",
        "fields": ["name", "email", "password"],
        "available": False,
        "back": "/",
    }


@router.get("/dashboard", response_model=DashboardState)
async def dashboard_view(request: Request) -> DashboardState:
    view = await get_registry().mount(request_session(request))
    return view.snapshot()
