"""Health check endpoint: configuration of the backend-as-a-service platform.

Nothing here calls the platform; a configured-but-down backend still
reports healthy. Dashboard actions surface those failures themselves.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from taskboard.config import settings

router = APIRouter()

VERSION = "0.1.0"


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded"
    version: str
    checks: dict[str, dict]
    dependencies: dict[str, str]  # Simplified view for frontend
    timestamp: datetime


def _dashboard_check() -> dict:
    from taskboard.api.v1.dashboard import _registry

    if _registry is None:
        return {"status": "warning", "detail": "dashboard not initialized"}
    return {"status": "ok", "detail": f"{len(_registry)} mounted view(s)"}


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    checks: dict[str, dict] = {}

    # 1. Platform URL
    if settings.supabase_url:
        checks["platform"] = {"status": "ok", "detail": settings.supabase_url}
    else:
        checks["platform"] = {"status": "warning", "detail": "SUPABASE_URL not set"}

    # 2. Public API key
    if settings.supabase_anon_key:
        checks["api_key"] = {"status": "ok", "detail": "configured"}
    else:
        checks["api_key"] = {"status": "warning", "detail": "SUPABASE_ANON_KEY not set"}

    # 3. Remote functions
    checks["functions"] = {
        "status": "ok" if settings.backend_configured else "warning",
        "detail": ", ".join([
            settings.embedding_function,
            settings.subtasks_function,
            settings.search_function,
        ]),
    }

    # 4. Dashboard views
    checks["dashboard"] = _dashboard_check()

    dependencies = {name: check["status"] for name, check in checks.items()}
    has_warning = any(status != "ok" for status in dependencies.values())

    return HealthStatus(
        status="degraded" if has_warning else "healthy",
        version=VERSION,
        checks=checks,
        dependencies=dependencies,
        timestamp=datetime.now(timezone.utc),
    )
