"""Profile API.

GET  /api/v1/profile: the user's profile, created on first request
POST /api/v1/profile/picture: replace the profile picture

The picture is sent as the raw request body with its Content-Type and a
`filename` query parameter.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from taskboard.api.v1.dashboard import request_session
from taskboard.integrations.errors import BackendError
from taskboard.integrations.supabase_rest import RestClient
from taskboard.integrations.supabase_storage import StorageClient
from taskboard.models.profile import Profile
from taskboard.stores.profiles import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])

_rest: RestClient | None = None
_storage: StorageClient | None = None
_options: dict = {}


def set_dependencies(
    rest: RestClient | None,
    storage: StorageClient | None,
    *,
    table: str = "profiles",
    bucket: str = "profile-pictures",
    cache_seconds: int = 3600,
) -> None:
    """Wire up the store clients (called from main.py lifespan)."""
    global _rest, _storage, _options
    _rest = rest
    _storage = storage
    _options = {"table": table, "bucket": bucket, "cache_seconds": cache_seconds}


def _store(request: Request) -> ProfileStore:
    if _rest is None or _storage is None:
        raise HTTPException(status_code=503, detail="Profile store not initialized.")
    return ProfileStore(_rest, _storage, request_session(request), **_options)


@router.get("", response_model=Profile)
async def get_profile(request: Request) -> Profile:
    store = _store(request)
    try:
        return await store.get_or_create()
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.post("/picture", response_model=Profile)
async def upload_picture(
    request: Request,
    filename: str = Query(min_length=1, max_length=255),
) -> Profile:
    store = _store(request)
    content_type = request.headers.get("content-type", "")
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="No file received")

    try:
        current = await store.get_or_create()
        return await store.upload_picture(
            filename,
            content_type,
            data,
            previous_url=current.profile_picture_url,
        )
    except ValueError as e:
        raise HTTPException(status_code=415, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)
