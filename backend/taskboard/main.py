"""Taskboard FastAPI application.

Entry point for the backend server: a thin client over the hosted
backend-as-a-service (auth, relational store, object storage, functions).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from taskboard.ai.augmentation import AugmentationClient
from taskboard.ai.embedding import EmbeddingTrigger
from taskboard.api.health import router as health_router
from taskboard.api.pages import APP_NAME, VERSION
from taskboard.api.pages import router as pages_router
from taskboard.api.v1.auth import router as auth_router
from taskboard.api.v1.auth import set_dependencies as set_auth_deps
from taskboard.api.v1.dashboard import router as dashboard_router
from taskboard.api.v1.dashboard import set_registry
from taskboard.api.v1.profile import router as profile_router
from taskboard.api.v1.profile import set_dependencies as set_profile_deps
from taskboard.config import settings
from taskboard.dashboard.registry import ViewRegistry, build_view_factory
from taskboard.integrations.supabase_auth import AuthClient
from taskboard.integrations.supabase_functions import FunctionsClient
from taskboard.integrations.supabase_rest import RestClient
from taskboard.integrations.supabase_storage import StorageClient
from taskboard.logging_setup import configure_logging
from taskboard.middleware.session_gate import SessionGateMiddleware

logger = logging.getLogger(__name__)

auth_client = AuthClient(settings.supabase_url, settings.supabase_anon_key)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    configure_logging(settings.log_level)
    if not settings.backend_configured:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set; remote calls will fail.")

    rest = RestClient(settings.supabase_url, settings.supabase_anon_key)
    storage = StorageClient(settings.supabase_url, settings.supabase_anon_key)
    functions = FunctionsClient(settings.supabase_url, settings.supabase_anon_key)

    ai = AugmentationClient(
        functions,
        subtasks_function=settings.subtasks_function,
        search_function=settings.search_function,
    )
    embeddings = EmbeddingTrigger(functions, function_name=settings.embedding_function)
    registry = ViewRegistry(build_view_factory(rest, ai, embeddings, settings))

    # Wire up API modules
    set_registry(registry)
    set_auth_deps(auth_client, registry)
    set_profile_deps(
        rest,
        storage,
        table=settings.profiles_table,
        bucket=settings.profile_pictures_bucket,
        cache_seconds=settings.profile_picture_cache_seconds,
    )
    logger.info("Taskboard started against %s", settings.supabase_url or "<unconfigured>")

    yield

    # Shutdown: let pending embedding requests finish
    if embeddings.pending_count:
        logger.info("Waiting for %d embedding request(s)", embeddings.pending_count)
    await embeddings.aclose()
    set_registry(None)


app = FastAPI(
    title=APP_NAME,
    description="Personal task manager over a hosted backend-as-a-service",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware (order matters: last added = outermost)
app.add_middleware(SessionGateMiddleware, auth_client=auth_client)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


# Global exception handler: prevent internal details from leaking
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error."},
    )


# Routes
app.include_router(health_router)
app.include_router(pages_router)
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(profile_router)
