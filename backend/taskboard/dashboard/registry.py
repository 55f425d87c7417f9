"""Per-session registry of mounted dashboard views."""

from __future__ import annotations

import logging
from typing import Callable

from taskboard.ai.augmentation import AugmentationClient
from taskboard.ai.embedding import EmbeddingTrigger
from taskboard.config import Settings
from taskboard.dashboard.view import DashboardView
from taskboard.integrations.supabase_rest import RestClient
from taskboard.security.session import Session
from taskboard.stores.subtasks import SubtaskStore
from taskboard.stores.tasks import TaskStore

logger = logging.getLogger(__name__)

ViewFactory = Callable[[Session, Callable[[], Session | None]], DashboardView]


def build_view_factory(
    rest: RestClient,
    ai: AugmentationClient,
    embeddings: EmbeddingTrigger,
    settings: Settings,
) -> ViewFactory:
    """Factory wiring a view to stores bound to one session."""

    def factory(session: Session, session_provider: Callable[[], Session | None]) -> DashboardView:
        return DashboardView(
            tasks=TaskStore(rest, session, table=settings.tasks_table),
            subtasks=SubtaskStore(rest, session, table=settings.subtasks_table),
            ai=ai,
            embeddings=embeddings,
            session_provider=session_provider,
        )

    return factory


class ViewRegistry:
    """Holds one mounted DashboardView per user.

    Mounting replaces any previous view for the user, which drops its
    suggestions and search results the way a page reload does. A request
    carrying a newer access token for the same user rebinds the existing
    view to that session instead of mounting a second one.
    """

    def __init__(self, factory: ViewFactory) -> None:
        self._factory = factory
        self._views: dict[str, DashboardView] = {}
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._views)

    def current_session(self, user_id: str) -> Session | None:
        return self._sessions.get(user_id)

    async def mount(self, session: Session) -> DashboardView:
        user_id = session.user_id
        self._sessions[user_id] = session
        view = self._factory(session, lambda: self.current_session(user_id))
        self._views[user_id] = view
        await view.load()
        logger.debug("Mounted dashboard for user %s", user_id)
        return view

    async def get(self, session: Session) -> DashboardView:
        """Return the mounted view for this user, mounting one if needed."""
        view = self._views.get(session.user_id)
        if view is None:
            return await self.mount(session)
        current = self._sessions.get(session.user_id)
        if current is None or current.access_token != session.access_token:
            view.rebind(session)
        self._sessions[session.user_id] = session
        return view

    def drop(self, access_token: str) -> None:
        """Forget the view whose current session holds this token."""
        for user_id, session in list(self._sessions.items()):
            if session.access_token == access_token:
                self._views.pop(user_id, None)
                del self._sessions[user_id]
