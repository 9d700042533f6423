"""Session manager: creates, loads and tracks pipeline orchestrators."""

import asyncio
import logging

from vesper.config import Settings, get_settings
from vesper.execution.adapter import ExecutionAdapter
from vesper.models.errors import ValidationError, VesperError
from vesper.models.guidelines import Guidelines
from vesper.models.pipeline import PipelineSession
from vesper.pipeline.orchestrator import PipelineOrchestrator
from vesper.registry.catalog import ModelRegistry
from vesper.storage.session_store import (
    JsonSessionStore,
    SessionStore,
    load_session,
    save_session,
)

logger = logging.getLogger(__name__)


class SessionManager:
    """Keeps one orchestrator per live session, backed by a session store."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: ModelRegistry | None = None,
        adapter: ExecutionAdapter | None = None,
        store: SessionStore | None = None,
        guidelines: Guidelines | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or ModelRegistry()
        self.adapter = adapter or ExecutionAdapter(self.settings, self.registry)
        self.store = store or JsonSessionStore(self.settings.session_store_dir)
        self.guidelines = guidelines or Guidelines()
        self._sessions: dict[str, PipelineOrchestrator] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    def create_session(self, owner: str = "") -> PipelineOrchestrator:
        session = PipelineSession(owner=owner)
        orchestrator = self._orchestrator(session)
        save_session(self.store, session)
        logger.info(f"Created session {session.session_id}")
        return orchestrator

    def get_session(self, session_id: str) -> PipelineOrchestrator:
        orchestrator = self._sessions.get(session_id)
        if orchestrator is not None:
            return orchestrator
        try:
            session = load_session(self.store, session_id)
        except ValueError as e:
            raise ValidationError(f"Session {session_id} cannot be loaded: {e}") from e
        if session is None:
            raise ValidationError(f"Session {session_id} not found", details={"session_id": session_id})
        return self._orchestrator(session)

    def delete_session(self, session_id: str) -> bool:
        self.cancel(session_id)
        self._sessions.pop(session_id, None)
        deleted = self.store.delete(session_id)
        if deleted:
            logger.info(f"Deleted session {session_id}")
        return deleted

    def list_sessions(self) -> list[str]:
        return self.store.list_sessions()

    def cancel_event(self, session_id: str) -> asyncio.Event:
        """A fresh cancellation event for the next long-running action of a session."""
        event = asyncio.Event()
        self._cancel_events[session_id] = event
        return event

    def cancel(self, session_id: str) -> bool:
        """Signal the session's in-flight action, if any, to stop."""
        event = self._cancel_events.pop(session_id, None)
        if event is None:
            return False
        event.set()
        logger.info(f"Cancellation requested for session {session_id}")
        return True

    async def aclose(self) -> None:
        await self.adapter.aclose()

    def _orchestrator(self, session: PipelineSession) -> PipelineOrchestrator:
        orchestrator = PipelineOrchestrator(
            session,
            self.adapter,
            settings=self.settings,
            registry=self.registry,
            store=self.store,
            guidelines=self.guidelines,
        )
        self._sessions[session.session_id] = orchestrator
        return orchestrator

    async def run_render(self, session_id: str) -> None:
        """Render a session's video in the background; failures stay on the job record."""
        orchestrator = self.get_session(session_id)
        try:
            await orchestrator.render_video(self.cancel_event(session_id))
        except VesperError as e:
            logger.error(f"Render for session {session_id} ended with {type(e).__name__}: {e.message}")
        finally:
            self._cancel_events.pop(session_id, None)
