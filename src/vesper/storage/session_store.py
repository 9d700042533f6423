"""Session persistence (JSON files or in-memory)."""

import logging
from pathlib import Path
from typing import Protocol

from vesper.models.pipeline import PipelineSession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Key/value persistence boundary for pipeline sessions."""

    def save(self, session_id: str, payload: str) -> None: ...

    def load(self, session_id: str) -> str | None: ...

    def delete(self, session_id: str) -> bool: ...

    def list_sessions(self) -> list[str]: ...


class InMemorySessionStore:
    """Keeps serialized sessions in a dict; for tests and single-process use."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def save(self, session_id: str, payload: str) -> None:
        self._data[session_id] = payload

    def load(self, session_id: str) -> str | None:
        return self._data.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._data.pop(session_id, None) is not None

    def list_sessions(self) -> list[str]:
        return sorted(self._data)


class JsonSessionStore:
    """Stores each session as one JSON file."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or "\\" in session_id or session_id.startswith("."):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.base_dir / f"{session_id}.json"

    def save(self, session_id: str, payload: str) -> None:
        path = self._path(session_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(path)

    def load(self, session_id: str) -> str | None:
        path = self._path(session_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def delete(self, session_id: str) -> bool:
        path = self._path(session_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted stored session {session_id}")
        return True

    def list_sessions(self) -> list[str]:
        return sorted(p.stem for p in self.base_dir.glob("*.json"))


def save_session(store: SessionStore, session: PipelineSession) -> None:
    store.save(session.session_id, session.model_dump_json(indent=2))


def load_session(store: SessionStore, session_id: str) -> PipelineSession | None:
    payload = store.load(session_id)
    if payload is None:
        return None
    return PipelineSession.model_validate_json(payload)
