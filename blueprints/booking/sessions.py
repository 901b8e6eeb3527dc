# blueprints/booking/sessions.py
from __future__ import annotations
import secrets
from typing import Dict

from .services.errors import NotFoundError
from .services.orchestrator import BookingSession, SessionState

MAX_SESSIONS = 256


class SessionStore:
    """Open booking dialogs keyed by an opaque token; process-local.

    Finished sessions are dropped on the next save, and once ``max_sessions``
    are held the oldest one is evicted.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._data: Dict[str, BookingSession] = {}

    def save(self, session: BookingSession) -> str:
        self._prune()
        while len(self._data) >= self.max_sessions:
            # dicts keep insertion order
            self._data.pop(next(iter(self._data)))
        sid = secrets.token_urlsafe(8)
        self._data[sid] = session
        return sid

    def _prune(self) -> None:
        done = (SessionState.COMMITTED, SessionState.CLOSED)
        for sid in [k for k, s in self._data.items() if s.state in done]:
            del self._data[sid]

    def get(self, sid: str) -> BookingSession:
        session = self._data.get(sid)
        if session is None:
            raise NotFoundError(f"booking session {sid} not found", details={"session_id": sid})
        return session

    def delete(self, sid: str) -> None:
        self._data.pop(sid, None)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


session_store = SessionStore()
