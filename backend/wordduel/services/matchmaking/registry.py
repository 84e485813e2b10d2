import secrets
import time
from typing import Callable, Dict, Iterator, List, Optional

from .errors import UnknownSession
from .session import Participant, Session, SessionStatus


def generate_session_id() -> str:
    return f"room-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class SessionRegistry:
    """Owns every live session, keyed by session id."""

    def __init__(self, id_factory=generate_session_id, clock: Callable[[], float] = time.time):
        self._sessions: Dict[str, Session] = {}
        self._id_factory = id_factory
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _new_id(self) -> str:
        while True:
            session_id = self._id_factory()
            if session_id not in self._sessions:
                return session_id

    def create(self, first: Participant, second: Participant, secret_word: str) -> Session:
        session = Session(id=self._new_id(), participants=(first, second), secret_word=secret_word,
                          clock=self._clock)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: Optional[str]) -> Session:
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            raise UnknownSession(session_id)
        return session

    def find_playing(self, connection_id: str) -> Optional[Session]:
        for session in self._sessions.values():
            if session.is_playing and session.has_participant(connection_id):
                return session
        return None

    def count(self, status: SessionStatus) -> int:
        return sum(1 for s in self._sessions.values() if s.status is status)

    def remove(self, session_id: str) -> Optional[Session]:
        return self._sessions.pop(session_id, None)

    def reap(self, now: Optional[float] = None, idle_timeout: float = 0) -> List[Session]:
        """Drop sessions nobody can use any more.

        A session goes once both participants have disconnected, or once it
        has been finished for ``idle_timeout`` seconds (0 disables the
        timeout). Returns the removed sessions.
        """
        now = self._clock() if now is None else now
        reaped = []
        for session in list(self._sessions.values()):
            expired = (
                idle_timeout > 0
                and session.status is SessionStatus.FINISHED
                and session.finished_at is not None
                and now - session.finished_at >= idle_timeout
            )
            if session.abandoned() or expired:
                reaped.append(self._sessions.pop(session.id))
        return reaped
