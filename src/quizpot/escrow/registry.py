"""Session registry: the arena of every session ever created."""

from quizpot.core.errors import SessionNotFoundError
from quizpot.escrow.session import TriviaSession


class SessionRegistry:
    """Sessions keyed by sequential id starting at 1.

    Sessions are never removed, so ids are stable and never reused.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, TriviaSession] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: int) -> bool:
        return session_id in self._sessions

    def restore(self, session: TriviaSession) -> None:
        """Re-insert a persisted session under its original id."""
        if session.id in self:
            raise ValueError(f"Session {session.id} is already registered")
        self._sessions[session.id] = session
        self._next_id = max(self._next_id, session.id + 1)

    def create(self, title: str, max_participants: int) -> TriviaSession:
        session = TriviaSession(
            id=self._next_id,
            title=title,
            max_participants=max_participants,
        )
        self._sessions[session.id] = session
        self._next_id += 1
        return session

    def find(self, session_id: int) -> TriviaSession | None:
        return self._sessions.get(session_id)

    def get(self, session_id: int) -> TriviaSession:
        """Return the session or raise SessionNotFoundError."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def all(self) -> list[TriviaSession]:
        return [self._sessions[key] for key in sorted(self._sessions)]
