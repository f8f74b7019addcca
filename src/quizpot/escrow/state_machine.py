"""
Session lifecycle state machine.

All state changes go through SessionStateMachine.transition so the legal
graph lives in one table:

    OPEN -> IN_PROGRESS -> COMPLETED
    OPEN | IN_PROGRESS -> CANCELLED

COMPLETED and CANCELLED are terminal.
"""

from quizpot.core.errors import InvalidStateError
from quizpot.core.logging import get_logger
from quizpot.escrow.session import TriviaSession
from quizpot.models.enums import SessionState

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.OPEN: frozenset({SessionState.IN_PROGRESS, SessionState.CANCELLED}),
    SessionState.IN_PROGRESS: frozenset({SessionState.COMPLETED, SessionState.CANCELLED}),
    SessionState.COMPLETED: frozenset(),
    SessionState.CANCELLED: frozenset(),
}

# Operation name used in InvalidStateError for each target state
_OPERATIONS = {
    SessionState.IN_PROGRESS: "start",
    SessionState.COMPLETED: "complete",
    SessionState.CANCELLED: "cancel",
}


class SessionStateMachine:
    """Validates and applies lifecycle transitions."""

    @staticmethod
    def can_transition(current: SessionState, target: SessionState) -> bool:
        return target in ALLOWED_TRANSITIONS[current]

    @staticmethod
    def require_state(session: TriviaSession, operation: str, *allowed: SessionState) -> None:
        """Raise InvalidStateError unless the session is in one of `allowed`."""
        if session.state not in allowed:
            raise InvalidStateError(session.id, session.state.value, operation)

    @classmethod
    def check(cls, session: TriviaSession, target: SessionState) -> None:
        """Raise InvalidStateError if `target` is not reachable from the current state."""
        if not cls.can_transition(session.state, target):
            raise InvalidStateError(
                session.id, session.state.value, _OPERATIONS.get(target, target.value.lower())
            )

    @classmethod
    def transition(cls, session: TriviaSession, target: SessionState, now: int) -> None:
        """
        Move `session` to `target` and stamp the matching timestamp.

        Entering IN_PROGRESS sets start_time; entering a terminal state sets
        end_time. The caller holds the mutation guard and has already run
        the operation-specific preconditions.
        """
        cls.check(session, target)

        previous = session.state
        session.state = target
        if target == SessionState.IN_PROGRESS:
            session.start_time = now
        elif target.is_terminal:
            session.end_time = now

        logger.info(
            "session.state_changed",
            session_id=session.id,
            from_state=previous.value,
            to_state=target.value,
        )
