"""Domain models package."""

from quizpot.models.enums import (
    DisbursementKind,
    DisbursementStatus,
    NotificationKind,
    SessionState,
)
from quizpot.models.escrow_event_log import EscrowEventLog
from quizpot.models.trivia_session_snapshot import TriviaSessionSnapshot
from quizpot.models.session_schemas import (
    AdministratorTransfer,
    DisbursementRead,
    EscrowEventRead,
    MembershipRead,
    SessionCreate,
    SessionRead,
    WinnersSubmit,
)

__all__ = [
    "AdministratorTransfer",
    "DisbursementKind",
    "DisbursementRead",
    "DisbursementStatus",
    "EscrowEventLog",
    "EscrowEventRead",
    "MembershipRead",
    "NotificationKind",
    "SessionCreate",
    "SessionRead",
    "SessionState",
    "TriviaSessionSnapshot",
    "WinnersSubmit",
]
