"""
Enums for domain models.
Enums provide type safety and clarity. Validation for categorical fields.
"""

import enum


class SessionState(str, enum.Enum):
    """Trivia session lifecycle states."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.CANCELLED)


class DisbursementKind(str, enum.Enum):
    PAYOUT = "PAYOUT"
    REFUND = "REFUND"


class DisbursementStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationKind(str, enum.Enum):
    """Observable events emitted for off-system indexing."""

    SESSION_CREATED = "SESSION_CREATED"
    PARTICIPANT_JOINED = "PARTICIPANT_JOINED"
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_COMPLETED = "SESSION_COMPLETED"
    SESSION_CANCELLED = "SESSION_CANCELLED"
    PAYOUT_ISSUED = "PAYOUT_ISSUED"
    REFUND_ISSUED = "REFUND_ISSUED"
    ADMINISTRATOR_CHANGED = "ADMINISTRATOR_CHANGED"
