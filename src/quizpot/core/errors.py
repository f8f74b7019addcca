"""Custom exceptions and error response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to API response schema."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details if self.details else None,
        )


# ============ Generic ============


class NotFoundError(AppError):
    """Raised when resource doesn't exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with ID {resource_id} not found",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
        )


class SessionNotFoundError(NotFoundError):
    """Raised when a mutation targets an unknown trivia session."""

    def __init__(self, session_id: int):
        super().__init__("TriviaSession", str(session_id))
        self.session_id = session_id


class UnauthorizedError(AppError):
    """Raised when the caller did not identify itself."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class NotAdministratorError(AppError):
    """Raised when a non-administrator calls an administrator-only operation."""

    def __init__(self, caller: str):
        super().__init__(
            code="NOT_ADMINISTRATOR",
            message="Only the administrator can perform this operation",
            status_code=403,
            details={"caller": caller},
        )


# ============ Validation ============


class InvalidCapacityError(AppError):
    """Session capacity must be at least one."""

    def __init__(self, max_participants: int):
        super().__init__(
            code="INVALID_CAPACITY",
            message="max_participants must be at least 1",
            status_code=422,
            details={"max_participants": max_participants},
        )


class InvalidWinnerCountError(AppError):
    """Between one and three winners must be declared."""

    def __init__(self, count: int):
        super().__init__(
            code="INVALID_WINNER_COUNT",
            message=f"Expected 1 to 3 winners, got {count}",
            status_code=422,
            details={"count": count},
        )


class InvalidWinnerError(AppError):
    """A declared winner never joined the session."""

    def __init__(self, session_id: int, winner: str):
        super().__init__(
            code="INVALID_WINNER",
            message="Winner is not a participant of this session",
            status_code=422,
            details={"session_id": session_id, "winner": winner},
        )


class DuplicateWinnerError(AppError):
    """The same address appears more than once in the winner list."""

    def __init__(self, session_id: int, winner: str):
        super().__init__(
            code="DUPLICATE_WINNER",
            message="Winner appears more than once",
            status_code=422,
            details={"session_id": session_id, "winner": winner},
        )


# ============ State conflicts ============


class InvalidStateError(AppError):
    """Raised when operation conflicts with the session lifecycle state."""

    def __init__(self, session_id: int, state: str, operation: str):
        super().__init__(
            code="INVALID_STATE",
            message=f"Cannot {operation} a session in state {state}",
            status_code=409,
            details={"session_id": session_id, "state": state, "operation": operation},
        )


class AlreadyJoinedError(AppError):
    def __init__(self, session_id: int, participant: str):
        super().__init__(
            code="ALREADY_JOINED",
            message="Participant already joined this session",
            status_code=409,
            details={"session_id": session_id, "participant": participant},
        )


class SessionFullError(AppError):
    def __init__(self, session_id: int, max_participants: int):
        super().__init__(
            code="SESSION_FULL",
            message="Session has reached its participant limit",
            status_code=409,
            details={"session_id": session_id, "max_participants": max_participants},
        )


class NoParticipantsError(AppError):
    def __init__(self, session_id: int):
        super().__init__(
            code="NO_PARTICIPANTS",
            message="Cannot start a session without participants",
            status_code=409,
            details={"session_id": session_id},
        )


class NothingToRefundError(AppError):
    def __init__(self, session_id: int):
        super().__init__(
            code="NOTHING_TO_REFUND",
            message="Session has no participants to refund",
            status_code=409,
            details={"session_id": session_id},
        )


class NoPendingDisbursementError(AppError):
    """No failed disbursement exists for the recipient."""

    def __init__(self, session_id: int, recipient: str):
        super().__init__(
            code="NO_PENDING_DISBURSEMENT",
            message="No failed disbursement to retry for this recipient",
            status_code=409,
            details={"session_id": session_id, "recipient": recipient},
        )


class ReentrantCallError(AppError):
    """A mutation was invoked while another mutation on the same thread is in flight."""

    def __init__(self, operation: str, active_operation: str | None):
        super().__init__(
            code="REENTRANT_CALL",
            message=f"Reentrant call to {operation} rejected",
            status_code=409,
            details={"operation": operation, "active_operation": active_operation},
        )


# ============ Resource conflicts ============


class InsufficientAllowanceError(AppError):
    def __init__(self, participant: str, allowance: int, required: int):
        super().__init__(
            code="INSUFFICIENT_ALLOWANCE",
            message="Entry fee has not been authorized for the escrow account",
            status_code=402,
            details={"participant": participant, "allowance": allowance, "required": required},
        )


class LedgerTransferError(AppError):
    """Raised by ledger adapters when a transfer cannot be executed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="TRANSFER_FAILED",
            message=message,
            status_code=502,
            details=details,
        )


# ============ Configuration ============


class ZeroAddressError(AppError):
    """An account reference is empty or the zero address."""

    def __init__(self, field: str):
        super().__init__(
            code="ZERO_ADDRESS",
            message=f"{field} must be a non-zero account address",
            status_code=500,
            details={"field": field},
        )
