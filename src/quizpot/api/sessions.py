"""Trivia session endpoints (create, join, start, complete, cancel, queries)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.api.deps import get_caller, get_escrow, run_escrow_operation
from quizpot.core.db import get_db
from quizpot.core.errors import SessionNotFoundError
from quizpot.core.logging import get_logger
from quizpot.escrow.service import TriviaEscrow
from quizpot.models import (
    DisbursementRead,
    MembershipRead,
    SessionCreate,
    SessionRead,
    WinnersSubmit,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _read(escrow: TriviaEscrow, session_id: int) -> SessionRead:
    view = escrow.get_session(session_id)
    if view is None:
        raise SessionNotFoundError(session_id)
    return SessionRead.from_view(view)


@router.get("", response_model=list[SessionRead])
async def list_sessions(
    state: str | None = None,
    escrow: TriviaEscrow = Depends(get_escrow),
):
    """List every session, optionally filtered by state."""
    views = escrow.list_sessions()
    if state:
        views = [v for v in views if v.state.value == state.upper()]
    return [SessionRead.from_view(v) for v in views]


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    """Open a new session. Administrator only."""
    session_id = await run_escrow_operation(
        db, escrow, caller, escrow.create_session, caller, payload.title, payload.max_participants
    )
    return _read(escrow, session_id)


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(session_id: int, escrow: TriviaEscrow = Depends(get_escrow)):
    """Session snapshot; 404 for unknown ids."""
    return _read(escrow, session_id)


@router.post("/{session_id}/join", response_model=SessionRead)
async def join_session(
    session_id: int,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    """Join as the calling account; the entry fee must be pre-approved to the escrow."""
    await run_escrow_operation(db, escrow, caller, escrow.join, session_id, caller)
    return _read(escrow, session_id)


@router.post("/{session_id}/start", response_model=SessionRead)
async def start_session(
    session_id: int,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    await run_escrow_operation(db, escrow, caller, escrow.start, caller, session_id)
    return _read(escrow, session_id)


@router.post("/{session_id}/complete", response_model=list[DisbursementRead])
async def complete_session(
    session_id: int,
    payload: WinnersSubmit,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    """Declare winners and pay out. Returns one record per attempted payout."""
    return await run_escrow_operation(
        db, escrow, caller, escrow.complete, caller, session_id, payload.winners
    )


@router.post("/{session_id}/cancel", response_model=list[DisbursementRead])
async def cancel_session(
    session_id: int,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    """Cancel and refund every participant."""
    return await run_escrow_operation(db, escrow, caller, escrow.cancel, caller, session_id)


@router.post(
    "/{session_id}/disbursements/{recipient}/retry",
    response_model=DisbursementRead,
)
async def retry_disbursement(
    session_id: int,
    recipient: str,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
):
    return await run_escrow_operation(
        db,
        escrow,
        caller,
        escrow.retry_disbursement,
        caller,
        session_id,
        recipient,
        session_id=session_id,
    )


@router.get("/{session_id}/participants", response_model=list[str])
async def list_participants(session_id: int, escrow: TriviaEscrow = Depends(get_escrow)):
    return escrow.get_participants(session_id)


@router.get("/{session_id}/winners", response_model=list[str])
async def list_winners(session_id: int, escrow: TriviaEscrow = Depends(get_escrow)):
    return escrow.get_winners(session_id)


@router.get("/{session_id}/members/{account}", response_model=MembershipRead)
async def check_membership(
    session_id: int, account: str, escrow: TriviaEscrow = Depends(get_escrow)
):
    return MembershipRead(
        session_id=session_id,
        account=account,
        joined=escrow.has_joined(session_id, account),
    )


@router.get("/{session_id}/disbursements", response_model=list[DisbursementRead])
async def list_disbursements(session_id: int, escrow: TriviaEscrow = Depends(get_escrow)):
    return escrow.get_disbursements(session_id)
