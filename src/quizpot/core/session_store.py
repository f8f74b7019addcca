"""Persistence of session snapshots and their restore on startup."""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.core.logging import get_logger
from quizpot.escrow.session import Disbursement, SessionSnapshot, TriviaSession
from quizpot.models.enums import DisbursementKind, DisbursementStatus, SessionState
from quizpot.models.trivia_session_snapshot import TriviaSessionSnapshot

logger = get_logger(__name__)


def _dump_disbursement(d: Disbursement) -> dict:
    return {
        "kind": d.kind.value,
        "recipient": d.recipient,
        "amount": str(d.amount),
        "status": d.status.value,
        "rank": d.rank,
        "attempts": d.attempts,
        "error": d.error,
    }


def _load_disbursement(data: dict) -> Disbursement:
    return Disbursement(
        kind=DisbursementKind(data["kind"]),
        recipient=data["recipient"],
        amount=int(data["amount"]),
        status=DisbursementStatus(data["status"]),
        rank=data.get("rank"),
        attempts=data.get("attempts", 1),
        error=data.get("error"),
    )


def record_snapshots(
    db: AsyncSession, snapshots: Iterable[SessionSnapshot]
) -> list[TriviaSessionSnapshot]:
    """Append one TriviaSessionSnapshot row per snapshot; the caller commits."""
    records = []
    for snapshot in snapshots:
        view = snapshot.view
        record = TriviaSessionSnapshot(
            revision=snapshot.revision,
            session_id=view.id,
            title=view.title,
            max_participants=view.max_participants,
            state=view.state.value,
            prize_pool=str(view.prize_pool),
            start_time=view.start_time,
            end_time=view.end_time,
            participants=list(view.participants),
            winners=list(view.winners),
            disbursements=[_dump_disbursement(d) for d in snapshot.disbursements],
        )
        db.add(record)
        records.append(record)
    return records


def _to_session(record: TriviaSessionSnapshot) -> TriviaSession:
    return TriviaSession(
        id=record.session_id,
        title=record.title,
        max_participants=record.max_participants,
        state=SessionState(record.state),
        prize_pool=int(record.prize_pool),
        start_time=record.start_time,
        end_time=record.end_time,
        participants=list(record.participants),
        winners=list(record.winners),
        joined=set(record.participants),
        disbursements=[_load_disbursement(d) for d in record.disbursements],
    )


async def load_sessions(db: AsyncSession) -> tuple[list[TriviaSession], int]:
    """
    Rebuild every persisted session from its latest snapshot.

    Returns:
        (sessions ordered by id, highest revision seen)
    """
    result = await db.execute(
        select(TriviaSessionSnapshot).order_by(TriviaSessionSnapshot.revision)
    )
    latest: dict[int, TriviaSessionSnapshot] = {}
    revision = 0
    for record in result.scalars():
        latest[record.session_id] = record
        revision = record.revision

    sessions = [_to_session(latest[key]) for key in sorted(latest)]
    logger.info("session_store.loaded", sessions=len(sessions), revision=revision)
    return sessions, revision
