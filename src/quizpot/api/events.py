"""Escrow event log endpoints for off-system indexers."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.core.db import get_db
from quizpot.models import EscrowEventLog, EscrowEventRead

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[EscrowEventRead])
async def list_events(
    session_id: int | None = None,
    kind: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Persisted notifications in emission order."""
    stmt = select(EscrowEventLog)
    if session_id is not None:
        stmt = stmt.where(EscrowEventLog.session_id == session_id)
    if kind:
        stmt = stmt.where(EscrowEventLog.kind == kind.upper())
    stmt = stmt.order_by(EscrowEventLog.sequence).offset(skip).limit(limit)

    result = await db.execute(stmt)
    return result.scalars().all()
