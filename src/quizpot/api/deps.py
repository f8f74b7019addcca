"""Shared FastAPI dependencies: caller identity and the escrow engine."""

from typing import Any, Callable

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from quizpot.core.audit import record_notifications
from quizpot.core.errors import UnauthorizedError
from quizpot.core.session_store import record_snapshots
from quizpot.escrow.service import TriviaEscrow


def get_escrow(request: Request) -> TriviaEscrow:
    return request.app.state.escrow


async def get_caller(x_account: str | None = Header(None)) -> str:
    """Caller account taken from the X-Account header."""
    if not x_account or not x_account.strip():
        raise UnauthorizedError("X-Account header is required")
    return x_account.strip()


async def run_escrow_operation(
    db: AsyncSession,
    escrow: TriviaEscrow,
    caller: str,
    operation: Callable[..., Any],
    *args: Any,
    session_id: int | None = None,
) -> Any:
    """
    Run a blocking engine call off the event loop and queue its effects for commit.

    Only the notifications this call emitted are recorded, attributed to
    `caller`. Every session they mention, plus `session_id` when given, is
    snapshotted into the same transaction.
    """

    def call() -> tuple[Any, list]:
        with escrow.bus.collect() as collected:
            result = operation(*args)
        return result, collected

    result, notifications = await run_in_threadpool(call)

    record_notifications(db, notifications, recorded_by=caller)
    touched = {n.session_id for n in notifications if n.session_id is not None}
    if session_id is not None:
        touched.add(session_id)
    record_snapshots(db, escrow.export_sessions(touched))
    return result
