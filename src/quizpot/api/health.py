"""
Health check endpoint for monitoring and orchestration.

Reports uptime, database connectivity and the escrow ledger view.
"""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.api.deps import get_escrow
from quizpot.core.db import get_db
from quizpot.escrow.service import TriviaEscrow

router = APIRouter(tags=["health"])

# Global app start time (set in lifespan)
_app_start_time: datetime | None = None


def set_app_start_time(start_time: datetime) -> None:
    """Called by lifespan to track when app started."""
    global _app_start_time
    _app_start_time = start_time


def get_uptime_seconds() -> int:
    if _app_start_time is None:
        return 0
    return int((datetime.now() - _app_start_time).total_seconds())


async def check_database(db: AsyncSession) -> dict[str, Any]:
    """
    Check database connectivity.

    Returns: {"status": "ok"|"down", "response_time_ms": N, "error": str (if down)}
    """
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "ok",
            "response_time_ms": int((time.time() - start) * 1000),
        }
    except Exception as e:
        return {
            "status": "down",
            "response_time_ms": int((time.time() - start) * 1000),
            "error": str(type(e).__name__),
        }


def check_ledger(escrow: TriviaEscrow) -> dict[str, Any]:
    """Escrow balance as seen by the ledger adapter."""
    try:
        balance = escrow.escrow_balance()
    except Exception as e:
        return {"status": "down", "error": str(type(e).__name__)}
    return {
        "status": "ok",
        "escrow_balance": str(balance),
        "sessions": escrow.session_count(),
    }


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description=(
        "Returns API health status including uptime and dependency checks. "
        "Returns 200 regardless of degraded dependencies."
    ),
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    escrow: TriviaEscrow = Depends(get_escrow),
) -> JSONResponse:
    """
    Example response (healthy):
        {
            "status": "ok",
            "uptime_seconds": 3600,
            "checks": {
                "database": {"status": "ok", "response_time_ms": 5},
                "ledger": {"status": "ok", "escrow_balance": "0", "sessions": 0}
            }
        }
    """
    db_check = await check_database(db)
    ledger_check = check_ledger(escrow)

    healthy = db_check["status"] == "ok" and ledger_check["status"] == "ok"

    return JSONResponse(
        content={
            "status": "ok" if healthy else "degraded",
            "uptime_seconds": get_uptime_seconds(),
            "checks": {
                "database": db_check,
                "ledger": ledger_check,
            },
        },
        status_code=status.HTTP_200_OK,
    )
