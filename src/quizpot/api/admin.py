"""Administrator capability management."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.api.deps import get_caller, get_escrow, run_escrow_operation
from quizpot.core.db import get_db
from quizpot.core.logging import get_logger
from quizpot.escrow.service import TriviaEscrow
from quizpot.models import AdministratorTransfer

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("")
async def get_administrator(escrow: TriviaEscrow = Depends(get_escrow)) -> dict:
    return {
        "administrator": escrow.administrator,
        "escrow_account": escrow.escrow_account,
        "entry_fee": str(escrow.entry_fee),
    }


@router.post("/transfer")
async def transfer_administrator(
    payload: AdministratorTransfer,
    caller: str = Depends(get_caller),
    escrow: TriviaEscrow = Depends(get_escrow),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Hand the administrator capability to another account. Administrator only."""
    await run_escrow_operation(
        db, escrow, caller, escrow.transfer_administrator, caller, payload.new_administrator
    )
    logger.info("admin.transferred", previous=caller, current=escrow.administrator)
    return {"administrator": escrow.administrator}
