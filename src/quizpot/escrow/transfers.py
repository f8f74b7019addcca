"""Push attempts out of escrow, shared by payouts, refunds and retries."""

import threading

from quizpot.core.errors import LedgerTransferError
from quizpot.core.logging import get_logger
from quizpot.core.sentry import report_disbursement_failure
from quizpot.escrow.session import Disbursement, TriviaSession
from quizpot.ledger.interfaces import TokenLedger
from quizpot.models.enums import DisbursementStatus

logger = get_logger(__name__)


class DisbursementRunner:
    """Executes one disbursement at a time and records its outcome.

    Record updates happen under the state lock; the ledger call itself does
    not, so queries never wait on a transfer.
    """

    def __init__(self, ledger: TokenLedger, state_lock: threading.Lock) -> None:
        self._ledger = ledger
        self._state_lock = state_lock

    def run(self, session: TriviaSession, disbursement: Disbursement) -> bool:
        """
        Push `disbursement.amount` to its recipient.

        A ledger failure is local to this disbursement: it is logged, reported
        and marked FAILED so the caller can carry on with the next recipient.

        Returns:
            True when the transfer went through
        """
        with self._state_lock:
            if disbursement not in session.disbursements:
                session.disbursements.append(disbursement)
            disbursement.status = DisbursementStatus.PENDING

        try:
            self._ledger.push(disbursement.recipient, disbursement.amount)
        except LedgerTransferError as exc:
            with self._state_lock:
                disbursement.status = DisbursementStatus.FAILED
                disbursement.error = exc.message
            logger.warning(
                f"{disbursement.kind.value.lower()}.failed",
                session_id=session.id,
                recipient=disbursement.recipient,
                amount=disbursement.amount,
                attempts=disbursement.attempts,
                error=exc.message,
            )
            report_disbursement_failure(
                session.id,
                disbursement.kind.value,
                disbursement.recipient,
                disbursement.amount,
                exc.message,
            )
            return False

        with self._state_lock:
            disbursement.status = DisbursementStatus.SENT
            disbursement.error = None
        return True
