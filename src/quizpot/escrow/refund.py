"""Refund engine: returns the entry fee to every participant of a cancelled session."""

from typing import Callable

from quizpot.escrow.notifications import Notification
from quizpot.escrow.session import Disbursement, TriviaSession
from quizpot.escrow.transfers import DisbursementRunner
from quizpot.models.enums import DisbursementKind, DisbursementStatus, NotificationKind


class RefundEngine:
    def __init__(
        self,
        runner: DisbursementRunner,
        entry_fee: int,
        emit: Callable[[Notification], None],
    ) -> None:
        self._runner = runner
        self._entry_fee = entry_fee
        self._emit = emit

    def disburse(self, session: TriviaSession) -> list[Disbursement]:
        """Refund exactly one entry fee per participant, in join order."""
        records = []
        for participant in list(session.participants):
            disbursement = Disbursement(
                kind=DisbursementKind.REFUND,
                recipient=participant,
                amount=self._entry_fee,
                status=DisbursementStatus.PENDING,
            )
            if self._runner.run(session, disbursement):
                self.notify(session.id, disbursement)
            records.append(disbursement)
        return records

    def notify(self, session_id: int, disbursement: Disbursement) -> None:
        self._emit(
            Notification(
                kind=NotificationKind.REFUND_ISSUED,
                session_id=session_id,
                data={"recipient": disbursement.recipient, "amount": disbursement.amount},
            )
        )
