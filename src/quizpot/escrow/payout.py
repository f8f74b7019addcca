"""
Payout engine: splits a completed session's pool among ranked winners.

Shares are whole percentages applied with integer floor division to the
pool captured before any transfer. Whatever the shares do not cover (fewer
than three winners, or truncation) stays in escrow and is never swept.
"""

from typing import Callable, Sequence

from quizpot.core.errors import DuplicateWinnerError, InvalidWinnerCountError, InvalidWinnerError
from quizpot.escrow.notifications import Notification
from quizpot.escrow.session import Disbursement, TriviaSession
from quizpot.escrow.transfers import DisbursementRunner
from quizpot.models.enums import DisbursementKind, DisbursementStatus, NotificationKind

# Percent of the pool per rank: first, second, third place
PAYOUT_SHARES: tuple[int, ...] = (80, 15, 5)

MAX_WINNERS = len(PAYOUT_SHARES)


def compute_payouts(pool: int, winners: Sequence[str]) -> list[tuple[int, str, int]]:
    """Return (rank, winner, amount) for every winner with a nonzero share, in rank order."""
    payouts = []
    for rank, winner in enumerate(winners):
        amount = pool * PAYOUT_SHARES[rank] // 100
        if amount > 0:
            payouts.append((rank, winner, amount))
    return payouts


def validate_winners(session: TriviaSession, winners: Sequence[str]) -> None:
    """
    Check a declared winner list against the session.

    Raises:
        InvalidWinnerCountError: Unless 1 to 3 winners are given
        InvalidWinnerError: If a winner never joined
        DuplicateWinnerError: If a winner appears twice
    """
    if not 1 <= len(winners) <= MAX_WINNERS:
        raise InvalidWinnerCountError(len(winners))

    for i, winner in enumerate(winners):
        if winner not in session.joined:
            raise InvalidWinnerError(session.id, winner)
        for other in winners[i + 1 :]:
            if winner == other:
                raise DuplicateWinnerError(session.id, winner)


class PayoutEngine:
    """Pushes winner shares out of escrow."""

    def __init__(self, runner: DisbursementRunner, emit: Callable[[Notification], None]) -> None:
        self._runner = runner
        self._emit = emit

    def disburse(self, session: TriviaSession) -> list[Disbursement]:
        """Pay every winner of a COMPLETED session, first place first.

        Each transfer is independent; a failed one is recorded and the
        remaining winners are still paid.
        """
        pool = session.prize_pool
        records = []
        for rank, winner, amount in compute_payouts(pool, session.winners):
            disbursement = Disbursement(
                kind=DisbursementKind.PAYOUT,
                recipient=winner,
                amount=amount,
                status=DisbursementStatus.PENDING,
                rank=rank,
            )
            if self._runner.run(session, disbursement):
                self.notify(session.id, disbursement)
            records.append(disbursement)
        return records

    def notify(self, session_id: int, disbursement: Disbursement) -> None:
        self._emit(
            Notification(
                kind=NotificationKind.PAYOUT_ISSUED,
                session_id=session_id,
                data={
                    "recipient": disbursement.recipient,
                    "amount": disbursement.amount,
                    "rank": disbursement.rank,
                },
            )
        )
