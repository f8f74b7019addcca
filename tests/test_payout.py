"""Tests for completing sessions and paying out winners."""

import pytest

from quizpot.core.errors import (
    DuplicateWinnerError,
    InvalidStateError,
    InvalidWinnerCountError,
    InvalidWinnerError,
    NoPendingDisbursementError,
    NotAdministratorError,
)
from quizpot.escrow.payout import PAYOUT_SHARES, compute_payouts
from quizpot.models.enums import (
    DisbursementKind,
    DisbursementStatus,
    NotificationKind,
    SessionState,
)
from tests.factories import ADMIN, ENTRY_FEE, ESCROW, AccountFactory, SessionFactory, account

A, B, C, D = account(1), account(2), account(3), account(4)


class TestComputePayouts:
    def test_shares_sum_to_one_hundred(self):
        assert PAYOUT_SHARES == (80, 15, 5)
        assert sum(PAYOUT_SHARES) == 100

    def test_three_winners_pool_100(self):
        assert compute_payouts(100, [A, B, C]) == [(0, A, 80), (1, B, 15), (2, C, 5)]

    def test_single_winner_gets_first_share_only(self):
        assert compute_payouts(100, [A]) == [(0, A, 80)]

    def test_truncates_instead_of_rounding(self):
        # 80% of 33 = 26.4, 15% = 4.95, 5% = 1.65
        assert compute_payouts(33, [A, B, C]) == [(0, A, 26), (1, B, 4), (2, C, 1)]

    def test_zero_shares_are_skipped(self):
        # 15% of 7 = 1.05 -> 1, 5% of 7 = 0.35 -> 0
        assert compute_payouts(7, [A, B, C]) == [(0, A, 5), (1, B, 1)]

    def test_huge_pool_is_exact(self):
        pool = 3 * 10**27 + 7
        payouts = compute_payouts(pool, [A, B, C])

        assert [amount for _, _, amount in payouts] == [
            pool * 80 // 100,
            pool * 15 // 100,
            pool * 5 // 100,
        ]


class TestComplete:
    def _pool_of(self, escrow, ledger, amount):
        """Session with a pool of exactly `amount`, reached through ten-token entries."""
        participants = [account(n) for n in range(1, amount // ENTRY_FEE + 1)]
        return SessionFactory.create(
            escrow, participants, max_participants=len(participants), start=True
        )

    def test_scenario_pool_100_three_winners(self, escrow, ledger, clock, notifications):
        session_id = self._pool_of(escrow, ledger, 100)
        clock.advance(600)

        records = escrow.complete(ADMIN, session_id, [A, B, C])

        assert [(r.recipient, r.amount, r.rank) for r in records] == [
            (A, 80, 0),
            (B, 15, 1),
            (C, 5, 2),
        ]
        assert all(r.status == DisbursementStatus.SENT for r in records)
        assert all(r.kind == DisbursementKind.PAYOUT for r in records)

        view = escrow.get_session(session_id)
        assert view.state == SessionState.COMPLETED
        assert view.winners == (A, B, C)
        assert view.end_time == clock.now
        assert view.prize_pool == 100

        start_balance = 1_000 - ENTRY_FEE
        assert ledger.balance_of(A) == start_balance + 80
        assert ledger.balance_of(B) == start_balance + 15
        assert ledger.balance_of(C) == start_balance + 5
        assert ledger.balance_of(ESCROW) == 0

        kinds = [n.kind for n in notifications[-4:]]
        assert kinds == [
            NotificationKind.SESSION_COMPLETED,
            NotificationKind.PAYOUT_ISSUED,
            NotificationKind.PAYOUT_ISSUED,
            NotificationKind.PAYOUT_ISSUED,
        ]
        assert notifications[-4].data == {"winners": [A, B, C]}
        assert [n.data["recipient"] for n in notifications[-3:]] == [A, B, C]

    def test_single_winner_leaves_dust_in_escrow(self, escrow, ledger):
        session_id = self._pool_of(escrow, ledger, 30)

        records = escrow.complete(ADMIN, session_id, [B])

        assert [(r.recipient, r.amount) for r in records] == [(B, 24)]
        assert ledger.balance_of(ESCROW) == 6
        assert escrow.get_session(session_id).undisbursed == 6
        assert escrow.get_prize_pool(session_id) == 30

    def test_winner_order_is_rank_order(self, escrow, ledger):
        session_id = self._pool_of(escrow, ledger, 100)

        records = escrow.complete(ADMIN, session_id, [C, A])

        assert [(r.recipient, r.amount) for r in records] == [(C, 80), (A, 15)]
        assert escrow.get_winners(session_id) == [C, A]

    def test_winner_who_never_joined(self, escrow, ledger, notifications):
        session_id = self._pool_of(escrow, ledger, 30)
        before = len(notifications)

        with pytest.raises(InvalidWinnerError) as exc_info:
            escrow.complete(ADMIN, session_id, [A, D])

        assert exc_info.value.details["winner"] == D
        assert escrow.get_state(session_id) == SessionState.IN_PROGRESS
        assert escrow.get_winners(session_id) == []
        assert escrow.get_disbursements(session_id) == []
        assert ledger.balance_of(ESCROW) == 30
        assert len(notifications) == before

    @pytest.mark.parametrize("winners", [[A, A], [A, B, A], [B, A, A]])
    def test_duplicate_winner(self, escrow, ledger, winners):
        session_id = self._pool_of(escrow, ledger, 30)

        with pytest.raises(DuplicateWinnerError):
            escrow.complete(ADMIN, session_id, winners)

        assert escrow.get_state(session_id) == SessionState.IN_PROGRESS
        assert ledger.balance_of(ESCROW) == 30

    @pytest.mark.parametrize("count", [0, 4])
    def test_winner_count_out_of_range(self, escrow, ledger, count):
        session_id = self._pool_of(escrow, ledger, 40)

        with pytest.raises(InvalidWinnerCountError) as exc_info:
            escrow.complete(ADMIN, session_id, [A, B, C, D][:count])

        assert exc_info.value.details["count"] == count
        assert escrow.get_state(session_id) == SessionState.IN_PROGRESS

    def test_complete_open_session_rejected(self, escrow):
        session_id = SessionFactory.create(escrow, [A])

        with pytest.raises(InvalidStateError):
            escrow.complete(ADMIN, session_id, [A])

    def test_complete_requires_administrator(self, escrow, ledger):
        session_id = self._pool_of(escrow, ledger, 20)

        with pytest.raises(NotAdministratorError):
            escrow.complete(A, session_id, [A])

        assert escrow.get_state(session_id) == SessionState.IN_PROGRESS


class TestFailedPayouts:
    def test_failed_payout_does_not_block_others(self, escrow, ledger, notifications):
        session_id = SessionFactory.create(escrow, [A, B, C], max_participants=3, start=True)
        ledger.freeze(B)

        records = escrow.complete(ADMIN, session_id, [A, B, C])

        assert [r.status for r in records] == [
            DisbursementStatus.SENT,
            DisbursementStatus.FAILED,
            DisbursementStatus.SENT,
        ]
        assert records[1].error == "Recipient account is frozen"
        assert escrow.get_state(session_id) == SessionState.COMPLETED
        payout_recipients = [
            n.data["recipient"] for n in notifications if n.kind == NotificationKind.PAYOUT_ISSUED
        ]
        assert payout_recipients == [A, C]
        # pool 30: 24 + 1 paid, 4 owed to B
        assert ledger.balance_of(ESCROW) == 5

    def test_retry_after_recipient_recovers(self, escrow, ledger, notifications):
        session_id = SessionFactory.create(escrow, [A, B], max_participants=2, start=True)
        ledger.freeze(B)
        escrow.complete(ADMIN, session_id, [A, B])
        ledger.unfreeze(B)

        retried = escrow.retry_disbursement(ADMIN, session_id, B)

        assert retried.status == DisbursementStatus.SENT
        assert retried.attempts == 2
        assert retried.amount == 3
        assert notifications[-1].kind == NotificationKind.PAYOUT_ISSUED
        assert notifications[-1].data["recipient"] == B
        assert ledger.balance_of(B) == 1_000 - ENTRY_FEE + 3

        with pytest.raises(NoPendingDisbursementError):
            escrow.retry_disbursement(ADMIN, session_id, B)

    def test_retry_that_fails_again_stays_failed(self, escrow, ledger):
        session_id = SessionFactory.create(escrow, [A], max_participants=1, start=True)
        ledger.freeze(A)
        escrow.complete(ADMIN, session_id, [A])

        retried = escrow.retry_disbursement(ADMIN, session_id, A)

        assert retried.status == DisbursementStatus.FAILED
        assert retried.attempts == 2
        assert len(escrow.get_disbursements(session_id)) == 1

    def test_retry_requires_administrator(self, escrow, ledger):
        session_id = SessionFactory.create(escrow, [A], max_participants=1, start=True)
        ledger.freeze(A)
        escrow.complete(ADMIN, session_id, [A])

        with pytest.raises(NotAdministratorError):
            escrow.retry_disbursement(A, session_id, A)
