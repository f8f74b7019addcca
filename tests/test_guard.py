"""Tests for mutation exclusivity and reentrancy protection."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from quizpot.core.errors import LedgerTransferError, ReentrantCallError, SessionFullError
from quizpot.escrow.guard import MutationGuard
from quizpot.models.enums import DisbursementStatus, SessionState
from tests.factories import ADMIN, ENTRY_FEE, ESCROW, AccountFactory, SessionFactory, account


class TestMutationGuard:
    def test_hold_tracks_operation(self):
        guard = MutationGuard()

        with guard.hold("join"):
            assert guard.is_held
            assert guard.active_operation == "join"

        assert not guard.is_held
        assert guard.active_operation is None

    def test_nested_hold_on_same_thread_rejected(self):
        guard = MutationGuard()

        with guard.hold("complete"):
            with pytest.raises(ReentrantCallError) as exc_info:
                with guard.hold("cancel"):
                    pass

        assert exc_info.value.details == {"operation": "cancel", "active_operation": "complete"}
        assert not guard.is_held

    def test_released_after_exception(self):
        guard = MutationGuard()

        with pytest.raises(RuntimeError):
            with guard.hold("start"):
                raise RuntimeError("boom")

        with guard.hold("start"):
            assert guard.is_held


class TestReentrancy:
    """A ledger callback that calls back into the engine is rejected."""

    def test_reentrant_join_during_entry_pull(self, escrow, ledger):
        session_id = escrow.create_session(ADMIN, "Callbacks", 5)
        AccountFactory.fund(ledger, account(1))
        AccountFactory.fund(ledger, account(2))

        def reenter(source, destination, amount):
            if source == account(1):
                escrow.join(session_id, account(2))

        ledger.add_transfer_hook(reenter)

        with pytest.raises(LedgerTransferError) as exc_info:
            escrow.join(session_id, account(1))

        assert isinstance(exc_info.value.__cause__, ReentrantCallError)
        assert escrow.get_participants(session_id) == []
        assert escrow.get_prize_pool(session_id) == 0
        assert ledger.balance_of(account(1)) == 1_000
        assert ledger.balance_of(account(2)) == 1_000
        assert ledger.allowance_of(account(1), ESCROW) == ENTRY_FEE
        assert ledger.balance_of(ESCROW) == 0

    def test_reentrant_cancel_during_payout(self, escrow, ledger):
        session_id = SessionFactory.create(escrow, [account(1), account(2)], start=True)

        def reenter(source, destination, amount):
            if source == ESCROW:
                escrow.cancel(ADMIN, session_id)

        ledger.add_transfer_hook(reenter)

        records = escrow.complete(ADMIN, session_id, [account(1)])

        assert records[0].status == DisbursementStatus.FAILED
        assert records[0].error == "Transfer rejected by receiver callback"
        assert escrow.get_state(session_id) == SessionState.COMPLETED
        assert ledger.balance_of(ESCROW) == 2 * ENTRY_FEE

        ledger.clear_transfer_hooks()
        retried = escrow.retry_disbursement(ADMIN, session_id, account(1))
        assert retried.status == DisbursementStatus.SENT

    def test_queries_allowed_during_transfer(self, escrow, ledger):
        session_id = SessionFactory.create(escrow, [account(1), account(2)], start=True)
        observed = []

        def inspect(source, destination, amount):
            observed.append((escrow.get_state(session_id), escrow.get_prize_pool(session_id)))

        ledger.add_transfer_hook(inspect)
        escrow.complete(ADMIN, session_id, [account(2)])

        assert observed == [(SessionState.COMPLETED, 2 * ENTRY_FEE)]


class TestConcurrentJoins:
    def test_capacity_holds_under_contention(self, escrow, ledger):
        capacity = 5
        session_id = escrow.create_session(ADMIN, "Rush hour", capacity)
        accounts = [account(n) for n in range(1, 21)]
        for address in accounts:
            AccountFactory.fund(ledger, address)

        barrier = threading.Barrier(len(accounts))

        def attempt(address):
            barrier.wait()
            try:
                escrow.join(session_id, address)
                return "joined"
            except SessionFullError:
                return "full"

        with ThreadPoolExecutor(max_workers=len(accounts)) as pool:
            outcomes = list(pool.map(attempt, accounts))

        assert outcomes.count("joined") == capacity
        assert outcomes.count("full") == len(accounts) - capacity

        participants = escrow.get_participants(session_id)
        assert len(participants) == len(set(participants)) == capacity
        assert escrow.get_prize_pool(session_id) == capacity * ENTRY_FEE
        assert ledger.balance_of(ESCROW) == capacity * ENTRY_FEE
