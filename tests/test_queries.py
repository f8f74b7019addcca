"""Tests for read-only queries."""

import dataclasses

import pytest

from quizpot.models.enums import DisbursementStatus, SessionState
from tests.factories import ADMIN, ENTRY_FEE, AccountFactory, SessionFactory, account


class TestUnknownSession:
    """Queries never raise for ids that were never created."""

    def test_defaults(self, escrow):
        assert escrow.get_session(7) is None
        assert escrow.get_participants(7) == []
        assert escrow.get_winners(7) == []
        assert escrow.has_joined(7, account(1)) is False
        assert escrow.get_state(7) is None
        assert escrow.get_prize_pool(7) == 0
        assert escrow.get_disbursements(7) == []

    def test_counts_and_listing_when_empty(self, escrow):
        assert escrow.session_count() == 0
        assert escrow.list_sessions() == []


class TestSnapshots:
    def test_view_is_frozen(self, escrow):
        session_id = SessionFactory.create(escrow, [account(1)])

        view = escrow.get_session(session_id)

        with pytest.raises(dataclasses.FrozenInstanceError):
            view.prize_pool = 0

    def test_view_does_not_follow_later_changes(self, escrow):
        session_id = SessionFactory.create(escrow, [account(1)])
        before = escrow.get_session(session_id)

        SessionFactory.create(escrow)  # unrelated session
        AccountFactory.fund(escrow.ledger, account(2))
        escrow.join(session_id, account(2))

        assert before.participants == (account(1),)
        assert before.prize_pool == ENTRY_FEE
        assert escrow.get_session(session_id).participants == (account(1), account(2))

    def test_participant_list_is_a_copy(self, escrow):
        session_id = SessionFactory.create(escrow, [account(1)])

        participants = escrow.get_participants(session_id)
        participants.append(account(99))

        assert escrow.get_participants(session_id) == [account(1)]
        assert not escrow.has_joined(session_id, account(99))

    def test_disbursement_records_are_copies(self, escrow, ledger):
        session_id = SessionFactory.create(escrow, [account(1)], start=True)
        ledger.freeze(account(1))
        escrow.complete(ADMIN, session_id, [account(1)])

        records = escrow.get_disbursements(session_id)
        records[0].status = DisbursementStatus.SENT

        assert escrow.get_disbursements(session_id)[0].status == DisbursementStatus.FAILED

    def test_list_sessions_in_id_order(self, escrow):
        first = SessionFactory.create(escrow, [account(1)])
        second = SessionFactory.create(escrow, [account(1)], start=True)

        views = escrow.list_sessions()

        assert [v.id for v in views] == [first, second]
        assert [v.state for v in views] == [SessionState.OPEN, SessionState.IN_PROGRESS]
        assert escrow.session_count() == 2

    def test_has_joined(self, escrow):
        session_id = SessionFactory.create(escrow, [account(1)])

        assert escrow.has_joined(session_id, account(1))
        assert not escrow.has_joined(session_id, account(2))

    def test_escrow_balance_sums_all_sessions(self, escrow):
        SessionFactory.create(escrow, [account(1), account(2)])
        SessionFactory.create(escrow, [account(3)])

        assert escrow.escrow_balance() == 3 * ENTRY_FEE
