"""
TriviaEscrow: the session lifecycle and escrow/payout engine.

Responsibilities:
1. Create sessions (administrator only)
2. Admit participants and pull their entry fee into escrow
3. Start, complete (with payout) and cancel (with refund) sessions
4. Answer read-only queries about session state

Every mutation runs under the MutationGuard and checks all of its
preconditions before touching state or the ledger. Queries only take the
short state lock.
"""

import threading
from typing import Callable, Iterable, Sequence

from quizpot.core.errors import (
    AlreadyJoinedError,
    InsufficientAllowanceError,
    InvalidCapacityError,
    NoParticipantsError,
    NoPendingDisbursementError,
    NotAdministratorError,
    NothingToRefundError,
    SessionFullError,
)
from quizpot.core.logging import get_logger
from quizpot.core.validators import require_address, validate_amount
from quizpot.escrow.guard import MutationGuard
from quizpot.escrow.notifications import Notification, NotificationBus
from quizpot.escrow.payout import PayoutEngine, validate_winners
from quizpot.escrow.refund import RefundEngine
from quizpot.escrow.registry import SessionRegistry
from quizpot.escrow.session import Disbursement, SessionSnapshot, SessionView, TriviaSession
from quizpot.escrow.state_machine import SessionStateMachine
from quizpot.escrow.transfers import DisbursementRunner
from quizpot.ledger.interfaces import TokenLedger
from quizpot.models.enums import (
    DisbursementKind,
    DisbursementStatus,
    NotificationKind,
    SessionState,
)
from quizpot.utils.datetime import unix_now

logger = get_logger(__name__)


class TriviaEscrow:
    """Escrow engine for entry-fee trivia sessions."""

    def __init__(
        self,
        ledger: TokenLedger,
        administrator: str,
        entry_fee: int,
        bus: NotificationBus | None = None,
        clock: Callable[[], int] = unix_now,
    ) -> None:
        self._administrator = require_address(administrator, "administrator")
        self._escrow_account = require_address(ledger.escrow_account, "escrow_account")
        self._entry_fee = validate_amount(entry_fee, "Entry fee")
        self._ledger = ledger
        self._clock = clock
        self.bus = bus or NotificationBus()

        self._registry = SessionRegistry()
        self._guard = MutationGuard()
        self._state_lock = threading.Lock()
        self._revision = 0

        self._runner = DisbursementRunner(ledger, self._state_lock)
        self._payouts = PayoutEngine(self._runner, self._emit)
        self._refunds = RefundEngine(self._runner, entry_fee, self._emit)

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def entry_fee(self) -> int:
        return self._entry_fee

    @property
    def escrow_account(self) -> str:
        return self._escrow_account

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    # ============ Session Registry ============

    def create_session(self, caller: str, title: str, max_participants: int) -> int:
        """
        Open a new session and return its id.

        Raises:
            NotAdministratorError: Caller is not the administrator
            InvalidCapacityError: max_participants is below 1
        """
        with self._guard.hold("create_session"):
            self._require_administrator(caller)
            if max_participants < 1:
                raise InvalidCapacityError(max_participants)

            with self._state_lock:
                session = self._registry.create(title, max_participants)

            logger.info(
                "session.created",
                session_id=session.id,
                max_participants=max_participants,
            )
            self._emit(
                Notification(
                    kind=NotificationKind.SESSION_CREATED,
                    session_id=session.id,
                    data={"title": title, "max_participants": max_participants},
                )
            )
            return session.id

    # ============ Entry / Escrow ============

    def join(self, session_id: int, participant: str) -> None:
        """
        Admit `participant` and pull one entry fee into escrow.

        The pull happens before anything is recorded, so a failed transfer
        leaves the session untouched.

        Raises:
            SessionNotFoundError, InvalidStateError, AlreadyJoinedError,
            SessionFullError, InsufficientAllowanceError, LedgerTransferError,
            ReentrantCallError
        """
        with self._guard.hold("join"):
            session = self._registry.get(session_id)
            SessionStateMachine.require_state(session, "join", SessionState.OPEN)

            if participant in session.joined:
                raise AlreadyJoinedError(session_id, participant)
            if session.is_full:
                raise SessionFullError(session_id, session.max_participants)

            allowance = self._ledger.allowance_of(participant, self._escrow_account)
            if allowance < self._entry_fee:
                raise InsufficientAllowanceError(participant, allowance, self._entry_fee)

            self._ledger.pull(participant, self._escrow_account, self._entry_fee)

            with self._state_lock:
                session.add_participant(participant, self._entry_fee)

            logger.info(
                "session.participant_joined",
                session_id=session_id,
                participant=participant,
                prize_pool=session.prize_pool,
            )
            self._emit(
                Notification(
                    kind=NotificationKind.PARTICIPANT_JOINED,
                    session_id=session_id,
                    data={"participant": participant},
                )
            )

    # ============ Lifecycle ============

    def start(self, caller: str, session_id: int) -> None:
        """Close entry: OPEN -> IN_PROGRESS."""
        with self._guard.hold("start"):
            self._require_administrator(caller)
            session = self._registry.get(session_id)
            SessionStateMachine.require_state(session, "start", SessionState.OPEN)
            if not session.participants:
                raise NoParticipantsError(session_id)

            with self._state_lock:
                SessionStateMachine.transition(session, SessionState.IN_PROGRESS, self._clock())

            self._emit(Notification(kind=NotificationKind.SESSION_STARTED, session_id=session_id))

    def complete(self, caller: str, session_id: int, winners: Sequence[str]) -> list[Disbursement]:
        """
        Declare ranked winners and pay them out: IN_PROGRESS -> COMPLETED.

        The winner list is fully validated before the state changes. Payout
        failures do not unwind the completion; they are returned as FAILED
        disbursements and can be retried.

        Raises:
            NotAdministratorError, SessionNotFoundError, InvalidStateError,
            InvalidWinnerCountError, InvalidWinnerError, DuplicateWinnerError
        """
        winners = list(winners)
        with self._guard.hold("complete"):
            self._require_administrator(caller)
            session = self._registry.get(session_id)
            SessionStateMachine.require_state(session, "complete", SessionState.IN_PROGRESS)
            validate_winners(session, winners)

            with self._state_lock:
                SessionStateMachine.transition(session, SessionState.COMPLETED, self._clock())
                session.winners = winners

            self._emit(
                Notification(
                    kind=NotificationKind.SESSION_COMPLETED,
                    session_id=session_id,
                    data={"winners": list(winners)},
                )
            )

            records = self._payouts.disburse(session)
            logger.info(
                "session.paid_out",
                session_id=session_id,
                prize_pool=session.prize_pool,
                paid=sum(d.amount for d in records if d.status == DisbursementStatus.SENT),
                failed=sum(1 for d in records if d.status == DisbursementStatus.FAILED),
            )
            return [d.copy() for d in records]

    def cancel(self, caller: str, session_id: int) -> list[Disbursement]:
        """
        Cancel and refund every participant: OPEN | IN_PROGRESS -> CANCELLED.

        Raises:
            NotAdministratorError, SessionNotFoundError, InvalidStateError,
            NothingToRefundError
        """
        with self._guard.hold("cancel"):
            self._require_administrator(caller)
            session = self._registry.get(session_id)
            SessionStateMachine.require_state(
                session, "cancel", SessionState.OPEN, SessionState.IN_PROGRESS
            )
            if not session.participants:
                raise NothingToRefundError(session_id)

            with self._state_lock:
                SessionStateMachine.transition(session, SessionState.CANCELLED, self._clock())

            self._emit(Notification(kind=NotificationKind.SESSION_CANCELLED, session_id=session_id))

            records = self._refunds.disburse(session)
            logger.info(
                "session.refunded",
                session_id=session_id,
                refunds=len(records),
                failed=sum(1 for d in records if d.status == DisbursementStatus.FAILED),
            )
            return [d.copy() for d in records]

    def retry_disbursement(self, caller: str, session_id: int, recipient: str) -> Disbursement:
        """Re-attempt the failed payout or refund owed to `recipient`."""
        with self._guard.hold("retry_disbursement"):
            self._require_administrator(caller)
            session = self._registry.get(session_id)

            pending = next(
                (
                    d
                    for d in session.disbursements
                    if d.recipient == recipient and d.status == DisbursementStatus.FAILED
                ),
                None,
            )
            if pending is None:
                raise NoPendingDisbursementError(session_id, recipient)

            with self._state_lock:
                pending.attempts += 1

            if self._runner.run(session, pending):
                engine = self._payouts if pending.kind == DisbursementKind.PAYOUT else self._refunds
                engine.notify(session_id, pending)
                logger.info(
                    "disbursement.retried",
                    session_id=session_id,
                    recipient=recipient,
                    attempts=pending.attempts,
                )
            return pending.copy()

    def transfer_administrator(self, caller: str, new_administrator: str) -> None:
        with self._guard.hold("transfer_administrator"):
            self._require_administrator(caller)
            new_administrator = require_address(new_administrator, "new_administrator")
            previous = self._administrator
            self._administrator = new_administrator
            self._emit(
                Notification(
                    kind=NotificationKind.ADMINISTRATOR_CHANGED,
                    session_id=None,
                    data={"previous": previous, "current": new_administrator},
                )
            )

    # ============ Queries ============

    def session_count(self) -> int:
        with self._state_lock:
            return len(self._registry)

    def get_session(self, session_id: int) -> SessionView | None:
        with self._state_lock:
            session = self._registry.find(session_id)
            return session.view() if session else None

    def list_sessions(self) -> list[SessionView]:
        with self._state_lock:
            return [session.view() for session in self._registry.all()]

    def get_participants(self, session_id: int) -> list[str]:
        with self._state_lock:
            session = self._registry.find(session_id)
            return list(session.participants) if session else []

    def get_winners(self, session_id: int) -> list[str]:
        with self._state_lock:
            session = self._registry.find(session_id)
            return list(session.winners) if session else []

    def has_joined(self, session_id: int, account: str) -> bool:
        with self._state_lock:
            session = self._registry.find(session_id)
            return session is not None and account in session.joined

    def get_state(self, session_id: int) -> SessionState | None:
        with self._state_lock:
            session = self._registry.find(session_id)
            return session.state if session else None

    def get_prize_pool(self, session_id: int) -> int:
        with self._state_lock:
            session = self._registry.find(session_id)
            return session.prize_pool if session else 0

    def get_disbursements(self, session_id: int) -> list[Disbursement]:
        with self._state_lock:
            session = self._registry.find(session_id)
            return [d.copy() for d in session.disbursements] if session else []

    def escrow_balance(self) -> int:
        return self._ledger.balance_of(self._escrow_account)

    # ============ Persistence ============

    def export_sessions(self, session_ids: Iterable[int]) -> list[SessionSnapshot]:
        """Point-in-time copies of the given sessions; unknown ids are skipped."""
        snapshots = []
        with self._state_lock:
            for session_id in sorted(set(session_ids)):
                session = self._registry.find(session_id)
                if session is None:
                    continue
                self._revision += 1
                snapshots.append(
                    SessionSnapshot(
                        revision=self._revision,
                        view=session.view(),
                        disbursements=tuple(d.copy() for d in session.disbursements),
                    )
                )
        return snapshots

    def restore_sessions(self, sessions: Iterable[TriviaSession], revision: int = 0) -> int:
        """
        Load persisted sessions back into the registry.

        New sessions continue after the highest restored id, and later
        snapshots continue after `revision`.

        Returns:
            Number of sessions restored
        """
        with self._guard.hold("restore_sessions"):
            restored = 0
            with self._state_lock:
                for session in sessions:
                    self._registry.restore(session)
                    restored += 1
                self._revision = max(self._revision, revision)
            logger.info("escrow.restored", sessions=restored, revision=revision)
            return restored

    # ============ Internals ============

    def _require_administrator(self, caller: str) -> None:
        if caller != self._administrator:
            logger.warning(
                "auth.permission_denied",
                caller=caller,
                operation=self._guard.active_operation,
            )
            raise NotAdministratorError(caller)

    def _emit(self, notification: Notification) -> None:
        self.bus.publish(notification)
