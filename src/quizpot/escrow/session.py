"""Trivia session entity and its read-only snapshot."""

from dataclasses import dataclass, field

from quizpot.models.enums import DisbursementKind, DisbursementStatus, SessionState


@dataclass(eq=False)
class Disbursement:
    """One payout or refund transfer attempt out of escrow."""

    kind: DisbursementKind
    recipient: str
    amount: int
    status: DisbursementStatus
    rank: int | None = None
    attempts: int = 1
    error: str | None = None

    def copy(self) -> "Disbursement":
        return Disbursement(
            kind=self.kind,
            recipient=self.recipient,
            amount=self.amount,
            status=self.status,
            rank=self.rank,
            attempts=self.attempts,
            error=self.error,
        )


@dataclass
class TriviaSession:
    """Mutable session record owned by the registry.

    Only the escrow engine mutates it, and only while holding the mutation
    guard. Everything else sees SessionView snapshots.
    """

    id: int
    title: str
    max_participants: int
    state: SessionState = SessionState.OPEN
    prize_pool: int = 0
    start_time: int = 0
    end_time: int = 0
    participants: list[str] = field(default_factory=list)
    winners: list[str] = field(default_factory=list)
    joined: set[str] = field(default_factory=set)
    disbursements: list[Disbursement] = field(default_factory=list)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.max_participants

    @property
    def disbursed_total(self) -> int:
        return sum(d.amount for d in self.disbursements if d.status == DisbursementStatus.SENT)

    def add_participant(self, participant: str, entry_fee: int) -> None:
        self.participants.append(participant)
        self.joined.add(participant)
        self.prize_pool += entry_fee

    def view(self) -> "SessionView":
        return SessionView(
            id=self.id,
            title=self.title,
            max_participants=self.max_participants,
            state=self.state,
            prize_pool=self.prize_pool,
            start_time=self.start_time,
            end_time=self.end_time,
            participants=tuple(self.participants),
            winners=tuple(self.winners),
            disbursed_total=self.disbursed_total,
        )

    def __repr__(self) -> str:
        return (
            f"<TriviaSession(id={self.id}, state={self.state.value}, "
            f"participants={len(self.participants)}/{self.max_participants}, "
            f"prize_pool={self.prize_pool})>"
        )


@dataclass(frozen=True)
class SessionView:
    """Immutable snapshot handed to observers."""

    id: int
    title: str
    max_participants: int
    state: SessionState
    prize_pool: int
    start_time: int
    end_time: int
    participants: tuple[str, ...]
    winners: tuple[str, ...]
    disbursed_total: int = 0

    @property
    def undisbursed(self) -> int:
        """Value still held in escrow for this session: truncation dust plus failed transfers."""
        return self.prize_pool - self.disbursed_total


@dataclass(frozen=True)
class SessionSnapshot:
    """A session view plus its disbursement records, read under one lock.

    Snapshots with a higher revision were read later and are never older.
    """

    revision: int
    view: SessionView
    disbursements: tuple[Disbursement, ...]
