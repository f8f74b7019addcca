"""Pydantic schemas for the trivia session API."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator

from quizpot.core.validators import validate_title
from quizpot.models.enums import DisbursementKind, DisbursementStatus, SessionState
from quizpot.utils.datetime import from_unix

if TYPE_CHECKING:
    from quizpot.escrow.session import SessionView


class SessionCreate(BaseModel):
    """Schema for opening a new trivia session."""

    title: str = Field(..., min_length=1, max_length=200)
    # Not bounded here: capacity below 1 is rejected by the engine as INVALID_CAPACITY
    max_participants: int = Field(..., description="Participant limit, at least 1")

    @field_validator("title")
    @classmethod
    def validate_title_field(cls, v: str) -> str:
        return validate_title(v)


class WinnersSubmit(BaseModel):
    """Ranked winner list; position 0 is first place."""

    winners: list[str] = Field(..., description="1 to 3 participant addresses in rank order")


class AdministratorTransfer(BaseModel):
    new_administrator: str = Field(..., min_length=1, max_length=100)


class SessionRead(BaseModel):
    """Schema for reading a session snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    max_participants: int
    state: SessionState
    prize_pool: int
    start_time: int
    end_time: int
    participants: list[str]
    winners: list[str]
    undisbursed: int

    @field_serializer("prize_pool", "undisbursed")
    def serialize_token_amount(self, value: int) -> str:
        # Decimal string: token amounts exceed 2**53
        return str(value)

    @computed_field
    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @computed_field
    @property
    def started_at(self) -> datetime | None:
        return from_unix(self.start_time)

    @computed_field
    @property
    def ended_at(self) -> datetime | None:
        return from_unix(self.end_time)

    @classmethod
    def from_view(cls, view: "SessionView") -> "SessionRead":
        return cls(
            id=view.id,
            title=view.title,
            max_participants=view.max_participants,
            state=view.state,
            prize_pool=view.prize_pool,
            start_time=view.start_time,
            end_time=view.end_time,
            participants=list(view.participants),
            winners=list(view.winners),
            undisbursed=view.undisbursed,
        )


class DisbursementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: DisbursementKind
    recipient: str
    amount: int
    status: DisbursementStatus
    rank: int | None = None
    attempts: int
    error: str | None = None

    @field_serializer("amount")
    def serialize_amount(self, value: int) -> str:
        return str(value)


class MembershipRead(BaseModel):
    session_id: int
    account: str
    joined: bool


class EscrowEventRead(BaseModel):
    """Schema for reading a persisted escrow notification."""

    model_config = ConfigDict(from_attributes=True)

    sequence: int
    session_id: int | None
    kind: str
    data: dict[str, Any]
    emitted_at: int
    recorded_at: datetime
    recorded_by: str | None
