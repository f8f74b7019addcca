"""Persisted snapshots of trivia sessions."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quizpot.core.db import Base
from quizpot.utils.datetime import now_utc


class TriviaSessionSnapshot(Base):
    """Full state of one session as read after a mutation.

    Rows are only appended. The row with the highest revision for a
    session_id is its current state. Token amounts are decimal strings
    because pools in wei overflow BIGINT.
    """

    __tablename__ = "trivia_session_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Engine-assigned; increases with the time the state was read
    revision: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    session_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False)
    prize_pool: Mapped[str] = mapped_column(String(80), nullable=False)

    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    participants: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    winners: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    disbursements: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    recorded_at: Mapped[datetime] = mapped_column(default=now_utc)

    def __repr__(self) -> str:
        return (
            f"<TriviaSessionSnapshot(session_id={self.session_id}, "
            f"revision={self.revision}, state={self.state})>"
        )
