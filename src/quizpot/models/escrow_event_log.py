"""Append-only log of escrow notifications for off-system indexing."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quizpot.core.db import Base
from quizpot.utils.datetime import now_utc


class EscrowEventLog(Base):
    """Immutable record of one escrow notification."""

    __tablename__ = "escrow_event_logs"

    # Database-assigned; emission order across requests and restarts
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    session_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # WHAT
    kind: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # WHEN
    emitted_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(default=now_utc)

    # WHO triggered it (caller account from the request)
    recorded_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<EscrowEventLog(session_id={self.session_id}, "
            f"kind={self.kind}, sequence={self.sequence})>"
        )
