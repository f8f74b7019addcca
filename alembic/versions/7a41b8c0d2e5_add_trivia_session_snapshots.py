"""add_trivia_session_snapshots

Revision ID: 7a41b8c0d2e5
Revises: 3c9d2e7f1a40
Create Date: 2026-10-19 14:03:27.551902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '7a41b8c0d2e5'
down_revision: Union[str, None] = '3c9d2e7f1a40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "trivia_session_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("revision", sa.BigInteger(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(20), nullable=False),
        sa.Column("prize_pool", sa.String(80), nullable=False),
        sa.Column("start_time", sa.BigInteger(), nullable=False),
        sa.Column("end_time", sa.BigInteger(), nullable=False),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("winners", sa.JSON(), nullable=False),
        sa.Column("disbursements", sa.JSON(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_trivia_session_snapshots_revision", "trivia_session_snapshots", ["revision"]
    )
    op.create_index(
        "ix_trivia_session_snapshots_session_id", "trivia_session_snapshots", ["session_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_trivia_session_snapshots_session_id", table_name="trivia_session_snapshots")
    op.drop_index("ix_trivia_session_snapshots_revision", table_name="trivia_session_snapshots")
    op.drop_table("trivia_session_snapshots")
