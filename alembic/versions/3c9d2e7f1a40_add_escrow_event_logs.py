"""add_escrow_event_logs

Revision ID: 3c9d2e7f1a40
Revises:
Create Date: 2026-10-18 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9d2e7f1a40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "escrow_event_logs",
        sa.Column("sequence", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("emitted_at", sa.BigInteger(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        sa.Column("recorded_by", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("sequence"),
    )
    op.create_index("ix_escrow_event_logs_session_id", "escrow_event_logs", ["session_id"])
    op.create_index("ix_escrow_event_logs_kind", "escrow_event_logs", ["kind"])


def downgrade() -> None:
    op.drop_index("ix_escrow_event_logs_kind", table_name="escrow_event_logs")
    op.drop_index("ix_escrow_event_logs_session_id", table_name="escrow_event_logs")
    op.drop_table("escrow_event_logs")
