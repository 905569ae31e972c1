"""Initial schema with queues and queue_messages tables

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _key_type() -> sa.types.TypeEngine:
    # Keys must compare bytewise so that text order matches time order
    if op.get_bind().dialect.name == "postgresql":
        return sa.String(64, collation="C")
    return sa.String(64)


def _json_type() -> sa.types.TypeEngine:
    if op.get_bind().dialect.name == "postgresql":
        return postgresql.JSONB()
    return sa.JSON()


def upgrade() -> None:
    # Queue directory
    op.create_table(
        "queues",
        sa.Column("queue_id", _key_type(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("visibility_timeout", sa.Integer, nullable=False, server_default="30"),
        sa.Column("created_time", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("queue_id"),
    )

    # Per-queue ordered message store. The primary key (queue_id, key)
    # is the index range scans walk.
    op.create_table(
        "queue_messages",
        sa.Column("queue_id", _key_type(), nullable=False),
        sa.Column("key", _key_type(), nullable=False),
        sa.Column("record", _json_type(), nullable=False),
        sa.PrimaryKeyConstraint("queue_id", "key"),
    )


def downgrade() -> None:
    op.drop_table("queue_messages")
    op.drop_table("queues")
