"""Create members, privacy_policies, interaction_requests and messages

Revision ID: 4c2e9a7d1b03
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c2e9a7d1b03"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create the recognition & consent schema."""
    op.create_table(
        "members",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("receptive", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("verified", sa.Boolean(), nullable=True, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "privacy_policies",
        sa.Column(
            "member_id",
            sa.String(64),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "allow_direct_messages", sa.Boolean(), nullable=True, server_default=sa.false()
        ),
        sa.Column(
            "allow_connection_requests", sa.Boolean(), nullable=True, server_default=sa.true()
        ),
        sa.Column("daily_request_limit", sa.Integer(), nullable=True, server_default="5"),
        sa.Column("visible_to_roles", postgresql.JSONB(), nullable=True),
        _timestamp("updated_at"),
    )

    op.create_table(
        "interaction_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "sender_id",
            sa.String(64),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            sa.String(64),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("purpose", sa.String(30), nullable=True),
        sa.Column(
            "payload",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index(
        "uq_interaction_requests_pending",
        "interaction_requests",
        ["sender_id", "receiver_id", "kind"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )
    op.create_index(
        "ix_interaction_requests_sender_time",
        "interaction_requests",
        ["sender_id", "created_at"],
    )
    op.create_index(
        "ix_interaction_requests_receiver_time",
        "interaction_requests",
        ["receiver_id", "created_at"],
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "sender_id",
            sa.String(64),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            sa.String(64),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_flagged", sa.Boolean(), nullable=True, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index(
        "ix_messages_pair_time",
        "messages",
        ["sender_id", "receiver_id", "created_at"],
    )


def downgrade() -> None:
    """Drop the recognition & consent schema."""
    op.drop_index("ix_messages_pair_time", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_interaction_requests_receiver_time", table_name="interaction_requests")
    op.drop_index("ix_interaction_requests_sender_time", table_name="interaction_requests")
    op.drop_index("uq_interaction_requests_pending", table_name="interaction_requests")
    op.drop_table("interaction_requests")
    op.drop_table("privacy_policies")
    op.drop_table("members")
