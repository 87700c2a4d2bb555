"""add call_records, automation_config, chat_tokens and device_identity tables

Revision ID: 4f2a9c1d7e3b
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "4f2a9c1d7e3b"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create the local store for the missed-call automation."""
    op.create_table(
        "call_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("call_id", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=64), nullable=False),
        sa.Column("call_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "message_sent", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("channel_used", sa.String(length=32), nullable=True),
        sa.Column("outcome", sa.String(length=32), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_call_records_call_id", "call_records", ["call_id"], unique=True
    )

    op.create_table(
        "automation_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "filter_known_contacts",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("sent_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_sent_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("local_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("remote_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "push_pending", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *_timestamps(),
    )

    op.create_table(
        "chat_tokens",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("provider_identity", sa.String(length=255), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("conversation_url", sa.String(length=1024), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("origin", sa.String(length=16), nullable=False, server_default="remote"),
        sa.Column(
            "remote_registered", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_chat_tokens_provider_identity",
        "chat_tokens",
        ["provider_identity"],
        unique=False,
    )
    op.create_index("ix_chat_tokens_token", "chat_tokens", ["token"], unique=True)

    op.create_table(
        "device_identity",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("device_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("linked_user_id", sa.String(length=255), nullable=True),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("device_identity")
    op.drop_index("ix_chat_tokens_token", table_name="chat_tokens")
    op.drop_index("ix_chat_tokens_provider_identity", table_name="chat_tokens")
    op.drop_table("chat_tokens")
    op.drop_table("automation_config")
    op.drop_index("ix_call_records_call_id", table_name="call_records")
    op.drop_table("call_records")
