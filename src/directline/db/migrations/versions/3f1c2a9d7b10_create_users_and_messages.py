"""create users and messages

Learn: The whole schema: a user directory with a unique contact handle,
and an append-only message log referencing it from both ends.

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-17 12:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("handle", sa.String(length=20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("handle"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recipient_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_messages_sender_recipient", "messages", ["sender_id", "recipient_id"]
    )
    op.create_index(
        "idx_messages_recipient_sender", "messages", ["recipient_id", "sender_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_messages_recipient_sender", table_name="messages")
    op.drop_index("idx_messages_sender_recipient", table_name="messages")
    op.drop_table("messages")
    op.drop_table("users")
