"""Initial schema: conversations, messages, mentor conversations and messages.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Changes:
- Create conversations table with per-mode JSONB state
- Create messages table (append-only history)
- Create mentor_conversations and mentor_messages tables
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # CONVERSATIONS TABLE
    # ==========================================================================
    op.create_table(
        "conversations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("mode", sa.String(), nullable=False, server_default="study"),
        sa.Column("title", sa.String(), nullable=False, server_default="Study Session"),

        # Embedded state, one JSONB document per mode
        sa.Column("long_term_memory", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("study_state", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("competitive_state", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("exam_state", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),

        # Timestamps
        sa.Column("created_at", TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_conversations_created_at", "conversations", ["created_at"])

    # ==========================================================================
    # MESSAGES TABLE
    # ==========================================================================
    op.create_table(
        "messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("conversation_id", UUID(as_uuid=True), sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="check_message_role"),
    )
    op.create_index(
        "idx_messages_conversation_id_created_at", "messages", ["conversation_id", "created_at"]
    )

    # ==========================================================================
    # MENTOR TABLES
    # ==========================================================================
    op.create_table(
        "mentor_conversations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("created_at", TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )

    op.create_table(
        "mentor_messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("conversation_id", UUID(as_uuid=True), sa.ForeignKey("mentor_conversations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="check_mentor_message_role"),
    )
    op.create_index(
        "idx_mentor_messages_conversation_id_created_at", "mentor_messages", ["conversation_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_mentor_messages_conversation_id_created_at", table_name="mentor_messages")
    op.drop_table("mentor_messages")
    op.drop_table("mentor_conversations")
    op.drop_index("idx_messages_conversation_id_created_at", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_conversations_created_at", table_name="conversations")
    op.drop_table("conversations")
