"""Add per-conversation position to messages and mentor messages.

Revision ID: 002
Revises: 001
Create Date: 2026-10-20

Changes:
- Add position column, backfilled in (created_at, id) order
- Replace the (conversation_id, created_at) indexes with a unique
  (conversation_id, position) constraint
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

_TABLES = (
    ("messages", "idx_messages_conversation_id_created_at", "uq_messages_conversation_position"),
    (
        "mentor_messages",
        "idx_mentor_messages_conversation_id_created_at",
        "uq_mentor_messages_conversation_position",
    ),
)


def upgrade() -> None:
    for table, old_index, constraint in _TABLES:
        op.add_column(table, sa.Column("position", sa.Integer(), nullable=True))
        op.execute(
            f"""
            UPDATE {table} AS m
            SET position = ordered.rn
            FROM (
                SELECT id, ROW_NUMBER() OVER (
                    PARTITION BY conversation_id ORDER BY created_at, id
                ) AS rn
                FROM {table}
            ) AS ordered
            WHERE m.id = ordered.id
            """
        )
        op.alter_column(table, "position", nullable=False)
        op.drop_index(old_index, table_name=table)
        op.create_unique_constraint(constraint, table, ["conversation_id", "position"])


def downgrade() -> None:
    for table, old_index, constraint in _TABLES:
        op.drop_constraint(constraint, table, type_="unique")
        op.create_index(old_index, table, ["conversation_id", "created_at"])
        op.drop_column(table, "position")
