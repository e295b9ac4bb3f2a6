"""Per-visitor view preferences, moved out of the session cookie."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002_view_preferences"
down_revision = "0001_schedules"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "view_preferences",
        sa.Column("visitor_id", sa.Text(), nullable=False),
        sa.Column("schedule_id", sa.Text(), nullable=False),
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), server_default=sa.text("(datetime('now'))"), nullable=False),
        sa.PrimaryKeyConstraint("visitor_id", "schedule_id", "key"),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_view_preferences_updated", "view_preferences", ["updated_at"])


def downgrade() -> None:
    op.drop_index("idx_view_preferences_updated", table_name="view_preferences")
    op.drop_table("view_preferences")
