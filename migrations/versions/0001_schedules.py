"""Schedules and their appointments."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_schedules"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("icon", sa.Text(), server_default="", nullable=False),
        sa.Column("created_at", sa.Text(), server_default=sa.text("(datetime('now'))"), nullable=False),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("schedule_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), server_default=sa.text("(datetime('now'))"), nullable=False),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
        sa.CheckConstraint("start_time < end_time", name="ck_appointments_interval"),
    )
    op.create_index(
        "idx_appointments_schedule_start",
        "appointments",
        ["schedule_id", "start_time"],
    )


def downgrade() -> None:
    op.drop_index("idx_appointments_schedule_start", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("schedules")
