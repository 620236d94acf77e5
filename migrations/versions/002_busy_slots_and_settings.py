"""Owner busy slots and the site settings row.

Revision ID: 002_busy_slots_settings
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_busy_slots_settings"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "busy_slots",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("busy_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("title", sa.String(), nullable=False, server_default="Besetzt"),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("start_time < end_time", name="ck_busy_slots_time_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_busy_slots_busy_date"), "busy_slots", ["busy_date"], unique=False)
    op.create_index(op.f("ix_busy_slots_end_date"), "busy_slots", ["end_date"], unique=False)

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("maintenance_mode", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "maintenance_message",
            sa.String(),
            nullable=False,
            server_default="Wir sind bald wieder da!",
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_index(op.f("ix_busy_slots_end_date"), table_name="busy_slots")
    op.drop_index(op.f("ix_busy_slots_busy_date"), table_name="busy_slots")
    op.drop_table("busy_slots")
