"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Formats table with a non-negative vote counter
    op.create_table(
        "formats",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("votes >= 0", name="ck_formats_votes_non_negative"),
    )
    op.create_index(
        "ux_formats_name_lower", "formats", [sa.text("lower(name)")], unique=True
    )
    op.create_index(op.f("ix_formats_kind"), "formats", ["kind"])
    op.create_index(op.f("ix_formats_status"), "formats", ["status"])
    op.create_index(op.f("ix_formats_votes"), "formats", ["votes"])

    # Votes table: one row per (device, format), removed with its format
    op.create_table(
        "votes",
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column(
            "format_id",
            sa.String(36),
            sa.ForeignKey("formats.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("device_id", "format_id"),
    )
    op.create_index(op.f("ix_votes_format_id"), "votes", ["format_id"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("formats")
