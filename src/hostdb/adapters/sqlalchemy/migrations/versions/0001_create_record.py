"""create record table

Revision ID: 0001_create_record
Revises:
Create Date: 2026-10-19 09:00:00

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0001_create_record"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "record",
        sa.Column("id", sa.String(length=191), nullable=False),
        sa.Column("type", sa.String(length=191), nullable=False),
        sa.Column("hostname", sa.String(length=255), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=False),
        sa.Column("timestamp", sa.String(length=19), nullable=False),
        sa.Column("committer", sa.String(length=255), nullable=False),
        sa.Column("context", sa.JSON(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("hash", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_record")),
    )
    op.create_index(op.f("ix_record_type"), "record", ["type"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_record_type"), table_name="record")
    op.drop_table("record")
