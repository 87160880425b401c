"""progress records

Revision ID: 0001_progress
Revises:
Create Date: 2026-10-16 10:12:40.118302

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_progress"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "progress_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        sa.Column("language", sa.String(length=32), nullable=True),
        sa.Column("difficulty", sa.String(length=16), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("activity_data", sa.JSON(), nullable=False),
    )
    op.create_index("ix_progress_records_created_at", "progress_records", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_progress_records_created_at", table_name="progress_records")
    op.drop_table("progress_records")
