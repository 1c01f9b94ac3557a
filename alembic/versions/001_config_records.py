"""Config records — one row per record of every persisted context.

Revision ID: 001_config_records
Revises: None
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_config_records"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "config_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("context_name", sa.String(64), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("context_name", "position", name="uq_config_records_slot"),
    )
    op.create_index(
        "ix_config_records_context_name", "config_records", ["context_name"],
    )


def downgrade() -> None:
    op.drop_index("ix_config_records_context_name", table_name="config_records")
    op.drop_table("config_records")
