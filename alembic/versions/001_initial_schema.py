"""initial schema — base, taught and api cache tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- base_entries ---
    op.create_table(
        "base_entries",
        sa.Column("english", sa.Text(), primary_key=True),
        sa.Column("tulu", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False, server_default="general"),
        sa.Column("verified", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_base_entries_category", "base_entries", ["category"])
    op.create_index("ix_base_entries_updated_at", "base_entries", ["updated_at"])

    # --- taught_entries ---
    op.create_table(
        "taught_entries",
        sa.Column("english", sa.Text(), primary_key=True),
        sa.Column("tulu", sa.Text(), nullable=False),
        sa.Column("contributor", sa.Text(), nullable=False, server_default="anonymous"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("usage_count", sa.Integer(), server_default="0"),
        sa.Column("votes", sa.Integer(), server_default="0"),
        sa.Column("verified", sa.Boolean(), server_default=sa.text("false")),
    )
    op.create_index("ix_taught_entries_updated_at", "taught_entries", ["updated_at"])

    # --- api_cache ---
    op.create_table(
        "api_cache",
        sa.Column("english", sa.Text(), primary_key=True),
        sa.Column("translation", sa.Text(), nullable=False),
        sa.Column("api_source", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_api_cache_created_at", "api_cache", ["created_at"])


def downgrade() -> None:
    op.drop_table("api_cache")
    op.drop_table("taught_entries")
    op.drop_table("base_entries")
