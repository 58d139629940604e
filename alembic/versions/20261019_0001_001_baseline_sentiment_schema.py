"""Baseline sentiment dashboard schema.

Revision ID: 001_baseline
Revises: 
Create Date: 2026-10-19

Creates the indicator catalog, the append-only indicator time series, the
view ledger and the deprecated hourly Fear & Greed table.

The `users` table belongs to the auth service. It is created here only if it
does not exist so a standalone deployment has something to reference.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables and indexes."""
    # ==========================================================================
    # USERS (external)
    # ==========================================================================

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(255),
            email VARCHAR(320),
            created_at TIMESTAMPTZ DEFAULT now()
        )
        """
    )

    # ==========================================================================
    # INDICATOR CATALOG
    # ==========================================================================

    op.create_table(
        "indicators",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_indicators"),
        sa.CheckConstraint(
            "category IN ('sentiment', 'crypto', 'valuation', 'volatility', 'other')",
            name="ck_indicators_category_valid",
        ),
    )
    op.create_index("idx_indicators_category", "indicators", ["category"])
    op.create_index(
        "idx_indicators_active",
        "indicators",
        ["is_active"],
        postgresql_where=sa.text("is_active = TRUE"),
    )

    # ==========================================================================
    # TIME SERIES
    # ==========================================================================

    op.create_table(
        "indicator_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("indicator_id", sa.String(64), nullable=False),
        sa.Column("ts_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("value", sa.Numeric(), nullable=False),
        sa.Column("label", sa.Text()),
        sa.Column("metadata", postgresql.JSONB()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_indicator_data"),
        sa.ForeignKeyConstraint(
            ["indicator_id"],
            ["indicators.id"],
            name="fk_indicator_data_indicator_id_indicators",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("indicator_id", "ts_utc", name="indicator_data_unique_constraint"),
    )
    op.create_index("indicator_data_indicator_idx", "indicator_data", ["indicator_id"])
    op.create_index("indicator_data_time_idx", "indicator_data", ["ts_utc"])

    # ==========================================================================
    # VIEW LEDGER
    # ==========================================================================

    op.create_table(
        "indicator_views",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("indicator_id", sa.String(64), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("user_agent", sa.Text()),
        sa.Column("ip_hash", sa.String(64)),
        sa.Column("user_id", sa.String(64)),
        sa.Column("session_id", sa.String(128)),
        sa.PrimaryKeyConstraint("id", name="pk_indicator_views"),
        sa.ForeignKeyConstraint(
            ["indicator_id"],
            ["indicators.id"],
            name="fk_indicator_views_indicator_id_indicators",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_indicator_views_user_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("indicator_views_indicator_idx", "indicator_views", ["indicator_id"])
    op.create_index("indicator_views_time_idx", "indicator_views", ["viewed_at"])
    op.create_index(
        "indicator_views_user_idx",
        "indicator_views",
        ["user_id"],
        postgresql_where=sa.text("user_id IS NOT NULL"),
    )

    # ==========================================================================
    # LEGACY
    # ==========================================================================

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS fgi_hourly (
            ts_utc TIMESTAMPTZ PRIMARY KEY,
            score SMALLINT NOT NULL,
            label TEXT NOT NULL
        )
        """
    )


def downgrade() -> None:
    """Drop the tables owned by this service; `users` and `fgi_hourly` are kept."""
    op.drop_index("indicator_views_user_idx", table_name="indicator_views")
    op.drop_index("indicator_views_time_idx", table_name="indicator_views")
    op.drop_index("indicator_views_indicator_idx", table_name="indicator_views")
    op.drop_table("indicator_views")

    op.drop_index("indicator_data_time_idx", table_name="indicator_data")
    op.drop_index("indicator_data_indicator_idx", table_name="indicator_data")
    op.drop_table("indicator_data")

    op.drop_index("idx_indicators_active", table_name="indicators")
    op.drop_index("idx_indicators_category", table_name="indicators")
    op.drop_table("indicators")
