"""SQLAlchemy ORM models for the sentiment dashboard.

This module defines all database tables using SQLAlchemy 2.0 ORM style.
Uses async support via asyncpg driver.

Ownership: `Indicator` is the aggregate root. `IndicatorData` and
`IndicatorView` rows reference it by id and are never deleted with it;
indicators are deactivated through `is_active` instead.

Usage:
    from app.database.orm import Indicator, IndicatorData
    from app.database.connection import get_session

    async with get_session() as session:
        indicator = await session.get(Indicator, "cnn-fgi")
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


# Naming convention for constraints and indexes (deterministic names for Alembic)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

INDICATOR_CATEGORIES = ("sentiment", "crypto", "valuation", "volatility", "other")

# JSONB on PostgreSQL, plain JSON elsewhere; None is stored as SQL NULL
JsonType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# =============================================================================
# USERS (owned by the external auth service, read-only here)
# =============================================================================


class AppUser(Base):
    """Authenticated user as known to the auth service."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(320))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# =============================================================================
# INDICATOR CATALOG
# =============================================================================


class Indicator(Base):
    """Tracked indicator identity."""
    __tablename__ = "indicators"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    data_points: Mapped[list[IndicatorData]] = relationship(
        back_populates="indicator", passive_deletes="all", lazy="noload"
    )
    views: Mapped[list[IndicatorView]] = relationship(
        back_populates="indicator", passive_deletes="all", lazy="noload"
    )

    __table_args__ = (
        CheckConstraint(
            "category IN (" + ", ".join(f"'{c}'" for c in INDICATOR_CATEGORIES) + ")",
            name="category_valid",
        ),
        Index("idx_indicators_category", "category"),
        Index("idx_indicators_active", "is_active", postgresql_where=text("is_active = TRUE")),
    )


# =============================================================================
# TIME SERIES
# =============================================================================


class IndicatorData(Base):
    """One observed value of an indicator at one instant."""
    __tablename__ = "indicator_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    indicator_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("indicators.id", ondelete="RESTRICT"), nullable=False
    )
    ts_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    label: Mapped[str | None] = mapped_column(Text)
    data_metadata: Mapped[dict | None] = mapped_column("metadata", JsonType)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    indicator: Mapped[Indicator] = relationship(back_populates="data_points")

    __table_args__ = (
        UniqueConstraint("indicator_id", "ts_utc", name="indicator_data_unique_constraint"),
        Index("indicator_data_indicator_idx", "indicator_id"),
        Index("indicator_data_time_idx", "ts_utc"),
    )


# =============================================================================
# VIEW LEDGER
# =============================================================================


class IndicatorView(Base):
    """One recorded impression of an indicator detail view."""
    __tablename__ = "indicator_views"

    id: Mapped[int] = mapped_column(primary_key=True)
    indicator_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("indicators.id", ondelete="RESTRICT"), nullable=False
    )
    viewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    user_agent: Mapped[str | None] = mapped_column(Text)
    ip_hash: Mapped[str | None] = mapped_column(String(64))
    user_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="SET NULL")
    )
    session_id: Mapped[str | None] = mapped_column(String(128))

    indicator: Mapped[Indicator] = relationship(back_populates="views")

    __table_args__ = (
        Index("indicator_views_indicator_idx", "indicator_id"),
        Index("indicator_views_time_idx", "viewed_at"),
        Index("indicator_views_user_idx", "user_id", postgresql_where=text("user_id IS NOT NULL")),
    )


# =============================================================================
# LEGACY
# =============================================================================


class FgiHourly(Base):
    """Deprecated CNN Fear & Greed table, kept for reads only."""
    __tablename__ = "fgi_hourly"

    ts_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    score: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
