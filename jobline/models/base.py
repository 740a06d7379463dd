"""Shared SQLAlchemy base and common mixins for the domain models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


# Quantities, percentages and rates keep four places; money keeps two.
RATE = Numeric(12, 4, asdecimal=True)


class Base(DeclarativeBase):
    """Declarative base class for the JobLine schema."""

    type_annotation_map = {Decimal: Numeric(12, 2, asdecimal=True)}


class AuditMixin:
    """Standard audit fields for all domain models."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
