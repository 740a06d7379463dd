"""Emergency callout model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import RATE, AuditMixin, Base
from jobline.models.enums import CalloutStatus


class EmergencyCallout(Base, AuditMixin):
    __tablename__ = "emergency_callouts"
    __table_args__ = (
        Index("idx_emergency_callouts_partner_fee", "assigned_partner_id", "fee_paid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="SET NULL"))
    assigned_partner_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id", ondelete="SET NULL"))
    incident_type: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=CalloutStatus.OPEN.value, nullable=False)
    total_collected: Mapped[Decimal | None]
    callout_fee_percent: Mapped[Decimal | None] = mapped_column(RATE)
    callout_fee_amount: Mapped[Decimal | None]
    fee_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fee_paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    job = relationship("Job")
    partner = relationship("Partner")
