"""Job model module."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import RATE, AuditMixin, Base
from jobline.models.enums import DeliveryType, JobStage


class Job(Base, AuditMixin):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_status", "status"),
        Index("idx_jobs_partner", "partner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_number: Mapped[str | None] = mapped_column(String(32), unique=True)
    contact_id: Mapped[int] = mapped_column(ForeignKey("contacts.id", ondelete="RESTRICT"), nullable=False)
    partner_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id", ondelete="SET NULL"))
    # Plain string so rows written by older pipelines still load.
    status: Mapped[str] = mapped_column(String(40), default=JobStage.NEW_ENQUIRY.value, nullable=False)
    delivery_type: Mapped[str] = mapped_column(String(20), default=DeliveryType.IN_HOUSE.value, nullable=False)
    quote_type: Mapped[str | None] = mapped_column(String(20))
    quoted_value: Mapped[Decimal | None]
    quote_response: Mapped[str | None] = mapped_column(String(20))

    deposit_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deposit_type: Mapped[str | None] = mapped_column(String(20))
    deposit_amount: Mapped[Decimal | None] = mapped_column(RATE)
    deposit_received: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    discount_type: Mapped[str | None] = mapped_column(String(20))
    discount_value: Mapped[Decimal | None] = mapped_column(RATE)

    tax_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tax_rate: Mapped[Decimal | None] = mapped_column(RATE)

    partner_charge_type: Mapped[str | None] = mapped_column(String(20))
    partner_charge: Mapped[Decimal | None] = mapped_column(RATE)
    ccc_margin: Mapped[Decimal | None]
    markup_percent: Mapped[Decimal | None] = mapped_column(RATE)

    partner_quote_amount: Mapped[Decimal | None]
    partner_quote_status: Mapped[str | None] = mapped_column(String(20))

    contact = relationship("Contact", back_populates="jobs")
    partner = relationship("Partner", back_populates="jobs")
    line_items = relationship(
        "QuoteLineItem",
        back_populates="job",
        order_by="QuoteLineItem.sort_order",
        cascade="all, delete-orphan",
    )
