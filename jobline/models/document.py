"""Quote/invoice document and line item model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import RATE, AuditMixin, Base
from jobline.models.enums import DocumentStatus


class Invoice(Base, AuditMixin):
    """A versioned quote or invoice document belonging to a job."""

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("job_id", "type", "sequence_number", name="uq_invoices_job_type_sequence"),
        Index("idx_invoices_job_type_status", "job_id", "type", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    reference: Mapped[str | None] = mapped_column(String(64), unique=True)
    status: Mapped[str] = mapped_column(String(20), default=DocumentStatus.DRAFT.value, nullable=False)
    # Pricing inputs as they stood when the document was created.
    discount_type: Mapped[str | None] = mapped_column(String(20))
    discount_value: Mapped[Decimal | None] = mapped_column(RATE)
    tax_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tax_rate: Mapped[Decimal | None] = mapped_column(RATE)
    deposit_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deposit_type: Mapped[str | None] = mapped_column(String(20))
    deposit_amount: Mapped[Decimal | None] = mapped_column(RATE)
    subtotal: Mapped[Decimal | None]
    discount_amount: Mapped[Decimal | None]
    tax_amount: Mapped[Decimal | None]
    grand_total: Mapped[Decimal | None]
    deposit_calculated: Mapped[Decimal | None]
    show_in_portal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    job = relationship("Job")
    line_items = relationship(
        "QuoteLineItem",
        back_populates="document",
        order_by="QuoteLineItem.sort_order",
        cascade="all, delete-orphan",
    )


class QuoteLineItem(Base, AuditMixin):
    __tablename__ = "quote_line_items"
    __table_args__ = (
        CheckConstraint(
            "(job_id IS NULL) <> (document_id IS NULL)",
            name="ck_quote_line_items_single_owner",
        ),
        Index("idx_quote_line_items_job", "job_id"),
        Index("idx_quote_line_items_document", "document_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"))
    document_id: Mapped[int | None] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"))
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    unit_price: Mapped[Decimal]
    line_total: Mapped[Decimal]
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    job = relationship("Job", back_populates="line_items")
    document = relationship("Invoice", back_populates="line_items")
