"""Financial ledger and client payment model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import AuditMixin, Base, utcnow


class FinancialTransaction(Base, AuditMixin):
    """Append-only ledger entry; never updated after insert."""

    __tablename__ = "financial_transactions"
    __table_args__ = (
        UniqueConstraint("source_type", "source_id", name="uq_financial_transactions_source"),
        Index("idx_financial_transactions_job_type", "job_id", "type", "source_type"),
        Index("idx_financial_transactions_partner", "partner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="SET NULL"))
    partner_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id", ondelete="SET NULL"))
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal]
    gross_amount: Mapped[Decimal | None]
    profit_amount: Mapped[Decimal | None]
    partner_cost: Mapped[Decimal | None]
    source_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # Null for free-standing entries; set for event-sourced ones so each is written once.
    source_id: Mapped[int | None] = mapped_column(Integer)
    description: Mapped[str | None] = mapped_column(Text)
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    job = relationship("Job")
    partner = relationship("Partner")


class JobClientPayment(Base, AuditMixin):
    __tablename__ = "job_client_payments"
    __table_args__ = (Index("idx_job_client_payments_job", "job_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal]
    payment_method: Mapped[str | None] = mapped_column(String(40))
    reference: Mapped[str | None] = mapped_column(String(120))
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    job = relationship("Job")
