"""Schedule proposal and calendar event model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import AuditMixin, Base
from jobline.models.enums import CalendarEventType, ProposalStatus


class JobScheduleProposal(Base, AuditMixin):
    __tablename__ = "job_schedule_proposals"
    __table_args__ = (
        Index("idx_schedule_proposals_job_archived", "job_id", "is_archived"),
        Index("idx_schedule_proposals_job_status", "job_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    proposed_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    counter_proposed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default=ProposalStatus.PENDING_CLIENT.value, nullable=False)
    proposed_by: Mapped[str] = mapped_column(String(64), default="admin", nullable=False)
    client_notes: Mapped[str | None] = mapped_column(Text)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    job = relationship("Job")


class CalendarEvent(Base, AuditMixin):
    __tablename__ = "calendar_events"
    __table_args__ = (Index("idx_calendar_events_job_type", "job_id", "event_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"))
    event_type: Mapped[str] = mapped_column(String(20), default=CalendarEventType.OTHER.value, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    job = relationship("Job")
