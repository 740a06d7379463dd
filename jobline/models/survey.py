"""Job survey model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobline.models.base import AuditMixin, Base
from jobline.models.enums import SurveyStatus


class JobSurvey(Base, AuditMixin):
    __tablename__ = "job_surveys"
    __table_args__ = (Index("idx_job_surveys_job_status", "job_id", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    partner_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id", ondelete="SET NULL"))
    status: Mapped[str] = mapped_column(String(20), default=SurveyStatus.REQUESTED.value, nullable=False)
    booking_status: Mapped[str | None] = mapped_column(String(20))
    proposed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    counter_proposed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    job = relationship("Job")
    partner = relationship("Partner")
