"""Job stage audit model module."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jobline.models.base import AuditMixin, Base


class JobStageAudit(Base, AuditMixin):
    __tablename__ = "job_stage_audit"
    __table_args__ = (Index("idx_job_stage_audit_job", "job_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    old_stage: Mapped[str] = mapped_column(String(40), nullable=False)
    new_stage: Mapped[str] = mapped_column(String(40), nullable=False)
    actor: Mapped[str] = mapped_column(String(64), default="system", nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
