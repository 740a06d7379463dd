"""Read model assembling a job's stage-gating signals from related tables."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobline.models import (
    CalendarEvent,
    CalendarEventType,
    DocumentStatus,
    DocumentType,
    FinancialTransaction,
    Invoice,
    Job,
    JobClientPayment,
    JobScheduleProposal,
    JobSurvey,
    ProposalStatus,
    QuoteLineItem,
    SurveyStatus,
    TransactionSource,
    TransactionType,
)
from jobline.schemas.stages import JobSignals
from jobline.utils.money import round_money, to_decimal

logger = logging.getLogger(__name__)

SURVEY_SCHEDULED_STATUSES = (SurveyStatus.SCHEDULED.value, SurveyStatus.COMPLETED.value)
WORK_SCHEDULED_PROPOSAL_STATUSES = (ProposalStatus.CONFIRMED.value, ProposalStatus.SCHEDULED.value)
NON_ISSUED_DOCUMENT_STATUSES = (DocumentStatus.DRAFT.value, DocumentStatus.VOID.value)


@dataclass(frozen=True)
class EnrichedJob:
    """Flat view of a job plus derived signals; the only input stage validation reads."""

    job_id: int
    status: str
    delivery_type: str | None = None
    partner_id: int | None = None
    quoted_value: Decimal | None = None
    quote_response: str | None = None
    deposit_required: bool = False
    deposit_amount: Decimal | None = None
    deposit_received: bool = False
    has_quote_items: bool = False
    has_survey_scheduled: bool = False
    has_work_scheduled: bool = False
    has_invoice: bool = False
    paid_amount: Decimal = Decimal("0.00")

    @property
    def is_paid_in_full(self) -> bool:
        quoted = to_decimal(self.quoted_value)
        return quoted > 0 and self.paid_amount >= quoted

    def value_of(self, field_name: str) -> Any:
        return getattr(self, field_name, None)

    def signals(self) -> JobSignals:
        payload = {key: value for key, value in asdict(self).items() if key in JobSignals.model_fields}
        return JobSignals(**payload, is_paid_in_full=self.is_paid_in_full)


class JobDataEnricher:
    """Run the read-only aggregate queries behind ``EnrichedJob``."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def enrich(self, job_id: int) -> EnrichedJob | None:
        job = self.db.get(Job, job_id)
        if job is None:
            logger.info("enrichment.job_not_found", extra={"event": "enrichment.job_not_found", "job_id": job_id})
            return None

        return EnrichedJob(
            job_id=job.id,
            status=job.status,
            delivery_type=job.delivery_type,
            partner_id=job.partner_id,
            quoted_value=job.quoted_value,
            quote_response=job.quote_response,
            deposit_required=bool(job.deposit_required),
            deposit_amount=job.deposit_amount,
            deposit_received=bool(job.deposit_received),
            has_quote_items=self._quote_item_count(job_id) > 0,
            has_survey_scheduled=self._has_scheduled_survey(job_id),
            has_work_scheduled=self._has_work_scheduled(job_id),
            has_invoice=self._has_issued_invoice(job_id),
            paid_amount=self.paid_amount(job_id),
        )

    def _quote_item_count(self, job_id: int) -> int:
        return self.db.query(QuoteLineItem).filter(QuoteLineItem.job_id == job_id).count()

    def _has_scheduled_survey(self, job_id: int) -> bool:
        row = (
            self.db.query(JobSurvey.id)
            .filter(JobSurvey.job_id == job_id)
            .filter(JobSurvey.status.in_(SURVEY_SCHEDULED_STATUSES))
            .first()
        )
        return row is not None

    def _has_work_scheduled(self, job_id: int) -> bool:
        event = (
            self.db.query(CalendarEvent.id)
            .filter(CalendarEvent.job_id == job_id)
            .filter(CalendarEvent.event_type == CalendarEventType.PROJECT_START.value)
            .first()
        )
        if event is not None:
            return True
        proposal = (
            self.db.query(JobScheduleProposal.id)
            .filter(JobScheduleProposal.job_id == job_id)
            .filter(JobScheduleProposal.status.in_(WORK_SCHEDULED_PROPOSAL_STATUSES))
            .first()
        )
        return proposal is not None

    def _has_issued_invoice(self, job_id: int) -> bool:
        row = (
            self.db.query(Invoice.id)
            .filter(Invoice.job_id == job_id)
            .filter(Invoice.type == DocumentType.INVOICE.value)
            .filter(Invoice.status.notin_(NON_ISSUED_DOCUMENT_STATUSES))
            .first()
        )
        return row is not None

    def paid_amount(self, job_id: int) -> Decimal:
        ledger_total = (
            self.db.query(func.coalesce(func.sum(FinancialTransaction.amount), 0))
            .filter(FinancialTransaction.job_id == job_id)
            .filter(FinancialTransaction.type == TransactionType.INCOME.value)
            .filter(FinancialTransaction.source_type == TransactionSource.JOB_PAYMENT.value)
            .scalar()
        )
        client_total = (
            self.db.query(func.coalesce(func.sum(JobClientPayment.amount), 0))
            .filter(JobClientPayment.job_id == job_id)
            .scalar()
        )
        return round_money(to_decimal(ledger_total) + to_decimal(client_total))
