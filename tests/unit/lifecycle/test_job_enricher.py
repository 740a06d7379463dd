from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from jobline.lifecycle.enricher import JobDataEnricher
from jobline.models import (
    CalendarEvent,
    CalendarEventType,
    Contact,
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


def _seed_job(session, **fields):
    contact = Contact(name="Enricher Client", email="client@example.com")
    session.add(contact)
    session.flush()
    job = Job(contact_id=contact.id, job_number=f"JOB-{contact.id:05d}", **fields)
    session.add(job)
    session.commit()
    session.refresh(job)
    return job


def test_enrich_missing_job_returns_none(session):
    assert JobDataEnricher(session).enrich(999) is None


def test_enrich_bare_job_has_no_signals(session):
    job = _seed_job(session)
    enriched = JobDataEnricher(session).enrich(job.id)

    assert enriched is not None
    assert enriched.status == "new_enquiry"
    assert enriched.has_quote_items is False
    assert enriched.has_survey_scheduled is False
    assert enriched.has_work_scheduled is False
    assert enriched.has_invoice is False
    assert enriched.paid_amount == Decimal("0.00")
    assert enriched.is_paid_in_full is False


def test_enrich_reads_related_records(session):
    job = _seed_job(session, quoted_value=Decimal("300.00"), deposit_required=True, deposit_amount=Decimal("30"))
    session.add_all(
        [
            QuoteLineItem(
                job_id=job.id,
                description="Boiler service",
                quantity=Decimal("1"),
                unit_price=Decimal("300"),
                line_total=Decimal("300.00"),
            ),
            JobSurvey(job_id=job.id, status=SurveyStatus.COMPLETED.value),
            JobScheduleProposal(
                job_id=job.id,
                proposed_start_date=datetime(2026, 11, 2, 8, 0),
                status=ProposalStatus.CONFIRMED.value,
            ),
            Invoice(job_id=job.id, type=DocumentType.INVOICE.value, sequence_number=1, status="sent"),
            JobClientPayment(job_id=job.id, payment_type="deposit", amount=Decimal("100.00")),
            FinancialTransaction(
                job_id=job.id,
                type=TransactionType.INCOME.value,
                amount=Decimal("200.00"),
                source_type=TransactionSource.JOB_PAYMENT.value,
            ),
        ]
    )
    session.commit()

    enriched = JobDataEnricher(session).enrich(job.id)

    assert enriched.has_quote_items is True
    assert enriched.has_survey_scheduled is True
    assert enriched.has_work_scheduled is True
    assert enriched.has_invoice is True
    assert enriched.deposit_required is True
    assert enriched.paid_amount == Decimal("300.00")
    assert enriched.is_paid_in_full is True


def test_requested_survey_does_not_count_as_scheduled(session):
    job = _seed_job(session)
    session.add(JobSurvey(job_id=job.id, status=SurveyStatus.ACCEPTED.value))
    session.commit()

    assert JobDataEnricher(session).enrich(job.id).has_survey_scheduled is False


def test_project_start_event_counts_as_work_scheduled(session):
    job = _seed_job(session)
    session.add(
        CalendarEvent(
            job_id=job.id,
            event_type=CalendarEventType.PROJECT_START.value,
            title="Start",
            starts_at=datetime(2026, 11, 9, 8, 0),
        )
    )
    session.add(
        JobScheduleProposal(
            job_id=job.id,
            proposed_start_date=datetime(2026, 11, 2, 8, 0),
            status=ProposalStatus.PENDING_CLIENT.value,
        )
    )
    session.commit()

    assert JobDataEnricher(session).enrich(job.id).has_work_scheduled is True


def test_pending_proposal_alone_is_not_work_scheduled(session):
    job = _seed_job(session)
    session.add(
        JobScheduleProposal(
            job_id=job.id,
            proposed_start_date=datetime(2026, 11, 2, 8, 0),
            status=ProposalStatus.CLIENT_COUNTERED.value,
        )
    )
    session.commit()

    assert JobDataEnricher(session).enrich(job.id).has_work_scheduled is False


def test_draft_void_and_quote_documents_are_not_issued_invoices(session):
    job = _seed_job(session)
    session.add_all(
        [
            Invoice(job_id=job.id, type=DocumentType.INVOICE.value, sequence_number=1, status=DocumentStatus.DRAFT.value),
            Invoice(job_id=job.id, type=DocumentType.INVOICE.value, sequence_number=2, status=DocumentStatus.VOID.value),
            Invoice(job_id=job.id, type=DocumentType.QUOTE.value, sequence_number=1, status=DocumentStatus.SENT.value),
        ]
    )
    session.commit()

    assert JobDataEnricher(session).enrich(job.id).has_invoice is False


def test_paid_amount_ignores_completion_and_fee_entries(session):
    job = _seed_job(session, quoted_value=Decimal("500.00"))
    session.add_all(
        [
            FinancialTransaction(
                job_id=job.id,
                type=TransactionType.INCOME.value,
                amount=Decimal("500.00"),
                source_type=TransactionSource.JOB_COMPLETION.value,
                source_id=job.id,
            ),
            FinancialTransaction(
                job_id=job.id,
                type=TransactionType.INCOME.value,
                amount=Decimal("40.00"),
                source_type=TransactionSource.CALLOUT_FEE.value,
                source_id=1,
            ),
            JobClientPayment(job_id=job.id, payment_type="balance", amount=Decimal("125.50")),
        ]
    )
    session.commit()

    enricher = JobDataEnricher(session)
    assert enricher.paid_amount(job.id) == Decimal("125.50")
    assert enricher.enrich(job.id).is_paid_in_full is False
