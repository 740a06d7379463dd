from __future__ import annotations

from decimal import Decimal

import pytest

from jobline.core.exceptions import InvalidTransitionError, NotFoundError
from jobline.lifecycle.enricher import JobDataEnricher
from jobline.models import AmountType, Contact, DocumentStatus, DocumentType, Job, QuoteLineItem
from jobline.schemas.pricing import DiscountConfig, TaxConfig
from jobline.services.document_service import DocumentService
from jobline.services.job_service import JobService


def _seed_priced_job(session, markup_percent=None):
    contact = Contact(name="Document Client")
    session.add(contact)
    session.commit()
    jobs = JobService(db=session, gating_enforced=True)
    job = jobs.create_job(contact_id=contact.id, job_number="JOB-00007")
    jobs.configure_pricing(
        job.id,
        discount=DiscountConfig(type=AmountType.PERCENTAGE, value=Decimal("10")),
        tax=TaxConfig(enabled=True, rate=Decimal("20")),
        markup_percent=markup_percent,
    )
    jobs.set_quote_items(
        job.id,
        [
            {"description": "Radiator", "quantity": "2", "unit_price": "50.00", "sort_order": 0},
            {"description": "Labour", "quantity": "1", "unit_price": "100.00", "sort_order": 1},
        ],
    )
    return session.get(Job, job.id)


def test_create_document_snapshots_job_lines_and_totals(session):
    job = _seed_priced_job(session)
    document = DocumentService(db=session).create_document(job.id)

    assert document.type == DocumentType.QUOTE.value
    assert document.status == DocumentStatus.DRAFT.value
    assert document.sequence_number == 1
    assert document.reference == "Q-JOB-00007-1"
    assert document.grand_total == Decimal("216.00")
    assert [item.description for item in document.line_items] == ["Radiator", "Labour"]
    assert all(item.job_id is None for item in document.line_items)
    assert session.query(QuoteLineItem).filter(QuoteLineItem.job_id == job.id).count() == 2


def test_sequence_numbers_are_per_type(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)

    first_quote = service.create_document(job.id, DocumentType.QUOTE)
    second_quote = service.create_document(job.id, DocumentType.QUOTE)
    invoice = service.create_document(job.id, "invoice")

    assert (first_quote.sequence_number, second_quote.sequence_number) == (1, 2)
    assert invoice.sequence_number == 1
    assert invoice.reference == "INV-JOB-00007-1"
    assert [doc.id for doc in service.list_documents(job.id, DocumentType.QUOTE)] == [first_quote.id, second_quote.id]


def test_explicit_items_override_job_lines(session):
    job = _seed_priced_job(session)
    document = DocumentService(db=session).create_document(
        job.id,
        DocumentType.INVOICE,
        items=[{"description": "Call-out", "quantity": "1", "unit_price": "80"}],
    )
    assert document.subtotal == Decimal("80.00")
    assert document.grand_total == Decimal("86.40")


def test_create_document_for_missing_job_raises(session):
    with pytest.raises(NotFoundError):
        DocumentService(db=session).create_document(1)


def test_only_sent_documents_are_visible(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)
    draft = service.create_document(job.id)
    sent = service.send_document(service.create_document(job.id).id)

    visible = service.list_visible(job.id)
    assert [doc.id for doc in visible] == [sent.id]
    assert draft.id not in [doc.id for doc in visible]
    assert sent.sent_at is not None

    service.void_document(sent.id)
    assert service.list_visible(job.id) == []


def test_client_decision_on_quote_updates_job_response(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)
    quote = service.send_document(service.create_document(job.id).id)

    service.record_client_decision(quote.id, accepted=True)

    assert session.get(Job, job.id).quote_response == "accepted"


def test_draft_cannot_be_accepted_or_paid(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)
    draft = service.create_document(job.id)

    with pytest.raises(InvalidTransitionError):
        service.record_client_decision(draft.id, accepted=True)
    with pytest.raises(InvalidTransitionError):
        service.mark_paid(draft.id)


def test_paid_invoice_cannot_be_voided(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)
    invoice = service.send_document(service.create_document(job.id, DocumentType.INVOICE).id)
    paid = service.mark_paid(invoice.id)

    assert paid.paid_at is not None
    with pytest.raises(InvalidTransitionError):
        service.void_document(invoice.id)


def test_sent_invoice_satisfies_invoice_signal(session):
    job = _seed_priced_job(session)
    service = DocumentService(db=session)
    invoice = service.create_document(job.id, DocumentType.INVOICE)

    assert JobDataEnricher(session).enrich(job.id).has_invoice is False
    service.send_document(invoice.id)
    assert JobDataEnricher(session).enrich(job.id).has_invoice is True


def test_client_totals_apply_job_markup(session):
    job = _seed_priced_job(session, markup_percent=Decimal("10"))
    service = DocumentService(db=session)
    document = service.create_document(job.id)

    totals = service.client_totals(document.id)

    assert totals.subtotal == Decimal("220.00")
    assert totals.discount_amount == Decimal("22.00")
    assert totals.tax_amount == Decimal("39.60")
    assert totals.grand_total == Decimal("237.60")
    assert document.grand_total == Decimal("216.00")
    assert service.client_totals(999) is None


def test_client_totals_keep_the_pricing_the_document_was_issued_with(session):
    job = _seed_priced_job(session, markup_percent=Decimal("0"))
    service = DocumentService(db=session)
    document = service.create_document(job.id)
    service.send_document(document.id)

    JobService(db=session).configure_pricing(
        job.id,
        discount=DiscountConfig(type=AmountType.PERCENTAGE, value=Decimal("0")),
        tax=TaxConfig(enabled=False),
    )
    session.expire_all()

    totals = service.client_totals(document.id)

    assert session.get(Job, job.id).quoted_value == Decimal("200.00")
    assert totals.discount_amount == Decimal("20.00")
    assert totals.grand_total == Decimal("216.00")
    assert totals.grand_total == service.get_document(document.id).grand_total
