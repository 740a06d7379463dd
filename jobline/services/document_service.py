"""Versioned quote and invoice documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func

from jobline.core.config import get_config
from jobline.core.exceptions import NotFoundError
from jobline.finance.pricing import compute_client_totals, compute_totals, pricing_configs, resolve_markup_percent
from jobline.lifecycle.state_machine import DOCUMENT_STATUS
from jobline.models import DocumentStatus, DocumentType, Invoice, Job, QuoteLineItem, QuoteResponse
from jobline.models.base import utcnow
from jobline.schemas.pricing import LineItemInput, QuoteTotals
from jobline.services.base_service import BaseService

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = {DocumentType.QUOTE: "Q", DocumentType.INVOICE: "INV"}
HIDDEN_STATUSES = (DocumentStatus.DRAFT.value, DocumentStatus.VOID.value)


class DocumentService(BaseService):
    """Quotes and invoices snapshot a job's lines and pricing at creation time."""

    def get_document(self, document_id: int) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == document_id).first()

    def _require_document(self, document_id: int) -> Invoice:
        document = self.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    def _next_sequence(self, job_id: int, doc_type: DocumentType) -> int:
        current = (
            self.db.query(func.max(Invoice.sequence_number))
            .filter(Invoice.job_id == job_id)
            .filter(Invoice.type == doc_type.value)
            .scalar()
        )
        return (current or 0) + 1

    def create_document(
        self,
        job_id: int,
        doc_type: DocumentType | str = DocumentType.QUOTE,
        items: Iterable[LineItemInput | dict[str, Any]] | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Create a draft document and its line items in one transaction.

        Without explicit ``items`` the job's current quote lines are copied.
        """
        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")

        kind = DocumentType(doc_type)
        source = job.line_items if items is None else [LineItemInput.model_validate(item) for item in items]
        discount, tax, deposit = pricing_configs(job)
        totals = compute_totals(source, discount=discount, tax=tax, deposit=deposit)
        sequence = self._next_sequence(job.id, kind)

        document = Invoice(
            job_id=job.id,
            type=kind.value,
            sequence_number=sequence,
            reference=f"{REFERENCE_PREFIX[kind]}-{job.job_number or job.id}-{sequence}",
            status=DocumentStatus.DRAFT.value,
            discount_type=job.discount_type,
            discount_value=job.discount_value,
            tax_enabled=bool(job.tax_enabled),
            tax_rate=job.tax_rate,
            deposit_required=bool(job.deposit_required),
            deposit_type=job.deposit_type,
            deposit_amount=job.deposit_amount,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            grand_total=totals.grand_total,
            deposit_calculated=totals.deposit_calculated,
            notes=notes,
        )
        for line in totals.lines:
            document.line_items.append(
                QuoteLineItem(
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                    sort_order=line.sort_order,
                )
            )
        self.db.add(document)
        self.commit()
        self.db.refresh(document)
        logger.info(
            "document.created",
            extra={
                "event": "document.created",
                "job_id": job.id,
                "document_id": document.id,
                "type": kind.value,
                "sequence_number": sequence,
                "grand_total": str(totals.grand_total),
            },
        )
        return document

    def _move(self, document: Invoice, target: DocumentStatus) -> None:
        DOCUMENT_STATUS.assert_transition(document.status, target)
        document.status = target.value

    def send_document(self, document_id: int) -> Invoice:
        document = self._require_document(document_id)
        self._move(document, DocumentStatus.SENT)
        document.sent_at = utcnow()
        document.show_in_portal = True
        self.commit()
        self.db.refresh(document)
        return document

    def record_client_decision(self, document_id: int, accepted: bool) -> Invoice:
        """Apply the client's answer; for quotes it also sets the job's quote response."""
        document = self._require_document(document_id)
        self._move(document, DocumentStatus.ACCEPTED if accepted else DocumentStatus.DECLINED)
        if document.type == DocumentType.QUOTE.value:
            document.job.quote_response = (QuoteResponse.ACCEPTED if accepted else QuoteResponse.DECLINED).value
        self.commit()
        self.db.refresh(document)
        logger.info(
            "document.client_decision",
            extra={
                "event": "document.client_decision",
                "document_id": document.id,
                "job_id": document.job_id,
                "accepted": accepted,
            },
        )
        return document

    def mark_paid(self, document_id: int) -> Invoice:
        document = self._require_document(document_id)
        self._move(document, DocumentStatus.PAID)
        document.paid_at = utcnow()
        self.commit()
        self.db.refresh(document)
        return document

    def void_document(self, document_id: int) -> Invoice:
        document = self._require_document(document_id)
        self._move(document, DocumentStatus.VOID)
        document.show_in_portal = False
        self.commit()
        self.db.refresh(document)
        return document

    def client_totals(self, document_id: int) -> QuoteTotals | None:
        """Totals as the client sees them, with the markup folded into unit prices.

        Discount, tax and deposit come from the document, so later pricing
        changes on the job do not alter a document already issued.
        """
        document = self.get_document(document_id)
        if document is None:
            return None
        job = document.job
        markup = resolve_markup_percent(job.markup_percent, get_config().DEFAULT_MARKUP_PERCENT)
        discount, tax, deposit = pricing_configs(document)
        return compute_client_totals(document.line_items, markup, discount=discount, tax=tax, deposit=deposit)

    def list_documents(self, job_id: int, doc_type: DocumentType | str | None = None) -> list[Invoice]:
        query = self.db.query(Invoice).filter(Invoice.job_id == job_id)
        if doc_type is not None:
            query = query.filter(Invoice.type == DocumentType(doc_type).value)
        return query.order_by(Invoice.type.asc(), Invoice.sequence_number.asc()).all()

    def list_visible(self, job_id: int) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(Invoice.job_id == job_id)
            .filter(Invoice.show_in_portal.is_(True))
            .filter(Invoice.status.notin_(HIDDEN_STATUSES))
            .order_by(Invoice.type.asc(), Invoice.sequence_number.asc())
            .all()
        )
