"""Job service: creation, pricing inputs and gated status changes."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from jobline.core.config import get_config
from jobline.core.exceptions import NotFoundError, ValidationError
from jobline.core.logging import LogContext, build_log_event
from jobline.finance.commission import split_margin
from jobline.finance.pricing import compute_totals, pricing_configs
from jobline.lifecycle.events import EventDispatcher, JobStatusChanged, build_default_dispatcher
from jobline.lifecycle.stage_rules import parse_stage
from jobline.lifecycle.validator import StageTransitionValidator
from jobline.models import (
    AmountType,
    Contact,
    DeliveryType,
    Job,
    JobClientPayment,
    JobStage,
    JobStageAudit,
    Partner,
    PartnerQuoteStatus,
    PaymentType,
    QuoteLineItem,
    QuoteResponse,
)
from jobline.schemas.commission import MarginSplit
from jobline.schemas.ledger import LedgerOutcome, StatusChangeResult
from jobline.schemas.pricing import DepositConfig, DiscountConfig, LineItemInput, QuoteTotals, TaxConfig
from jobline.schemas.stages import JobReadinessReport, StageValidationResult
from jobline.services.base_service import BaseService
from jobline.utils.money import round_money, round_rate

logger = logging.getLogger(__name__)


class JobService(BaseService):
    """Service for jobs and their pipeline stage."""

    def __init__(
        self,
        db: Session | None = None,
        validator: StageTransitionValidator | None = None,
        dispatcher: EventDispatcher | None = None,
        gating_enforced: bool | None = None,
    ) -> None:
        super().__init__(db)
        self.validator = validator or StageTransitionValidator(db=self.db)
        self.dispatcher = dispatcher or build_default_dispatcher(self.db)
        if gating_enforced is None:
            gating_enforced = get_config().STAGE_GATING_ENFORCED
        self.gating_enforced = gating_enforced

    def create_job(
        self,
        contact_id: int,
        delivery_type: DeliveryType | str = DeliveryType.IN_HOUSE,
        partner_id: int | None = None,
        job_number: str | None = None,
        quote_type: str | None = None,
    ) -> Job:
        if self.db.get(Contact, contact_id) is None:
            raise NotFoundError(f"Contact {contact_id} not found")
        if partner_id is not None and self.db.get(Partner, partner_id) is None:
            raise NotFoundError(f"Partner {partner_id} not found")

        job = Job(
            contact_id=contact_id,
            partner_id=partner_id,
            delivery_type=DeliveryType(delivery_type).value,
            quote_type=quote_type,
            job_number=job_number,
            status=JobStage.NEW_ENQUIRY.value,
        )
        self.db.add(job)
        self.db.flush()
        if job.job_number is None:
            job.job_number = f"JOB-{job.id:05d}"
        self.commit()
        self.db.refresh(job)
        logger.info("job.created", extra={"event": "job.created", "job_id": job.id, "job_number": job.job_number})
        return job

    def get_job(self, job_id: int) -> Job | None:
        return self.db.query(Job).filter(Job.id == job_id).first()

    def _require_job(self, job_id: int) -> Job:
        job = self.get_job(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    def validate_transition(self, job_id: int, target_stage: JobStage | str) -> StageValidationResult:
        return self.validator.validate(job_id, target_stage)

    def readiness(self, job_id: int) -> JobReadinessReport | None:
        return self.validator.readiness(job_id)

    def update_status(
        self,
        job_id: int,
        new_status: JobStage | str,
        actor: str = "system",
        reason: str | None = None,
    ) -> StatusChangeResult:
        """Move a job to ``new_status``.

        A blocked forward move comes back with ``applied=False`` and the
        validation result rather than raising. Ledger side effects run after
        the status is committed; their failures are reported as warnings.
        """
        target = parse_stage(new_status)
        if target is None:
            raise ValidationError(f"Unknown job stage: {new_status!r}")

        job = self._require_job(job_id)
        old_status = job.status
        if old_status == target.value:
            return StatusChangeResult(
                job_id=job.id,
                applied=False,
                old_status=old_status,
                new_status=target.value,
                warnings=[f"Job is already in stage {target.value}"],
            )

        validation = self.validator.validate(job_id, target)
        context = LogContext(job_id=job.id, partner_id=job.partner_id, actor=actor)
        warnings: list[str] = []
        if not validation.allowed:
            if self.gating_enforced:
                logger.info(
                    "job.status.blocked",
                    extra=build_log_event(
                        "job.status.blocked",
                        context,
                        old_status=old_status,
                        new_status=target.value,
                        unmet=validation.unmet_fields,
                    ),
                )
                return StatusChangeResult(
                    job_id=job.id,
                    applied=False,
                    old_status=old_status,
                    new_status=target.value,
                    validation=validation,
                )
            warnings.append(f"Stage gating is off; unmet prerequisites: {', '.join(validation.unmet_fields)}")

        job.status = target.value
        self.db.add(
            JobStageAudit(
                job_id=job.id,
                old_stage=old_status,
                new_stage=target.value,
                actor=actor,
                reason=reason,
            )
        )
        self.commit()
        logger.info(
            "job.status.changed",
            extra=build_log_event("job.status.changed", context, old_status=old_status, new_status=target.value),
        )

        outcomes = self.dispatcher.dispatch(
            JobStatusChanged(job_id=job_id, old_status=old_status, new_status=target.value, actor=actor)
        )
        ledger = [outcome for outcome in outcomes if isinstance(outcome, LedgerOutcome)]
        warnings.extend(outcome.warning for outcome in ledger if outcome.warning)
        return StatusChangeResult(
            job_id=job_id,
            applied=True,
            old_status=old_status,
            new_status=target.value,
            validation=validation,
            ledger=ledger,
            warnings=warnings,
        )

    def stage_history(self, job_id: int) -> list[JobStageAudit]:
        return (
            self.db.query(JobStageAudit)
            .filter(JobStageAudit.job_id == job_id)
            .order_by(JobStageAudit.id.asc())
            .all()
        )

    def set_quote_items(self, job_id: int, items: Iterable[LineItemInput | dict[str, Any]]) -> QuoteTotals:
        """Replace the job's quote lines and refresh ``quoted_value`` in one transaction."""
        job = self._require_job(job_id)
        inputs = [LineItemInput.model_validate(item) for item in items]
        discount, tax, deposit = pricing_configs(job)
        totals = compute_totals(inputs, discount=discount, tax=tax, deposit=deposit)

        job.line_items.clear()
        for line in totals.lines:
            job.line_items.append(
                QuoteLineItem(
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                    sort_order=line.sort_order,
                )
            )
        job.quoted_value = totals.grand_total if totals.lines else None
        self.commit()
        logger.info(
            "job.quote_items.replaced",
            extra={
                "event": "job.quote_items.replaced",
                "job_id": job.id,
                "item_count": len(totals.lines),
                "grand_total": str(totals.grand_total),
            },
        )
        return totals

    def configure_pricing(
        self,
        job_id: int,
        discount: DiscountConfig | None = None,
        tax: TaxConfig | None = None,
        deposit: DepositConfig | None = None,
        markup_percent: Decimal | None = None,
    ) -> QuoteTotals:
        """Update whichever pricing inputs are given and recompute the quote."""
        job = self._require_job(job_id)
        if discount is not None:
            job.discount_type = discount.type.value
            job.discount_value = round_rate(discount.value)
        if tax is not None:
            job.tax_enabled = tax.enabled
            job.tax_rate = round_rate(tax.rate)
        if deposit is not None:
            job.deposit_required = deposit.required
            job.deposit_type = deposit.type.value
            job.deposit_amount = round_rate(deposit.amount) if deposit.required else None
            if not deposit.required:
                job.deposit_received = False
        if markup_percent is not None:
            job.markup_percent = round_rate(markup_percent)

        totals = self._totals_for(job)
        if job.line_items:
            job.quoted_value = totals.grand_total
        self.commit()
        return totals

    def _totals_for(self, job: Job) -> QuoteTotals:
        discount, tax, deposit = pricing_configs(job)
        return compute_totals(job.line_items, discount=discount, tax=tax, deposit=deposit)

    def quote_totals(self, job_id: int) -> QuoteTotals | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        return self._totals_for(job)

    def record_quote_response(self, job_id: int, response: QuoteResponse | str | None) -> Job:
        job = self._require_job(job_id)
        job.quote_response = QuoteResponse(response).value if response is not None else None
        self.commit()
        self.db.refresh(job)
        return job

    def submit_partner_quote(self, job_id: int, amount: Any) -> Job:
        job = self._require_job(job_id)
        if job.partner_id is None:
            raise ValidationError("Only jobs with an assigned partner can receive a partner quote.")
        value = round_money(amount)
        if value <= 0:
            raise ValidationError("Partner quote amount must be positive.")
        job.partner_quote_amount = value
        job.partner_quote_status = PartnerQuoteStatus.PENDING.value
        self.commit()
        self.db.refresh(job)
        return job

    def accept_partner_quote(
        self,
        job_id: int,
        charge_type: AmountType | str | None = None,
        charge_value: Any = None,
    ) -> MarginSplit:
        """Adopt the partner's price as the quoted value and derive the business margin."""
        job = self._require_job(job_id)
        if job.partner_quote_status != PartnerQuoteStatus.PENDING.value or job.partner_quote_amount is None:
            raise ValidationError("There is no pending partner quote to accept.")

        if charge_type is not None:
            job.partner_charge_type = AmountType(charge_type).value
            job.partner_charge = None if charge_value is None else round_rate(charge_value)
        split = split_margin(job.partner_quote_amount, job.partner_charge_type, job.partner_charge)
        job.quoted_value = split.gross_amount
        job.ccc_margin = split.ccc_margin
        job.partner_quote_status = PartnerQuoteStatus.ACCEPTED.value
        job.quote_response = QuoteResponse.ACCEPTED.value
        self.commit()
        logger.info(
            "job.partner_quote.accepted",
            extra=build_log_event(
                "job.partner_quote.accepted",
                LogContext(job_id=job.id, partner_id=job.partner_id),
                gross_amount=str(split.gross_amount),
                ccc_margin=str(split.ccc_margin),
            ),
        )
        return split

    def mark_deposit_received(self, job_id: int) -> Job:
        job = self._require_job(job_id)
        if not job.deposit_required:
            raise ValidationError("Job does not require a deposit.")
        job.deposit_received = True
        self.commit()
        self.db.refresh(job)
        return job

    def record_client_payment(
        self,
        job_id: int,
        amount: Any,
        payment_type: PaymentType | str = PaymentType.BALANCE,
        payment_method: str | None = None,
        reference: str | None = None,
    ) -> JobClientPayment:
        job = self._require_job(job_id)
        value = round_money(amount)
        if value <= 0:
            raise ValidationError("Payment amount must be positive.")

        kind = PaymentType(payment_type)
        payment = JobClientPayment(
            job_id=job.id,
            payment_type=kind.value,
            amount=value,
            payment_method=payment_method,
            reference=reference,
        )
        self.db.add(payment)
        if kind == PaymentType.DEPOSIT and job.deposit_required:
            job.deposit_received = True
        self.commit()
        self.db.refresh(payment)
        logger.info(
            "job.client_payment.recorded",
            extra={
                "event": "job.client_payment.recorded",
                "job_id": job.id,
                "payment_type": kind.value,
                "amount": str(value),
            },
        )
        return payment
