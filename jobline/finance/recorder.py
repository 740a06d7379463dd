"""Ledger writes triggered by lifecycle events."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobline.core.exceptions import NotFoundError, ValidationError
from jobline.core.logging import LogContext, build_log_event
from jobline.finance.commission import split_margin
from jobline.lifecycle.events import FeeSettled, JobStatusChanged
from jobline.models import (
    DeliveryType,
    EmergencyCallout,
    FinancialTransaction,
    Job,
    JobStage,
    TransactionSource,
    TransactionType,
)
from jobline.schemas.commission import MarginSplit
from jobline.schemas.ledger import LedgerOutcome
from jobline.utils.money import ZERO, round_money

logger = logging.getLogger(__name__)


class FinancialTransactionRecorder:
    """Append ledger entries for job completion, fee settlement and client payments."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _existing_entry(self, source: TransactionSource, source_id: int) -> FinancialTransaction | None:
        return (
            self.db.query(FinancialTransaction)
            .filter(FinancialTransaction.source_type == source.value)
            .filter(FinancialTransaction.source_id == source_id)
            .first()
        )

    @staticmethod
    def completion_split(job: Job) -> MarginSplit:
        """Partner jobs split the quoted value; everything else keeps it whole."""
        gross = max(round_money(job.quoted_value), ZERO)
        if job.delivery_type == DeliveryType.PARTNER.value:
            return split_margin(gross, job.partner_charge_type, job.partner_charge)
        return MarginSplit(gross_amount=gross, ccc_margin=gross, partner_earnings=ZERO)

    def on_job_status_changed(self, event: JobStatusChanged) -> LedgerOutcome:
        if event.new_status != JobStage.PAID.value or event.old_status == JobStage.PAID.value:
            return LedgerOutcome(recorded=False)

        job = self.db.get(Job, event.job_id)
        if job is None or job.quoted_value is None:
            return LedgerOutcome(recorded=False)

        context = LogContext(job_id=job.id, partner_id=job.partner_id, actor=event.actor)
        if self._existing_entry(TransactionSource.JOB_COMPLETION, job.id) is not None:
            logger.info(
                "ledger.job_paid.duplicate",
                extra=build_log_event("ledger.job_paid.duplicate", context),
            )
            return LedgerOutcome(recorded=False, warning=f"Completion income already recorded for job {job.id}")

        split = self.completion_split(job)
        job.ccc_margin = split.ccc_margin
        entry = FinancialTransaction(
            job_id=job.id,
            partner_id=job.partner_id,
            type=TransactionType.INCOME.value,
            amount=split.gross_amount,
            gross_amount=split.gross_amount,
            profit_amount=split.ccc_margin,
            partner_cost=split.partner_earnings,
            source_type=TransactionSource.JOB_COMPLETION.value,
            source_id=job.id,
            description=f"Job {job.job_number or job.id} paid",
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "ledger.job_paid.failed",
                extra=build_log_event("ledger.job_paid.failed", context, reason=str(exc)),
            )
            return LedgerOutcome(
                recorded=False,
                warning=f"Job {event.job_id} marked paid but the ledger entry could not be written",
            )

        logger.info(
            "ledger.job_paid.recorded",
            extra=build_log_event(
                "ledger.job_paid.recorded",
                context,
                transaction_id=entry.id,
                gross_amount=str(split.gross_amount),
                ccc_margin=str(split.ccc_margin),
            ),
        )
        return LedgerOutcome(recorded=True, transaction_id=entry.id)

    def on_fee_settled(self, event: FeeSettled) -> LedgerOutcome:
        """Stage the fee income entry; the caller commits it together with ``fee_paid``."""
        callout = self.db.get(EmergencyCallout, event.callout_id)
        if callout is None:
            raise NotFoundError(f"Callout {event.callout_id} not found")

        collected = round_money(callout.total_collected)
        fee = round_money(callout.callout_fee_amount)
        entry = FinancialTransaction(
            job_id=callout.job_id,
            partner_id=callout.assigned_partner_id,
            type=TransactionType.INCOME.value,
            amount=fee,
            gross_amount=collected,
            profit_amount=fee,
            partner_cost=collected - fee,
            source_type=TransactionSource.CALLOUT_FEE.value,
            source_id=callout.id,
            description=f"Callout fee settled: {callout.incident_type}",
        )
        self.db.add(entry)
        self.db.flush()
        logger.info(
            "ledger.callout_fee.staged",
            extra=build_log_event(
                "ledger.callout_fee.staged",
                LogContext(job_id=callout.job_id, partner_id=callout.assigned_partner_id, callout_id=callout.id),
                transaction_id=entry.id,
                fee_amount=str(fee),
            ),
        )
        return LedgerOutcome(recorded=True, transaction_id=entry.id)

    def record_job_payment(self, job_id: int, amount: Any, description: str | None = None) -> FinancialTransaction:
        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")

        value = round_money(amount)
        if value <= Decimal("0"):
            raise ValidationError("Payment amount must be positive.")

        entry = FinancialTransaction(
            job_id=job.id,
            partner_id=job.partner_id,
            type=TransactionType.INCOME.value,
            amount=value,
            gross_amount=value,
            source_type=TransactionSource.JOB_PAYMENT.value,
            source_id=None,
            description=description or f"Payment received for job {job.job_number or job.id}",
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        logger.info(
            "ledger.job_payment.recorded",
            extra=build_log_event(
                "ledger.job_payment.recorded",
                LogContext(job_id=job.id, partner_id=job.partner_id),
                transaction_id=entry.id,
                amount=str(value),
            ),
        )
        return entry
