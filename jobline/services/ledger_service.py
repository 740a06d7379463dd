"""Ledger reporting and manual entries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import aliased

from jobline.core.exceptions import NotFoundError, ValidationError
from jobline.models import DeliveryType, FinancialTransaction, Job, Partner, TransactionSource, TransactionType
from jobline.schemas.ledger import FinancialSummary, PartnerJobVolume, PartnerVolume
from jobline.services.base_service import BaseService
from jobline.services.callout_service import CalloutService
from jobline.utils.money import ZERO, round_money

logger = logging.getLogger(__name__)


class LedgerService(BaseService):
    def record_manual_entry(
        self,
        type: TransactionType | str,
        amount: Any,
        description: str,
        job_id: int | None = None,
        partner_id: int | None = None,
    ) -> FinancialTransaction:
        value = round_money(amount)
        if value <= 0:
            raise ValidationError("Ledger amounts must be positive; use the entry type for direction.")
        if partner_id is not None and self.db.get(Partner, partner_id) is None:
            raise NotFoundError(f"Partner {partner_id} not found")

        entry = FinancialTransaction(
            job_id=job_id,
            partner_id=partner_id,
            type=TransactionType(type).value,
            amount=value,
            source_type=TransactionSource.MANUAL.value,
            description=description,
        )
        self.db.add(entry)
        self.commit()
        self.db.refresh(entry)
        logger.info(
            "ledger.manual.recorded",
            extra={"event": "ledger.manual.recorded", "transaction_id": entry.id, "type": entry.type},
        )
        return entry

    def list_transactions(self, job_id: int | None = None, partner_id: int | None = None) -> list[FinancialTransaction]:
        query = self.db.query(FinancialTransaction)
        if job_id is not None:
            query = query.filter(FinancialTransaction.job_id == job_id)
        if partner_id is not None:
            query = query.filter(FinancialTransaction.partner_id == partner_id)
        return query.order_by(FinancialTransaction.transaction_date.asc(), FinancialTransaction.id.asc()).all()

    def _sum(self, column, condition, start: datetime | None, end: datetime | None):
        query = self.db.query(func.coalesce(func.sum(column), 0)).filter(condition)
        if start is not None:
            query = query.filter(FinancialTransaction.transaction_date >= start)
        if end is not None:
            query = query.filter(FinancialTransaction.transaction_date < end)
        return round_money(query.scalar())

    def financial_summary(self, start: datetime | None = None, end: datetime | None = None) -> FinancialSummary:
        """Income, expense and profit over an optional ``[start, end)`` window.

        A job's payments stop counting as income once its completion entry
        exists, since that entry carries the job's gross. Profit is taken from
        ``profit_amount`` (the business share of completion and fee entries),
        manual income at face value, less expenses.
        """
        completion = aliased(FinancialTransaction)
        completed_jobs = select(completion.job_id).where(
            completion.source_type == TransactionSource.JOB_COMPLETION.value,
            completion.job_id.isnot(None),
        )
        is_income = FinancialTransaction.type == TransactionType.INCOME.value
        is_payment = FinancialTransaction.source_type == TransactionSource.JOB_PAYMENT.value

        income = self._sum(
            FinancialTransaction.amount,
            and_(is_income, or_(~is_payment, FinancialTransaction.job_id.notin_(completed_jobs))),
            start,
            end,
        )
        earned = self._sum(
            func.coalesce(FinancialTransaction.profit_amount, FinancialTransaction.amount),
            and_(is_income, ~is_payment),
            start,
            end,
        )
        expense = self._sum(
            FinancialTransaction.amount,
            FinancialTransaction.type == TransactionType.EXPENSE.value,
            start,
            end,
        )
        return FinancialSummary(
            total_income=income,
            total_expense=expense,
            total_profit=earned - expense,
            outstanding_fees=CalloutService(db=self.db).total_outstanding(),
        )

    def partner_job_volume(self) -> PartnerJobVolume:
        """Paid partner jobs per partner, from their completion ledger entries."""
        rows = (
            self.db.query(
                Partner.id,
                Partner.business_name,
                func.coalesce(func.sum(FinancialTransaction.gross_amount), 0),
                func.count(FinancialTransaction.id),
                func.coalesce(func.sum(FinancialTransaction.profit_amount), 0),
            )
            .join(FinancialTransaction, FinancialTransaction.partner_id == Partner.id)
            .filter(FinancialTransaction.source_type == TransactionSource.JOB_COMPLETION.value)
            .join(Job, Job.id == FinancialTransaction.job_id)
            .filter(Job.delivery_type == DeliveryType.PARTNER.value)
            .group_by(Partner.id, Partner.business_name)
            .order_by(Partner.business_name.asc())
            .all()
        )
        partners = [
            PartnerVolume(
                partner_id=partner_id,
                business_name=name,
                total_value=round_money(value),
                job_count=count,
                ccc_margin=round_money(margin),
            )
            for partner_id, name, value, count, margin in rows
        ]
        return PartnerJobVolume(
            total_volume=sum((item.total_value for item in partners), ZERO),
            total_margin=sum((item.ccc_margin for item in partners), ZERO),
            total_job_count=sum(item.job_count for item in partners),
            partners=partners,
        )
