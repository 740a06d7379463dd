"""Emergency callouts and the fees partners owe on them."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobline.core.config import get_config
from jobline.core.exceptions import FeeAlreadySettledError, NotFoundError, ValidationError
from jobline.core.logging import LogContext, build_log_event
from jobline.finance.commission import callout_fee
from jobline.lifecycle.events import EventDispatcher, FeeSettled, build_default_dispatcher
from jobline.models import CalloutStatus, EmergencyCallout, Job, Partner
from jobline.models.base import utcnow
from jobline.schemas.commission import CalloutFeeTerms
from jobline.schemas.ledger import OutstandingFee, PartnerFeeBalance
from jobline.services.base_service import BaseService
from jobline.utils.money import ZERO, round_money

logger = logging.getLogger(__name__)


class CalloutService(BaseService):
    """Callouts are collected in full by the partner, who then owes the business a fee."""

    def __init__(self, db: Session | None = None, dispatcher: EventDispatcher | None = None) -> None:
        super().__init__(db)
        self.dispatcher = dispatcher or build_default_dispatcher(self.db)

    def _require_callout(self, callout_id: int) -> EmergencyCallout:
        callout = self.db.get(EmergencyCallout, callout_id)
        if callout is None:
            raise NotFoundError(f"Callout {callout_id} not found")
        return callout

    def get_callout(self, callout_id: int) -> EmergencyCallout | None:
        return self.db.get(EmergencyCallout, callout_id)

    def create_callout(
        self,
        incident_type: str,
        partner_id: int | None = None,
        job_id: int | None = None,
    ) -> EmergencyCallout:
        if partner_id is not None and self.db.get(Partner, partner_id) is None:
            raise NotFoundError(f"Partner {partner_id} not found")
        if job_id is not None and self.db.get(Job, job_id) is None:
            raise NotFoundError(f"Job {job_id} not found")

        callout = EmergencyCallout(
            incident_type=incident_type,
            assigned_partner_id=partner_id,
            job_id=job_id,
            status=CalloutStatus.OPEN.value,
        )
        self.db.add(callout)
        self.commit()
        self.db.refresh(callout)
        return callout

    def complete_callout(
        self,
        callout_id: int,
        total_collected: Any,
        fee_percent: Any = None,
    ) -> CalloutFeeTerms:
        """Close the callout and work out the fee owed; the fee starts unpaid."""
        callout = self._require_callout(callout_id)
        if callout.status == CalloutStatus.COMPLETED.value:
            raise ValidationError(f"Callout {callout_id} is already completed.")

        percent = get_config().DEFAULT_CALLOUT_FEE_PERCENT if fee_percent is None else fee_percent
        terms = callout_fee(total_collected, percent)
        callout.status = CalloutStatus.COMPLETED.value
        callout.completed_at = utcnow()
        callout.total_collected = terms.total_collected
        callout.callout_fee_percent = terms.fee_percent
        callout.callout_fee_amount = terms.fee_amount
        callout.fee_paid = False
        self.commit()
        logger.info(
            "callout.completed",
            extra=build_log_event(
                "callout.completed",
                LogContext(job_id=callout.job_id, partner_id=callout.assigned_partner_id, callout_id=callout.id),
                total_collected=str(terms.total_collected),
                fee_amount=str(terms.fee_amount),
            ),
        )
        return terms

    def mark_fee_paid(self, callout_id: int, actor: str = "system") -> EmergencyCallout:
        """Settle the fee and write its ledger entry in the same transaction."""
        callout = self._require_callout(callout_id)
        if callout.status != CalloutStatus.COMPLETED.value:
            raise ValidationError(f"Callout {callout_id} has no fee until it is completed.")
        if callout.fee_paid:
            raise FeeAlreadySettledError(f"Callout {callout_id} fee is already settled.")

        callout.fee_paid = True
        callout.fee_paid_at = utcnow()
        try:
            self.dispatcher.dispatch(FeeSettled(callout_id=callout.id, actor=actor))
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise FeeAlreadySettledError(f"Callout {callout_id} fee is already settled.") from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(callout)
        logger.info(
            "callout.fee_paid",
            extra=build_log_event(
                "callout.fee_paid",
                LogContext(
                    job_id=callout.job_id,
                    partner_id=callout.assigned_partner_id,
                    callout_id=callout.id,
                    actor=actor,
                ),
                fee_amount=str(callout.callout_fee_amount),
            ),
        )
        return callout

    def outstanding_fees(self, partner_id: int | None = None) -> list[OutstandingFee]:
        query = (
            self.db.query(EmergencyCallout, Partner.business_name)
            .outerjoin(Partner, Partner.id == EmergencyCallout.assigned_partner_id)
            .filter(EmergencyCallout.status == CalloutStatus.COMPLETED.value)
            .filter(EmergencyCallout.fee_paid.is_(False))
            .filter(EmergencyCallout.callout_fee_amount > 0)
        )
        if partner_id is not None:
            query = query.filter(EmergencyCallout.assigned_partner_id == partner_id)

        rows = query.order_by(EmergencyCallout.completed_at.asc(), EmergencyCallout.id.asc()).all()
        return [
            OutstandingFee(
                callout_id=callout.id,
                incident_type=callout.incident_type,
                partner_id=callout.assigned_partner_id,
                partner_name=partner_name,
                job_id=callout.job_id,
                total_collected=round_money(callout.total_collected),
                callout_fee_amount=round_money(callout.callout_fee_amount),
            )
            for callout, partner_name in rows
        ]

    def partner_fee_balances(self) -> list[PartnerFeeBalance]:
        rows = (
            self.db.query(
                Partner.id,
                Partner.business_name,
                func.count(EmergencyCallout.id),
                func.coalesce(func.sum(EmergencyCallout.callout_fee_amount), 0),
            )
            .join(EmergencyCallout, EmergencyCallout.assigned_partner_id == Partner.id)
            .filter(EmergencyCallout.status == CalloutStatus.COMPLETED.value)
            .filter(EmergencyCallout.fee_paid.is_(False))
            .filter(EmergencyCallout.callout_fee_amount > 0)
            .group_by(Partner.id, Partner.business_name)
            .order_by(Partner.business_name.asc())
            .all()
        )
        return [
            PartnerFeeBalance(
                partner_id=partner_id,
                partner_name=name,
                outstanding_count=count,
                outstanding_total=max(round_money(total), ZERO),
            )
            for partner_id, name, count, total in rows
        ]

    def total_outstanding(self) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(EmergencyCallout.callout_fee_amount), 0))
            .filter(EmergencyCallout.status == CalloutStatus.COMPLETED.value)
            .filter(EmergencyCallout.fee_paid.is_(False))
            .scalar()
        )
        return round_money(total)
