from __future__ import annotations

from decimal import Decimal

import pytest

from jobline.core.exceptions import FeeAlreadySettledError, NotFoundError, ValidationError
from jobline.models import (
    CalloutStatus,
    EmergencyCallout,
    FinancialTransaction,
    Partner,
    TransactionSource,
    TransactionType,
)
from jobline.services.callout_service import CalloutService


def _seed_partner(session, name="Night Owl Locksmiths"):
    partner = Partner(business_name=name)
    session.add(partner)
    session.commit()
    session.refresh(partner)
    return partner


def _completed_callout(session, partner, collected="300.00", percent="20"):
    service = CalloutService(db=session)
    callout = service.create_callout("lockout", partner_id=partner.id)
    service.complete_callout(callout.id, Decimal(collected), fee_percent=Decimal(percent))
    return service, callout


def test_complete_callout_computes_unpaid_fee(session):
    partner = _seed_partner(session)
    service = CalloutService(db=session)
    callout = service.create_callout("burst pipe", partner_id=partner.id)

    terms = service.complete_callout(callout.id, Decimal("300.00"), fee_percent=Decimal("20"))

    assert terms.fee_amount == Decimal("60.00")
    assert terms.partner_cost == Decimal("240.00")
    refreshed = session.get(EmergencyCallout, callout.id)
    assert refreshed.status == CalloutStatus.COMPLETED.value
    assert refreshed.callout_fee_amount == Decimal("60.00")
    assert refreshed.fee_paid is False
    assert session.query(FinancialTransaction).count() == 0


def test_complete_callout_uses_configured_default_percent(session, monkeypatch):
    import jobline.services.callout_service as callout_module

    class _Cfg:
        DEFAULT_CALLOUT_FEE_PERCENT = Decimal("15")

    monkeypatch.setattr(callout_module, "get_config", lambda: _Cfg())
    partner = _seed_partner(session)
    service = CalloutService(db=session)
    callout = service.create_callout("boiler failure", partner_id=partner.id)

    assert service.complete_callout(callout.id, "200").fee_amount == Decimal("30.00")


def test_callout_cannot_be_completed_twice(session):
    partner = _seed_partner(session)
    service, callout = _completed_callout(session, partner)

    with pytest.raises(ValidationError):
        service.complete_callout(callout.id, "100")


def test_mark_fee_paid_writes_exactly_one_entry(session):
    partner = _seed_partner(session)
    service, callout = _completed_callout(session, partner)

    settled = service.mark_fee_paid(callout.id, actor="finance")

    assert settled.fee_paid is True
    assert settled.fee_paid_at is not None
    [entry] = session.query(FinancialTransaction).all()
    assert entry.type == TransactionType.INCOME.value
    assert entry.source_type == TransactionSource.CALLOUT_FEE.value
    assert entry.source_id == callout.id
    assert entry.partner_id == partner.id
    assert entry.gross_amount == Decimal("300.00")
    assert entry.profit_amount == Decimal("60.00")
    assert entry.partner_cost == Decimal("240.00")


def test_marking_fee_paid_twice_is_rejected(session):
    partner = _seed_partner(session)
    service, callout = _completed_callout(session, partner)
    service.mark_fee_paid(callout.id)

    with pytest.raises(FeeAlreadySettledError):
        service.mark_fee_paid(callout.id)
    assert session.query(FinancialTransaction).count() == 1


def test_existing_fee_entry_blocks_settlement_and_keeps_flag_unset(session):
    partner = _seed_partner(session)
    service, callout = _completed_callout(session, partner)
    session.add(
        FinancialTransaction(
            type=TransactionType.INCOME.value,
            amount=Decimal("60.00"),
            source_type=TransactionSource.CALLOUT_FEE.value,
            source_id=callout.id,
        )
    )
    session.commit()

    with pytest.raises(FeeAlreadySettledError):
        service.mark_fee_paid(callout.id)

    assert session.get(EmergencyCallout, callout.id).fee_paid is False
    assert session.query(FinancialTransaction).count() == 1


def test_open_callout_has_no_fee_to_settle(session):
    partner = _seed_partner(session)
    service = CalloutService(db=session)
    callout = service.create_callout("lockout", partner_id=partner.id)

    with pytest.raises(ValidationError):
        service.mark_fee_paid(callout.id)


def test_missing_callout_raises(session):
    with pytest.raises(NotFoundError):
        CalloutService(db=session).mark_fee_paid(1)


def test_outstanding_fees_and_partner_balances(session):
    alpha = _seed_partner(session, "Alpha Glazing")
    beta = _seed_partner(session, "Beta Roofing")
    service, first = _completed_callout(session, alpha, collected="300.00")
    _completed_callout(session, alpha, collected="100.00")
    _, settled = _completed_callout(session, beta, collected="500.00")
    service.mark_fee_paid(settled.id)

    outstanding = service.outstanding_fees()
    assert [fee.partner_name for fee in outstanding] == ["Alpha Glazing", "Alpha Glazing"]
    assert outstanding[0].callout_id == first.id
    assert service.outstanding_fees(partner_id=beta.id) == []

    [balance] = service.partner_fee_balances()
    assert balance.partner_id == alpha.id
    assert balance.outstanding_count == 2
    assert balance.outstanding_total == Decimal("80.00")
    assert service.total_outstanding() == Decimal("80.00")
