"""Commission and callout fee result schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class MarginSplit(BaseModel):
    gross_amount: Decimal
    ccc_margin: Decimal
    partner_earnings: Decimal


class CalloutFeeTerms(BaseModel):
    total_collected: Decimal
    fee_percent: Decimal
    fee_amount: Decimal
    partner_cost: Decimal
