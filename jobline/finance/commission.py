"""Partner margin splits and emergency callout fees.

These are two different things. A margin split divides what the client paid
between the business and the delivery partner. A callout fee is the reverse:
the partner collected the whole amount on site and owes the business a cut
until it is settled.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from jobline.models.enums import AmountType
from jobline.schemas.commission import CalloutFeeTerms, MarginSplit
from jobline.utils.money import ZERO, clamp, percent_of, round_money, round_rate, to_decimal


def split_margin(gross_amount: Any, charge_type: AmountType | str | None, charge_value: Any) -> MarginSplit:
    gross = max(round_money(gross_amount), ZERO)
    if charge_type is None:
        margin = ZERO
    elif AmountType(charge_type) == AmountType.PERCENTAGE:
        margin = percent_of(gross, charge_value)
    else:
        margin = round_money(charge_value)
    margin = clamp(margin, ZERO, gross)
    return MarginSplit(gross_amount=gross, ccc_margin=margin, partner_earnings=gross - margin)


def callout_fee(total_collected: Any, fee_percent: Any) -> CalloutFeeTerms:
    collected = max(round_money(total_collected), ZERO)
    percent = round_rate(clamp(to_decimal(fee_percent), Decimal("0"), Decimal("100")))
    fee = percent_of(collected, percent)
    return CalloutFeeTerms(
        total_collected=collected,
        fee_percent=percent,
        fee_amount=fee,
        partner_cost=collected - fee,
    )
