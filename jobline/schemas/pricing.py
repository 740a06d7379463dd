"""Pricing input and result schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from jobline.models.enums import AmountType


class LineItemInput(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: Decimal = Field(ge=0)
    unit_price: Decimal
    sort_order: int = Field(default=0, ge=0)


class PricedLine(BaseModel):
    """A line after pricing, with ``line_total`` derived from quantity and price."""

    model_config = ConfigDict(from_attributes=True)

    description: str = ""
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    sort_order: int = 0


class DiscountConfig(BaseModel):
    type: AmountType
    value: Decimal = Decimal("0")


class TaxConfig(BaseModel):
    enabled: bool = False
    rate: Decimal = Decimal("0")


class DepositConfig(BaseModel):
    required: bool = False
    type: AmountType = AmountType.PERCENTAGE
    amount: Decimal = Decimal("0")


class QuoteTotals(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    after_discount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    deposit_calculated: Decimal | None = None
    lines: list[PricedLine] = Field(default_factory=list)
