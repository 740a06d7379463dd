"""Quote and invoice totals.

One calculation serves internal quotes, invoices and the client-facing view.
The order of operations is fixed:

1. subtotal = sum of line totals, each ``round(quantity * unit_price, 2)``
2. discount (percentage of subtotal or fixed), clamped to ``[0, subtotal]``
3. after_discount = subtotal - discount
4. tax on after_discount when enabled
5. grand_total = after_discount + tax
6. deposit (percentage of grand_total or fixed), only when required

Client-facing totals apply a markup to every unit price first and then run the
same steps, so internal and partner-facing numbers never see the markup.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from jobline.models.enums import AmountType
from jobline.schemas.pricing import DepositConfig, DiscountConfig, PricedLine, QuoteTotals, TaxConfig
from jobline.utils.money import HUNDRED, ZERO, clamp, percent_of, round_money, round_rate, to_decimal


def line_total(quantity: Any, unit_price: Any) -> Decimal:
    return round_money(to_decimal(quantity) * to_decimal(unit_price))


def _field(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def price_lines(items: Iterable[Any]) -> list[PricedLine]:
    """Normalize ORM rows, schemas or dicts into priced lines.

    Quantities keep four places and unit prices whole cents, the same scale
    they are stored at. ``line_total`` is always recomputed, a stored value is
    never trusted.
    """
    lines: list[PricedLine] = []
    for index, item in enumerate(items):
        quantity = round_rate(_field(item, "quantity"))
        unit_price = round_money(_field(item, "unit_price"))
        sort_order = _field(item, "sort_order")
        lines.append(
            PricedLine(
                description=_field(item, "description") or "",
                quantity=quantity,
                unit_price=unit_price,
                line_total=line_total(quantity, unit_price),
                sort_order=index if sort_order is None else int(sort_order),
            )
        )
    return lines


def _discount_amount(subtotal: Decimal, discount: DiscountConfig | None) -> Decimal:
    if discount is None:
        return ZERO
    if discount.type == AmountType.PERCENTAGE:
        raw = percent_of(subtotal, discount.value)
    else:
        raw = round_money(discount.value)
    return clamp(raw, ZERO, subtotal)


def _deposit_amount(grand_total: Decimal, deposit: DepositConfig | None) -> Decimal | None:
    if deposit is None or not deposit.required:
        return None
    if deposit.type == AmountType.PERCENTAGE:
        raw = percent_of(grand_total, deposit.amount)
    else:
        raw = round_money(deposit.amount)
    return clamp(raw, ZERO, grand_total)


def compute_totals(
    line_items: Iterable[Any],
    discount: DiscountConfig | None = None,
    tax: TaxConfig | None = None,
    deposit: DepositConfig | None = None,
) -> QuoteTotals:
    lines = price_lines(line_items)
    subtotal = round_money(sum((line.line_total for line in lines), ZERO))
    discount_amount = _discount_amount(subtotal, discount)
    after_discount = subtotal - discount_amount

    tax_amount = ZERO
    if tax is not None and tax.enabled:
        tax_amount = percent_of(after_discount, max(to_decimal(tax.rate), ZERO))

    grand_total = after_discount + tax_amount
    return QuoteTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        after_discount=after_discount,
        tax_amount=tax_amount,
        grand_total=grand_total,
        deposit_calculated=_deposit_amount(grand_total, deposit),
        lines=lines,
    )


def resolve_markup_percent(job_override: Any, default: Any) -> Decimal:
    """A job-level markup wins over the configured default; negatives clamp to zero."""
    chosen = default if job_override is None else job_override
    return max(to_decimal(chosen), Decimal("0"))


def apply_markup(line_items: Iterable[Any], markup_percent: Any) -> list[PricedLine]:
    factor = 1 + max(to_decimal(markup_percent), Decimal("0")) / HUNDRED
    marked: list[PricedLine] = []
    for line in price_lines(line_items):
        unit_price = round_money(line.unit_price * factor)
        marked.append(
            line.model_copy(
                update={"unit_price": unit_price, "line_total": line_total(line.quantity, unit_price)}
            )
        )
    return marked


def compute_client_totals(
    line_items: Iterable[Any],
    markup_percent: Any,
    discount: DiscountConfig | None = None,
    tax: TaxConfig | None = None,
    deposit: DepositConfig | None = None,
) -> QuoteTotals:
    return compute_totals(apply_markup(line_items, markup_percent), discount=discount, tax=tax, deposit=deposit)


def pricing_configs(job: Any) -> tuple[DiscountConfig | None, TaxConfig, DepositConfig]:
    """Build discount, tax and deposit configuration from a job or document row."""
    discount = None
    if job.discount_type and job.discount_value is not None:
        discount = DiscountConfig(type=AmountType(job.discount_type), value=to_decimal(job.discount_value))
    tax = TaxConfig(enabled=bool(job.tax_enabled), rate=to_decimal(job.tax_rate))
    deposit = DepositConfig(
        required=bool(job.deposit_required),
        type=AmountType(job.deposit_type or AmountType.FIXED.value),
        amount=to_decimal(job.deposit_amount),
    )
    return discount, tax, deposit
