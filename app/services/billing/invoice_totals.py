from dataclasses import dataclass
from decimal import Decimal

from app.models.enums.discount_type import DiscountType
from app.utils.decimal_utils import to_decimal, percent_of, ZERO


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount_amount: Decimal
    gst_amount: Decimal
    total: Decimal


def line_total(quantity: int, unit_price) -> Decimal:
    return to_decimal(to_decimal(unit_price) * quantity)


def discount_for(subtotal: Decimal, discount_type: DiscountType, discount_value) -> Decimal:
    if discount_type == DiscountType.percentage:
        amount = percent_of(subtotal, discount_value)
    elif discount_type == DiscountType.fixed:
        amount = to_decimal(discount_value)
    else:
        return ZERO
    # never discount below zero
    return min(amount, subtotal)


def calculate_totals(
    line_totals: list[Decimal],
    *,
    discount_type: DiscountType = DiscountType.none,
    discount_value=ZERO,
    gst_enabled: bool = False,
    gst_rate=ZERO,
) -> DocumentTotals:
    """GST applies to the discounted subtotal."""
    subtotal = to_decimal(sum(line_totals, ZERO))
    discount = discount_for(subtotal, discount_type, discount_value)
    taxable = subtotal - discount
    gst = percent_of(taxable, gst_rate) if gst_enabled else ZERO
    return DocumentTotals(
        subtotal=subtotal,
        discount_amount=discount,
        gst_amount=gst,
        total=taxable + gst,
    )
