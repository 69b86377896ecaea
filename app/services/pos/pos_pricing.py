from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.models.enums.discount_type import DiscountType
from app.utils.decimal_utils import to_decimal, percent_of, ZERO


@dataclass(frozen=True)
class LineAmounts:
    discount_amount: Decimal
    unit_price: Decimal
    tax_amount: Decimal
    line_total: Decimal

    @property
    def net_amount(self) -> Decimal:
        """Line value after discount, before tax."""
        return self.line_total - self.tax_amount


def price_line(
    original_price,
    quantity: int,
    discount_type: DiscountType,
    discount_value,
    tax_rate,
) -> LineAmounts:
    """
    Price one POS line.

    discount: percentage of (price x qty), or a fixed amount for the whole line,
    capped at the line value. The discount is spread over the unit price and
    tax is charged on the discounted line.
    """
    original_price = to_decimal(original_price)
    gross = original_price * quantity

    if discount_type == DiscountType.percentage:
        discount = percent_of(gross, discount_value)
    elif discount_type == DiscountType.fixed:
        discount = to_decimal(discount_value)
    else:
        discount = ZERO
    discount = min(discount, to_decimal(gross))

    unit_price = to_decimal(original_price - discount / quantity)
    net = to_decimal(unit_price * quantity)
    tax = percent_of(net, tax_rate)

    # unit_price is rounded, so report what the rounded net actually gives away
    return LineAmounts(
        discount_amount=to_decimal(gross) - net,
        unit_price=unit_price,
        tax_amount=tax,
        line_total=net + tax,
    )


def change_due(total, tendered) -> Decimal:
    return max(ZERO, to_decimal(tendered) - to_decimal(total))


def refund_amount(line_total, quantity: int, refund_quantity: int) -> Decimal:
    """Refunds are proportional to the tax-inclusive line total."""
    return to_decimal(to_decimal(line_total) / quantity * refund_quantity)


def format_sale_number(business_date: date, seq: int) -> str:
    return f"POS-{business_date:%Y%m%d}-{seq:04d}"
