# app/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def percent_of(amount, rate) -> Decimal:
    """rate is a percentage (18 means 18%)."""
    return to_decimal(Decimal(str(amount)) * Decimal(str(rate)) / HUNDRED)


def to_minor_units(amount) -> int:
    # gateways take integer cents / laari
    return int((to_decimal(amount) * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(value) -> Decimal:
    return to_decimal(Decimal(int(value)) / HUNDRED)
