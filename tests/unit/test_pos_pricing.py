from datetime import date
from decimal import Decimal

from app.models.enums.discount_type import DiscountType
from app.services.pos.pos_pricing import price_line, change_due, refund_amount, format_sale_number


def test_line_without_discount():
    line = price_line("10.00", 3, DiscountType.none, 0, "10")
    assert line.discount_amount == Decimal("0.00")
    assert line.unit_price == Decimal("10.00")
    assert line.tax_amount == Decimal("3.00")
    assert line.line_total == Decimal("33.00")
    assert line.net_amount == Decimal("30.00")


def test_percentage_discount_spreads_over_units():
    line = price_line("20.00", 2, DiscountType.percentage, "25", "0")
    assert line.discount_amount == Decimal("10.00")
    assert line.unit_price == Decimal("15.00")
    assert line.line_total == Decimal("30.00")


def test_fixed_discount_is_for_the_whole_line():
    line = price_line("10.00", 4, DiscountType.fixed, "8.00", "5")
    assert line.unit_price == Decimal("8.00")
    assert line.tax_amount == Decimal("1.60")
    assert line.line_total == Decimal("33.60")


def test_discount_matches_rounded_net_value():
    line = price_line("10.00", 3, DiscountType.fixed, "10.00", "0")
    assert line.unit_price == Decimal("6.67")
    assert line.net_amount == Decimal("20.01")
    assert line.discount_amount == Decimal("9.99")
    assert line.discount_amount + line.net_amount == Decimal("30.00")


def test_discount_never_exceeds_line_value():
    line = price_line("5.00", 1, DiscountType.fixed, "9.00", "10")
    assert line.discount_amount == Decimal("5.00")
    assert line.unit_price == Decimal("0.00")
    assert line.line_total == Decimal("0.00")


def test_change_due_never_negative():
    assert change_due("33.00", "50.00") == Decimal("17.00")
    assert change_due("33.00", "33.00") == Decimal("0.00")
    assert change_due("33.00", "20.00") == Decimal("0.00")


def test_refund_is_proportional_to_line_total():
    assert refund_amount("33.00", 3, 1) == Decimal("11.00")
    assert refund_amount("10.00", 3, 2) == Decimal("6.67")


def test_sale_number_format():
    assert format_sale_number(date(2024, 7, 9), 12) == "POS-20240709-0012"
