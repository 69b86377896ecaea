from decimal import Decimal

from app.models.enums.discount_type import DiscountType
from app.services.billing.invoice_totals import calculate_totals, discount_for, line_total


def test_line_total_rounds_to_cents():
    assert line_total(3, "33.333") == Decimal("99.99")


def test_no_discount_no_gst():
    totals = calculate_totals([Decimal("40.00"), Decimal("60.00")])
    assert totals.subtotal == Decimal("100.00")
    assert totals.discount_amount == Decimal("0.00")
    assert totals.gst_amount == Decimal("0.00")
    assert totals.total == Decimal("100.00")


def test_percentage_discount_then_gst_on_discounted_subtotal():
    totals = calculate_totals(
        [Decimal("200.00")],
        discount_type=DiscountType.percentage,
        discount_value=Decimal("10"),
        gst_enabled=True,
        gst_rate=Decimal("8"),
    )
    assert totals.discount_amount == Decimal("20.00")
    assert totals.gst_amount == Decimal("14.40")
    assert totals.total == Decimal("194.40")


def test_gst_rate_ignored_when_disabled():
    totals = calculate_totals([Decimal("50.00")], gst_enabled=False, gst_rate=Decimal("18"))
    assert totals.total == Decimal("50.00")


def test_fixed_discount_clamped_to_subtotal():
    assert discount_for(Decimal("30.00"), DiscountType.fixed, Decimal("45.00")) == Decimal("30.00")
    totals = calculate_totals([Decimal("30.00")], discount_type=DiscountType.fixed, discount_value="45")
    assert totals.total == Decimal("0.00")
