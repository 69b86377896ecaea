from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, Text, JSON, Enum, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, CompanyScopedMixin, utc_now
from app.models.enums.pos_payment_method import POSPaymentMethod
from app.models.enums.pos_sale_status import POSSaleStatus
from app.models.enums.discount_type import DiscountType


class POSSale(Base, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "pos_sales"

    id = Column(Integer, primary_key=True)
    cashier_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    sale_number = Column(String(50), nullable=False)
    business_date = Column(Date, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    payment_method = Column(Enum(POSPaymentMethod), nullable=False, default=POSPaymentMethod.cash)
    payment_details = Column(JSON, nullable=False, default=dict)
    amount_tendered = Column(Numeric(14, 2), nullable=True)
    change_given = Column(Numeric(14, 2), nullable=True)

    status = Column(Enum(POSSaleStatus), nullable=False, default=POSSaleStatus.completed, index=True)

    # null for walk-in customers
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_info = Column(JSON, nullable=True, default=dict)
    notes = Column(Text, nullable=True)
    receipt_printed = Column(Boolean, nullable=False, default=False)
    device_info = Column(JSON, nullable=False, default=dict)

    items = relationship("POSSaleItem", back_populates="sale", cascade="all, delete-orphan", lazy="selectin", order_by="POSSaleItem.id")
    cashier = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("company_id", "sale_number", name="uq_pos_sale_company_number"),
        Index("ix_pos_sale_company_date", "company_id", "business_date"),
        Index("ix_pos_sale_cashier_date", "cashier_id", "business_date"),
    )

    def __repr__(self):
        return f"<POSSale {self.sale_number} total={self.total} status={self.status}>"


class POSSaleItem(Base, TimestampMixin):
    __tablename__ = "pos_sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("pos_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    # snapshot at time of sale
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(50), nullable=True)

    quantity = Column(Integer, nullable=False)
    original_price = Column(Numeric(12, 2), nullable=False)
    discount_type = Column(Enum(DiscountType), nullable=False, default=DiscountType.none)
    discount_value = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    unit_price = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    line_total = Column(Numeric(14, 2), nullable=False)
    notes = Column(Text, nullable=True)

    refunded_quantity = Column(Integer, nullable=False, default=0)
    is_refunded = Column(Boolean, nullable=False, default=False)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    sale = relationship("POSSale", back_populates="items", lazy="noload")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_pos_item_qty_positive"),
        CheckConstraint("refunded_quantity >= 0 AND refunded_quantity <= quantity", name="ck_pos_item_refund_range"),
    )

    @property
    def refundable_quantity(self) -> int:
        return self.quantity - (self.refunded_quantity or 0)

    def __repr__(self):
        return f"<POSSaleItem id={self.id} product_id={self.product_id} qty={self.quantity}>"
