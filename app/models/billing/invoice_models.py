from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum, Boolean, DateTime, Date, Text, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from decimal import Decimal
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin
from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.document_kind import DocumentKind
from app.models.enums.discount_type import DiscountType


class Invoice(Base, TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin):
    """Billable document. Quotes share the table and differ only by kind."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(50), nullable=False, index=True)
    kind = Column(Enum(DocumentKind), nullable=False, default=DocumentKind.invoice, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.draft, index=True)
    version = Column(Integer, nullable=False, default=1)

    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    gst_enabled = Column(Boolean, nullable=False, default=False)
    gst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    gst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_type = Column(Enum(DiscountType), nullable=False, default=DiscountType.none)
    discount_value = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    balance_due = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)

    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", lazy="selectin", order_by="InvoiceItem.id")
    customer = relationship("Customer", back_populates="invoices", lazy="selectin")
    payments = relationship("Payment", back_populates="invoice", cascade="all, delete-orphan", lazy="selectin", order_by="Payment.date.desc()")

    __table_args__ = (
        UniqueConstraint("company_id", "invoice_number", name="uq_invoice_company_number"),
        Index("ix_invoice_company_status", "company_id", "status"),
        CheckConstraint("subtotal >= 0 AND gst_amount >= 0 AND total >= 0", name="ck_invoice_amounts_non_negative"),
        CheckConstraint("paid_amount >= 0 AND paid_amount <= total", name="ck_invoice_paid_within_total"),
        CheckConstraint("ABS(paid_amount + balance_due - total) < 0.005", name="ck_invoice_balance_matches"),
        CheckConstraint("gst_rate >= 0 AND gst_rate <= 100", name="ck_invoice_gst_rate_range"),
    )

    @property
    def remaining_balance(self) -> Decimal:
        return (self.total or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    def __repr__(self):
        return f"<Invoice {self.invoice_number} kind={self.kind} status={self.status}>"


class InvoiceItem(Base, TimestampMixin):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="items", lazy="noload")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_invoice_item_price_non_negative"),
        CheckConstraint("line_total >= 0", name="ck_invoice_item_total_non_negative"),
    )

    def __repr__(self):
        return f"<InvoiceItem id={self.id} product_id={self.product_id} qty={self.quantity} total={self.line_total}>"
