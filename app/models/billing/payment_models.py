from sqlalchemy import Column, Integer, Numeric, String, Text, DateTime, Enum, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin, CompanyScopedMixin, utc_now
from app.models.enums.payment_method import PaymentMethod
from app.models.enums.payment_status import PaymentStatus


class Payment(Base, TimestampMixin, AuditMixin, CompanyScopedMixin):
    """
    One settlement against one invoice.

    Payments are hard-deleted: removing one reverses its contribution to the
    invoice balance and the activity log keeps the trace. Invoices, by
    contrast, are only ever soft-deleted.
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)

    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(14, 2), nullable=False)
    method = Column(Enum(PaymentMethod), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    reference = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.completed)

    invoice = relationship("Invoice", back_populates="payments", lazy="noload")

    __table_args__ = (
        Index("ix_payment_company_date", "company_id", "date"),
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )

    def __repr__(self):
        return f"<Payment id={self.id} invoice_id={self.invoice_id} amount={self.amount}>"
