from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, Text, JSON, Enum, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin
from app.models.enums.expense_category import ExpenseCategory
from app.models.enums.expense_status import ExpenseStatus
from app.models.enums.payment_method import PaymentMethod
from app.models.enums.recurring_period import RecurringPeriod


class Expense(Base, TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    category = Column(Enum(ExpenseCategory), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    vendor = Column(String(255), nullable=True, index=True)
    description = Column(String(500), nullable=False)

    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    date = Column(Date, nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.cash)
    reference = Column(String(100), nullable=True)

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_period = Column(Enum(RecurringPeriod), nullable=True)

    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    status = Column(Enum(ExpenseStatus), nullable=False, default=ExpenseStatus.approved, index=True)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    approved_by = relationship("User", foreign_keys=[approved_by_id], lazy="selectin")

    __table_args__ = (
        Index("ix_expense_company_date", "company_id", "date"),
        CheckConstraint("amount > 0", name="ck_expense_amount_positive"),
    )

    def __repr__(self):
        return f"<Expense id={self.id} category={self.category} amount={self.amount} status={self.status}>"
