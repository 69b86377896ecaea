from sqlalchemy import Column, Integer, String, Boolean, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin


class Customer(Base, TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True, index=True)
    address = Column(JSON, nullable=True)
    tax_id = Column(String(50), nullable=True)
    notes = Column(String(1000), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    invoices = relationship("Invoice", back_populates="customer", lazy="noload")

    __table_args__ = (
        UniqueConstraint("company_id", "email", name="uq_customer_company_email"),
        Index("ix_customer_company_active", "company_id", "is_active"),
    )

    def __repr__(self):
        return f"<Customer id={self.id} name={self.name} active={self.is_active}>"
