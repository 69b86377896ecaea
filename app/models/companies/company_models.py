from sqlalchemy import Column, Integer, String, Boolean, JSON, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.subscription_status import SubscriptionStatus


class Company(Base, TimestampMixin):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(JSON, nullable=True)
    tax_id = Column(String(50), nullable=True)
    logo_url = Column(String(500), nullable=True)

    currency = Column(String(3), nullable=False, default="USD")
    # percent; POS falls back to DEFAULT_POS_TAX_RATE when unset
    gst_rate = Column(Numeric(5, 2), nullable=True)

    subscription_plan_id = Column(Integer, ForeignKey("subscription_plans.id", ondelete="SET NULL"), nullable=True, index=True)
    subscription_status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.trial)
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)

    # document number counters, advanced under a row lock
    next_invoice_seq = Column(Integer, nullable=False, default=1)
    next_quote_seq = Column(Integer, nullable=False, default=1)

    is_active = Column(Boolean, default=True, nullable=False)

    subscription_plan = relationship("SubscriptionPlan", lazy="selectin")

    def __repr__(self):
        return f"<Company id={self.id} name={self.name} status={self.subscription_status}>"
