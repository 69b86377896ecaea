from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Boolean, JSON, Enum, Text, CheckConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.billing_period import BillingPeriod


class SubscriptionPlan(Base, TimestampMixin):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    currency = Column(String(3), nullable=False, default="USD")
    billing_period = Column(Enum(BillingPeriod), nullable=False, default=BillingPeriod.monthly)
    trial_period_days = Column(Integer, nullable=False, default=0)

    # None means unlimited
    max_users = Column(Integer, nullable=True)
    max_products = Column(Integer, nullable=True)
    max_storage_gb = Column(Integer, nullable=True)

    features = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_plan_price_non_negative"),
        CheckConstraint("trial_period_days >= 0", name="ck_plan_trial_non_negative"),
    )

    def __repr__(self):
        return f"<SubscriptionPlan id={self.id} name={self.name} price={self.price}>"
