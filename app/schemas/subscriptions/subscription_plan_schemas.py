from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime

from app.models.enums.billing_period import BillingPeriod


class SubscriptionPlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    billing_period: BillingPeriod = BillingPeriod.monthly
    trial_period_days: int = Field(0, ge=0)
    max_users: Optional[int] = Field(None, ge=1)
    max_products: Optional[int] = Field(None, ge=1)
    max_storage_gb: Optional[int] = Field(None, ge=1)
    features: Dict[str, Any] = {}
    sort_order: int = 0


class SubscriptionPlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    billing_period: Optional[BillingPeriod] = None
    trial_period_days: Optional[int] = Field(None, ge=0)
    max_users: Optional[int] = Field(None, ge=1)
    max_products: Optional[int] = Field(None, ge=1)
    max_storage_gb: Optional[int] = Field(None, ge=1)
    features: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class SubscriptionPlanOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    currency: str
    billing_period: BillingPeriod
    trial_period_days: int
    max_users: Optional[int]
    max_products: Optional[int]
    max_storage_gb: Optional[int]
    features: Dict[str, Any]
    is_active: bool
    sort_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
