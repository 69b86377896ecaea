from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, Any, Literal
from decimal import Decimal
from datetime import datetime

from app.models.enums.subscription_status import SubscriptionStatus
from app.schemas.subscriptions.subscription_plan_schemas import SubscriptionPlanOut


# =========================
# PROFILE
# =========================
class CompanyProfileOut(BaseModel):
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[Dict[str, Any]]
    tax_id: Optional[str]
    logo_url: Optional[str]
    currency: str
    gst_rate: Optional[Decimal]
    subscription_plan_id: Optional[int]
    subscription_status: SubscriptionStatus
    trial_ends_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[Dict[str, Any]] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    logo_url: Optional[str] = Field(None, max_length=500)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)


# =========================
# SUBSCRIPTION
# =========================
class PlanLimits(BaseModel):
    max_users: Optional[int]
    max_products: Optional[int]
    max_storage_gb: Optional[int]


class SubscriptionUsage(BaseModel):
    active_users: int
    products: int
    invoices_this_month: int


class SubscriptionOut(BaseModel):
    status: SubscriptionStatus
    plan: Optional[SubscriptionPlanOut]
    trial_ends_at: Optional[datetime]
    trial_days_remaining: Optional[int]
    limits: PlanLimits
    usage: SubscriptionUsage


class SubscriptionChange(BaseModel):
    subscription_plan_id: int


class SubscriptionStatusChange(BaseModel):
    status: SubscriptionStatus
    reason: Optional[str] = Field(None, max_length=255)


# =========================
# USERS
# =========================
class UserRoleChange(BaseModel):
    role: Literal["admin", "accountant", "cashier"]
