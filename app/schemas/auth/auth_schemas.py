from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

from app.models.enums.subscription_status import SubscriptionStatus


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    subscription_plan_id: Optional[int] = None


class TokenData(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"


class CompanyOut(BaseModel):
    id: int
    name: str
    email: Optional[str]
    currency: str
    gst_rate: Optional[Decimal]
    subscription_plan_id: Optional[int]
    subscription_status: SubscriptionStatus
    trial_ends_at: Optional[datetime]

    class Config:
        from_attributes = True


class MeOut(BaseModel):
    id: int
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    company: Optional[CompanyOut]
    last_login: Optional[datetime]


class AuthData(BaseModel):
    auth: TokenData
    user: MeOut
