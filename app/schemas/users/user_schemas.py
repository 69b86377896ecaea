from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime


# =========================
# CREATE
# =========================
class UserCreateSchema(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    # owners come from registration, super admins from the admin script
    role: Literal["admin", "accountant", "cashier"]
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# =========================
# RESPONSE SCHEMAS
# =========================
class UserDetailSchema(BaseModel):
    id: int
    company_id: Optional[int]
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime
    created_by_admin_id: Optional[int]
    version: int

    model_config = ConfigDict(from_attributes=True)


class UserListData(BaseModel):
    total: int
    items: List[UserDetailSchema]
