# app/schemas/masters/customer_schema.py

from fastapi import Query
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, List, Literal
from datetime import datetime


class CustomerBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    # free-form lines: street, city, postcode, country
    address: Optional[Dict[str, str]] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[Dict[str, str]] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None

    version: int


class CustomerOut(CustomerBase):
    id: int
    is_active: bool
    version: int

    created_by: Optional[int]
    updated_by: Optional[int]
    created_by_name: Optional[str]
    updated_by_name: Optional[str]

    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerFilters(BaseModel):
    # matches name, email or phone
    search: Optional[str] = Query(None, max_length=100)
    name: Optional[str] = Query(None)
    email: Optional[str] = Query(None)
    phone: Optional[str] = Query(None)
    is_active: Optional[bool] = Query(None)

    sort_by: Literal["created_at", "name", "email"] = Query("created_at")
    sort_order: Literal["asc", "desc"] = Query("desc")

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)


class CustomerListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[CustomerOut]
