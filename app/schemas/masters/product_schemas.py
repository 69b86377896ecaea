from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=50)
    barcode: Optional[str] = Field(None, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    price: Decimal = Field(ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Decimal = Field(Decimal("0.00"), ge=0, le=100)
    track_inventory: bool = True
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    barcode: Optional[str] = Field(None, max_length=64)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    track_inventory: Optional[bool] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)

    version: int


class ProductOut(BaseModel):
    id: int
    sku: str
    barcode: Optional[str]
    name: str
    category: Optional[str]
    description: Optional[str]
    unit: Optional[str]
    price: Decimal
    cost: Optional[Decimal]
    tax_rate: Decimal
    track_inventory: bool
    stock_quantity: int
    low_stock_threshold: int
    is_low_stock: bool
    version: int

    created_by_name: Optional[str]
    updated_by_name: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProductListData(BaseModel):
    total: int
    items: List[ProductOut]
