from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime, date

from app.models.enums.pos_payment_method import POSPaymentMethod
from app.models.enums.pos_sale_status import POSSaleStatus
from app.models.enums.discount_type import DiscountType


# =====================================================
# INPUT
# =====================================================
class POSSaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    # overrides the catalogue price
    unit_price: Optional[Decimal] = Field(None, ge=0)
    discount_type: DiscountType = DiscountType.none
    discount_value: Decimal = Field(Decimal("0.00"), ge=0)
    notes: Optional[str] = None


class POSSaleCreate(BaseModel):
    items: List[POSSaleItemCreate] = Field(min_length=1)
    payment_method: POSPaymentMethod
    payment_details: Dict[str, Any] = {}
    amount_tendered: Optional[Decimal] = Field(None, ge=0)
    customer_id: Optional[int] = None
    customer_info: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    device_info: Dict[str, Any] = {}


class POSRefundItem(BaseModel):
    sale_item_id: int
    quantity: int = Field(gt=0)


class POSRefundCreate(BaseModel):
    items: List[POSRefundItem] = Field(min_length=1)
    reason: Optional[str] = None


# =====================================================
# OUTPUT
# =====================================================
class POSSaleItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_sku: Optional[str]
    quantity: int
    original_price: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    line_total: Decimal
    refunded_quantity: int
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class POSSaleOut(BaseModel):
    id: int
    sale_number: str
    business_date: date
    date: datetime
    cashier_id: int
    cashier_name: Optional[str] = None
    customer_id: Optional[int]
    customer_info: Optional[Dict[str, Any]]

    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal

    payment_method: POSPaymentMethod
    payment_details: Dict[str, Any]
    amount_tendered: Optional[Decimal]
    change_given: Optional[Decimal]
    status: POSSaleStatus
    notes: Optional[str]

    items: List[POSSaleItemOut]

    model_config = ConfigDict(from_attributes=True)


class POSSaleListItem(BaseModel):
    id: int
    sale_number: str
    date: datetime
    cashier_id: int
    total: Decimal
    payment_method: POSPaymentMethod
    status: POSSaleStatus
    item_count: int


class POSSaleListData(BaseModel):
    total: int
    items: List[POSSaleListItem]


class POSRefundOut(BaseModel):
    sale: POSSaleOut
    refund_amount: Decimal


class BarcodeLookupOut(BaseModel):
    id: int
    sku: str
    barcode: Optional[str]
    name: str
    price: Decimal
    tax_rate: Decimal
    track_inventory: bool
    stock_quantity: int
    in_stock: bool
    is_low_stock: bool


# =====================================================
# DAILY REPORT
# =====================================================
class PaymentMethodBreakdown(BaseModel):
    payment_method: POSPaymentMethod
    count: int
    total: Decimal
    tax: Decimal


class TopProduct(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    revenue: Decimal


class POSDailyReport(BaseModel):
    date: date
    sale_count: int
    total_sales: Decimal
    total_tax: Decimal
    average_sale: Decimal
    by_payment_method: List[PaymentMethodBreakdown]
    top_products: List[TopProduct]
