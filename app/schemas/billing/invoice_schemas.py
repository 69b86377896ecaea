from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date

from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.document_kind import DocumentKind
from app.models.enums.discount_type import DiscountType
from app.models.enums.payment_method import PaymentMethod


# =====================================================
# BASE
# =====================================================
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =====================================================
# ITEM INPUTS
# =====================================================
class InvoiceItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)


# =====================================================
# ITEM OUTPUT
# =====================================================
class InvoiceItemOut(ORMBase):
    id: int
    product_id: int
    product_name: Optional[str] = None
    description: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


# =====================================================
# CREATE / UPDATE
# =====================================================
class InvoiceCreate(BaseModel):
    kind: DocumentKind = DocumentKind.invoice
    customer_id: int
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: List[InvoiceItemCreate] = Field(min_length=1)

    gst_enabled: bool = False
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    discount_type: DiscountType = DiscountType.none
    discount_value: Decimal = Field(Decimal("0.00"), ge=0)

    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date cannot be before issue_date")
        if self.discount_type == DiscountType.percentage and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class InvoiceUpdate(BaseModel):
    version: int
    customer_id: Optional[int] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[InvoiceItemCreate]] = Field(None, min_length=1)

    gst_enabled: Optional[bool] = None
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)

    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None


# =====================================================
# NESTED OUTPUTS
# =====================================================
class InvoicePaymentOut(ORMBase):
    id: int
    amount: Decimal
    method: PaymentMethod
    date: datetime
    reference: Optional[str]


class InvoiceCustomerOut(ORMBase):
    id: int
    name: str
    email: str
    phone: Optional[str]


# =====================================================
# SINGLE INVOICE OUTPUT
# =====================================================
class InvoiceOut(ORMBase):
    id: int
    invoice_number: str
    kind: DocumentKind
    customer_id: int
    customer: Optional[InvoiceCustomerOut]
    status: InvoiceStatus

    issue_date: date
    due_date: date

    subtotal: Decimal
    gst_enabled: bool
    gst_rate: Decimal
    gst_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    total: Decimal
    paid_amount: Decimal
    balance_due: Decimal

    notes: Optional[str]
    terms_and_conditions: Optional[str]

    sent_at: Optional[datetime]
    paid_at: Optional[datetime]
    version: int

    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime]

    items: List[InvoiceItemOut]
    payments: List[InvoicePaymentOut]


# =====================================================
# LIST VIEW
# =====================================================
class InvoiceListItem(BaseModel):
    id: int
    invoice_number: str
    kind: DocumentKind
    customer_id: int
    customer_name: str
    issue_date: date
    due_date: date
    total: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    status: InvoiceStatus


class InvoiceListData(BaseModel):
    total: int
    items: List[InvoiceListItem]
