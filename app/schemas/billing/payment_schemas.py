from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from app.models.enums.payment_method import PaymentMethod
from app.models.enums.payment_status import PaymentStatus
from app.models.enums.invoice_status import InvoiceStatus


# =========================
# IN
# =========================
class PaymentCreate(BaseModel):
    invoice_id: int
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    method: PaymentMethod
    date: Optional[datetime] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    method: Optional[PaymentMethod] = None
    date: Optional[datetime] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    status: Optional[PaymentStatus] = None


# =========================
# OUT
# =========================
class PaymentInvoiceOut(BaseModel):
    id: int
    invoice_number: str
    total: Decimal
    paid_amount: Decimal
    status: InvoiceStatus
    paid_at: Optional[datetime]
    customer_id: int
    customer_name: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class PaymentOut(BaseModel):
    id: int
    invoice_id: int
    amount: Decimal
    method: PaymentMethod
    date: datetime
    reference: Optional[str]
    notes: Optional[str]
    status: PaymentStatus
    created_by_name: Optional[str] = None
    created_at: datetime
    invoice: Optional[PaymentInvoiceOut] = None

    model_config = ConfigDict(from_attributes=True)


# =========================
# LIST DATA
# =========================
class PaymentListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[PaymentOut]


class PaymentMethodStat(BaseModel):
    method: PaymentMethod
    count: int
    total_amount: Decimal


class InvoicePaymentSummary(BaseModel):
    total_paid: Decimal
    payment_count: int
    invoice_total: Decimal
    remaining_balance: Decimal


class InvoicePaymentsData(BaseModel):
    invoice_id: int
    invoice_number: str
    payments: List[PaymentOut]
    summary: InvoicePaymentSummary


class PaymentDeleteData(BaseModel):
    payment_id: int
    invoice_id: int
    invoice_paid_amount: Decimal
    invoice_status: InvoiceStatus
    invoice_paid_at: Optional[datetime]
