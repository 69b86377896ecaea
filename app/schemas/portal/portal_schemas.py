from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import date

from app.models.enums.document_kind import DocumentKind
from app.schemas.billing.invoice_schemas import InvoiceItemCreate


class PortalCompanyInfo(BaseModel):
    id: int
    name: str
    logo_url: Optional[str]
    currency: str
    gst_enabled: bool
    gst_rate: Decimal


class PortalProduct(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str]
    unit: Optional[str]
    price: Decimal
    tax_rate: Decimal
    track_inventory: bool
    stock_quantity: int

    model_config = ConfigDict(from_attributes=True)


class PortalProductGroup(BaseModel):
    category: str
    products: List[PortalProduct]


class PortalCustomer(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class PortalDocumentCreate(BaseModel):
    kind: DocumentKind = DocumentKind.quote
    customer_id: int
    items: List[InvoiceItemCreate] = Field(min_length=1)
    due_date: Optional[date] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
