from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from decimal import Decimal


class GatewayInfo(BaseModel):
    provider: str
    configured: bool


class GatewayListData(BaseModel):
    items: List[GatewayInfo]


class GatewayIntentCreate(BaseModel):
    invoice_id: int
    # defaults to the invoice's remaining balance
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    description: Optional[str] = Field(None, max_length=255)


class GatewayIntentOut(BaseModel):
    provider: str
    external_id: str
    status: str
    amount: Decimal
    currency: str
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None


class GatewayStatusOut(BaseModel):
    provider: str
    external_id: str
    status: str
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    raw: Dict[str, Any] = {}


class WebhookAck(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
    payment_id: Optional[int] = None
    duplicate: bool = False


class GatewayCaptureOut(BaseModel):
    provider: str
    external_id: str
    status: str
    payment_id: Optional[int] = None
    duplicate: bool = False
