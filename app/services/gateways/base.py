import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

import httpx


# =====================================================
# NORMALIZED RESULTS
# =====================================================
@dataclass
class GatewayEvent:
    provider: str
    event_type: str
    external_id: str
    status: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    # true only for events that mean money has been collected
    succeeded: bool = False


@dataclass
class GatewayResult:
    success: bool
    data: dict = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, **data: Any) -> "GatewayResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "GatewayResult":
        return cls(success=False, error=error)


@dataclass
class WebhookResult:
    success: bool
    event: Optional[GatewayEvent] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, event: GatewayEvent) -> "WebhookResult":
        return cls(success=True, event=event)

    @classmethod
    def fail(cls, error: str) -> "WebhookResult":
        return cls(success=False, error=error)


def header_value(headers: Mapping[str, str], *names: str) -> Optional[str]:
    """First matching header, case-insensitive; works for plain dicts and Starlette headers."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in names:
        value = lowered.get(name.lower())
        if value:
            return value
    return None


def webhook_event(payload: bytes) -> Optional[dict]:
    """Decode a webhook body; None unless it is a JSON object."""
    try:
        event = json.loads(payload)
    except ValueError:
        return None
    return event if isinstance(event, dict) else None


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def response_json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# =====================================================
# GATEWAY INTERFACE
# =====================================================
class PaymentGateway(ABC):
    """
    One external payment provider.

    Adapters never raise for provider or transport failures; they return a
    failed GatewayResult / WebhookResult carrying a readable error instead.
    """

    name: str = ""
    supports_capture: bool = False

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        description: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> GatewayResult:
        ...

    @abstractmethod
    async def get_status(self, external_id: str) -> GatewayResult:
        ...

    async def capture(self, external_id: str) -> GatewayResult:
        return GatewayResult.fail(f"{self.name} payments do not need a capture step")

    @abstractmethod
    async def verify_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookResult:
        ...

    def _not_configured(self) -> GatewayResult:
        return GatewayResult.fail(f"{self.name} is not configured")
