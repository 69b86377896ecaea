import json
import time
from decimal import Decimal
from typing import Callable, Mapping, Optional

import httpx

from app.services.gateways.base import (
    PaymentGateway,
    GatewayEvent,
    GatewayResult,
    WebhookResult,
    header_value,
    response_json,
    webhook_event,
    as_dict,
)
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)

API_BASES = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

SUCCESS_EVENTS = {"PAYMENT.CAPTURE.COMPLETED"}

# transmission headers PayPal sends with every webhook
TRANSMISSION_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}

# refresh the token a minute before PayPal expires it
TOKEN_EXPIRY_MARGIN = 60


def _decode_custom_id(value: Optional[str]) -> dict:
    if not value:
        return {}
    try:
        decoded = json.loads(value)
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _link(body: dict, rel: str) -> Optional[str]:
    for link in body.get("links") or []:
        if link.get("rel") == rel:
            return link.get("href")
    return None


class PayPalError(Exception):
    pass


class PayPalGateway(PaymentGateway):
    name = "paypal"
    supports_capture = True

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        environment: str = "sandbox",
        webhook_id: Optional[str] = None,
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        brand_name: str = "BoliBooks",
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(http)
        self.client_id = client_id
        self.client_secret = client_secret
        self.environment = environment
        self.api_base = API_BASES[environment]
        self.webhook_id = webhook_id
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.brand_name = brand_name
        self.clock = clock

        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # -------------------------
    # Transport
    # -------------------------
    async def _access_token(self) -> str:
        if self._token and self.clock() < self._token_expires_at:
            return self._token

        response = await self.http.post(
            f"{self.api_base}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        body = response_json(response)
        if response.is_error or "access_token" not in body:
            raise PayPalError(
                body.get("error_description") or f"PayPal token request returned HTTP {response.status_code}"
            )

        self._token = body["access_token"]
        self._token_expires_at = self.clock() + int(body.get("expires_in", 0)) - TOKEN_EXPIRY_MARGIN
        return self._token

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        token = await self._access_token()
        response = await self.http.request(
            method,
            f"{self.api_base}{path}",
            json=payload,
            headers={
                "Authorization": f"Bearer {token}",
                "Prefer": "return=representation",
            },
        )
        body = response_json(response)
        if response.is_error:
            raise PayPalError(body.get("message") or f"PayPal returned HTTP {response.status_code}")
        return body

    async def _call(self, action: str, method: str, path: str, payload: Optional[dict] = None):
        """Run a PayPal request; returns (body, None) or (None, error message)."""
        try:
            return await self._request(method, path, payload), None
        except (httpx.HTTPError, PayPalError) as exc:
            logger.warning(f"PayPal {action} failed", extra={"error": str(exc)})
            return None, str(exc)

    # -------------------------
    # Orders
    # -------------------------
    @staticmethod
    def _order_data(body: dict) -> dict:
        unit = (body.get("purchase_units") or [{}])[0]
        captures = ((unit.get("payments") or {}).get("captures")) or []
        amount = unit.get("amount") or (captures[0].get("amount") if captures else None) or {}
        custom_id = unit.get("custom_id") or (captures[0].get("custom_id") if captures else None)
        return {
            "external_id": body.get("id"),
            "status": body.get("status"),
            "redirect_url": _link(body, "approve"),
            "capture_id": captures[0].get("id") if captures else None,
            "amount": to_decimal(amount["value"]) if amount.get("value") else None,
            "currency": amount.get("currency_code"),
            "metadata": _decode_custom_id(custom_id),
            "raw": body,
        }

    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        description: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        purchase_unit = {
            "amount": {
                "currency_code": currency.upper(),
                "value": f"{to_decimal(amount):.2f}",
            },
            "description": description or f"{self.brand_name} Payment",
        }
        if metadata:
            purchase_unit["custom_id"] = json.dumps(metadata, separators=(",", ":"))

        payload = {
            "intent": "CAPTURE",
            "purchase_units": [purchase_unit],
            "application_context": {
                "brand_name": self.brand_name,
                "landing_page": "NO_PREFERENCE",
                "user_action": "PAY_NOW",
                "return_url": self.return_url,
                "cancel_url": self.cancel_url,
            },
        }

        body, error = await self._call("create order", "POST", "/v2/checkout/orders", payload)
        if error:
            return GatewayResult.fail(error)

        logger.info("PayPal order created", extra={"external_id": body.get("id")})
        return GatewayResult.ok(**self._order_data(body))

    async def get_status(self, external_id: str) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        body, error = await self._call("get order", "GET", f"/v2/checkout/orders/{external_id}")
        if error:
            return GatewayResult.fail(error)
        return GatewayResult.ok(**self._order_data(body))

    async def capture(self, external_id: str) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        body, error = await self._call(
            "capture order", "POST", f"/v2/checkout/orders/{external_id}/capture", {}
        )
        if error:
            return GatewayResult.fail(error)

        logger.info(
            "PayPal order captured",
            extra={"external_id": external_id, "status": body.get("status")},
        )
        return GatewayResult.ok(**self._order_data(body))

    # -------------------------
    # Webhooks
    # -------------------------
    async def verify_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookResult:
        if not self.is_configured() or not self.webhook_id:
            return WebhookResult.fail("PayPal webhook verification is not configured")

        transmission = {key: header_value(headers, name) for key, name in TRANSMISSION_HEADERS.items()}
        missing = [TRANSMISSION_HEADERS[k] for k, v in transmission.items() if not v]
        if missing:
            return WebhookResult.fail(f"Missing PayPal headers: {', '.join(missing)}")

        event = webhook_event(payload)
        if event is None:
            return WebhookResult.fail("Webhook body is not a JSON object")

        body, error = await self._call(
            "webhook verification",
            "POST",
            "/v1/notifications/verify-webhook-signature",
            {**transmission, "webhook_id": self.webhook_id, "webhook_event": event},
        )
        if error:
            return WebhookResult.fail(error)
        if body.get("verification_status") != "SUCCESS":
            return WebhookResult.fail("PayPal signature verification failed")

        event_type = event.get("event_type", "")
        resource = as_dict(event.get("resource"))
        amount = as_dict(resource.get("amount"))
        related = as_dict(as_dict(resource.get("supplementary_data")).get("related_ids"))

        return WebhookResult.ok(
            GatewayEvent(
                provider=self.name,
                event_type=event_type,
                # capture and webhook both key on the order id
                external_id=related.get("order_id") or resource.get("id", ""),
                status=resource.get("status"),
                amount=to_decimal(amount["value"]) if amount.get("value") else None,
                currency=amount.get("currency_code"),
                metadata=_decode_custom_id(resource.get("custom_id")),
                succeeded=event_type in SUCCESS_EVENTS,
            )
        )
