import hmac
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
from app.utils.decimal_utils import to_minor_units, from_minor_units
from app.utils.signatures import hmac_sha256_hex
from app.utils.logger import get_logger

logger = get_logger(__name__)

SUCCESS_EVENTS = {"payment_intent.succeeded"}
DEFAULT_TOLERANCE_SECONDS = 300


def _parse_signature_header(value: str) -> tuple[Optional[str], list[str]]:
    timestamp = None
    signatures: list[str] = []
    for item in value.split(","):
        key, _, val = item.strip().partition("=")
        if key == "t":
            timestamp = val
        elif key == "v1":
            signatures.append(val)
    return timestamp, signatures


class StripeGateway(PaymentGateway):
    name = "stripe"

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        secret_key: Optional[str],
        webhook_secret: Optional[str] = None,
        api_base: str = "https://api.stripe.com",
        tolerance: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(http)
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.api_base = api_base.rstrip("/")
        self.tolerance = tolerance
        self.clock = clock

    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.secret_key}"}

    def _intent_data(self, body: dict) -> dict:
        return {
            "external_id": body.get("id"),
            "status": body.get("status"),
            "client_secret": body.get("client_secret"),
            "amount": from_minor_units(body.get("amount") or 0),
            "currency": (body.get("currency") or "").upper(),
            "metadata": body.get("metadata") or {},
            "raw": body,
        }

    @staticmethod
    def _error(response: httpx.Response, body: dict) -> str:
        message = (body.get("error") or {}).get("message")
        return message or f"Stripe returned HTTP {response.status_code}"

    # -------------------------
    # Intents
    # -------------------------
    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        description: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        form = {
            "amount": str(to_minor_units(amount)),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        if description:
            form["description"] = description
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = str(value)

        try:
            response = await self.http.post(
                f"{self.api_base}/v1/payment_intents",
                data=form,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("Stripe create intent failed", extra={"error": str(exc)})
            return GatewayResult.fail(f"Stripe request failed: {exc}")

        body = response_json(response)
        if response.is_error:
            logger.warning(
                "Stripe rejected payment intent",
                extra={"status_code": response.status_code},
            )
            return GatewayResult.fail(self._error(response, body))

        logger.info("Stripe payment intent created", extra={"external_id": body.get("id")})
        return GatewayResult.ok(**self._intent_data(body))

    async def get_status(self, external_id: str) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        try:
            response = await self.http.get(
                f"{self.api_base}/v1/payment_intents/{external_id}",
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("Stripe status lookup failed", extra={"error": str(exc)})
            return GatewayResult.fail(f"Stripe request failed: {exc}")

        body = response_json(response)
        if response.is_error:
            return GatewayResult.fail(self._error(response, body))
        return GatewayResult.ok(**self._intent_data(body))

    # -------------------------
    # Webhooks
    # -------------------------
    async def verify_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookResult:
        if not self.webhook_secret:
            return WebhookResult.fail("Stripe webhook secret is not configured")

        header = header_value(headers, "stripe-signature")
        if not header:
            return WebhookResult.fail("Missing Stripe-Signature header")

        timestamp, signatures = _parse_signature_header(header)
        if not timestamp or not signatures:
            return WebhookResult.fail("Malformed Stripe-Signature header")
        try:
            issued_at = int(timestamp)
        except ValueError:
            return WebhookResult.fail("Malformed Stripe-Signature header")

        expected = hmac_sha256_hex(self.webhook_secret, f"{issued_at}.".encode("utf-8") + payload)
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            return WebhookResult.fail("Stripe signature mismatch")

        if abs(self.clock() - issued_at) > self.tolerance:
            return WebhookResult.fail("Stripe signature timestamp outside tolerance")

        event = webhook_event(payload)
        if event is None:
            return WebhookResult.fail("Webhook body is not a JSON object")

        event_type = event.get("type", "")
        obj = as_dict(as_dict(event.get("data")).get("object"))
        amount = obj.get("amount_received") or obj.get("amount")

        return WebhookResult.ok(
            GatewayEvent(
                provider=self.name,
                event_type=event_type,
                external_id=obj.get("id") or event.get("id", ""),
                status=obj.get("status"),
                amount=from_minor_units(amount) if amount is not None else None,
                currency=(obj.get("currency") or "").upper() or None,
                metadata=as_dict(obj.get("metadata")),
                succeeded=event_type in SUCCESS_EVENTS,
            )
        )
