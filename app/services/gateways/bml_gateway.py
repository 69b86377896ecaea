import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Optional

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
from app.utils.signatures import hmac_sha256_hex, verify_hmac_signature
from app.utils.logger import get_logger

logger = get_logger(__name__)

SUCCESS_STATUSES = {"succeeded", "success", "paid", "completed"}


class BMLGateway(PaymentGateway):
    """Bank of Maldives merchant portal: hosted payment page plus signed webhooks."""

    name = "bml"

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        enabled: bool,
        merchant_id: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        webhook_secret: Optional[str] = None,
        base_url: str = "",
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        currency: str = "MVR",
    ):
        super().__init__(http)
        self.enabled = enabled
        self.merchant_id = merchant_id
        self.api_key = api_key
        self.api_secret = api_secret
        self.webhook_secret = webhook_secret
        self.base_url = (base_url or "").rstrip("/")
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.currency = currency

    def is_configured(self) -> bool:
        return bool(
            self.enabled
            and self.merchant_id
            and self.api_key
            and self.api_secret
            and self.base_url
        )

    def sign(self, body: str) -> str:
        return hmac_sha256_hex(self.api_secret, body)

    @staticmethod
    def _payment_data(body: dict) -> dict:
        amount = body.get("amount")
        return {
            "external_id": body.get("reference") or body.get("id"),
            "status": body.get("status") or "pending",
            "redirect_url": body.get("redirectUrl") or body.get("paymentUrl"),
            "amount": from_minor_units(amount) if amount is not None else None,
            "currency": body.get("currency"),
            "metadata": body.get("metadata") or {},
            "raw": body,
        }

    # -------------------------
    # Payments
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

        metadata = metadata or {}
        payload = {
            "merchantId": self.merchant_id,
            "amount": to_minor_units(amount),
            "currency": (currency or self.currency).upper(),
            "orderId": str(metadata.get("invoice_number") or uuid.uuid4().hex),
            "description": description,
            "returnUrl": self.return_url,
            "cancelUrl": self.cancel_url,
            "metadata": metadata,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        # the signature covers the exact bytes sent
        body = json.dumps(payload, separators=(",", ":"), default=str)

        try:
            response = await self.http.post(
                f"{self.base_url}/payments",
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "X-API-KEY": self.api_key,
                    "X-SIGNATURE": self.sign(body),
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("BML create payment failed", extra={"error": str(exc)})
            return GatewayResult.fail(f"BML request failed: {exc}")

        data = response_json(response)
        if response.is_error:
            return GatewayResult.fail(data.get("message") or f"BML returned HTTP {response.status_code}")

        result = self._payment_data(data)
        if result["amount"] is None:
            result["amount"] = from_minor_units(payload["amount"])
        result["currency"] = result["currency"] or payload["currency"]

        logger.info("BML payment created", extra={"external_id": result["external_id"]})
        return GatewayResult.ok(**result)

    async def get_status(self, external_id: str) -> GatewayResult:
        if not self.is_configured():
            return self._not_configured()

        try:
            response = await self.http.get(
                f"{self.base_url}/payments/{external_id}",
                headers={"X-API-KEY": self.api_key},
            )
        except httpx.HTTPError as exc:
            logger.warning("BML status lookup failed", extra={"error": str(exc)})
            return GatewayResult.fail(f"BML request failed: {exc}")

        data = response_json(response)
        if response.is_error:
            return GatewayResult.fail(data.get("message") or f"BML returned HTTP {response.status_code}")
        return GatewayResult.ok(**self._payment_data(data))

    # -------------------------
    # Webhooks
    # -------------------------
    async def verify_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookResult:
        if not self.webhook_secret:
            return WebhookResult.fail("BML webhook secret is not configured")

        signature = header_value(headers, "x-bml-signature", "x-signature")
        if not verify_hmac_signature(payload, signature, self.webhook_secret):
            return WebhookResult.fail("Invalid BML signature")

        event = webhook_event(payload)
        if event is None:
            return WebhookResult.fail("Webhook body is not a JSON object")

        status = (event.get("status") or "").lower()
        amount = event.get("amount")

        return WebhookResult.ok(
            GatewayEvent(
                provider=self.name,
                event_type=event.get("event") or event.get("type") or f"payment.{status or 'unknown'}",
                external_id=event.get("reference") or event.get("id", ""),
                status=status or None,
                amount=from_minor_units(amount) if amount is not None else None,
                currency=event.get("currency"),
                metadata=as_dict(event.get("metadata")),
                succeeded=status in SUCCESS_STATUSES,
            )
        )
