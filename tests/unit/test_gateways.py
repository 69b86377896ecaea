import json
from decimal import Decimal
from urllib.parse import parse_qs

import httpx

from app.services.gateways.stripe_gateway import StripeGateway
from app.services.gateways.paypal_gateway import PayPalGateway
from app.services.gateways.bml_gateway import BMLGateway
from app.utils.signatures import hmac_sha256_hex

PAYPAL_BASE = "https://api-m.sandbox.paypal.com"
BML_BASE = "https://bml.test/api"
METADATA = {"invoice_id": 7, "company_id": 3, "invoice_number": "INV-0007"}


def stripe_signature(secret: str, timestamp: int, payload: bytes) -> str:
    digest = hmac_sha256_hex(secret, f"{timestamp}.".encode() + payload)
    return f"t={timestamp},v1={digest}"


# =====================================================
# STRIPE
# =====================================================
async def test_stripe_create_intent_posts_form_in_cents(gateway_stub, gateway_http):
    gateway_stub.add(
        "POST",
        "/v1/payment_intents",
        json={
            "id": "pi_123",
            "status": "requires_payment_method",
            "client_secret": "pi_123_secret",
            "amount": 4050,
            "currency": "usd",
            "metadata": {"invoice_id": "7"},
        },
    )
    gateway = StripeGateway(gateway_http, secret_key="sk_test")

    result = await gateway.create_intent(Decimal("40.50"), "USD", "Invoice INV-0007", METADATA)

    assert result.success
    assert result.data["external_id"] == "pi_123"
    assert result.data["client_secret"] == "pi_123_secret"
    assert result.data["amount"] == Decimal("40.50")
    assert result.data["currency"] == "USD"

    request = gateway_stub.requests[0]
    form = parse_qs(request.content.decode())
    assert request.headers["authorization"] == "Bearer sk_test"
    assert form["amount"] == ["4050"]
    assert form["currency"] == ["usd"]
    assert form["metadata[invoice_id]"] == ["7"]
    assert form["automatic_payment_methods[enabled]"] == ["true"]


async def test_stripe_error_message_surfaces(gateway_stub, gateway_http):
    gateway_stub.add("GET", "/v1/payment_intents/pi_missing", 404, json={"error": {"message": "No such intent"}})
    gateway = StripeGateway(gateway_http, secret_key="sk_test")

    result = await gateway.get_status("pi_missing")

    assert not result.success
    assert result.error == "No such intent"


async def test_stripe_unconfigured_never_calls_out(gateway_stub, gateway_http):
    gateway = StripeGateway(gateway_http, secret_key=None)

    result = await gateway.create_intent(Decimal("1.00"), "USD")

    assert not result.success
    assert gateway_stub.requests == []


async def test_stripe_transport_error_is_a_failed_result():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(boom)) as http:
        result = await StripeGateway(http, secret_key="sk_test").get_status("pi_1")

    assert not result.success
    assert "connection refused" in result.error


async def test_stripe_webhook_valid_signature(gateway_http):
    payload = json.dumps(
        {
            "id": "evt_1",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": "pi_123",
                    "status": "succeeded",
                    "amount_received": 10000,
                    "currency": "usd",
                    "metadata": {"invoice_id": "7", "company_id": "3"},
                }
            },
        }
    ).encode()
    gateway = StripeGateway(gateway_http, secret_key="sk", webhook_secret="whsec", clock=lambda: 1_700_000_010)

    result = await gateway.verify_webhook(
        payload, {"Stripe-Signature": stripe_signature("whsec", 1_700_000_000, payload)}
    )

    assert result.success
    event = result.event
    assert event.succeeded
    assert event.external_id == "pi_123"
    assert event.amount == Decimal("100.00")
    assert event.currency == "USD"
    assert event.metadata == {"invoice_id": "7", "company_id": "3"}


async def test_stripe_webhook_rejects_wrong_secret_and_stale_timestamp(gateway_http):
    payload = b'{"type":"payment_intent.succeeded","data":{"object":{}}}'
    gateway = StripeGateway(gateway_http, secret_key="sk", webhook_secret="whsec", clock=lambda: 1_700_000_000)

    forged = await gateway.verify_webhook(
        payload, {"stripe-signature": stripe_signature("other", 1_700_000_000, payload)}
    )
    stale = await gateway.verify_webhook(
        payload, {"stripe-signature": stripe_signature("whsec", 1_699_999_000, payload)}
    )
    missing = await gateway.verify_webhook(payload, {})

    assert not forged.success
    assert not stale.success
    assert "tolerance" in stale.error
    assert not missing.success


async def test_stripe_webhook_signed_non_object_body_fails_cleanly(gateway_http):
    gateway = StripeGateway(gateway_http, secret_key="sk", webhook_secret="whsec", clock=lambda: 1_700_000_000)

    for payload in (b"[1, 2]", b"42", b'"text"', b"not json"):
        result = await gateway.verify_webhook(
            payload, {"stripe-signature": stripe_signature("whsec", 1_700_000_000, payload)}
        )
        assert not result.success
        assert result.error == "Webhook body is not a JSON object"

    odd_shape = b'{"type":"payment_intent.succeeded","data":[]}'
    result = await gateway.verify_webhook(
        odd_shape, {"stripe-signature": stripe_signature("whsec", 1_700_000_000, odd_shape)}
    )
    assert result.success
    assert result.event.amount is None
    assert result.event.metadata == {}


# =====================================================
# PAYPAL
# =====================================================
def paypal_order(status="CREATED", **unit):
    return {
        "id": "ORDER-1",
        "status": status,
        "purchase_units": [
            {
                "amount": {"currency_code": "USD", "value": "60.00"},
                "custom_id": json.dumps(METADATA),
                **unit,
            }
        ],
        "links": [{"rel": "approve", "href": "https://paypal.test/approve/ORDER-1"}],
    }


def paypal_gateway(http, **kwargs):
    return PayPalGateway(http, client_id="cid", client_secret="csecret", webhook_id="WH-1", **kwargs)


async def test_paypal_order_creation_and_token_reuse(gateway_stub, gateway_http):
    gateway_stub.add("POST", "/v1/oauth2/token", json={"access_token": "tok", "expires_in": 3600})
    gateway_stub.add("POST", "/v2/checkout/orders", 201, json=paypal_order())
    gateway_stub.add("GET", "/v2/checkout/orders/ORDER-1", json=paypal_order(status="APPROVED"))
    gateway = paypal_gateway(gateway_http)

    created = await gateway.create_intent(Decimal("60"), "usd", None, METADATA)
    status = await gateway.get_status("ORDER-1")

    assert created.success
    assert created.data["external_id"] == "ORDER-1"
    assert created.data["redirect_url"] == "https://paypal.test/approve/ORDER-1"
    assert created.data["metadata"] == METADATA
    assert status.data["status"] == "APPROVED"

    token_calls = [r for r in gateway_stub.requests if r.url.path == "/v1/oauth2/token"]
    assert len(token_calls) == 1

    order_request = json.loads(gateway_stub.requests[1].content)
    assert order_request["intent"] == "CAPTURE"
    assert order_request["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "60.00"}
    assert json.loads(order_request["purchase_units"][0]["custom_id"]) == METADATA
    assert gateway_stub.requests[1].headers["authorization"] == "Bearer tok"


async def test_paypal_capture_reports_completed_order(gateway_stub, gateway_http):
    gateway_stub.add("POST", "/v1/oauth2/token", json={"access_token": "tok", "expires_in": 3600})
    gateway_stub.add(
        "POST",
        "/v2/checkout/orders/ORDER-1/capture",
        201,
        json={
            "id": "ORDER-1",
            "status": "COMPLETED",
            "purchase_units": [
                {
                    "payments": {
                        "captures": [
                            {
                                "id": "CAP-1",
                                "amount": {"currency_code": "USD", "value": "60.00"},
                                "custom_id": json.dumps(METADATA),
                            }
                        ]
                    }
                }
            ],
        },
    )

    result = await paypal_gateway(gateway_http).capture("ORDER-1")

    assert result.success
    assert result.data["status"] == "COMPLETED"
    assert result.data["capture_id"] == "CAP-1"
    assert result.data["amount"] == Decimal("60.00")
    assert result.data["metadata"] == METADATA


async def test_paypal_token_failure_is_a_failed_result(gateway_stub, gateway_http):
    gateway_stub.add("POST", "/v1/oauth2/token", 401, json={"error_description": "Client Authentication failed"})

    result = await paypal_gateway(gateway_http).get_status("ORDER-1")

    assert not result.success
    assert result.error == "Client Authentication failed"


PAYPAL_HEADERS = {
    "PAYPAL-AUTH-ALGO": "SHA256withRSA",
    "PAYPAL-CERT-URL": "https://api.paypal.com/cert.pem",
    "PAYPAL-TRANSMISSION-ID": "tx-1",
    "PAYPAL-TRANSMISSION-SIG": "sig",
    "PAYPAL-TRANSMISSION-TIME": "2024-01-01T00:00:00Z",
}


async def test_paypal_webhook_verified_by_paypal(gateway_stub, gateway_http):
    gateway_stub.add("POST", "/v1/oauth2/token", json={"access_token": "tok", "expires_in": 3600})
    gateway_stub.add("POST", "/v1/notifications/verify-webhook-signature", json={"verification_status": "SUCCESS"})
    payload = json.dumps(
        {
            "event_type": "PAYMENT.CAPTURE.COMPLETED",
            "resource": {
                "id": "CAP-1",
                "status": "COMPLETED",
                "amount": {"currency_code": "USD", "value": "60.00"},
                "custom_id": json.dumps(METADATA),
                "supplementary_data": {"related_ids": {"order_id": "ORDER-1"}},
            },
        }
    ).encode()

    result = await paypal_gateway(gateway_http).verify_webhook(payload, PAYPAL_HEADERS)

    assert result.success
    assert result.event.succeeded
    assert result.event.external_id == "ORDER-1"
    assert result.event.amount == Decimal("60.00")

    verify_body = json.loads(gateway_stub.requests[-1].content)
    assert verify_body["webhook_id"] == "WH-1"
    assert verify_body["transmission_id"] == "tx-1"


async def test_paypal_webhook_rejected(gateway_stub, gateway_http):
    gateway_stub.add("POST", "/v1/oauth2/token", json={"access_token": "tok", "expires_in": 3600})
    gateway_stub.add("POST", "/v1/notifications/verify-webhook-signature", json={"verification_status": "FAILURE"})
    gateway = paypal_gateway(gateway_http)

    failed = await gateway.verify_webhook(b'{"event_type":"PAYMENT.CAPTURE.COMPLETED"}', PAYPAL_HEADERS)
    missing_headers = await gateway.verify_webhook(b"{}", {})

    assert not failed.success
    assert not missing_headers.success
    assert "paypal-transmission-id" in missing_headers.error


# =====================================================
# BML
# =====================================================
def bml_gateway(http, **kwargs):
    return BMLGateway(
        http,
        enabled=True,
        merchant_id="merchant-1",
        api_key="key",
        api_secret="api-secret",
        webhook_secret="hook-secret",
        base_url=BML_BASE,
        **kwargs,
    )


async def test_bml_create_signs_exact_body(gateway_stub, gateway_http):
    gateway_stub.add(
        "POST",
        "/api/payments",
        json={"reference": "BML-1", "status": "pending", "redirectUrl": "https://bml.test/pay/BML-1"},
    )

    result = await bml_gateway(gateway_http).create_intent(Decimal("12.34"), "mvr", "Invoice", METADATA)

    assert result.success
    assert result.data["external_id"] == "BML-1"
    assert result.data["redirect_url"] == "https://bml.test/pay/BML-1"
    assert result.data["amount"] == Decimal("12.34")
    assert result.data["currency"] == "MVR"

    request = gateway_stub.requests[0]
    body = json.loads(request.content)
    assert body["amount"] == 1234
    assert body["orderId"] == "INV-0007"
    assert request.headers["x-api-key"] == "key"
    assert request.headers["x-signature"] == hmac_sha256_hex("api-secret", request.content)


async def test_bml_requires_full_configuration(gateway_http):
    assert bml_gateway(gateway_http).is_configured()
    assert not BMLGateway(
        gateway_http, enabled=False, merchant_id="m", api_key="k", api_secret="s", base_url=BML_BASE
    ).is_configured()
    assert not BMLGateway(
        gateway_http, enabled=True, merchant_id="m", api_key="k", api_secret=None, base_url=BML_BASE
    ).is_configured()


async def test_bml_webhook(gateway_http):
    payload = json.dumps(
        {"reference": "BML-1", "status": "PAID", "amount": 6000, "currency": "MVR", "metadata": METADATA}
    ).encode()
    gateway = bml_gateway(gateway_http)

    ok = await gateway.verify_webhook(payload, {"X-BML-Signature": hmac_sha256_hex("hook-secret", payload)})
    legacy_header = await gateway.verify_webhook(payload, {"X-Signature": hmac_sha256_hex("hook-secret", payload)})
    forged = await gateway.verify_webhook(payload, {"X-BML-Signature": hmac_sha256_hex("wrong", payload)})

    assert ok.success
    assert ok.event.succeeded
    assert ok.event.external_id == "BML-1"
    assert ok.event.amount == Decimal("60.00")
    assert legacy_header.success
    assert not forged.success


async def test_bml_webhook_signed_array_body_fails_cleanly(gateway_http):
    payload = b'[{"reference": "BML-1"}]'

    result = await bml_gateway(gateway_http).verify_webhook(
        payload, {"X-BML-Signature": hmac_sha256_hex("hook-secret", payload)}
    )

    assert not result.success
    assert result.error == "Webhook body is not a JSON object"
