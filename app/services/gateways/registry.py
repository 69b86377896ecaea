from typing import Iterable

import httpx
from fastapi import Request

from app.core import config
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.services.gateways.base import PaymentGateway
from app.services.gateways.stripe_gateway import StripeGateway
from app.services.gateways.paypal_gateway import PayPalGateway
from app.services.gateways.bml_gateway import BMLGateway


class GatewayRegistry:
    """Gateways built once per application, looked up by provider name."""

    def __init__(self, gateways: Iterable[PaymentGateway]):
        self._gateways = {g.name: g for g in gateways}

    def get(self, provider: str) -> PaymentGateway:
        gateway = self._gateways.get(provider.lower())
        if gateway is None:
            raise AppException(
                404,
                f"Unknown payment gateway '{provider}'",
                ErrorCode.GATEWAY_NOT_FOUND,
            )
        return gateway

    def configured(self, provider: str) -> PaymentGateway:
        gateway = self.get(provider)
        if not gateway.is_configured():
            raise AppException(
                503,
                f"Payment gateway '{gateway.name}' is not configured",
                ErrorCode.GATEWAY_NOT_CONFIGURED,
            )
        return gateway

    def __iter__(self):
        return iter(self._gateways.values())


def build_gateway_registry(http: httpx.AsyncClient) -> GatewayRegistry:
    return GatewayRegistry(
        [
            StripeGateway(
                http,
                secret_key=config.STRIPE_SECRET_KEY,
                webhook_secret=config.STRIPE_WEBHOOK_SECRET,
                api_base=config.STRIPE_API_BASE,
            ),
            PayPalGateway(
                http,
                client_id=config.PAYPAL_CLIENT_ID,
                client_secret=config.PAYPAL_CLIENT_SECRET,
                environment=config.PAYPAL_ENVIRONMENT,
                webhook_id=config.PAYPAL_WEBHOOK_ID,
                return_url=f"{config.FRONTEND_URL}/payment/success",
                cancel_url=f"{config.FRONTEND_URL}/payment/cancel",
            ),
            BMLGateway(
                http,
                enabled=config.BML_ENABLED,
                merchant_id=config.BML_MERCHANT_ID,
                api_key=config.BML_API_KEY,
                api_secret=config.BML_API_SECRET,
                webhook_secret=config.BML_WEBHOOK_SECRET,
                base_url=config.BML_BASE_URL,
                return_url=config.BML_RETURN_URL,
                cancel_url=config.BML_CANCEL_URL,
                currency=config.BML_CURRENCY,
            ),
        ]
    )


def get_gateways(request: Request) -> GatewayRegistry:
    return request.app.state.gateways
