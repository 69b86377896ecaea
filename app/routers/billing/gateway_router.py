from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.check_roles import require_role, BACK_OFFICE
from app.utils.response import success_response, APIResponse, APIErrorResponse
from app.utils.logger import get_logger

from app.schemas.gateways.gateway_schemas import (
    GatewayListData,
    GatewayIntentCreate,
    GatewayIntentOut,
    GatewayStatusOut,
    GatewayCaptureOut,
    WebhookAck,
)
from app.services.gateways.registry import GatewayRegistry, get_gateways
from app.services.gateways.gateway_payment_service import (
    list_gateways,
    create_gateway_intent,
    get_gateway_status,
    capture_gateway_payment,
    handle_gateway_webhook,
)

router = APIRouter(prefix="/payments/gateways", tags=["Payment Gateways"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[GatewayListData])
async def list_gateways_api(
    registry: GatewayRegistry = Depends(get_gateways),
    _=Depends(require_role(BACK_OFFICE)),
):
    return success_response("Payment gateways fetched", list_gateways(registry))


@router.post("/{provider}/intents", response_model=APIResponse[GatewayIntentOut])
async def create_intent_api(
    provider: str,
    payload: GatewayIntentCreate,
    db: AsyncSession = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateways),
    user=Depends(require_role(BACK_OFFICE)),
):
    intent = await create_gateway_intent(db, registry, provider, payload, user)
    return success_response("Payment intent created", intent)


@router.get("/{provider}/status/{external_id}", response_model=APIResponse[GatewayStatusOut])
async def gateway_status_api(
    provider: str,
    external_id: str,
    registry: GatewayRegistry = Depends(get_gateways),
    _=Depends(require_role(BACK_OFFICE)),
):
    data = await get_gateway_status(registry, provider, external_id)
    return success_response("Payment status fetched", data)


@router.post("/{provider}/capture/{external_id}", response_model=APIResponse[GatewayCaptureOut])
async def capture_api(
    provider: str,
    external_id: str,
    db: AsyncSession = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateways),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await capture_gateway_payment(db, registry, provider, external_id, user)
    return success_response("Payment captured", data)


# =====================================================
# WEBHOOK (signature-authenticated, no bearer token)
# =====================================================
@router.post(
    "/{provider}/webhook",
    response_model=APIResponse[WebhookAck],
    responses={400: {"model": APIErrorResponse}, 404: {"model": APIErrorResponse}},
)
async def webhook_api(
    provider: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    registry: GatewayRegistry = Depends(get_gateways),
):
    payload = await request.body()
    ack = await handle_gateway_webhook(db, registry, provider, payload, request.headers)
    return success_response("Webhook processed", ack)
