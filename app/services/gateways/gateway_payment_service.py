from decimal import Decimal
from typing import Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import noload

from app.models.billing.invoice_models import Invoice
from app.models.billing.payment_models import Payment
from app.models.enums.payment_method import PaymentMethod
from app.schemas.gateways.gateway_schemas import (
    GatewayInfo,
    GatewayListData,
    GatewayIntentCreate,
    GatewayIntentOut,
    GatewayStatusOut,
    GatewayCaptureOut,
    WebhookAck,
)
from app.services.billing.payment_service import lock_invoice, record_payment
from app.services.billing.payment_reconciliation import remaining_balance
from app.services.gateways.registry import GatewayRegistry

from app.core.exceptions import AppException, InvalidAmountError, GatewayError
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)

# only completed orders mean the money has moved
CAPTURE_COMPLETED = "COMPLETED"


# =====================================================
# LIST
# =====================================================
def list_gateways(registry: GatewayRegistry) -> GatewayListData:
    return GatewayListData(
        items=[GatewayInfo(provider=g.name, configured=g.is_configured()) for g in registry]
    )


# =====================================================
# CREATE INTENT
# =====================================================
async def create_gateway_intent(
    db: AsyncSession,
    registry: GatewayRegistry,
    provider: str,
    payload: GatewayIntentCreate,
    user,
) -> GatewayIntentOut:
    gateway = registry.configured(provider)

    invoice = await db.scalar(
        select(Invoice)
        .options(noload("*"))
        .where(
            Invoice.id == payload.invoice_id,
            Invoice.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
    )
    if not invoice:
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)

    if not invoice.kind.accepts_payments:
        raise AppException(
            400,
            "Quotes cannot take payments; convert the quote to an invoice first",
            ErrorCode.INVOICE_INVALID_STATE,
        )

    if invoice.status.is_closed:
        raise AppException(
            400,
            f"Cannot collect payment for a {invoice.status.value} invoice",
            ErrorCode.INVOICE_INVALID_STATE,
        )

    remaining = remaining_balance(invoice.total, invoice.paid_amount)
    amount = to_decimal(payload.amount) if payload.amount is not None else remaining
    if amount <= 0 or amount > remaining:
        raise InvalidAmountError(
            "Payment amount exceeds remaining balance",
            {"remaining_balance": remaining},
        )

    currency = (payload.currency or user.company.currency).upper()
    metadata = {
        "invoice_id": invoice.id,
        "company_id": invoice.company_id,
        "invoice_number": invoice.invoice_number,
    }

    logger.info(
        "Create gateway intent",
        extra={"provider": gateway.name, "invoice_id": payload.invoice_id, "amount": str(amount)},
    )

    result = await gateway.create_intent(
        amount,
        currency,
        payload.description or f"Invoice {metadata['invoice_number']}",
        metadata,
    )
    if not result.success:
        raise GatewayError(gateway.name, result.error)

    data = result.data
    return GatewayIntentOut(
        provider=gateway.name,
        external_id=data["external_id"],
        status=data.get("status") or "pending",
        amount=data.get("amount") or amount,
        currency=(data.get("currency") or currency).upper(),
        client_secret=data.get("client_secret"),
        redirect_url=data.get("redirect_url"),
    )


# =====================================================
# STATUS
# =====================================================
async def get_gateway_status(
    registry: GatewayRegistry,
    provider: str,
    external_id: str,
) -> GatewayStatusOut:
    gateway = registry.configured(provider)

    result = await gateway.get_status(external_id)
    if not result.success:
        raise GatewayError(gateway.name, result.error)

    data = result.data
    return GatewayStatusOut(
        provider=gateway.name,
        external_id=data.get("external_id") or external_id,
        status=data.get("status") or "unknown",
        amount=data.get("amount"),
        currency=data.get("currency"),
        raw=data.get("raw") or {},
    )


# =====================================================
# RECORD (webhook + capture)
# =====================================================
def _log_unapplied(provider: str, external_id: str, invoice_id: int, amount: Decimal, exc: AppException) -> None:
    # money was collected by the provider but no payment row exists; needs manual reconciliation
    logger.error(
        "Collected gateway payment could not be applied",
        extra={
            "provider": provider,
            "external_id": external_id,
            "invoice_id": invoice_id,
            "amount": str(amount),
            "error_code": exc.error_code.value,
            "reason": exc.detail,
        },
    )


async def _record_gateway_payment(
    db: AsyncSession,
    *,
    provider: str,
    external_id: str,
    amount: Optional[Decimal],
    metadata: Mapping,
) -> tuple[Optional[int], bool]:
    """
    Record a collected gateway payment once per external reference.

    Returns (payment_id, duplicate). Events without invoice metadata are
    acknowledged and ignored.
    """
    try:
        invoice_id = int(metadata["invoice_id"])
        company_id = int(metadata["company_id"])
    except (KeyError, TypeError, ValueError):
        logger.warning(
            "Gateway payment without invoice metadata ignored",
            extra={"provider": provider, "external_id": external_id},
        )
        return None, False

    if amount is None:
        logger.warning(
            "Gateway payment without amount ignored",
            extra={"provider": provider, "external_id": external_id},
        )
        return None, False

    # the invoice lock serializes concurrent deliveries of the same event
    try:
        await lock_invoice(db, company_id, invoice_id)
    except AppException as exc:
        _log_unapplied(provider, external_id, invoice_id, amount, exc)
        raise

    existing = await db.scalar(
        select(Payment.id).where(
            Payment.company_id == company_id,
            Payment.invoice_id == invoice_id,
            Payment.method == PaymentMethod.online,
            Payment.reference == external_id,
        )
    )
    if existing:
        await db.rollback()
        logger.info(
            "Duplicate gateway payment acknowledged",
            extra={"provider": provider, "external_id": external_id, "payment_id": existing},
        )
        return existing, True

    try:
        payment, invoice = await record_payment(
            db,
            company_id=company_id,
            invoice_id=invoice_id,
            amount=amount,
            method=PaymentMethod.online,
            user_id=None,
            reference=external_id,
            notes=f"{provider} payment",
        )
    except InvalidAmountError as exc:
        _log_unapplied(provider, external_id, invoice_id, amount, exc)
        raise

    await emit_activity(
        db,
        user_id=None,
        username=provider,
        code=ActivityCode.GATEWAY_PAYMENT,
        company_id=company_id,
        target_name=invoice.invoice_number,
        provider=provider,
        amount=payment.amount,
        reference=external_id,
    )

    await db.commit()

    logger.info(
        "Gateway payment recorded",
        extra={
            "provider": provider,
            "payment_id": payment.id,
            "invoice_id": invoice_id,
            "invoice_status": invoice.status,
        },
    )
    return payment.id, False


# =====================================================
# CAPTURE
# =====================================================
async def capture_gateway_payment(
    db: AsyncSession,
    registry: GatewayRegistry,
    provider: str,
    external_id: str,
    user,
) -> GatewayCaptureOut:
    gateway = registry.configured(provider)
    if not gateway.supports_capture:
        raise GatewayError(
            gateway.name,
            f"{gateway.name} payments do not need a capture step",
            status_code=400,
        )

    result = await gateway.capture(external_id)
    if not result.success:
        raise GatewayError(gateway.name, result.error)

    data = result.data
    status = data.get("status") or "unknown"
    metadata = data.get("metadata") or {}

    if str(metadata.get("company_id")) != str(user.company_id):
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)

    payment_id, duplicate = None, False
    if status == CAPTURE_COMPLETED:
        payment_id, duplicate = await _record_gateway_payment(
            db,
            provider=gateway.name,
            external_id=data.get("external_id") or external_id,
            amount=data.get("amount"),
            metadata=metadata,
        )

    return GatewayCaptureOut(
        provider=gateway.name,
        external_id=data.get("external_id") or external_id,
        status=status,
        payment_id=payment_id,
        duplicate=duplicate,
    )


# =====================================================
# WEBHOOK
# =====================================================
async def handle_gateway_webhook(
    db: AsyncSession,
    registry: GatewayRegistry,
    provider: str,
    payload: bytes,
    headers: Mapping[str, str],
) -> WebhookAck:
    gateway = registry.get(provider)

    result = await gateway.verify_webhook(payload, headers)
    if not result.success:
        logger.warning(
            "Webhook rejected",
            extra={"provider": gateway.name, "reason": result.error},
        )
        raise AppException(
            400,
            result.error or "Invalid webhook signature",
            ErrorCode.WEBHOOK_SIGNATURE_INVALID,
        )

    event = result.event
    logger.info(
        "Webhook received",
        extra={"provider": gateway.name, "event_type": event.event_type, "external_id": event.external_id},
    )

    if not event.succeeded:
        return WebhookAck(event_type=event.event_type)

    payment_id, duplicate = await _record_gateway_payment(
        db,
        provider=gateway.name,
        external_id=event.external_id,
        amount=event.amount,
        metadata=event.metadata,
    )
    return WebhookAck(event_type=event.event_type, payment_id=payment_id, duplicate=duplicate)
