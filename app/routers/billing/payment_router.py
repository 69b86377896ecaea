from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.check_roles import require_role, OWNER_ADMIN, BACK_OFFICE
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse, APIErrorResponse
from app.utils.logger import get_logger

from app.models.enums.payment_method import PaymentMethod
from app.services.billing.payment_service import (
    get_payment,
    list_payments,
    create_payment,
    update_payment,
    delete_payment,
    payment_method_stats,
    get_invoice_payments,
)
from app.schemas.billing.payment_schemas import (
    PaymentCreate,
    PaymentUpdate,
    PaymentOut,
    PaymentListData,
    PaymentMethodStat,
    InvoicePaymentsData,
    PaymentDeleteData,
)

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


# =====================================================
# LIST PAYMENTS
# =====================================================
@router.get(
    "",
    response_model=APIResponse[PaymentListData],
)
async def list_payments_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),

    invoice_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),

    sort_by: str = Query("date", pattern="^(date|created_at|amount)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    data = await list_payments(
        db,
        user,
        invoice_id=invoice_id,
        customer_id=customer_id,
        method=method,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )

    return success_response("Payments retrieved successfully", data)


# =====================================================
# CREATE PAYMENT
# =====================================================
@router.post(
    "",
    response_model=APIResponse[PaymentOut],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": APIErrorResponse}, 404: {"model": APIErrorResponse}},
)
async def create_payment_api(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    logger.info(
        "Create payment request",
        extra={"invoice_id": payload.invoice_id, "amount": str(payload.amount)},
    )
    payment = await create_payment(db, payload, user)
    return success_response("Payment recorded successfully", payment)


# =====================================================
# STATS
# =====================================================
@router.get(
    "/stats/methods",
    response_model=APIResponse[List[PaymentMethodStat]],
)
async def payment_method_stats_api(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await payment_method_stats(db, user, start_date=start_date, end_date=end_date)
    return success_response("Payment statistics retrieved successfully", data)


# =====================================================
# PAYMENTS FOR INVOICE
# =====================================================
@router.get(
    "/invoice/{invoice_id}",
    response_model=APIResponse[InvoicePaymentsData],
)
async def invoice_payments_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await get_invoice_payments(db, invoice_id, user)
    return success_response("Invoice payments retrieved successfully", data)


# =====================================================
# GET / UPDATE / DELETE PAYMENT
# =====================================================
@router.get(
    "/{payment_id}",
    response_model=APIResponse[PaymentOut],
)
async def get_payment_api(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    payment = await get_payment(db, payment_id, user)
    return success_response("Payment retrieved successfully", payment)


@router.put(
    "/{payment_id}",
    response_model=APIResponse[PaymentOut],
)
async def update_payment_api(
    payment_id: int,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    logger.info("Update payment request", extra={"payment_id": payment_id})
    payment = await update_payment(db, payment_id, payload, user)
    return success_response("Payment updated successfully", payment)


@router.delete(
    "/{payment_id}",
    response_model=APIResponse[PaymentDeleteData],
)
async def delete_payment_api(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Delete payment request", extra={"payment_id": payment_id})
    data = await delete_payment(db, payment_id, user)
    return success_response("Payment deleted successfully", data)
