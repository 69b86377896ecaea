from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.check_roles import require_role, OWNER_ADMIN, ALL_STAFF
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse
from app.utils.pdf_generators.pos_receipt_pdf import generate_pos_receipt_pdf
from app.utils.logger import get_logger

from app.models.enums.pos_payment_method import POSPaymentMethod
from app.models.enums.pos_sale_status import POSSaleStatus
from app.schemas.pos.pos_schemas import (
    POSSaleCreate,
    POSRefundCreate,
    POSSaleOut,
    POSSaleListData,
    POSRefundOut,
    BarcodeLookupOut,
    POSDailyReport,
)
from app.services.pos.pos_service import (
    create_sale,
    refund_sale,
    get_sale,
    get_sale_model,
    mark_receipt_printed,
    list_sales,
    lookup_barcode,
    daily_report,
)

router = APIRouter(
    prefix="/pos",
    tags=["Point of Sale"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


# =====================================================
# SALES
# =====================================================
@router.post(
    "/sales",
    response_model=APIResponse[POSSaleOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_sale_api(
    payload: POSSaleCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info(
        "POS sale request",
        extra={"cashier_id": user.id, "item_count": len(payload.items)},
    )
    sale = await create_sale(db, payload, user)
    return success_response("Sale completed", sale)


@router.get("/sales", response_model=APIResponse[POSSaleListData])
async def list_sales_api(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    cashier_id: Optional[int] = Query(None),
    status: Optional[POSSaleStatus] = Query(None),
    payment_method: Optional[POSPaymentMethod] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    data = await list_sales(
        db,
        user,
        start_date=start_date,
        end_date=end_date,
        cashier_id=cashier_id,
        status=status,
        payment_method=payment_method,
        page=page,
        page_size=page_size,
    )
    return success_response("Sales fetched successfully", data)


@router.get("/sales/{sale_id}", response_model=APIResponse[POSSaleOut])
async def get_sale_api(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    sale = await get_sale(db, sale_id, user)
    return success_response("Sale fetched successfully", sale)


@router.post("/sales/{sale_id}/refund", response_model=APIResponse[POSRefundOut])
async def refund_sale_api(
    sale_id: int,
    payload: POSRefundCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("POS refund request", extra={"sale_id": sale_id})
    data = await refund_sale(db, sale_id, payload, user)
    return success_response("Refund processed", data)


@router.get("/sales/{sale_id}/receipt", response_class=FileResponse)
async def sale_receipt_api(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    sale = await get_sale_model(db, sale_id, user)
    path = await run_in_threadpool(generate_pos_receipt_pdf, sale, user.company)
    await mark_receipt_printed(db, sale)

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"{sale.sale_number}.pdf",
    )


# =====================================================
# LOOKUP / REPORTS
# =====================================================
@router.get("/products/barcode/{barcode}", response_model=APIResponse[BarcodeLookupOut])
async def barcode_lookup_api(
    barcode: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    product = await lookup_barcode(db, barcode, user)
    return success_response("Product found", product)


@router.get("/reports/daily", response_model=APIResponse[POSDailyReport])
async def daily_report_api(
    report_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    report = await daily_report(db, user, report_date)
    return success_response("Daily report generated", report)
