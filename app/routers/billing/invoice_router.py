from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.check_roles import require_role, OWNER_ADMIN, BACK_OFFICE
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse
from app.utils.pdf_generators.invoice_pdf import generate_invoice_pdf
from app.utils.logger import get_logger

from app.models.enums.document_kind import DocumentKind
from app.models.enums.invoice_status import InvoiceStatus
from app.schemas.billing.invoice_schemas import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceOut,
    InvoiceListData,
)
from app.services.billing.invoice_service import (
    create_invoice,
    list_invoices,
    get_invoice,
    get_invoice_model,
    update_invoice,
    send_invoice,
    cancel_invoice,
    delete_invoice,
    convert_quote_to_invoice,
)

router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


# =====================================================
# CREATE
# =====================================================
@router.post(
    "",
    response_model=APIResponse[InvoiceOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice_api(
    payload: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await create_invoice(db, payload, user)
    return success_response(f"{payload.kind.value.capitalize()} created successfully", invoice)


# =====================================================
# LIST
# =====================================================
@router.get("", response_model=APIResponse[InvoiceListData])
async def list_invoices_api(
    status: Optional[InvoiceStatus] = Query(None),
    kind: Optional[DocumentKind] = Query(None),
    customer_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await list_invoices(
        db,
        user,
        status=status,
        kind=kind,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        page_size=page_size,
    )
    return success_response("Invoices fetched successfully", data)


# =====================================================
# GET / PDF
# =====================================================
@router.get("/{invoice_id}", response_model=APIResponse[InvoiceOut])
async def get_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await get_invoice(db, invoice_id, user)
    return success_response("Invoice fetched successfully", invoice)


@router.get("/{invoice_id}/pdf", response_class=FileResponse)
async def invoice_pdf_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await get_invoice_model(db, invoice_id, user)
    path = await run_in_threadpool(generate_invoice_pdf, invoice, user.company)

    logger.info("Invoice PDF generated", extra={"invoice_id": invoice_id, "path": path})
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"{invoice.invoice_number}.pdf",
    )


# =====================================================
# UPDATE
# =====================================================
@router.put("/{invoice_id}", response_model=APIResponse[InvoiceOut])
async def update_invoice_api(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await update_invoice(db, invoice_id, payload, user)
    return success_response("Invoice updated successfully", invoice)


# =====================================================
# STATE TRANSITIONS
# =====================================================
@router.post("/{invoice_id}/send", response_model=APIResponse[InvoiceOut])
async def send_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await send_invoice(db, invoice_id, user)
    return success_response("Invoice marked as sent", invoice)


@router.post("/{invoice_id}/cancel", response_model=APIResponse[InvoiceOut])
async def cancel_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    invoice = await cancel_invoice(db, invoice_id, user)
    return success_response("Invoice cancelled", invoice)


@router.post("/{invoice_id}/convert-to-invoice", response_model=APIResponse[InvoiceOut])
async def convert_quote_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    invoice = await convert_quote_to_invoice(db, invoice_id, user)
    return success_response("Quote converted to invoice", invoice)


@router.delete("/{invoice_id}")
async def delete_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    data = await delete_invoice(db, invoice_id, user)
    return success_response("Invoice deleted", data)
