from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.document_kind import DocumentKind
from app.models.enums.invoice_status import InvoiceStatus
from app.schemas.billing.invoice_schemas import InvoiceOut, InvoiceListData
from app.schemas.portal.portal_schemas import (
    PortalCompanyInfo,
    PortalProductGroup,
    PortalCustomer,
    PortalDocumentCreate,
)
from app.services.billing.invoice_service import list_invoices, get_invoice
from app.services.portal.portal_service import (
    company_info,
    product_catalogue,
    search_customers,
    create_portal_document,
)
from app.utils.check_roles import require_role, ALL_STAFF
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/portal",
    tags=["Portal"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


# =====================================================
# LOOKUPS
# =====================================================
@router.get("/company-info", response_model=APIResponse[PortalCompanyInfo])
async def company_info_api(user=Depends(require_role(ALL_STAFF))):
    return success_response("Company information fetched", company_info(user))


@router.get("/products", response_model=APIResponse[List[PortalProductGroup]])
async def products_api(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    groups = await product_catalogue(db, user, search=search, category=category)
    return success_response("Products fetched", groups)


@router.get("/customers", response_model=APIResponse[List[PortalCustomer]])
async def customers_api(
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    customers = await search_customers(db, user, search)
    return success_response("Customers fetched", customers)


# =====================================================
# DOCUMENTS
# =====================================================
@router.post(
    "/documents",
    response_model=APIResponse[InvoiceOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_document_api(
    payload: PortalDocumentCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info("Portal document request", extra={"kind": payload.kind.value, "customer_id": payload.customer_id})
    document = await create_portal_document(db, payload, user)
    return success_response(f"{payload.kind.value.capitalize()} created successfully", document)


@router.get("/documents", response_model=APIResponse[InvoiceListData])
async def list_documents_api(
    kind: Optional[DocumentKind] = Query(None),
    status: Optional[InvoiceStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    data = await list_invoices(db, user, kind=kind, status=status, page=page, page_size=page_size)
    return success_response("Documents fetched", data)


@router.get("/documents/{document_id}", response_model=APIResponse[InvoiceOut])
async def get_document_api(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    document = await get_invoice(db, document_id, user)
    return success_response("Document fetched", document)
