from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.enums.document_kind import DocumentKind
from app.schemas.billing.invoice_schemas import InvoiceCreate, InvoiceOut
from app.schemas.portal.portal_schemas import (
    PortalCompanyInfo,
    PortalProduct,
    PortalProductGroup,
    PortalCustomer,
    PortalDocumentCreate,
)
from app.services.billing.invoice_service import create_invoice, send_invoice
from app.utils.decimal_utils import to_decimal, ZERO
from app.utils.logger import get_logger

logger = get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
CUSTOMER_SEARCH_LIMIT = 50


def _company_gst(company) -> tuple[bool, Decimal]:
    rate = to_decimal(company.gst_rate) if company.gst_rate is not None else ZERO
    return rate > ZERO, rate


def company_info(user) -> PortalCompanyInfo:
    company = user.company
    gst_enabled, gst_rate = _company_gst(company)
    return PortalCompanyInfo(
        id=company.id,
        name=company.name,
        logo_url=company.logo_url,
        currency=company.currency,
        gst_enabled=gst_enabled,
        gst_rate=gst_rate,
    )


async def product_catalogue(
    db: AsyncSession,
    user,
    *,
    search: str | None = None,
    category: str | None = None,
) -> list[PortalProductGroup]:
    stmt = select(Product).where(
        Product.company_id == user.company_id,
        Product.is_deleted.is_(False),
    )
    if search:
        stmt = stmt.where(or_(Product.name.ilike(f"%{search}%"), Product.sku.ilike(f"%{search}%")))
    if category:
        stmt = stmt.where(Product.category == category)

    products = (await db.execute(stmt.order_by(Product.name, Product.id))).scalars().all()

    groups: dict[str, list[PortalProduct]] = defaultdict(list)
    for product in products:
        groups[product.category or UNCATEGORIZED].append(PortalProduct.model_validate(product))

    return [PortalProductGroup(category=name, products=groups[name]) for name in sorted(groups)]


async def search_customers(db: AsyncSession, user, search: str | None = None) -> list[PortalCustomer]:
    stmt = select(Customer).where(
        Customer.company_id == user.company_id,
        Customer.is_deleted.is_(False),
        Customer.is_active.is_(True),
    )
    if search:
        stmt = stmt.where(or_(Customer.name.ilike(f"%{search}%"), Customer.email.ilike(f"%{search}%")))

    result = await db.execute(stmt.order_by(Customer.name, Customer.id).limit(CUSTOMER_SEARCH_LIMIT))
    return [PortalCustomer.model_validate(c) for c in result.scalars().all()]


async def create_portal_document(db: AsyncSession, payload: PortalDocumentCreate, user) -> InvoiceOut:
    """Quote or invoice priced with the company GST rate; invoices go out immediately."""
    gst_enabled, gst_rate = _company_gst(user.company)

    document = await create_invoice(
        db,
        InvoiceCreate(
            kind=payload.kind,
            customer_id=payload.customer_id,
            items=payload.items,
            due_date=payload.due_date,
            gst_enabled=gst_enabled,
            gst_rate=gst_rate,
            notes=payload.notes,
            terms_and_conditions=payload.terms_and_conditions,
        ),
        user,
    )

    if payload.kind == DocumentKind.invoice:
        document = await send_invoice(db, document.id, user)

    logger.info(
        "Portal document created",
        extra={"invoice_id": document.id, "kind": payload.kind.value, "status": document.status.value},
    )
    return document
