from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, delete
from sqlalchemy.orm import noload

from app.models.billing.invoice_models import Invoice, InvoiceItem
from app.models.companies.company_models import Company
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.base.mixins import utc_now

from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.document_kind import DocumentKind
from app.models.enums.discount_type import DiscountType

from app.schemas.billing.invoice_schemas import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceItemCreate,
    InvoiceOut,
    InvoiceItemOut,
    InvoiceCustomerOut,
    InvoicePaymentOut,
    InvoiceListData,
    InvoiceListItem,
)

from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode

from app.core.exceptions import AppException, InvalidAmountError
from app.services.billing.invoice_totals import calculate_totals, line_total
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAYMENT_TERMS_DAYS = 30


# =====================================================
# NUMBERING
# =====================================================
async def allocate_document_number(db: AsyncSession, company_id: int, kind: DocumentKind) -> str:
    """Next INV-/QUO- number for the company; the company row stays locked until commit."""
    company = await db.scalar(
        select(Company)
        .options(noload("*"))
        .where(Company.id == company_id)
        .with_for_update()
    )
    if not company:
        raise AppException(404, "Company not found", ErrorCode.COMPANY_NOT_FOUND)

    if kind == DocumentKind.invoice:
        seq = company.next_invoice_seq
        company.next_invoice_seq = seq + 1
    else:
        seq = company.next_quote_seq
        company.next_quote_seq = seq + 1

    return f"{kind.number_prefix}-{seq:04d}"


# =====================================================
# LOADERS
# =====================================================
async def _get_invoice(db: AsyncSession, company_id: int, invoice_id: int, *, reload: bool = False) -> Invoice:
    stmt = select(Invoice).where(
        Invoice.id == invoice_id,
        Invoice.company_id == company_id,
        Invoice.is_deleted.is_(False),
    )
    if reload:
        stmt = stmt.execution_options(populate_existing=True)

    invoice = (await db.execute(stmt)).scalar_one_or_none()
    if not invoice:
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)
    return invoice


async def _get_invoice_for_update(db: AsyncSession, company_id: int, invoice_id: int) -> Invoice:
    result = await db.execute(
        select(Invoice)
        .options(noload("*"))
        .where(
            Invoice.id == invoice_id,
            Invoice.company_id == company_id,
            Invoice.is_deleted.is_(False),
        )
        .with_for_update()
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)
    return invoice


async def _get_customer(db: AsyncSession, company_id: int, customer_id: int) -> Customer:
    customer = await db.scalar(
        select(Customer)
        .options(noload("*"))
        .where(
            Customer.id == customer_id,
            Customer.company_id == company_id,
            Customer.is_deleted.is_(False),
            Customer.is_active.is_(True),
        )
    )
    if not customer:
        raise AppException(404, "Customer not found", ErrorCode.CUSTOMER_NOT_FOUND)
    return customer


async def _build_items(
    db: AsyncSession,
    company_id: int,
    lines: list[InvoiceItemCreate],
) -> list[InvoiceItem]:
    product_ids = {line.product_id for line in lines}
    result = await db.execute(
        select(Product)
        .options(noload("*"))
        .where(
            Product.id.in_(product_ids),
            Product.company_id == company_id,
            Product.is_deleted.is_(False),
        )
    )
    products = {p.id: p for p in result.scalars().all()}

    missing = product_ids - products.keys()
    if missing:
        raise AppException(
            404,
            "Product not found",
            ErrorCode.PRODUCT_NOT_FOUND,
            {"product_ids": sorted(missing)},
        )

    items: list[InvoiceItem] = []
    for line in lines:
        product = products[line.product_id]
        unit_price = to_decimal(line.unit_price if line.unit_price is not None else product.price)
        items.append(
            InvoiceItem(
                product_id=product.id,
                description=line.description or product.name,
                quantity=line.quantity,
                unit_price=unit_price,
                line_total=line_total(line.quantity, unit_price),
            )
        )
    return items


def _apply_totals(invoice: Invoice, items: list[InvoiceItem]) -> None:
    totals = calculate_totals(
        [i.line_total for i in items],
        discount_type=invoice.discount_type,
        discount_value=invoice.discount_value,
        gst_enabled=invoice.gst_enabled,
        gst_rate=invoice.gst_rate,
    )
    invoice.subtotal = totals.subtotal
    invoice.discount_amount = totals.discount_amount
    invoice.gst_amount = totals.gst_amount
    invoice.total = totals.total
    invoice.balance_due = totals.total - to_decimal(invoice.paid_amount)


# =====================================================
# MAPPER
# =====================================================
def _map_invoice(invoice: Invoice) -> InvoiceOut:
    return InvoiceOut(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        kind=invoice.kind,
        customer_id=invoice.customer_id,
        customer=InvoiceCustomerOut.model_validate(invoice.customer) if invoice.customer else None,
        status=invoice.status,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        subtotal=invoice.subtotal,
        gst_enabled=invoice.gst_enabled,
        gst_rate=invoice.gst_rate,
        gst_amount=invoice.gst_amount,
        discount_type=invoice.discount_type,
        discount_value=invoice.discount_value,
        discount_amount=invoice.discount_amount,
        total=invoice.total,
        paid_amount=invoice.paid_amount,
        balance_due=invoice.balance_due,
        notes=invoice.notes,
        terms_and_conditions=invoice.terms_and_conditions,
        sent_at=invoice.sent_at,
        paid_at=invoice.paid_at,
        version=invoice.version,
        created_by_name=invoice.created_by_username,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
        items=[
            InvoiceItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product.name if i.product else None,
                description=i.description,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
            )
            for i in invoice.items
        ],
        payments=[InvoicePaymentOut.model_validate(p) for p in invoice.payments],
    )


# =====================================================
# CREATE
# =====================================================
async def create_invoice(db: AsyncSession, payload: InvoiceCreate, user) -> InvoiceOut:
    logger.info(
        "Create document",
        extra={"kind": payload.kind, "customer_id": payload.customer_id, "items": len(payload.items)},
    )

    customer = await _get_customer(db, user.company_id, payload.customer_id)
    items = await _build_items(db, user.company_id, payload.items)

    gst_rate = payload.gst_rate
    if gst_rate is None:
        gst_rate = user.company.gst_rate if payload.gst_enabled and user.company.gst_rate is not None else 0

    issue_date = payload.issue_date or date.today()
    due_date = payload.due_date or issue_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS)
    if due_date < issue_date:
        raise AppException(400, "due_date cannot be before issue_date", ErrorCode.VALIDATION_ERROR)

    invoice = Invoice(
        company_id=user.company_id,
        kind=payload.kind,
        invoice_number=await allocate_document_number(db, user.company_id, payload.kind),
        customer_id=customer.id,
        status=payload.kind.default_status,
        issue_date=issue_date,
        due_date=due_date,
        gst_enabled=payload.gst_enabled,
        gst_rate=to_decimal(gst_rate),
        discount_type=payload.discount_type,
        discount_value=to_decimal(payload.discount_value),
        paid_amount=to_decimal(0),
        notes=payload.notes,
        terms_and_conditions=payload.terms_and_conditions,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    _apply_totals(invoice, items)
    invoice.items = items

    db.add(invoice)
    await db.flush()

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_INVOICE,
        kind=invoice.kind.value,
        target_name=invoice.invoice_number,
        total=invoice.total,
    )

    await db.commit()

    logger.info("Document created", extra={"invoice_id": invoice.id, "invoice_number": invoice.invoice_number})
    return _map_invoice(await _get_invoice(db, user.company_id, invoice.id, reload=True))


# =====================================================
# LIST
# =====================================================
async def list_invoices(
    db: AsyncSession,
    user,
    *,
    status: InvoiceStatus | None = None,
    kind: DocumentKind | None = None,
    customer_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> InvoiceListData:
    filters = [
        Invoice.company_id == user.company_id,
        Invoice.is_deleted.is_(False),
    ]
    if status:
        filters.append(Invoice.status == status)
    if kind:
        filters.append(Invoice.kind == kind)
    if customer_id:
        filters.append(Invoice.customer_id == customer_id)
    if start_date:
        filters.append(Invoice.issue_date >= start_date)
    if end_date:
        filters.append(Invoice.issue_date <= end_date)
    if search:
        filters.append(Invoice.invoice_number.ilike(f"%{search}%"))

    total = await db.scalar(select(func.count(Invoice.id)).where(*filters))

    result = await db.execute(
        select(
            Invoice.id,
            Invoice.invoice_number,
            Invoice.kind,
            Invoice.customer_id,
            Customer.name.label("customer_name"),
            Invoice.issue_date,
            Invoice.due_date,
            Invoice.total,
            Invoice.paid_amount,
            Invoice.balance_due,
            Invoice.status,
        )
        .join(Customer, Customer.id == Invoice.customer_id)
        .where(*filters)
        .order_by(desc(Invoice.created_at), desc(Invoice.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        InvoiceListItem(
            id=r.id,
            invoice_number=r.invoice_number,
            kind=r.kind,
            customer_id=r.customer_id,
            customer_name=r.customer_name,
            issue_date=r.issue_date,
            due_date=r.due_date,
            total=to_decimal(r.total),
            paid_amount=to_decimal(r.paid_amount),
            balance_due=to_decimal(r.balance_due),
            status=r.status,
        )
        for r in result.all()
    ]

    return InvoiceListData(total=total or 0, items=items)


# =====================================================
# GET
# =====================================================
async def get_invoice(db: AsyncSession, invoice_id: int, user) -> InvoiceOut:
    invoice = await _get_invoice(db, user.company_id, invoice_id)
    return _map_invoice(invoice)


async def get_invoice_model(db: AsyncSession, invoice_id: int, user) -> Invoice:
    return await _get_invoice(db, user.company_id, invoice_id)


# =====================================================
# UPDATE
# =====================================================
async def update_invoice(
    db: AsyncSession,
    invoice_id: int,
    payload: InvoiceUpdate,
    user,
) -> InvoiceOut:
    invoice = await _get_invoice_for_update(db, user.company_id, invoice_id)

    if invoice.status.is_closed:
        raise AppException(
            400,
            f"{invoice.status.value.capitalize()} documents cannot be edited",
            ErrorCode.INVOICE_INVALID_STATE,
        )

    if invoice.version != payload.version:
        raise AppException(409, "Invoice modified by another process", ErrorCode.INVOICE_VERSION_CONFLICT)

    data = payload.model_dump(exclude_unset=True, exclude={"version", "items"})

    if data.get("customer_id") is not None:
        await _get_customer(db, user.company_id, data["customer_id"])

    for field in ("customer_id", "issue_date", "due_date", "gst_enabled", "discount_type", "notes", "terms_and_conditions"):
        if field in data and data[field] is not None:
            setattr(invoice, field, data[field])
    if data.get("gst_rate") is not None:
        invoice.gst_rate = to_decimal(data["gst_rate"])
    if data.get("discount_value") is not None:
        invoice.discount_value = to_decimal(data["discount_value"])

    if invoice.due_date < invoice.issue_date:
        raise AppException(400, "due_date cannot be before issue_date", ErrorCode.VALIDATION_ERROR)
    if invoice.discount_type == DiscountType.percentage and invoice.discount_value > 100:
        raise AppException(400, "percentage discount cannot exceed 100", ErrorCode.VALIDATION_ERROR)

    if payload.items is not None:
        items = await _build_items(db, user.company_id, payload.items)
        await db.execute(delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id))
        for item in items:
            item.invoice_id = invoice.id
        db.add_all(items)
    else:
        items = (
            await db.execute(select(InvoiceItem).options(noload("*")).where(InvoiceItem.invoice_id == invoice.id))
        ).scalars().all()

    _apply_totals(invoice, items)

    if invoice.total < to_decimal(invoice.paid_amount):
        raise InvalidAmountError(
            "Invoice total cannot drop below the amount already paid",
            {"paid_amount": to_decimal(invoice.paid_amount), "total": invoice.total},
        )
    if invoice.paid_amount > 0 and invoice.paid_amount >= invoice.total:
        invoice.status = InvoiceStatus.paid
        invoice.paid_at = invoice.paid_at or utc_now()

    invoice.version += 1
    invoice.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_INVOICE,
        kind=invoice.kind.value,
        target_name=invoice.invoice_number,
    )

    await db.commit()
    return _map_invoice(await _get_invoice(db, user.company_id, invoice.id, reload=True))


# =====================================================
# STATUS TRANSITIONS
# =====================================================
async def send_invoice(db: AsyncSession, invoice_id: int, user) -> InvoiceOut:
    invoice = await _get_invoice_for_update(db, user.company_id, invoice_id)

    if invoice.status not in {InvoiceStatus.draft, InvoiceStatus.overdue}:
        raise AppException(
            400,
            "Only draft or overdue documents can be sent",
            ErrorCode.INVOICE_INVALID_STATE,
        )

    invoice.status = InvoiceStatus.sent
    invoice.sent_at = utc_now()
    invoice.version += 1
    invoice.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.SEND_INVOICE,
        kind=invoice.kind.value,
        target_name=invoice.invoice_number,
    )

    await db.commit()
    return _map_invoice(await _get_invoice(db, user.company_id, invoice.id, reload=True))


async def cancel_invoice(db: AsyncSession, invoice_id: int, user) -> InvoiceOut:
    invoice = await _get_invoice_for_update(db, user.company_id, invoice_id)

    if invoice.status == InvoiceStatus.paid:
        raise AppException(400, "Paid invoices cannot be cancelled", ErrorCode.INVOICE_INVALID_STATE)
    if invoice.status == InvoiceStatus.cancelled:
        raise AppException(400, "Invoice is already cancelled", ErrorCode.INVOICE_INVALID_STATE)

    invoice.status = InvoiceStatus.cancelled
    invoice.version += 1
    invoice.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.CANCEL_INVOICE,
        kind=invoice.kind.value,
        target_name=invoice.invoice_number,
    )

    await db.commit()
    return _map_invoice(await _get_invoice(db, user.company_id, invoice.id, reload=True))


async def delete_invoice(db: AsyncSession, invoice_id: int, user) -> dict:
    invoice = await _get_invoice_for_update(db, user.company_id, invoice_id)

    if invoice.status == InvoiceStatus.paid:
        raise AppException(400, "Paid invoices cannot be deleted", ErrorCode.INVOICE_INVALID_STATE)

    # soft delete; payments stay attached but drop out of every listing
    invoice.is_deleted = True
    invoice.version += 1
    invoice.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.DELETE_INVOICE,
        kind=invoice.kind.value,
        target_name=invoice.invoice_number,
    )

    await db.commit()
    logger.info("Document deleted", extra={"invoice_id": invoice.id})
    return {"id": invoice.id, "invoice_number": invoice.invoice_number}


async def convert_quote_to_invoice(db: AsyncSession, quote_id: int, user) -> InvoiceOut:
    quote = await db.scalar(
        select(Invoice)
        .options(noload("*"))
        .where(
            Invoice.id == quote_id,
            Invoice.company_id == user.company_id,
            Invoice.kind == DocumentKind.quote,
            Invoice.is_deleted.is_(False),
        )
        .with_for_update()
    )
    if not quote:
        raise AppException(404, "Quote not found", ErrorCode.QUOTE_NOT_FOUND)

    if quote.status == InvoiceStatus.cancelled:
        raise AppException(400, "Cancelled quotes cannot be converted", ErrorCode.INVOICE_INVALID_STATE)

    quote_number = quote.invoice_number
    quote.kind = DocumentKind.invoice
    quote.invoice_number = await allocate_document_number(db, user.company_id, DocumentKind.invoice)
    quote.status = DocumentKind.invoice.default_status
    quote.sent_at = None
    quote.version += 1
    quote.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.CONVERT_QUOTE_TO_INVOICE,
        target_name=quote_number,
        invoice_number=quote.invoice_number,
    )

    await db.commit()
    logger.info("Quote converted", extra={"invoice_id": quote.id, "from": quote_number, "to": quote.invoice_number})
    return _map_invoice(await _get_invoice(db, user.company_id, quote.id, reload=True))
