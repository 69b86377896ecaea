from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select, func, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import noload, selectinload

from app.models.billing.payment_models import Payment
from app.models.billing.invoice_models import Invoice
from app.models.base.mixins import utc_now
from app.models.enums.payment_method import PaymentMethod
from app.models.enums.payment_status import PaymentStatus

from app.schemas.billing.payment_schemas import (
    PaymentCreate,
    PaymentUpdate,
    PaymentOut,
    PaymentInvoiceOut,
    PaymentListData,
    PaymentMethodStat,
    PaymentDeleteData,
    InvoicePaymentSummary,
    InvoicePaymentsData,
)
from app.services.billing.payment_reconciliation import (
    BalanceState,
    apply_payment_created,
    apply_payment_updated,
    apply_payment_deleted,
    apply_to_invoice,
    remaining_balance,
)

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import to_decimal
from app.utils.response import total_pages
from app.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# MAPPER
# =====================================================
def _map_payment(payment: Payment, with_invoice: bool = True) -> PaymentOut:
    invoice = payment.invoice if with_invoice else None
    return PaymentOut(
        id=payment.id,
        invoice_id=payment.invoice_id,
        amount=payment.amount,
        method=payment.method,
        date=payment.date,
        reference=payment.reference,
        notes=payment.notes,
        status=payment.status,
        created_by_name=payment.created_by_username,
        created_at=payment.created_at,
        invoice=(
            PaymentInvoiceOut(
                id=invoice.id,
                invoice_number=invoice.invoice_number,
                total=invoice.total,
                paid_amount=invoice.paid_amount,
                status=invoice.status,
                paid_at=invoice.paid_at,
                customer_id=invoice.customer_id,
                customer_name=invoice.customer.name if invoice.customer else None,
            )
            if invoice is not None
            else None
        ),
    )


def _with_invoice():
    return selectinload(Payment.invoice).options(
        noload(Invoice.items),
        noload(Invoice.payments),
    )


# =====================================================
# LOADERS
# =====================================================
async def lock_invoice(db: AsyncSession, company_id: int, invoice_id: int) -> Invoice:
    """Row-lock the invoice for the rest of the transaction."""
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
    if not invoice.kind.accepts_payments:
        raise AppException(
            400,
            "Quotes cannot take payments; convert the quote to an invoice first",
            ErrorCode.INVOICE_INVALID_STATE,
        )
    return invoice


async def _get_payment_row(db: AsyncSession, company_id: int, payment_id: int) -> Payment:
    result = await db.execute(
        select(Payment)
        .options(noload("*"))
        .join(Invoice, Payment.invoice_id == Invoice.id)
        .where(
            Payment.id == payment_id,
            Payment.company_id == company_id,
            Invoice.is_deleted.is_(False),
        )
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise AppException(404, "Payment not found", ErrorCode.PAYMENT_NOT_FOUND)
    return payment


async def _load_payment(db: AsyncSession, payment_id: int) -> Payment:
    result = await db.execute(
        select(Payment)
        .options(_with_invoice())
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# =====================================================
# GET PAYMENT BY ID
# =====================================================
async def get_payment(db: AsyncSession, payment_id: int, user) -> PaymentOut:
    logger.info("Get payment", extra={"payment_id": payment_id})

    result = await db.execute(
        select(Payment)
        .options(_with_invoice())
        .join(Invoice, Payment.invoice_id == Invoice.id)
        .where(
            Payment.id == payment_id,
            Payment.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise AppException(404, "Payment not found", ErrorCode.PAYMENT_NOT_FOUND)

    return _map_payment(payment)


# =====================================================
# LIST PAYMENTS
# =====================================================
async def list_payments(
    db: AsyncSession,
    user,
    *,
    invoice_id: int | None = None,
    customer_id: int | None = None,
    method: PaymentMethod | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "date",
    order: str = "desc",
) -> PaymentListData:
    logger.info(
        "List payments",
        extra={
            "company_id": user.company_id,
            "invoice_id": invoice_id,
            "method": method,
            "page": page,
            "page_size": page_size,
        },
    )

    # -------------------------------
    # BASE QUERY
    # -------------------------------
    base_query = (
        select(Payment)
        .join(Invoice, Payment.invoice_id == Invoice.id)
        .where(
            Payment.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
    )

    if invoice_id:
        base_query = base_query.where(Payment.invoice_id == invoice_id)

    if customer_id:
        base_query = base_query.where(Invoice.customer_id == customer_id)

    if method:
        base_query = base_query.where(Payment.method == method)

    if start_date:
        base_query = base_query.where(Payment.date >= datetime.combine(start_date, time.min))

    if end_date:
        base_query = base_query.where(
            Payment.date < datetime.combine(end_date + timedelta(days=1), time.min)
        )

    # -------------------------------
    # COUNT (NO SORT)
    # -------------------------------
    total = await db.scalar(
        select(func.count()).select_from(base_query.subquery())
    )

    # -------------------------------
    # SORT + PAGINATION
    # -------------------------------
    sort_map = {
        "date": Payment.date,
        "created_at": Payment.created_at,
        "amount": Payment.amount,
    }
    sort_col = sort_map.get(sort_by, Payment.date)

    stmt = (
        base_query
        .options(_with_invoice())
        .order_by(asc(sort_col) if order == "asc" else desc(sort_col), desc(Payment.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    result = await db.execute(stmt)
    payments = result.scalars().all()

    return PaymentListData(
        total=total or 0,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total or 0, page_size),
        items=[_map_payment(p) for p in payments],
    )


# =====================================================
# RECORD (shared by manual entry and gateway webhooks)
# =====================================================
async def record_payment(
    db: AsyncSession,
    *,
    company_id: int,
    invoice_id: int,
    amount: Decimal,
    method: PaymentMethod,
    user_id: int | None,
    paid_on: datetime | None = None,
    reference: str | None = None,
    notes: str | None = None,
) -> tuple[Payment, Invoice]:
    """
    Lock the invoice, validate the amount against its remaining balance and
    add the payment. Does not commit.
    """
    invoice = await lock_invoice(db, company_id, invoice_id)

    now = utc_now()
    state = apply_payment_created(invoice.total, BalanceState.of(invoice), amount, now)

    payment = Payment(
        company_id=company_id,
        invoice_id=invoice.id,
        amount=to_decimal(amount),
        method=method,
        date=paid_on or now,
        reference=reference,
        notes=notes,
        status=PaymentStatus.completed,
        created_by_id=user_id,
        updated_by_id=user_id,
    )
    db.add(payment)

    apply_to_invoice(invoice, state)
    invoice.updated_by_id = user_id
    invoice.version += 1

    await db.flush()
    return payment, invoice


# =====================================================
# CREATE
# =====================================================
async def create_payment(db: AsyncSession, payload: PaymentCreate, user) -> PaymentOut:
    logger.info(
        "Create payment",
        extra={"invoice_id": payload.invoice_id, "amount": str(payload.amount), "method": payload.method},
    )

    payment, invoice = await record_payment(
        db,
        company_id=user.company_id,
        invoice_id=payload.invoice_id,
        amount=payload.amount,
        method=payload.method,
        user_id=user.id,
        paid_on=payload.date,
        reference=payload.reference,
        notes=payload.notes,
    )

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_PAYMENT,
        target_name=invoice.invoice_number,
        method=payment.method.value,
        amount=payment.amount,
    )

    await db.commit()

    logger.info(
        "Payment recorded",
        extra={"payment_id": payment.id, "invoice_id": invoice.id, "invoice_status": invoice.status},
    )
    return _map_payment(await _load_payment(db, payment.id))


# =====================================================
# UPDATE
# =====================================================
async def update_payment(
    db: AsyncSession,
    payment_id: int,
    payload: PaymentUpdate,
    user,
) -> PaymentOut:
    logger.info("Update payment", extra={"payment_id": payment_id})

    payment = await _get_payment_row(db, user.company_id, payment_id)
    invoice = await lock_invoice(db, user.company_id, payment.invoice_id)
    # re-read under the invoice lock
    await db.refresh(payment)

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    changes: list[str] = []

    if "amount" in data:
        new_amount = to_decimal(data.pop("amount"))
        old_amount = to_decimal(payment.amount)
        if new_amount != old_amount:
            state = apply_payment_updated(
                invoice.total,
                BalanceState.of(invoice),
                old_amount,
                new_amount,
                utc_now(),
            )
            apply_to_invoice(invoice, state)
            invoice.updated_by_id = user.id
            invoice.version += 1
            payment.amount = new_amount
            changes.append(f"amount: {old_amount} → {new_amount}")

    for field, value in data.items():
        if getattr(payment, field) != value:
            changes.append(f"{field} updated")
            setattr(payment, field, value)

    if not changes:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    payment.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_PAYMENT,
        target_name=invoice.invoice_number,
        payment_id=payment.id,
        changes=", ".join(changes),
    )

    await db.commit()
    return _map_payment(await _load_payment(db, payment.id))


# =====================================================
# DELETE (HARD)
# =====================================================
async def delete_payment(db: AsyncSession, payment_id: int, user) -> PaymentDeleteData:
    logger.info("Delete payment", extra={"payment_id": payment_id})

    payment = await _get_payment_row(db, user.company_id, payment_id)
    invoice = await lock_invoice(db, user.company_id, payment.invoice_id)
    await db.refresh(payment)

    amount = to_decimal(payment.amount)
    state = apply_payment_deleted(invoice.total, BalanceState.of(invoice), amount, utc_now())
    apply_to_invoice(invoice, state)
    invoice.updated_by_id = user.id
    invoice.version += 1

    await db.delete(payment)

    await emit_user_activity(
        db,
        user,
        ActivityCode.DELETE_PAYMENT,
        target_name=invoice.invoice_number,
        payment_id=payment_id,
        amount=amount,
    )

    await db.commit()

    return PaymentDeleteData(
        payment_id=payment_id,
        invoice_id=invoice.id,
        invoice_paid_amount=invoice.paid_amount,
        invoice_status=invoice.status,
        invoice_paid_at=invoice.paid_at,
    )


# =====================================================
# STATS
# =====================================================
async def payment_method_stats(
    db: AsyncSession,
    user,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[PaymentMethodStat]:
    stmt = (
        select(
            Payment.method,
            func.count(Payment.id).label("count"),
            func.coalesce(func.sum(Payment.amount), 0).label("total_amount"),
        )
        .join(Invoice, Payment.invoice_id == Invoice.id)
        .where(
            Payment.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
        .group_by(Payment.method)
        .order_by(Payment.method)
    )

    if start_date:
        stmt = stmt.where(Payment.date >= datetime.combine(start_date, time.min))
    if end_date:
        stmt = stmt.where(Payment.date < datetime.combine(end_date + timedelta(days=1), time.min))

    rows = (await db.execute(stmt)).all()

    return [
        PaymentMethodStat(
            method=r.method,
            count=r.count,
            total_amount=to_decimal(r.total_amount),
        )
        for r in rows
    ]


# =====================================================
# PAYMENTS OF ONE INVOICE
# =====================================================
async def get_invoice_payments(db: AsyncSession, invoice_id: int, user) -> InvoicePaymentsData:
    invoice = await db.scalar(
        select(Invoice)
        .options(noload("*"))
        .where(
            Invoice.id == invoice_id,
            Invoice.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
    )
    if not invoice:
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)

    result = await db.execute(
        select(Payment)
        .options(noload(Payment.invoice))
        .where(Payment.invoice_id == invoice.id)
        .order_by(desc(Payment.date), desc(Payment.id))
    )
    payments = result.scalars().all()

    total_paid = sum((to_decimal(p.amount) for p in payments), Decimal("0.00"))

    return InvoicePaymentsData(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        payments=[_map_payment(p, with_invoice=False) for p in payments],
        summary=InvoicePaymentSummary(
            total_paid=total_paid,
            payment_count=len(payments),
            invoice_total=to_decimal(invoice.total),
            remaining_balance=remaining_balance(invoice.total, invoice.paid_amount),
        ),
    )
