from collections import Counter
from datetime import date
from typing import Optional

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import noload

from app.models.pos.pos_sale_models import POSSale, POSSaleItem
from app.models.masters.product_models import Product
from app.models.masters.customer_models import Customer
from app.models.companies.company_models import Company
from app.models.base.mixins import utc_now
from app.models.enums.pos_payment_method import POSPaymentMethod
from app.models.enums.pos_sale_status import POSSaleStatus

from app.schemas.pos.pos_schemas import (
    POSSaleCreate,
    POSRefundCreate,
    POSSaleOut,
    POSSaleItemOut,
    POSSaleListItem,
    POSSaleListData,
    POSRefundOut,
    BarcodeLookupOut,
    PaymentMethodBreakdown,
    TopProduct,
    POSDailyReport,
)
from app.services.pos.pos_pricing import (
    price_line,
    change_due,
    refund_amount,
    format_sale_number,
)

from app.core.config import DEFAULT_POS_TAX_RATE
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import to_decimal, ZERO
from app.utils.logger import get_logger

logger = get_logger(__name__)

REPORTED_STATUSES = (
    POSSaleStatus.completed,
    POSSaleStatus.refunded,
    POSSaleStatus.partially_refunded,
)
TOP_PRODUCTS_LIMIT = 10


# =====================================================
# MAPPERS
# =====================================================
def _map_sale(sale: POSSale) -> POSSaleOut:
    cashier = sale.cashier
    return POSSaleOut(
        id=sale.id,
        sale_number=sale.sale_number,
        business_date=sale.business_date,
        date=sale.date,
        cashier_id=sale.cashier_id,
        cashier_name=(
            f"{cashier.first_name or ''} {cashier.last_name or ''}".strip() or cashier.username
            if cashier
            else None
        ),
        customer_id=sale.customer_id,
        customer_info=sale.customer_info,
        subtotal=sale.subtotal,
        tax_amount=sale.tax_amount,
        discount_amount=sale.discount_amount,
        total=sale.total,
        payment_method=sale.payment_method,
        payment_details=sale.payment_details or {},
        amount_tendered=sale.amount_tendered,
        change_given=sale.change_given,
        status=sale.status,
        notes=sale.notes,
        items=[POSSaleItemOut.model_validate(i) for i in sale.items],
    )


def _map_list_item(sale: POSSale) -> POSSaleListItem:
    return POSSaleListItem(
        id=sale.id,
        sale_number=sale.sale_number,
        date=sale.date,
        cashier_id=sale.cashier_id,
        total=sale.total,
        payment_method=sale.payment_method,
        status=sale.status,
        item_count=sum(i.quantity for i in sale.items),
    )


# =====================================================
# LOADERS
# =====================================================
async def _load_sale(db: AsyncSession, company_id: int, sale_id: int, *, reload: bool = False) -> POSSale:
    stmt = select(POSSale).where(
        POSSale.id == sale_id,
        POSSale.company_id == company_id,
    )
    if reload:
        stmt = stmt.execution_options(populate_existing=True)

    sale = (await db.execute(stmt)).scalar_one_or_none()
    if not sale:
        raise AppException(404, "POS sale not found", ErrorCode.POS_SALE_NOT_FOUND)
    return sale


async def _lock_products(db: AsyncSession, company_id: int, product_ids: set[int]) -> dict[int, Product]:
    result = await db.execute(
        select(Product)
        .options(noload("*"))
        .where(
            Product.id.in_(product_ids),
            Product.company_id == company_id,
            Product.is_deleted.is_(False),
        )
        .with_for_update()
    )
    products = {p.id: p for p in result.scalars().all()}

    missing = sorted(product_ids - products.keys())
    if missing:
        raise AppException(
            404,
            "Product not found",
            ErrorCode.PRODUCT_NOT_FOUND,
            {"product_ids": missing},
        )
    return products


async def _next_sale_number(db: AsyncSession, company_id: int, business_date: date) -> str:
    # the company row lock serializes numbering per company
    await db.execute(
        select(Company.id)
        .where(Company.id == company_id)
        .with_for_update()
    )
    count = await db.scalar(
        select(func.count(POSSale.id)).where(
            POSSale.company_id == company_id,
            POSSale.business_date == business_date,
        )
    )
    return format_sale_number(business_date, (count or 0) + 1)


# =====================================================
# CREATE SALE
# =====================================================
async def create_sale(db: AsyncSession, payload: POSSaleCreate, user) -> POSSaleOut:
    logger.info(
        "Create POS sale",
        extra={"cashier_id": user.id, "items": len(payload.items), "method": payload.payment_method},
    )

    company = user.company
    tax_rate = company.gst_rate if company.gst_rate is not None else DEFAULT_POS_TAX_RATE

    if payload.customer_id is not None:
        customer_id = await db.scalar(
            select(Customer.id).where(
                Customer.id == payload.customer_id,
                Customer.company_id == user.company_id,
                Customer.is_deleted.is_(False),
            )
        )
        if not customer_id:
            raise AppException(404, "Customer not found", ErrorCode.CUSTOMER_NOT_FOUND)

    today = utc_now()
    sale_number = await _next_sale_number(db, user.company_id, today.date())

    products = await _lock_products(db, user.company_id, {i.product_id for i in payload.items})

    # -------------------------
    # Stock check
    # -------------------------
    requested = Counter()
    for item in payload.items:
        requested[item.product_id] += item.quantity

    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.track_inventory and product.stock_quantity < quantity:
            raise AppException(
                400,
                f"Insufficient stock for {product.name}. Available: {product.stock_quantity}, Required: {quantity}",
                ErrorCode.INSUFFICIENT_STOCK,
                {
                    "product_id": product_id,
                    "available": product.stock_quantity,
                    "requested": quantity,
                },
            )

    # -------------------------
    # Lines
    # -------------------------
    items: list[POSSaleItem] = []
    subtotal = tax_total = discount_total = ZERO

    for item in payload.items:
        product = products[item.product_id]
        original_price = to_decimal(item.unit_price if item.unit_price is not None else product.price)
        amounts = price_line(
            original_price,
            item.quantity,
            item.discount_type,
            item.discount_value,
            tax_rate,
        )

        items.append(
            POSSaleItem(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                quantity=item.quantity,
                original_price=original_price,
                discount_type=item.discount_type,
                discount_value=to_decimal(item.discount_value),
                discount_amount=amounts.discount_amount,
                unit_price=amounts.unit_price,
                tax_rate=to_decimal(tax_rate),
                tax_amount=amounts.tax_amount,
                line_total=amounts.line_total,
                notes=item.notes,
            )
        )

        subtotal += amounts.net_amount
        tax_total += amounts.tax_amount
        discount_total += amounts.discount_amount

        if product.track_inventory:
            product.stock_quantity -= item.quantity

    total = subtotal + tax_total

    # -------------------------
    # Tender
    # -------------------------
    amount_tendered = change_given = None
    if payload.payment_method == POSPaymentMethod.cash:
        amount_tendered = to_decimal(payload.amount_tendered) if payload.amount_tendered is not None else total
        if amount_tendered < total:
            raise AppException(
                400,
                "Amount tendered is less than the sale total",
                ErrorCode.VALIDATION_ERROR,
                {"total": total, "amount_tendered": amount_tendered},
            )
        change_given = change_due(total, amount_tendered)

    sale = POSSale(
        company_id=user.company_id,
        cashier_id=user.id,
        sale_number=sale_number,
        business_date=today.date(),
        date=today,
        subtotal=subtotal,
        tax_amount=tax_total,
        discount_amount=discount_total,
        total=total,
        payment_method=payload.payment_method,
        payment_details=payload.payment_details,
        amount_tendered=amount_tendered,
        change_given=change_given,
        status=POSSaleStatus.completed,
        customer_id=payload.customer_id,
        customer_info=payload.customer_info or {},
        notes=payload.notes,
        device_info=payload.device_info,
        items=items,
    )
    db.add(sale)
    await db.flush()

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_POS_SALE,
        target_name=sale.sale_number,
        total=sale.total,
        method=sale.payment_method.value,
    )

    await db.commit()

    logger.info("POS sale completed", extra={"sale_id": sale.id, "sale_number": sale.sale_number, "total": str(total)})
    return _map_sale(await _load_sale(db, user.company_id, sale.id, reload=True))


# =====================================================
# REFUND
# =====================================================
async def refund_sale(db: AsyncSession, sale_id: int, payload: POSRefundCreate, user) -> POSRefundOut:
    logger.info("Refund POS sale", extra={"sale_id": sale_id})

    sale = await db.scalar(
        select(POSSale)
        .options(noload("*"))
        .where(POSSale.id == sale_id, POSSale.company_id == user.company_id)
        .with_for_update()
    )
    if not sale:
        raise AppException(404, "POS sale not found", ErrorCode.POS_SALE_NOT_FOUND)

    if sale.status not in (POSSaleStatus.completed, POSSaleStatus.partially_refunded):
        raise AppException(
            400,
            f"Cannot refund a {sale.status.value} sale",
            ErrorCode.POS_REFUND_INVALID,
        )

    result = await db.execute(
        select(POSSaleItem)
        .where(POSSaleItem.sale_id == sale.id)
        .order_by(POSSaleItem.id)
        .with_for_update()
    )
    sale_items = {i.id: i for i in result.scalars().all()}

    requested = Counter()
    for line in payload.items:
        if line.sale_item_id not in sale_items:
            raise AppException(
                404,
                "Sale item not found",
                ErrorCode.POS_SALE_ITEM_NOT_FOUND,
                {"sale_item_id": line.sale_item_id},
            )
        requested[line.sale_item_id] += line.quantity

    for item_id, quantity in requested.items():
        item = sale_items[item_id]
        if quantity > item.refundable_quantity:
            raise AppException(
                400,
                f"Cannot refund {quantity} of {item.product_name}; {item.refundable_quantity} refundable",
                ErrorCode.POS_REFUND_INVALID,
                {"sale_item_id": item_id, "refundable_quantity": item.refundable_quantity},
            )

    products = await _lock_products(
        db, user.company_id, {sale_items[i].product_id for i in requested}
    )

    now = utc_now()
    total_refund = ZERO
    for item_id, quantity in requested.items():
        item = sale_items[item_id]
        total_refund += refund_amount(item.line_total, item.quantity, quantity)

        item.refunded_quantity += quantity
        item.refunded_at = now
        item.is_refunded = item.refunded_quantity == item.quantity

        product = products[item.product_id]
        if product.track_inventory:
            product.stock_quantity += quantity

    sale.status = (
        POSSaleStatus.refunded
        if all(i.is_refunded for i in sale_items.values())
        else POSSaleStatus.partially_refunded
    )
    if payload.reason:
        sale.notes = "\n".join(filter(None, [sale.notes, f"Refund: {payload.reason}"]))

    await emit_user_activity(
        db,
        user,
        ActivityCode.REFUND_POS_SALE,
        target_name=sale.sale_number,
        amount=total_refund,
    )

    await db.commit()

    logger.info(
        "POS sale refunded",
        extra={"sale_id": sale.id, "refund_amount": str(total_refund), "sale_status": sale.status},
    )
    return POSRefundOut(
        sale=_map_sale(await _load_sale(db, user.company_id, sale.id, reload=True)),
        refund_amount=total_refund,
    )


# =====================================================
# GET / LIST
# =====================================================
async def get_sale(db: AsyncSession, sale_id: int, user) -> POSSaleOut:
    return _map_sale(await _load_sale(db, user.company_id, sale_id))


async def get_sale_model(db: AsyncSession, sale_id: int, user) -> POSSale:
    return await _load_sale(db, user.company_id, sale_id)


async def mark_receipt_printed(db: AsyncSession, sale: POSSale) -> None:
    if sale.receipt_printed:
        return
    sale.receipt_printed = True
    await db.commit()


async def list_sales(
    db: AsyncSession,
    user,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    cashier_id: Optional[int] = None,
    status: Optional[POSSaleStatus] = None,
    payment_method: Optional[POSPaymentMethod] = None,
    page: int = 1,
    page_size: int = 20,
) -> POSSaleListData:
    conditions = [POSSale.company_id == user.company_id]

    if start_date:
        conditions.append(POSSale.business_date >= start_date)
    if end_date:
        conditions.append(POSSale.business_date <= end_date)
    if cashier_id:
        conditions.append(POSSale.cashier_id == cashier_id)
    if status:
        conditions.append(POSSale.status == status)
    if payment_method:
        conditions.append(POSSale.payment_method == payment_method)

    total = await db.scalar(select(func.count(POSSale.id)).where(*conditions))
    result = await db.execute(
        select(POSSale)
        .where(*conditions)
        .order_by(desc(POSSale.date), desc(POSSale.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return POSSaleListData(
        total=total or 0,
        items=[_map_list_item(s) for s in result.scalars().all()],
    )


# =====================================================
# BARCODE LOOKUP
# =====================================================
async def lookup_barcode(db: AsyncSession, barcode: str, user) -> BarcodeLookupOut:
    product = await db.scalar(
        select(Product).where(
            Product.company_id == user.company_id,
            Product.barcode == barcode,
            Product.is_deleted.is_(False),
        )
    )
    if not product:
        raise AppException(
            404,
            "Product not found for this barcode",
            ErrorCode.PRODUCT_NOT_FOUND,
            {"barcode": barcode},
        )

    return BarcodeLookupOut(
        id=product.id,
        sku=product.sku,
        barcode=product.barcode,
        name=product.name,
        price=product.price,
        tax_rate=product.tax_rate,
        track_inventory=product.track_inventory,
        stock_quantity=product.stock_quantity,
        in_stock=not product.track_inventory or product.stock_quantity > 0,
        is_low_stock=product.is_low_stock,
    )


# =====================================================
# DAILY REPORT
# =====================================================
async def daily_report(db: AsyncSession, user, report_date: Optional[date] = None) -> POSDailyReport:
    report_date = report_date or utc_now().date()

    conditions = [
        POSSale.company_id == user.company_id,
        POSSale.business_date == report_date,
        POSSale.status.in_(REPORTED_STATUSES),
    ]

    by_method = await db.execute(
        select(
            POSSale.payment_method,
            func.count(POSSale.id),
            func.coalesce(func.sum(POSSale.total), 0),
            func.coalesce(func.sum(POSSale.tax_amount), 0),
        )
        .where(*conditions)
        .group_by(POSSale.payment_method)
        .order_by(POSSale.payment_method)
    )
    breakdown = [
        PaymentMethodBreakdown(
            payment_method=method,
            count=count,
            total=to_decimal(total),
            tax=to_decimal(tax),
        )
        for method, count, total, tax in by_method.all()
    ]

    top = await db.execute(
        select(
            POSSaleItem.product_id,
            POSSaleItem.product_name,
            func.sum(POSSaleItem.quantity).label("quantity"),
            func.coalesce(func.sum(POSSaleItem.line_total), 0),
        )
        .join(POSSale, POSSaleItem.sale_id == POSSale.id)
        .where(*conditions)
        .group_by(POSSaleItem.product_id, POSSaleItem.product_name)
        .order_by(desc("quantity"), POSSaleItem.product_id)
        .limit(TOP_PRODUCTS_LIMIT)
    )
    top_products = [
        TopProduct(
            product_id=product_id,
            product_name=name,
            quantity=int(quantity),
            revenue=to_decimal(revenue),
        )
        for product_id, name, quantity, revenue in top.all()
    ]

    sale_count = sum(b.count for b in breakdown)
    total_sales = to_decimal(sum((b.total for b in breakdown), ZERO))
    total_tax = to_decimal(sum((b.tax for b in breakdown), ZERO))

    return POSDailyReport(
        date=report_date,
        sale_count=sale_count,
        total_sales=total_sales,
        total_tax=total_tax,
        average_sale=to_decimal(total_sales / sale_count) if sale_count else ZERO,
        by_payment_method=breakdown,
        top_products=top_products,
    )
