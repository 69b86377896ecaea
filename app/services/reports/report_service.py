from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.billing.invoice_models import Invoice, InvoiceItem
from app.models.billing.payment_models import Payment
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.pos.pos_sale_models import POSSale, POSSaleItem
from app.models.expenses.expense_models import Expense
from app.models.enums.document_kind import DocumentKind
from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.pos_sale_status import POSSaleStatus
from app.schemas.reports.report_schemas import (
    InvoiceStatusTotal,
    SummaryReport,
    RevenueBreakdown,
    ProfitLossReport,
    BalanceTotal,
    TopCustomer,
    DashboardReport,
)
from app.schemas.expenses.expense_schemas import ExpenseCategoryUsage, ExpenseOut
from app.services.expenses.expense_service import approved_expense_conditions, expense_totals_by_category
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.decimal_utils import to_decimal, ZERO, HUNDRED
from app.utils.logger import get_logger

logger = get_logger(__name__)

POS_REVENUE_STATUSES = (
    POSSaleStatus.completed,
    POSSaleStatus.partially_refunded,
)


async def summary_report(
    db: AsyncSession,
    user,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> SummaryReport:
    if start_date and end_date and start_date > end_date:
        raise AppException(400, "start_date must not be after end_date", ErrorCode.VALIDATION_ERROR)

    logger.info(
        "Summary report",
        extra={"company_id": user.company_id, "start_date": start_date, "end_date": end_date},
    )

    # -------------------------
    # Invoices (issue date)
    # -------------------------
    invoice_filters = [
        Invoice.company_id == user.company_id,
        Invoice.kind == DocumentKind.invoice,
        Invoice.is_deleted.is_(False),
    ]
    if start_date:
        invoice_filters.append(Invoice.issue_date >= start_date)
    if end_date:
        invoice_filters.append(Invoice.issue_date <= end_date)

    rows = (
        await db.execute(
            select(
                Invoice.status,
                func.count(Invoice.id),
                func.coalesce(func.sum(Invoice.total), 0),
                func.coalesce(func.sum(Invoice.balance_due), 0),
            )
            .where(*invoice_filters)
            .group_by(Invoice.status)
            .order_by(Invoice.status)
        )
    ).all()

    invoices = [
        InvoiceStatusTotal(status=status, count=count, total=to_decimal(total))
        for status, count, total, _ in rows
    ]
    invoiced_total = sum(
        (to_decimal(total) for status, _, total, _ in rows if status != InvoiceStatus.cancelled),
        ZERO,
    )
    outstanding = sum(
        (to_decimal(balance) for status, _, _, balance in rows if status.is_open),
        ZERO,
    )

    # -------------------------
    # Payments (payment date)
    # -------------------------
    payment_stmt = (
        select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))
        .join(Invoice, Payment.invoice_id == Invoice.id)
        .where(
            Payment.company_id == user.company_id,
            Invoice.is_deleted.is_(False),
        )
    )
    if start_date:
        payment_stmt = payment_stmt.where(Payment.date >= datetime.combine(start_date, time.min))
    if end_date:
        payment_stmt = payment_stmt.where(
            Payment.date < datetime.combine(end_date + timedelta(days=1), time.min)
        )
    payment_count, payments_collected = (await db.execute(payment_stmt)).one()

    # -------------------------
    # POS (business date)
    # -------------------------
    pos_stmt = select(func.count(POSSale.id), func.coalesce(func.sum(POSSale.total), 0)).where(
        POSSale.company_id == user.company_id,
        POSSale.status.in_(POS_REVENUE_STATUSES),
    )
    if start_date:
        pos_stmt = pos_stmt.where(POSSale.business_date >= start_date)
    if end_date:
        pos_stmt = pos_stmt.where(POSSale.business_date <= end_date)
    pos_count, pos_revenue = (await db.execute(pos_stmt)).one()

    return SummaryReport(
        start_date=start_date,
        end_date=end_date,
        invoices=invoices,
        invoiced_total=to_decimal(invoiced_total),
        outstanding_balance=to_decimal(outstanding),
        payments_collected=to_decimal(payments_collected),
        payment_count=payment_count or 0,
        pos_revenue=to_decimal(pos_revenue),
        pos_sale_count=pos_count or 0,
    )


# =====================================================
# PROFIT AND LOSS
# =====================================================
def _paid_invoice_filters(company_id: int, start_date: date, end_date: date) -> list:
    return [
        Invoice.company_id == company_id,
        Invoice.kind == DocumentKind.invoice,
        Invoice.status == InvoiceStatus.paid,
        Invoice.is_deleted.is_(False),
        Invoice.issue_date >= start_date,
        Invoice.issue_date <= end_date,
    ]


def _pos_revenue_filters(company_id: int, start_date: date, end_date: date) -> list:
    return [
        POSSale.company_id == company_id,
        POSSale.status.in_(POS_REVENUE_STATUSES),
        POSSale.business_date >= start_date,
        POSSale.business_date <= end_date,
    ]


async def _revenue(db: AsyncSession, company_id: int, start_date: date, end_date: date) -> RevenueBreakdown:
    invoices = await db.scalar(
        select(func.coalesce(func.sum(Invoice.total), 0)).where(
            *_paid_invoice_filters(company_id, start_date, end_date)
        )
    )
    pos = await db.scalar(
        select(func.coalesce(func.sum(POSSale.total), 0)).where(
            *_pos_revenue_filters(company_id, start_date, end_date)
        )
    )
    invoices, pos = to_decimal(invoices), to_decimal(pos)
    return RevenueBreakdown(invoices=invoices, pos=pos, total=invoices + pos)


async def _cost_of_goods_sold(db: AsyncSession, company_id: int, start_date: date, end_date: date) -> Decimal:
    unit_cost = func.coalesce(Product.cost, 0)

    invoice_cost = await db.scalar(
        select(func.coalesce(func.sum(InvoiceItem.quantity * unit_cost), 0))
        .join(Invoice, InvoiceItem.invoice_id == Invoice.id)
        .join(Product, InvoiceItem.product_id == Product.id)
        .where(*_paid_invoice_filters(company_id, start_date, end_date))
    )
    pos_cost = await db.scalar(
        select(
            func.coalesce(
                func.sum((POSSaleItem.quantity - POSSaleItem.refunded_quantity) * unit_cost),
                0,
            )
        )
        .join(POSSale, POSSaleItem.sale_id == POSSale.id)
        .join(Product, POSSaleItem.product_id == Product.id)
        .where(*_pos_revenue_filters(company_id, start_date, end_date))
    )
    return to_decimal(invoice_cost) + to_decimal(pos_cost)


def _margin(amount: Decimal, revenue: Decimal) -> Decimal:
    if revenue == ZERO:
        return ZERO
    return to_decimal(amount * HUNDRED / revenue)


async def profit_loss_report(
    db: AsyncSession,
    user,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ProfitLossReport:
    today = date.today()
    start_date = start_date or today.replace(day=1)
    end_date = end_date or today
    if start_date > end_date:
        raise AppException(400, "start_date must not be after end_date", ErrorCode.VALIDATION_ERROR)

    logger.info(
        "Profit and loss report",
        extra={"company_id": user.company_id, "start_date": start_date, "end_date": end_date},
    )

    revenue = await _revenue(db, user.company_id, start_date, end_date)
    cogs = await _cost_of_goods_sold(db, user.company_id, start_date, end_date)
    gross_profit = revenue.total - cogs

    expense_totals = await expense_totals_by_category(
        db, approved_expense_conditions(user, start_date, end_date)
    )
    by_category = sorted(
        (
            ExpenseCategoryUsage(category=category, count=count, total=to_decimal(total))
            for category, (count, total) in expense_totals.items()
        ),
        key=lambda usage: usage.total,
        reverse=True,
    )
    operating_expenses = sum((usage.total for usage in by_category), ZERO)
    net_income = gross_profit - operating_expenses

    return ProfitLossReport(
        start_date=start_date,
        end_date=end_date,
        revenue=revenue,
        cost_of_goods_sold=cogs,
        gross_profit=gross_profit,
        gross_margin=_margin(gross_profit, revenue.total),
        operating_expenses=operating_expenses,
        expenses_by_category=by_category,
        net_income=net_income,
        net_margin=_margin(net_income, revenue.total),
    )


# =====================================================
# DASHBOARD
# =====================================================
TOP_CUSTOMER_LIMIT = 5
RECENT_EXPENSE_LIMIT = 5

OPEN_STATUSES = [s for s in InvoiceStatus if s.is_open]


async def _open_balance(db: AsyncSession, company_id: int, *extra) -> BalanceTotal:
    amount, count = (
        await db.execute(
            select(func.coalesce(func.sum(Invoice.balance_due), 0), func.count(Invoice.id)).where(
                Invoice.company_id == company_id,
                Invoice.kind == DocumentKind.invoice,
                Invoice.is_deleted.is_(False),
                Invoice.status.in_(OPEN_STATUSES),
                *extra,
            )
        )
    ).one()
    return BalanceTotal(amount=to_decimal(amount), count=count or 0)


async def dashboard_report(db: AsyncSession, user, today: Optional[date] = None) -> DashboardReport:
    today = today or date.today()
    month_start = today.replace(day=1)
    last_month_end = month_start - timedelta(days=1)
    last_month_start = last_month_end.replace(day=1)

    month = await _revenue(db, user.company_id, month_start, today)
    last_month = await _revenue(db, user.company_id, last_month_start, last_month_end)
    year = await _revenue(db, user.company_id, today.replace(month=1, day=1), today)

    growth = None
    if last_month.total != ZERO:
        growth = to_decimal((month.total - last_month.total) * HUNDRED / last_month.total)

    paid_total = func.sum(Invoice.total)
    top_rows = (
        await db.execute(
            select(Customer.id, Customer.name, paid_total, func.count(Invoice.id))
            .join(Invoice, Invoice.customer_id == Customer.id)
            .where(
                Invoice.company_id == user.company_id,
                Invoice.kind == DocumentKind.invoice,
                Invoice.status == InvoiceStatus.paid,
                Invoice.is_deleted.is_(False),
            )
            .group_by(Customer.id, Customer.name)
            .order_by(desc(paid_total), Customer.id)
            .limit(TOP_CUSTOMER_LIMIT)
        )
    ).all()

    recent = (
        await db.execute(
            select(Expense)
            .where(*approved_expense_conditions(user))
            .order_by(desc(Expense.date), desc(Expense.id))
            .limit(RECENT_EXPENSE_LIMIT)
        )
    ).scalars().all()

    return DashboardReport(
        as_of=today,
        month_revenue=month.total,
        last_month_revenue=last_month.total,
        revenue_growth=growth,
        year_revenue=year.total,
        outstanding=await _open_balance(db, user.company_id),
        overdue=await _open_balance(db, user.company_id, Invoice.due_date < today),
        top_customers=[
            TopCustomer(id=cid, name=name, revenue=to_decimal(total), invoice_count=count)
            for cid, name, total, count in top_rows
        ],
        recent_expenses=[ExpenseOut.model_validate(e) for e in recent],
    )
