from datetime import date
from decimal import Decimal

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.expenses.expense_models import Expense
from app.models.enums.expense_category import ExpenseCategory
from app.models.enums.expense_status import ExpenseStatus
from app.models.enums.user_role import UserRole
from app.schemas.expenses.expense_schemas import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseFilters,
    ExpenseOut,
    ExpenseListData,
    ExpenseCategoryUsage,
    ExpenseMonthTotal,
    ExpenseSummary,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import to_decimal, ZERO
from app.utils.response import total_pages
from app.utils.logger import get_logger

logger = get_logger(__name__)

MANAGER_ROLES = {UserRole.owner.value, UserRole.admin.value}
DECISION_STATUSES = {ExpenseStatus.approved, ExpenseStatus.rejected}


def _is_manager(user) -> bool:
    return user.role in MANAGER_ROLES


def _check_decision_rights(user, status: ExpenseStatus | None) -> None:
    if status in DECISION_STATUSES and not _is_manager(user):
        raise AppException(403, "Only owners and admins can approve or reject expenses", ErrorCode.PERMISSION_DENIED)


def _check_window(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and start_date > end_date:
        raise AppException(400, "start_date must not be after end_date", ErrorCode.VALIDATION_ERROR)


async def _get_expense(db: AsyncSession, company_id: int, expense_id: int) -> Expense:
    expense = await db.scalar(
        select(Expense).where(
            Expense.id == expense_id,
            Expense.company_id == company_id,
            Expense.is_deleted.is_(False),
        )
    )
    if not expense:
        raise AppException(404, "Expense not found", ErrorCode.EXPENSE_NOT_FOUND)
    return expense


# =====================================================
# CREATE
# =====================================================
async def create_expense(db: AsyncSession, payload: ExpenseCreate, user) -> ExpenseOut:
    _check_decision_rights(user, payload.status)

    status = payload.status
    if status is None:
        status = ExpenseStatus.approved if _is_manager(user) else ExpenseStatus.pending

    data = payload.model_dump(exclude={"status", "currency"})
    expense = Expense(
        **data,
        company_id=user.company_id,
        currency=(payload.currency or user.company.currency).upper(),
        status=status,
        approved_by_id=user.id if status == ExpenseStatus.approved else None,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    expense.amount = to_decimal(payload.amount)
    if not payload.is_recurring:
        expense.recurring_period = None

    db.add(expense)
    await db.flush()

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_EXPENSE,
        category=expense.category.value,
        amount=expense.amount,
        status=expense.status.value,
    )

    await db.commit()
    await db.refresh(expense)

    logger.info("Expense created", extra={"expense_id": expense.id, "status": expense.status.value})
    return ExpenseOut.model_validate(expense)


# =====================================================
# READ
# =====================================================
async def get_expense(db: AsyncSession, expense_id: int, user) -> ExpenseOut:
    return ExpenseOut.model_validate(await _get_expense(db, user.company_id, expense_id))


async def list_expenses(db: AsyncSession, user, filters: ExpenseFilters) -> ExpenseListData:
    _check_window(filters.start_date, filters.end_date)

    conditions = [
        Expense.company_id == user.company_id,
        Expense.is_deleted.is_(False),
    ]
    if filters.status != "all":
        conditions.append(Expense.status == ExpenseStatus(filters.status))
    if filters.category:
        conditions.append(Expense.category == filters.category)
    if filters.vendor:
        conditions.append(Expense.vendor.ilike(f"%{filters.vendor}%"))
    if filters.start_date:
        conditions.append(Expense.date >= filters.start_date)
    if filters.end_date:
        conditions.append(Expense.date <= filters.end_date)

    total, total_amount = (
        await db.execute(
            select(func.count(Expense.id), func.coalesce(func.sum(Expense.amount), 0)).where(*conditions)
        )
    ).one()

    result = await db.execute(
        select(Expense)
        .where(*conditions)
        .order_by(desc(Expense.date), desc(Expense.id))
        .offset((filters.page - 1) * filters.page_size)
        .limit(filters.page_size)
    )

    return ExpenseListData(
        total=total or 0,
        total_pages=total_pages(total or 0, filters.page_size),
        total_amount=to_decimal(total_amount),
        items=[ExpenseOut.model_validate(e) for e in result.scalars().all()],
    )


async def expense_totals_by_category(db: AsyncSession, conditions: list) -> dict[ExpenseCategory, tuple[int, Decimal]]:
    rows = (
        await db.execute(
            select(
                Expense.category,
                func.count(Expense.id),
                func.coalesce(func.sum(Expense.amount), 0),
            )
            .where(*conditions)
            .group_by(Expense.category)
        )
    ).all()
    return {category: (count, total) for category, count, total in rows}


def approved_expense_conditions(user, start_date: date | None = None, end_date: date | None = None) -> list:
    conditions = [
        Expense.company_id == user.company_id,
        Expense.is_deleted.is_(False),
        Expense.status == ExpenseStatus.approved,
    ]
    if start_date:
        conditions.append(Expense.date >= start_date)
    if end_date:
        conditions.append(Expense.date <= end_date)
    return conditions


async def expense_categories(db: AsyncSession, user) -> list[ExpenseCategoryUsage]:
    totals = await expense_totals_by_category(db, approved_expense_conditions(user))
    return [
        ExpenseCategoryUsage(
            category=category,
            count=totals.get(category, (0, 0))[0],
            total=to_decimal(totals.get(category, (0, 0))[1]),
        )
        for category in ExpenseCategory
    ]


async def expense_summary(
    db: AsyncSession,
    user,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ExpenseSummary:
    _check_window(start_date, end_date)
    conditions = approved_expense_conditions(user, start_date, end_date)

    rows = (
        await db.execute(
            select(Expense.date, Expense.amount).where(*conditions).order_by(Expense.date)
        )
    ).all()

    months: dict[str, list] = {}
    for day, amount in rows:
        bucket = months.setdefault(day.strftime("%Y-%m"), [0, ZERO])
        bucket[0] += 1
        bucket[1] += to_decimal(amount)

    total = sum((to_decimal(amount) for _, amount in rows), ZERO)
    count = len(rows)

    by_category = [
        ExpenseCategoryUsage(category=category, count=c, total=to_decimal(t))
        for category, (c, t) in (await expense_totals_by_category(db, conditions)).items()
    ]
    by_category.sort(key=lambda usage: usage.total, reverse=True)

    return ExpenseSummary(
        start_date=start_date,
        end_date=end_date,
        count=count,
        total=to_decimal(total),
        average=to_decimal(total / count) if count else ZERO,
        by_month=[ExpenseMonthTotal(month=m, count=c, total=to_decimal(t)) for m, (c, t) in months.items()],
        by_category=by_category,
    )


# =====================================================
# UPDATE
# =====================================================
async def update_expense(db: AsyncSession, expense_id: int, payload: ExpenseUpdate, user) -> ExpenseOut:
    expense = await _get_expense(db, user.company_id, expense_id)

    if expense.status == ExpenseStatus.approved and not _is_manager(user):
        raise AppException(403, "Approved expenses can only be edited by owners and admins", ErrorCode.PERMISSION_DENIED)

    data = payload.model_dump(exclude_unset=True)
    _check_decision_rights(user, data.get("status"))

    changes: list[str] = []
    for field, value in data.items():
        if field == "amount" and value is not None:
            value = to_decimal(value)
        if field == "currency" and value is not None:
            value = value.upper()
        if getattr(expense, field) != value:
            changes.append(field)
            setattr(expense, field, value)

    if not changes:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    if expense.is_recurring and expense.recurring_period is None:
        raise AppException(400, "recurring_period is required for recurring expenses", ErrorCode.VALIDATION_ERROR)
    if not expense.is_recurring:
        expense.recurring_period = None

    if "status" in changes:
        expense.approved_by_id = user.id if expense.status == ExpenseStatus.approved else None
    expense.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_EXPENSE,
        expense_id=expense.id,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(expense)
    return ExpenseOut.model_validate(expense)


# =====================================================
# DELETE
# =====================================================
async def delete_expense(db: AsyncSession, expense_id: int, user) -> dict:
    expense = await _get_expense(db, user.company_id, expense_id)

    if expense.created_by_id != user.id and not _is_manager(user):
        raise AppException(403, "Only the creator or an owner/admin can delete this expense", ErrorCode.PERMISSION_DENIED)

    expense.is_deleted = True
    expense.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.DELETE_EXPENSE,
        expense_id=expense.id,
        amount=expense.amount,
    )

    await db.commit()
    logger.info("Expense deleted", extra={"expense_id": expense.id})
    return {"id": expense.id}
