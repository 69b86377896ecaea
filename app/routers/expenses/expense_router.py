from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.expenses.expense_schemas import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseFilters,
    ExpenseOut,
    ExpenseListData,
    ExpenseCategoryUsage,
    ExpenseSummary,
)
from app.services.expenses.expense_service import (
    create_expense,
    list_expenses,
    expense_categories,
    expense_summary,
    get_expense,
    update_expense,
    delete_expense,
)
from app.utils.check_roles import require_role, BACK_OFFICE
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/expenses",
    tags=["Expenses"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


@router.post(
    "",
    response_model=APIResponse[ExpenseOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_expense_api(
    payload: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    logger.info("Create expense request", extra={"category": payload.category.value, "amount": str(payload.amount)})
    expense = await create_expense(db, payload, user)
    return success_response("Expense recorded", expense)


@router.get("", response_model=APIResponse[ExpenseListData])
async def list_expenses_api(
    filters: ExpenseFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await list_expenses(db, user, filters)
    return success_response("Expenses fetched", data)


@router.get("/categories", response_model=APIResponse[List[ExpenseCategoryUsage]])
async def expense_categories_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    categories = await expense_categories(db, user)
    return success_response("Expense categories fetched", categories)


@router.get("/stats/summary", response_model=APIResponse[ExpenseSummary])
async def expense_summary_api(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    summary = await expense_summary(db, user, start_date=start_date, end_date=end_date)
    return success_response("Expense summary generated", summary)


@router.get("/{expense_id}", response_model=APIResponse[ExpenseOut])
async def get_expense_api(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    expense = await get_expense(db, expense_id, user)
    return success_response("Expense fetched", expense)


@router.put("/{expense_id}", response_model=APIResponse[ExpenseOut])
async def update_expense_api(
    expense_id: int,
    payload: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    expense = await update_expense(db, expense_id, payload, user)
    return success_response("Expense updated", expense)


@router.delete("/{expense_id}")
async def delete_expense_api(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    data = await delete_expense(db, expense_id, user)
    return success_response("Expense deleted", data)
