from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from decimal import Decimal
import datetime as dt

from fastapi import Query

from app.models.enums.expense_category import ExpenseCategory
from app.models.enums.expense_status import ExpenseStatus
from app.models.enums.payment_method import PaymentMethod
from app.models.enums.recurring_period import RecurringPeriod


# =========================
# INPUTS
# =========================
class ExpenseCreate(BaseModel):
    category: ExpenseCategory
    subcategory: Optional[str] = Field(None, max_length=100)
    vendor: Optional[str] = Field(None, max_length=255)
    description: str = Field(min_length=1, max_length=500)
    amount: Decimal = Field(gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    date: dt.date
    payment_method: PaymentMethod = PaymentMethod.cash
    reference: Optional[str] = Field(None, max_length=100)
    is_recurring: bool = False
    recurring_period: Optional[RecurringPeriod] = None
    tags: List[str] = []
    notes: Optional[str] = None
    # defaults by role when omitted
    status: Optional[ExpenseStatus] = None

    @model_validator(mode="after")
    def _check_recurring(self):
        if self.is_recurring and self.recurring_period is None:
            raise ValueError("recurring_period is required for recurring expenses")
        return self


class ExpenseUpdate(BaseModel):
    category: Optional[ExpenseCategory] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    vendor: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    is_recurring: Optional[bool] = None
    recurring_period: Optional[RecurringPeriod] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    status: Optional[ExpenseStatus] = None


class ExpenseFilters(BaseModel):
    category: Optional[ExpenseCategory] = Query(None)
    vendor: Optional[str] = Query(None)
    start_date: Optional[dt.date] = Query(None)
    end_date: Optional[dt.date] = Query(None)
    # "all" lists every status
    status: str = Query(ExpenseStatus.approved.value, pattern="^(pending|approved|rejected|all)$")
    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)


# =========================
# OUTPUTS
# =========================
class ExpenseOut(BaseModel):
    id: int
    category: ExpenseCategory
    subcategory: Optional[str]
    vendor: Optional[str]
    description: str
    amount: Decimal
    currency: str
    date: dt.date
    payment_method: PaymentMethod
    reference: Optional[str]
    is_recurring: bool
    recurring_period: Optional[RecurringPeriod]
    tags: List[str]
    notes: Optional[str]
    status: ExpenseStatus
    approved_by_id: Optional[int]
    created_by_id: Optional[int]
    created_at: dt.datetime
    updated_at: Optional[dt.datetime]

    model_config = ConfigDict(from_attributes=True)


class ExpenseListData(BaseModel):
    total: int
    total_pages: int
    total_amount: Decimal
    items: List[ExpenseOut]


class ExpenseCategoryUsage(BaseModel):
    category: ExpenseCategory
    count: int
    total: Decimal


class ExpenseMonthTotal(BaseModel):
    month: str
    count: int
    total: Decimal


class ExpenseSummary(BaseModel):
    start_date: Optional[dt.date]
    end_date: Optional[dt.date]
    count: int
    total: Decimal
    average: Decimal
    by_month: List[ExpenseMonthTotal]
    by_category: List[ExpenseCategoryUsage]
