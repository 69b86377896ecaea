from pydantic import BaseModel
from typing import Optional, List
from decimal import Decimal
from datetime import date

from app.models.enums.invoice_status import InvoiceStatus
from app.schemas.expenses.expense_schemas import ExpenseCategoryUsage, ExpenseOut


class InvoiceStatusTotal(BaseModel):
    status: InvoiceStatus
    count: int
    total: Decimal


class SummaryReport(BaseModel):
    start_date: Optional[date]
    end_date: Optional[date]
    invoices: List[InvoiceStatusTotal]
    invoiced_total: Decimal
    outstanding_balance: Decimal
    payments_collected: Decimal
    payment_count: int
    pos_revenue: Decimal
    pos_sale_count: int


# =====================================================
# PROFIT AND LOSS
# =====================================================
class RevenueBreakdown(BaseModel):
    invoices: Decimal
    pos: Decimal
    total: Decimal


class ProfitLossReport(BaseModel):
    start_date: date
    end_date: date
    revenue: RevenueBreakdown
    cost_of_goods_sold: Decimal
    gross_profit: Decimal
    gross_margin: Decimal
    operating_expenses: Decimal
    expenses_by_category: List[ExpenseCategoryUsage]
    net_income: Decimal
    net_margin: Decimal


# =====================================================
# DASHBOARD
# =====================================================
class BalanceTotal(BaseModel):
    amount: Decimal
    count: int


class TopCustomer(BaseModel):
    id: int
    name: str
    revenue: Decimal
    invoice_count: int


class DashboardReport(BaseModel):
    as_of: date
    month_revenue: Decimal
    last_month_revenue: Decimal
    revenue_growth: Optional[Decimal]
    year_revenue: Decimal
    outstanding: BalanceTotal
    overdue: BalanceTotal
    top_customers: List[TopCustomer]
    recent_expenses: List[ExpenseOut]
