from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.reports.report_schemas import SummaryReport, ProfitLossReport, DashboardReport
from app.services.reports.report_service import summary_report, profit_loss_report, dashboard_report
from app.utils.check_roles import require_role, BACK_OFFICE
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(require_active_subscription)],
)


@router.get("/summary", response_model=APIResponse[SummaryReport])
async def summary_report_api(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    report = await summary_report(db, user, start_date=start_date, end_date=end_date)
    return success_response("Summary report generated", report)


@router.get("/profit-loss", response_model=APIResponse[ProfitLossReport])
async def profit_loss_report_api(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    report = await profit_loss_report(db, user, start_date=start_date, end_date=end_date)
    return success_response("Profit and loss report generated", report)


@router.get("/dashboard", response_model=APIResponse[DashboardReport])
async def dashboard_report_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(BACK_OFFICE)),
):
    report = await dashboard_report(db, user)
    return success_response("Dashboard generated", report)
