# app/services/auth/activity_service.py

from datetime import datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from app.models.support.activity_models import UserActivity
from app.schemas.auth.activity_schemas import (
    UserActivityOut,
    UserActivityFilters,
    UserActivityListData,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.response import total_pages
from app.utils.logger import get_logger

logger = get_logger(__name__)

SORT_FIELDS = {
    "created_at": UserActivity.created_at,
    "username": UserActivity.username_snapshot,
    "code": UserActivity.code,
}


async def list_user_activities(
    *,
    db: AsyncSession,
    company_id: int,
    filters: UserActivityFilters,
) -> UserActivityListData:
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise AppException(400, "start_date must not be after end_date", ErrorCode.VALIDATION_ERROR)

    # -------------------------
    # Filters
    # -------------------------
    conditions = [UserActivity.company_id == company_id]

    if filters.user_id:
        conditions.append(UserActivity.user_id == filters.user_id)
    if filters.username:
        conditions.append(UserActivity.username_snapshot.ilike(f"%{filters.username}%"))
    if filters.code:
        conditions.append(UserActivity.code == filters.code.value)
    if filters.start_date:
        conditions.append(UserActivity.created_at >= datetime.combine(filters.start_date, time.min))
    if filters.end_date:
        conditions.append(
            UserActivity.created_at < datetime.combine(filters.end_date + timedelta(days=1), time.min)
        )

    # -------------------------
    # Sorting
    # -------------------------
    order_fn = desc if filters.sort_order == "desc" else asc
    sort_column = SORT_FIELDS[filters.sort_by]

    query = (
        select(UserActivity)
        .where(*conditions)
        .order_by(order_fn(sort_column), order_fn(UserActivity.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )

    total = await db.scalar(select(func.count(UserActivity.id)).where(*conditions)) or 0
    activities = (await db.execute(query)).scalars().all()

    logger.info(
        "User activities fetched",
        extra={"company_id": company_id, "total": total, "page": filters.page},
    )

    return UserActivityListData(
        total=total,
        total_pages=total_pages(total, filters.page_size),
        items=[UserActivityOut.model_validate(a) for a in activities],
    )
