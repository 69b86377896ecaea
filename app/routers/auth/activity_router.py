from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.auth.activity_schemas import UserActivityFilters, UserActivityListData
from app.services.auth.activity_service import list_user_activities
from app.utils.check_roles import require_role, OWNER_ADMIN
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(prefix="/activities", tags=["Activity Log"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[UserActivityListData])
async def list_activities_api(
    filters: UserActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(OWNER_ADMIN)),
):
    logger.info(
        "Activity log requested",
        extra={"company_id": admin.company_id, **filters.model_dump(mode="json", exclude_none=True)},
    )
    result = await list_user_activities(db=db, company_id=admin.company_id, filters=filters)
    return success_response("Activity log fetched", result)
