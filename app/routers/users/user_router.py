from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.users.user_schemas import (
    UserCreateSchema,
    UserDetailSchema,
    UserListData,
)
from app.services.users.user_services import (
    create_user,
    list_users,
    deactivate_user,
)
from app.utils.check_roles import require_role, OWNER_ADMIN
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(prefix="/users", tags=["Users"])
logger = get_logger(__name__)


@router.post(
    "",
    response_model=APIResponse[UserDetailSchema],
    status_code=status.HTTP_201_CREATED,
)
async def create_user_api(
    payload: UserCreateSchema,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Create user request", extra={"email": payload.email})
    user = await create_user(db, payload, admin)
    return success_response("User created successfully", user)


@router.get("", response_model=APIResponse[UserListData])
async def list_users_api(
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("List users request", extra={"company_id": admin.company_id, "page": page})
    users = await list_users(db, admin, is_active=is_active, page=page, page_size=page_size)
    return success_response("Users fetched", users)


@router.delete("/{user_id}", response_model=APIResponse[UserDetailSchema])
async def deactivate_user_api(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Deactivate user request", extra={"user_id": user_id})
    user = await deactivate_user(db, user_id, admin)
    return success_response("User deactivated", user)
