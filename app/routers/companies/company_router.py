from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.companies.company_schemas import (
    CompanyProfileOut,
    CompanyProfileUpdate,
    SubscriptionOut,
    SubscriptionChange,
    SubscriptionStatusChange,
    UserRoleChange,
)
from app.schemas.users.user_schemas import UserDetailSchema
from app.services.companies.company_service import (
    get_profile,
    update_profile,
    get_subscription,
    change_plan,
    set_subscription_status,
    change_user_role,
)
from app.utils.check_roles import require_role, OWNER_ONLY, OWNER_ADMIN, ALL_STAFF, SUPER_ADMIN
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(prefix="/companies", tags=["Companies"])
logger = get_logger(__name__)


# =====================================================
# PROFILE
# =====================================================
@router.get("/profile", response_model=APIResponse[CompanyProfileOut])
async def get_profile_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    profile = await get_profile(db, user)
    return success_response("Company profile fetched", profile)


@router.put("/profile", response_model=APIResponse[CompanyProfileOut])
async def update_profile_api(
    payload: CompanyProfileUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Update company profile request", extra={"company_id": user.company_id})
    profile = await update_profile(db, payload, user)
    return success_response("Company profile updated", profile)


# =====================================================
# SUBSCRIPTION
# =====================================================
@router.get("/subscription", response_model=APIResponse[SubscriptionOut])
async def get_subscription_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    subscription = await get_subscription(db, user)
    return success_response("Subscription fetched", subscription)


@router.put("/subscription", response_model=APIResponse[SubscriptionOut])
async def change_plan_api(
    payload: SubscriptionChange,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ONLY)),
):
    logger.info(
        "Change plan request",
        extra={"company_id": user.company_id, "plan_id": payload.subscription_plan_id},
    )
    subscription = await change_plan(db, payload, user)
    return success_response("Subscription updated", subscription)


@router.put("/{company_id}/subscription-status", response_model=APIResponse[CompanyProfileOut])
async def set_subscription_status_api(
    company_id: int,
    payload: SubscriptionStatusChange,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(SUPER_ADMIN)),
):
    company = await set_subscription_status(db, company_id, payload, admin)
    return success_response("Subscription status updated", company)


# =====================================================
# USERS
# =====================================================
@router.put("/users/{user_id}/role", response_model=APIResponse[UserDetailSchema])
async def change_user_role_api(
    user_id: int,
    payload: UserRoleChange,
    db: AsyncSession = Depends(get_db),
    owner=Depends(require_role(OWNER_ONLY)),
):
    logger.info("Change role request", extra={"user_id": user_id, "role": payload.role})
    user = await change_user_role(db, user_id, payload, owner)
    return success_response("User role updated", user)
