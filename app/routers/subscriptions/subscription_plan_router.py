from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.subscriptions.subscription_plan_schemas import (
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    SubscriptionPlanOut,
)
from app.services.subscriptions.subscription_plan_service import (
    list_plans,
    get_plan,
    create_plan,
    update_plan,
    deactivate_plan,
)
from app.utils.check_roles import require_role, SUPER_ADMIN
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(prefix="/subscription-plans", tags=["Subscription Plans"])
logger = get_logger(__name__)


# =====================================================
# PUBLIC CATALOGUE
# =====================================================
@router.get("", response_model=APIResponse[List[SubscriptionPlanOut]])
async def list_plans_api(db: AsyncSession = Depends(get_db)):
    plans = await list_plans(db)
    return success_response("Subscription plans fetched", plans)


@router.get("/{plan_id}", response_model=APIResponse[SubscriptionPlanOut])
async def get_plan_api(plan_id: int, db: AsyncSession = Depends(get_db)):
    plan = await get_plan(db, plan_id)
    return success_response("Subscription plan fetched", plan)


# =====================================================
# ADMINISTRATION
# =====================================================
@router.post(
    "",
    response_model=APIResponse[SubscriptionPlanOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_plan_api(
    payload: SubscriptionPlanCreate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(SUPER_ADMIN)),
):
    plan = await create_plan(db, payload, admin)
    return success_response("Subscription plan created", plan)


@router.put("/{plan_id}", response_model=APIResponse[SubscriptionPlanOut])
async def update_plan_api(
    plan_id: int,
    payload: SubscriptionPlanUpdate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(SUPER_ADMIN)),
):
    plan = await update_plan(db, plan_id, payload, admin)
    return success_response("Subscription plan updated", plan)


@router.delete("/{plan_id}", response_model=APIResponse[SubscriptionPlanOut])
async def deactivate_plan_api(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(SUPER_ADMIN)),
):
    plan = await deactivate_plan(db, plan_id, admin)
    return success_response("Subscription plan deactivated", plan)
