from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.schemas.subscriptions.subscription_plan_schemas import (
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    SubscriptionPlanOut,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def _get_plan(db: AsyncSession, plan_id: int, *, active_only: bool = False) -> SubscriptionPlan:
    stmt = select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id)
    if active_only:
        stmt = stmt.where(SubscriptionPlan.is_active.is_(True))

    plan = await db.scalar(stmt)
    if not plan:
        raise AppException(404, "Subscription plan not found", ErrorCode.PLAN_NOT_FOUND)
    return plan


async def _name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(SubscriptionPlan.id).where(SubscriptionPlan.name == name)
    if exclude_id is not None:
        stmt = stmt.where(SubscriptionPlan.id != exclude_id)
    return (await db.scalar(stmt)) is not None


# =====================================================
# READ
# =====================================================
async def list_plans(db: AsyncSession) -> list[SubscriptionPlanOut]:
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.sort_order, SubscriptionPlan.price, SubscriptionPlan.id)
    )
    return [SubscriptionPlanOut.model_validate(p) for p in result.scalars().all()]


async def get_plan(db: AsyncSession, plan_id: int) -> SubscriptionPlanOut:
    return SubscriptionPlanOut.model_validate(await _get_plan(db, plan_id, active_only=True))


# =====================================================
# CREATE
# =====================================================
async def create_plan(db: AsyncSession, payload: SubscriptionPlanCreate, user) -> SubscriptionPlanOut:
    logger.info("Create subscription plan", extra={"plan_name": payload.name})

    if await _name_taken(db, payload.name):
        raise AppException(400, "A plan with this name already exists", ErrorCode.PLAN_NAME_EXISTS)

    data = payload.model_dump()
    data["price"] = to_decimal(data["price"])
    data["currency"] = data["currency"].upper()

    plan = SubscriptionPlan(**data)
    db.add(plan)

    try:
        await db.flush()
    except IntegrityError:
        raise AppException(409, "A plan with this name already exists", ErrorCode.PLAN_NAME_EXISTS)

    await emit_user_activity(db, user, ActivityCode.CREATE_PLAN, target_name=plan.name)

    await db.commit()
    await db.refresh(plan)
    return SubscriptionPlanOut.model_validate(plan)


# =====================================================
# UPDATE
# =====================================================
async def update_plan(
    db: AsyncSession,
    plan_id: int,
    payload: SubscriptionPlanUpdate,
    user,
) -> SubscriptionPlanOut:
    plan = await _get_plan(db, plan_id)

    data = payload.model_dump(exclude_unset=True)
    if data.get("name") and data["name"] != plan.name and await _name_taken(db, data["name"], plan.id):
        raise AppException(400, "A plan with this name already exists", ErrorCode.PLAN_NAME_EXISTS)

    changes: list[str] = []
    for field, value in data.items():
        if field == "price" and value is not None:
            value = to_decimal(value)
        if field == "currency" and value is not None:
            value = value.upper()
        if getattr(plan, field) != value:
            changes.append(field)
            setattr(plan, field, value)

    if not changes:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_PLAN,
        target_name=plan.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(plan)
    return SubscriptionPlanOut.model_validate(plan)


# =====================================================
# DEACTIVATE
# =====================================================
async def deactivate_plan(db: AsyncSession, plan_id: int, user) -> SubscriptionPlanOut:
    plan = await _get_plan(db, plan_id)
    if not plan.is_active:
        raise AppException(400, "Plan is already inactive", ErrorCode.VALIDATION_ERROR)

    # companies already on the plan keep it; it just stops being offered
    plan.is_active = False

    await emit_user_activity(db, user, ActivityCode.DEACTIVATE_PLAN, target_name=plan.name)

    await db.commit()
    await db.refresh(plan)

    logger.info("Subscription plan deactivated", extra={"plan_id": plan.id})
    return SubscriptionPlanOut.model_validate(plan)
