import math
from datetime import date, datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.companies.company_models import Company
from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.models.users.user_models import User
from app.models.billing.invoice_models import Invoice
from app.models.enums.document_kind import DocumentKind
from app.models.enums.subscription_status import SubscriptionStatus
from app.models.enums.user_role import UserRole
from app.schemas.companies.company_schemas import (
    CompanyProfileOut,
    CompanyProfileUpdate,
    SubscriptionOut,
    SubscriptionChange,
    SubscriptionStatusChange,
    SubscriptionUsage,
    PlanLimits,
    UserRoleChange,
)
from app.schemas.subscriptions.subscription_plan_schemas import SubscriptionPlanOut
from app.schemas.users.user_schemas import UserDetailSchema
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity, emit_user_activity
from app.utils.plan_limits import count_active_users, count_products, ensure_plan_fits
from app.utils.subscription_guard import as_utc, effective_status
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


async def _get_company(db: AsyncSession, company_id: int) -> Company:
    company = await db.scalar(select(Company).where(Company.id == company_id))
    if not company:
        raise AppException(404, "Company not found", ErrorCode.COMPANY_NOT_FOUND)
    return company


# =====================================================
# PROFILE
# =====================================================
async def get_profile(db: AsyncSession, user) -> CompanyProfileOut:
    return CompanyProfileOut.model_validate(await _get_company(db, user.company_id))


async def update_profile(db: AsyncSession, payload: CompanyProfileUpdate, user) -> CompanyProfileOut:
    company = await _get_company(db, user.company_id)

    changes: list[str] = []
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "currency" and value is not None:
            value = value.upper()
        if field == "gst_rate" and value is not None:
            value = to_decimal(value)
        if getattr(company, field) != value:
            changes.append(field)
            setattr(company, field, value)

    if not changes:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    await emit_user_activity(db, user, ActivityCode.UPDATE_COMPANY_PROFILE, changes=", ".join(changes))

    await db.commit()
    await db.refresh(company)

    logger.info("Company profile updated", extra={"company_id": company.id, "changes": changes})
    return CompanyProfileOut.model_validate(company)


# =====================================================
# SUBSCRIPTION
# =====================================================
def _trial_days_remaining(company: Company, status: SubscriptionStatus, now: datetime) -> int | None:
    trial_ends_at = as_utc(company.trial_ends_at)
    if status != SubscriptionStatus.trial or trial_ends_at is None:
        return None
    return max(0, math.ceil((trial_ends_at - now).total_seconds() / SECONDS_PER_DAY))


async def get_subscription(db: AsyncSession, user, now: datetime | None = None) -> SubscriptionOut:
    now = now or datetime.now(timezone.utc)
    company = await _get_company(db, user.company_id)
    plan = company.subscription_plan
    status = effective_status(company, now)

    month_start = date(now.year, now.month, 1)
    invoices_this_month = await db.scalar(
        select(func.count(Invoice.id)).where(
            Invoice.company_id == company.id,
            Invoice.kind == DocumentKind.invoice,
            Invoice.is_deleted.is_(False),
            Invoice.issue_date >= month_start,
        )
    )

    return SubscriptionOut(
        status=status,
        plan=SubscriptionPlanOut.model_validate(plan) if plan else None,
        trial_ends_at=company.trial_ends_at,
        trial_days_remaining=_trial_days_remaining(company, status, now),
        limits=PlanLimits(
            max_users=plan.max_users if plan else None,
            max_products=plan.max_products if plan else None,
            max_storage_gb=plan.max_storage_gb if plan else None,
        ),
        usage=SubscriptionUsage(
            active_users=await count_active_users(db, company.id),
            products=await count_products(db, company.id),
            invoices_this_month=invoices_this_month or 0,
        ),
    )


async def change_plan(db: AsyncSession, payload: SubscriptionChange, user) -> SubscriptionOut:
    company = await _get_company(db, user.company_id)

    plan = await db.scalar(
        select(SubscriptionPlan).where(
            SubscriptionPlan.id == payload.subscription_plan_id,
            SubscriptionPlan.is_active.is_(True),
        )
    )
    if not plan:
        raise AppException(404, "Subscription plan not found", ErrorCode.PLAN_NOT_FOUND)

    if company.subscription_plan_id == plan.id and company.subscription_status == SubscriptionStatus.active:
        raise AppException(400, "Company is already on this plan", ErrorCode.VALIDATION_ERROR)

    await ensure_plan_fits(db, company, plan)

    company.subscription_plan_id = plan.id
    company.subscription_plan = plan
    company.subscription_status = SubscriptionStatus.active

    await emit_user_activity(db, user, ActivityCode.CHANGE_SUBSCRIPTION_PLAN, target_name=plan.name)

    await db.commit()
    logger.info("Subscription plan changed", extra={"company_id": company.id, "plan_id": plan.id})
    return await get_subscription(db, user)


async def set_subscription_status(
    db: AsyncSession,
    company_id: int,
    payload: SubscriptionStatusChange,
    admin,
) -> CompanyProfileOut:
    company = await _get_company(db, company_id)

    previous = company.subscription_status
    company.subscription_status = payload.status

    await emit_activity(
        db,
        user_id=admin.id,
        username=admin.username,
        code=ActivityCode.SET_SUBSCRIPTION_STATUS,
        company_id=company.id,
        actor_role=admin.role.capitalize(),
        actor_email=admin.username,
        target_name=company.name,
        status=payload.status.value,
        reason=payload.reason or "no reason given",
    )

    await db.commit()
    await db.refresh(company)

    logger.warning(
        "Subscription status set",
        extra={"company_id": company.id, "from": previous.value, "to": payload.status.value},
    )
    return CompanyProfileOut.model_validate(company)


async def expire_lapsed_trials(db: AsyncSession, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)

    companies = (
        await db.execute(
            select(Company).where(
                Company.subscription_status == SubscriptionStatus.trial,
                Company.trial_ends_at.is_not(None),
                Company.trial_ends_at < now,
            )
        )
    ).scalars().all()

    for company in companies:
        company.subscription_status = SubscriptionStatus.past_due
        await emit_activity(
            db,
            user_id=None,
            username="system",
            code=ActivityCode.EXPIRE_TRIAL,
            company_id=company.id,
            actor_role="System",
            actor_email="system",
            target_name=company.name,
            trial_ends_at=as_utc(company.trial_ends_at).date(),
        )

    if companies:
        await db.commit()
        logger.info("Lapsed trials expired", extra={"count": len(companies)})
    return len(companies)


# =====================================================
# USER ROLES
# =====================================================
async def change_user_role(db: AsyncSession, user_id: int, payload: UserRoleChange, owner) -> UserDetailSchema:
    user = await db.scalar(
        select(User).where(
            User.id == user_id,
            User.company_id == owner.company_id,
        )
    )
    if not user:
        raise AppException(404, "User not found", ErrorCode.USER_NOT_FOUND)

    if user.id == owner.id:
        raise AppException(400, "You cannot change your own role", ErrorCode.VALIDATION_ERROR)

    if user.role == UserRole.owner.value:
        raise AppException(403, "The company owner's role cannot be changed", ErrorCode.PERMISSION_DENIED)

    if user.role == payload.role:
        raise AppException(400, "User already has this role", ErrorCode.VALIDATION_ERROR)

    old_role = user.role
    user.role = payload.role
    user.version += 1

    await emit_user_activity(
        db,
        owner,
        ActivityCode.CHANGE_USER_ROLE,
        target_email=user.username,
        old_role=old_role,
        new_role=payload.role,
    )

    await db.commit()
    await db.refresh(user)

    logger.info("User role changed", extra={"user_id": user.id, "role": user.role})
    return UserDetailSchema.model_validate(user)
