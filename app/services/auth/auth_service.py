from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.users.user_models import User
from app.models.companies.company_models import Company
from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.models.enums.subscription_status import SubscriptionStatus
from app.models.enums.user_role import UserRole
from app.schemas.auth.auth_schemas import RegisterRequest, MeOut, CompanyOut
from app.core.security import verify_password, hash_password, create_access_token
from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, DEFAULT_CURRENCY
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.activity_helpers import emit_activity, emit_user_activity
from app.constants.activity_codes import ActivityCode
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger("auth.service")

DEFAULT_TRIAL_DAYS = 30


def _issue_token(user: User) -> dict:
    access_token = create_access_token(
        subject=user.username,
        token_version=user.token_version,
        company_id=user.company_id,
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


def build_me(user: User) -> MeOut:
    return MeOut(
        id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        company=CompanyOut.model_validate(user.company) if user.company else None,
        last_login=user.last_login,
    )


# =====================================================
# REGISTER (company + owner)
# =====================================================
async def register_company(db: AsyncSession, payload: RegisterRequest):
    logger.info("Registering company", extra={"email": payload.email})

    exists = await db.scalar(select(User.id).where(User.username == payload.email))
    if exists:
        raise AppException(400, "User already exists", ErrorCode.USER_EMAIL_EXISTS)

    plan = None
    if payload.subscription_plan_id is not None:
        plan = await db.scalar(
            select(SubscriptionPlan).where(
                SubscriptionPlan.id == payload.subscription_plan_id,
                SubscriptionPlan.is_active.is_(True),
            )
        )
        if not plan:
            raise AppException(404, "Subscription plan not found", ErrorCode.PLAN_NOT_FOUND)

    trial_days = plan.trial_period_days if plan and plan.trial_period_days else DEFAULT_TRIAL_DAYS

    company = Company(
        name=payload.company_name,
        email=payload.email,
        phone=payload.phone,
        currency=(payload.currency or DEFAULT_CURRENCY).upper(),
        gst_rate=to_decimal(payload.gst_rate) if payload.gst_rate is not None else None,
        subscription_plan_id=plan.id if plan else None,
        subscription_status=SubscriptionStatus.trial,
        trial_ends_at=datetime.now(timezone.utc) + timedelta(days=trial_days),
    )
    db.add(company)
    await db.flush()

    user = User(
        company_id=company.id,
        username=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=hash_password(payload.password),
        role=UserRole.owner.value,
        last_login=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.flush()

    await emit_activity(
        db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.REGISTER_COMPANY,
        company_id=company.id,
        actor_email=user.username,
        target_name=company.name,
    )

    await db.commit()
    await db.refresh(user, attribute_names=["company"])

    logger.info("Company registered", extra={"company_id": company.id, "user_id": user.id})
    return {"auth": _issue_token(user), "user": build_me(user)}


# =====================================================
# LOGIN
# =====================================================
async def login_user(db: AsyncSession, email: str, password: str):
    logger.info("Authenticating user", extra={"email": email})

    result = await db.execute(
        select(User).where(User.username == email)
    )
    user = result.scalars().first()

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid credentials", extra={"email": email})
        raise AppException(401, "Invalid credentials", ErrorCode.UNAUTHORIZED)

    if not user.is_active:
        logger.warning("Inactive user login blocked", extra={"email": email})
        raise AppException(403, "User account is inactive", ErrorCode.USER_INACTIVE)

    if user.company and user.company.subscription_status == SubscriptionStatus.suspended:
        logger.warning("Suspended company login blocked", extra={"company_id": user.company_id})
        raise AppException(403, "Subscription suspended", ErrorCode.SUBSCRIPTION_SUSPENDED)

    user.last_login = datetime.now(timezone.utc)

    await emit_user_activity(db, user, ActivityCode.LOGIN)

    await db.commit()

    logger.info("Login successful", extra={"user_id": user.id})

    return {"auth": _issue_token(user), "user": build_me(user)}


# =====================================================
# LOGOUT
# =====================================================
async def logout_user(db: AsyncSession, user: User):
    logger.info("Logging out user", extra={"user_id": user.id})

    # invalidates every token issued so far
    user.token_version += 1

    await emit_user_activity(db, user, ActivityCode.LOGOUT)

    await db.commit()

    logger.info("Logout successful", extra={"user_id": user.id})
