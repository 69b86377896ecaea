from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.companies.company_models import Company
from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.models.users.user_models import User
from app.models.masters.product_models import Product
from app.utils.logger import get_logger

logger = get_logger(__name__)


def limit_reached(limit: int | None, current: int) -> bool:
    # None = unlimited
    if limit is None:
        return False
    return current >= limit


async def count_active_users(db: AsyncSession, company_id: int) -> int:
    current = await db.scalar(
        select(func.count(User.id)).where(
            User.company_id == company_id,
            User.is_active.is_(True),
        )
    )
    return current or 0


async def count_products(db: AsyncSession, company_id: int) -> int:
    current = await db.scalar(
        select(func.count(Product.id)).where(
            Product.company_id == company_id,
            Product.is_deleted.is_(False),
        )
    )
    return current or 0


def _limit_error(plan: SubscriptionPlan, resource: str, limit: int, current: int) -> AppException:
    return AppException(
        403,
        f"Your {plan.name} plan allows up to {limit} {resource}",
        ErrorCode.PLAN_LIMIT_REACHED,
        {"resource": resource, "limit": limit, "current": current},
    )


async def ensure_user_capacity(db: AsyncSession, company: Company) -> None:
    plan = company.subscription_plan
    if plan is None or plan.max_users is None:
        return

    current = await count_active_users(db, company.id)
    if limit_reached(plan.max_users, current):
        logger.info("User limit reached", extra={"company_id": company.id, "limit": plan.max_users})
        raise _limit_error(plan, "users", plan.max_users, current)


async def ensure_product_capacity(db: AsyncSession, company: Company) -> None:
    plan = company.subscription_plan
    if plan is None or plan.max_products is None:
        return

    current = await count_products(db, company.id)
    if limit_reached(plan.max_products, current):
        logger.info("Product limit reached", extra={"company_id": company.id, "limit": plan.max_products})
        raise _limit_error(plan, "products", plan.max_products, current)


async def ensure_plan_fits(db: AsyncSession, company: Company, plan: SubscriptionPlan) -> None:
    """Refuse a plan switch that would leave the company above the new limits."""
    users = await count_active_users(db, company.id)
    if plan.max_users is not None and users > plan.max_users:
        raise _limit_error(plan, "users", plan.max_users, users)

    products = await count_products(db, company.id)
    if plan.max_products is not None and products > plan.max_products:
        raise _limit_error(plan, "products", plan.max_products, products)
