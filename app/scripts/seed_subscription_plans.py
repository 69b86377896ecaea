from decimal import Decimal

from sqlalchemy import select

from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.models.enums.billing_period import BillingPeriod
from app.core.db import AsyncSessionLocal
from app.core.logging import setup_logging
from app.utils.logger import get_logger
import asyncio

logger = get_logger("scripts.seed_plans")

DEFAULT_PLANS = [
    {
        "name": "Starter",
        "description": "Invoicing and POS for a single shop",
        "price": Decimal("19.00"),
        "billing_period": BillingPeriod.monthly,
        "trial_period_days": 30,
        "max_users": 2,
        "max_products": 200,
        "max_storage_gb": 1,
        "features": {"pos": True, "gateways": False, "reports": False},
        "sort_order": 1,
    },
    {
        "name": "Professional",
        "description": "Online payments and reporting for growing teams",
        "price": Decimal("49.00"),
        "billing_period": BillingPeriod.monthly,
        "trial_period_days": 30,
        "max_users": 10,
        "max_products": 5000,
        "max_storage_gb": 10,
        "features": {"pos": True, "gateways": True, "reports": True},
        "sort_order": 2,
    },
    {
        "name": "Enterprise",
        "description": "No limits",
        "price": Decimal("990.00"),
        "billing_period": BillingPeriod.yearly,
        "trial_period_days": 30,
        "max_users": None,
        "max_products": None,
        "max_storage_gb": None,
        "features": {"pos": True, "gateways": True, "reports": True, "priority_support": True},
        "sort_order": 3,
    },
]


async def seed_subscription_plans() -> int:
    created = 0
    async with AsyncSessionLocal() as session:
        existing = set((await session.scalars(select(SubscriptionPlan.name))).all())

        for plan in DEFAULT_PLANS:
            if plan["name"] in existing:
                continue
            session.add(SubscriptionPlan(**plan))
            created += 1

        await session.commit()
    return created


if __name__ == "__main__":
    setup_logging()
    count = asyncio.run(seed_subscription_plans())
    logger.info("Subscription plans seeded", extra={"plans_created": count})
