from datetime import datetime, timezone

from fastapi import Depends

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.companies.company_models import Company
from app.models.enums.subscription_status import SubscriptionStatus
from app.models.users.user_models import User
from app.utils.get_user import get_current_user
from app.utils.logger import get_logger

logger = get_logger("auth.subscription")

USABLE_STATUSES = (SubscriptionStatus.trial, SubscriptionStatus.active)


def as_utc(value: datetime | None) -> datetime | None:
    # sqlite returns naive datetimes
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def effective_status(company: Company, now: datetime | None = None) -> SubscriptionStatus:
    """Stored status, except that a trial past its end date counts as past_due."""
    now = now or datetime.now(timezone.utc)
    trial_ends_at = as_utc(company.trial_ends_at)

    if (
        company.subscription_status == SubscriptionStatus.trial
        and trial_ends_at is not None
        and trial_ends_at < now
    ):
        return SubscriptionStatus.past_due
    return company.subscription_status


async def require_active_subscription(user: User = Depends(get_current_user)) -> User:
    company = user.company
    if company is None:
        # platform super admins
        return user

    status = effective_status(company)
    if status not in USABLE_STATUSES:
        logger.warning(
            "Subscription required",
            extra={"company_id": company.id, "status": status.value},
        )
        raise AppException(
            403,
            "An active subscription is required",
            ErrorCode.SUBSCRIPTION_REQUIRED,
            {"status": status.value},
        )
    return user
