from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.db import get_db
from app.core.security import decode_access_token
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.users.user_models import User
from app.models.enums.subscription_status import SubscriptionStatus
from app.utils.logger import get_logger

logger = get_logger("auth.guard")

BEARER_PREFIX = "Bearer "


def _bearer_token(authorization: str) -> str:
    if not authorization.startswith(BEARER_PREFIX):
        logger.warning("Missing bearer token")
        raise AppException(401, "Invalid authorization header", ErrorCode.UNAUTHORIZED)

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AppException(401, "Invalid authorization header", ErrorCode.UNAUTHORIZED)
    return token


async def get_current_user(
    request: Request,
    authorization: str = Header(...),
    db: AsyncSession = Depends(get_db),
) -> User:
    claims = decode_access_token(_bearer_token(authorization))
    username = claims["sub"]

    user = (
        await db.execute(select(User).where(User.username == username))
    ).scalars().first()

    if not user:
        logger.warning("Token user not found", extra={"username": username})
        raise AppException(401, "User not found", ErrorCode.UNAUTHORIZED)

    if not user.is_active:
        logger.warning("Inactive user access blocked", extra={"user_id": user.id})
        raise AppException(403, "User account is inactive", ErrorCode.USER_INACTIVE)

    # logout bumps token_version; a tenant move changes company_id
    if user.token_version != claims.get("token_version") or user.company_id != claims.get("company_id"):
        logger.warning("Stale token", extra={"user_id": user.id})
        raise AppException(401, "Session expired", ErrorCode.SESSION_EXPIRED)

    company = user.company
    if company is not None:
        if not company.is_active:
            raise AppException(403, "Company account is inactive", ErrorCode.PERMISSION_DENIED)
        if company.subscription_status == SubscriptionStatus.suspended:
            logger.warning("Suspended company access blocked", extra={"company_id": company.id})
            raise AppException(403, "Subscription suspended", ErrorCode.SUBSCRIPTION_SUSPENDED)

    request.state.user = user
    return user
