from fastapi import Depends

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.enums.user_role import UserRole
from app.models.users.user_models import User
from app.utils.get_user import get_current_user
from app.utils.logger import get_logger

logger = get_logger("auth.roles")

OWNER_ONLY = [UserRole.owner]
OWNER_ADMIN = OWNER_ONLY + [UserRole.admin]
BACK_OFFICE = OWNER_ADMIN + [UserRole.accountant]
ALL_STAFF = BACK_OFFICE + [UserRole.cashier]
SUPER_ADMIN = [UserRole.super_admin]


def require_role(roles: list[UserRole]):
    allowed = {r.value for r in roles}

    async def role_checker(user: User = Depends(get_current_user)):
        if user.role.lower() not in allowed:
            logger.warning(
                "Role not permitted",
                extra={"user_id": user.id, "role": user.role, "allowed": sorted(allowed)},
            )
            raise AppException(403, "Permission denied", ErrorCode.PERMISSION_DENIED)
        return user

    return role_checker
