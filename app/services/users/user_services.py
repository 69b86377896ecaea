from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.users.user_models import User
from app.schemas.users.user_schemas import (
    UserCreateSchema,
    UserDetailSchema,
    UserListData,
)
from app.core.security import hash_password
from app.utils.activity_helpers import emit_user_activity
from app.utils.plan_limits import ensure_user_capacity
from app.constants.activity_codes import ActivityCode
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.logger import get_logger

logger = get_logger(__name__)


# =========================
# CREATE USER
# =========================
async def create_user(db: AsyncSession, payload: UserCreateSchema, admin: User):
    exists = await db.scalar(select(User.id).where(User.username == payload.email))
    if exists:
        raise AppException(400, "User already exists", ErrorCode.USER_EMAIL_EXISTS)

    await ensure_user_capacity(db, admin.company)

    user = User(
        company_id=admin.company_id,
        username=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=hash_password(payload.password),
        role=payload.role,
        created_by_admin_id=admin.id,
    )

    db.add(user)
    await db.flush()

    await emit_user_activity(
        db,
        admin,
        ActivityCode.CREATE_USER,
        target_email=user.username,
        target_role=user.role.capitalize(),
    )

    await db.commit()
    await db.refresh(user)

    logger.info("User created", extra={"user_id": user.id, "company_id": user.company_id})
    return UserDetailSchema.model_validate(user)


# =========================
# LIST USERS
# =========================
async def list_users(
    db: AsyncSession,
    admin: User,
    *,
    is_active: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> UserListData:
    base_stmt = select(User).where(User.company_id == admin.company_id)

    if is_active is not None:
        base_stmt = base_stmt.where(User.is_active == is_active)

    total = await db.scalar(
        select(func.count()).select_from(base_stmt.subquery())
    )

    result = await db.execute(
        base_stmt
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return UserListData(
        total=total or 0,
        items=[UserDetailSchema.model_validate(u) for u in result.scalars().all()],
    )


# =========================
# DEACTIVATE
# =========================
async def deactivate_user(db: AsyncSession, user_id: int, admin: User):
    user = await db.scalar(
        select(User).where(
            User.id == user_id,
            User.company_id == admin.company_id,
        )
    )
    if not user:
        raise AppException(404, "User not found", ErrorCode.USER_NOT_FOUND)

    if user.id == admin.id:
        raise AppException(400, "You cannot deactivate yourself", ErrorCode.VALIDATION_ERROR)

    if user.role == "owner":
        raise AppException(403, "The company owner cannot be deactivated", ErrorCode.PERMISSION_DENIED)

    if not user.is_active:
        raise AppException(400, "User is already inactive", ErrorCode.VALIDATION_ERROR)

    user.is_active = False
    user.token_version += 1
    user.version += 1

    await emit_user_activity(
        db,
        admin,
        ActivityCode.DEACTIVATE_USER,
        target_email=user.username,
    )

    await db.commit()
    await db.refresh(user)

    logger.info("User deactivated", extra={"user_id": user.id})
    return UserDetailSchema.model_validate(user)
