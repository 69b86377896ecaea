# python -m app.scripts.create_admin
import asyncio
import os

from sqlalchemy import select

from app.core.config import IS_PRODUCTION
from app.core.db import AsyncSessionLocal
from app.core.logging import setup_logging
from app.core.security import hash_password
from app.models.users.user_models import User
from app.models.enums.user_role import UserRole
from app.utils.logger import get_logger

logger = get_logger("scripts.create_admin")

DEFAULT_ADMIN_EMAIL = "admin@bolibooks.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


async def create_admin() -> bool:
    """Create the platform super admin. Returns False when it already exists."""
    username = os.getenv("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL)
    password = os.getenv("ADMIN_PASSWORD")

    if not password:
        if IS_PRODUCTION:
            raise ValueError("ADMIN_PASSWORD must be set in production")
        password = DEFAULT_ADMIN_PASSWORD

    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(User).where(User.username == username))
        if existing:
            logger.info("Super admin already exists", extra={"username": username})
            return False

        # super admins belong to no company
        session.add(
            User(
                username=username,
                password_hash=hash_password(password),
                role=UserRole.super_admin.value,
                company_id=None,
                is_active=True,
            )
        )
        await session.commit()

    logger.info("Super admin created", extra={"username": username})
    return True


if __name__ == "__main__":
    setup_logging()
    asyncio.run(create_admin())
