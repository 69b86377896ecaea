from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.auth.auth_schemas import (
    LoginRequest,
    RegisterRequest,
    AuthData,
    MeOut,
)
from app.services.auth.auth_service import (
    register_company,
    login_user,
    logout_user,
    build_me,
)
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=APIResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Register attempt", extra={"email": payload.email})

    data = await register_company(db, payload)

    return success_response("Company registered successfully", data)


@router.post("/login", response_model=APIResponse[AuthData])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"email": payload.email})

    data = await login_user(db, payload.email, payload.password)

    return success_response("Login successful", data)


@router.post("/logout")
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info(
        "Logout request",
        extra={"user_id": current_user.id, "email": current_user.username},
    )

    await logout_user(db, current_user)

    return success_response("Logged out successfully")


@router.get("/me", response_model=APIResponse[MeOut])
async def me(current_user=Depends(get_current_user)):
    return success_response("Current user", build_me(current_user))
