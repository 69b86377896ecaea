# app/routers/masters/customer_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.masters.customer_schema import (
    CustomerCreate,
    CustomerUpdate,
    CustomerOut,
    CustomerListData,
    CustomerFilters,
)
from app.services.masters.customer_service import (
    create_customer,
    get_customer,
    list_customers,
    update_customer,
    deactivate_customer,
)
from app.utils.check_roles import require_role, OWNER_ADMIN, ALL_STAFF
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import success_response, APIResponse
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


@router.post(
    "",
    response_model=APIResponse[CustomerOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_customer_api(
    payload: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info("Create customer", extra={"email": payload.email})
    customer = await create_customer(db, payload, user)
    return success_response("Customer created successfully", customer)


@router.get("/{customer_id}", response_model=APIResponse[CustomerOut])
async def get_customer_api(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info("Get customer", extra={"customer_id": customer_id})
    customer = await get_customer(db, customer_id, user)
    return success_response("Customer fetched successfully", customer)


@router.get("", response_model=APIResponse[CustomerListData])
async def list_customers_api(
    filters: CustomerFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info(
        "List customers",
        extra={"search": filters.search, "page": filters.page, "page_size": filters.page_size},
    )
    data = await list_customers(db, user, filters)
    return success_response("Customers fetched successfully", data)


@router.patch("/{customer_id}", response_model=APIResponse[CustomerOut])
async def update_customer_api(
    customer_id: int,
    payload: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    logger.info("Update customer", extra={"customer_id": customer_id})
    customer = await update_customer(db, customer_id, payload, user)
    return success_response("Customer updated successfully", customer)


@router.delete("/{customer_id}", response_model=APIResponse[CustomerOut])
async def deactivate_customer_api(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Deactivate customer", extra={"customer_id": customer_id})
    customer = await deactivate_customer(db, customer_id, user)
    return success_response("Customer deactivated successfully", customer)
