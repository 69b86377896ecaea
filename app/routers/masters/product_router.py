# app/routers/masters/product_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.masters.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductListData,
)
from app.services.masters.product_service import (
    create_product,
    list_products,
    list_low_stock_products,
    get_product,
    update_product,
    deactivate_product,
)
from app.utils.check_roles import require_role, OWNER_ADMIN, ALL_STAFF
from app.utils.subscription_guard import require_active_subscription
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    dependencies=[Depends(require_active_subscription)],
)
logger = get_logger(__name__)


@router.post(
    "",
    response_model=APIResponse[ProductOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_product_api(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Create product", extra={"sku": payload.sku})
    product = await create_product(db, payload, user)
    return success_response("Product created successfully", product)


@router.get("", response_model=APIResponse[ProductListData])
async def list_products_api(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    data = await list_products(
        db,
        user,
        search=search,
        category=category,
        page=page,
        page_size=page_size,
    )
    return success_response("Products fetched successfully", data)


@router.get("/low-stock", response_model=APIResponse[List[ProductOut]])
async def low_stock_products_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    data = await list_low_stock_products(db, user)
    return success_response("Low stock products fetched successfully", data)


@router.get("/{product_id}", response_model=APIResponse[ProductOut])
async def get_product_api(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(ALL_STAFF)),
):
    product = await get_product(db, product_id, user)
    return success_response("Product fetched successfully", product)


@router.patch("/{product_id}", response_model=APIResponse[ProductOut])
async def update_product_api(
    product_id: int,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Update product", extra={"product_id": product_id})
    product = await update_product(db, product_id, payload, user)
    return success_response("Product updated successfully", product)


@router.delete("/{product_id}", response_model=APIResponse[ProductOut])
async def deactivate_product_api(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(OWNER_ADMIN)),
):
    logger.info("Deactivate product", extra={"product_id": product_id})
    product = await deactivate_product(db, product_id, user)
    return success_response("Product deactivated successfully", product)
