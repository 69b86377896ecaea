from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, or_
from sqlalchemy.exc import IntegrityError

from app.models.masters.product_models import Product
from app.schemas.masters.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductListData,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.plan_limits import ensure_product_capacity
from app.utils.decimal_utils import to_decimal
from app.utils.logger import get_logger

logger = get_logger(__name__)

MONEY_FIELDS = {"price", "cost", "tax_rate"}


# =====================================================
# MAPPER
# =====================================================
def _map_product(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        sku=product.sku,
        barcode=product.barcode,
        name=product.name,
        category=product.category,
        description=product.description,
        unit=product.unit,
        price=product.price,
        cost=product.cost,
        tax_rate=product.tax_rate,
        track_inventory=product.track_inventory,
        stock_quantity=product.stock_quantity,
        low_stock_threshold=product.low_stock_threshold,
        is_low_stock=product.is_low_stock,
        version=product.version,
        created_by_name=product.created_by_username,
        updated_by_name=product.updated_by_username,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


async def _get_product(db: AsyncSession, company_id: int, product_id: int) -> Product:
    product = await db.scalar(
        select(Product).where(
            Product.id == product_id,
            Product.company_id == company_id,
            Product.is_deleted.is_(False),
        )
    )
    if not product:
        raise AppException(404, "Product not found", ErrorCode.PRODUCT_NOT_FOUND)
    return product


# =====================================================
# CREATE
# =====================================================
async def create_product(db: AsyncSession, payload: ProductCreate, user) -> ProductOut:
    logger.info("Create product", extra={"sku": payload.sku})

    await ensure_product_capacity(db, user.company)

    exists = await db.scalar(
        select(Product.id).where(
            Product.company_id == user.company_id,
            Product.sku == payload.sku,
        )
    )
    if exists:
        raise AppException(400, "SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    data = payload.model_dump()
    for field in MONEY_FIELDS:
        if data.get(field) is not None:
            data[field] = to_decimal(data[field])

    product = Product(
        **data,
        company_id=user.company_id,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(product)

    try:
        await db.flush()
    except IntegrityError:
        raise AppException(409, "SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_PRODUCT,
        target_name=product.name,
        sku=product.sku,
    )

    await db.commit()
    await db.refresh(product)
    return _map_product(product)


# =====================================================
# GET / LIST
# =====================================================
async def get_product(db: AsyncSession, product_id: int, user) -> ProductOut:
    return _map_product(await _get_product(db, user.company_id, product_id))


async def list_products(
    db: AsyncSession,
    user,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> ProductListData:
    conditions = [
        Product.company_id == user.company_id,
        Product.is_deleted.is_(False),
    ]
    if search:
        conditions.append(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.sku.ilike(f"%{search}%"),
                Product.barcode.ilike(f"%{search}%"),
            )
        )
    if category:
        conditions.append(Product.category == category)

    total = await db.scalar(select(func.count(Product.id)).where(*conditions))
    result = await db.execute(
        select(Product)
        .where(*conditions)
        .order_by(Product.name, Product.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return ProductListData(
        total=total or 0,
        items=[_map_product(p) for p in result.unique().scalars().all()],
    )


async def list_low_stock_products(db: AsyncSession, user) -> list[ProductOut]:
    result = await db.execute(
        select(Product)
        .where(
            Product.company_id == user.company_id,
            Product.is_deleted.is_(False),
            Product.track_inventory.is_(True),
            Product.stock_quantity <= Product.low_stock_threshold,
        )
        .order_by(Product.stock_quantity, Product.name)
    )
    return [_map_product(p) for p in result.unique().scalars().all()]


# =====================================================
# UPDATE (OPTIMISTIC)
# =====================================================
async def update_product(
    db: AsyncSession,
    product_id: int,
    payload: ProductUpdate,
    user,
) -> ProductOut:
    product = await _get_product(db, user.company_id, product_id)

    if product.version != payload.version:
        raise AppException(
            409,
            "Product was modified by another process",
            ErrorCode.PRODUCT_VERSION_CONFLICT,
        )

    changes: list[str] = []
    for field, value in payload.model_dump(exclude_unset=True, exclude={"version"}).items():
        if field in MONEY_FIELDS and value is not None:
            value = to_decimal(value)
        if getattr(product, field) != value:
            changes.append(f"{field}: '{getattr(product, field)}' → '{value}'")
            setattr(product, field, value)

    if not changes:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    product.version += 1
    product.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_PRODUCT,
        target_name=product.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(product)
    return _map_product(product)


# =====================================================
# DELETE (SOFT)
# =====================================================
async def deactivate_product(db: AsyncSession, product_id: int, user) -> ProductOut:
    product = await _get_product(db, user.company_id, product_id)

    product.is_deleted = True
    product.version += 1
    product.updated_by_id = user.id

    await emit_user_activity(
        db,
        user,
        ActivityCode.DEACTIVATE_PRODUCT,
        target_name=product.name,
    )

    await db.commit()
    await db.refresh(product)
    return _map_product(product)
