# app/services/masters/customer_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, desc, asc, or_
from sqlalchemy.exc import IntegrityError

from app.models.masters.customer_models import Customer
from app.schemas.masters.customer_schema import (
    CustomerCreate,
    CustomerUpdate,
    CustomerOut,
    CustomerListData,
    CustomerFilters,
)

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.activity_helpers import emit_user_activity
from app.constants.activity_codes import ActivityCode
from app.utils.logger import get_logger
from app.utils.response import total_pages

logger = get_logger(__name__)


def _map_customer(customer: Customer) -> CustomerOut:
    return CustomerOut(
        id=customer.id,
        name=customer.name,
        email=customer.email,
        phone=customer.phone,
        address=customer.address,
        tax_id=customer.tax_id,
        notes=customer.notes,
        is_active=customer.is_active,
        version=customer.version,

        created_by=customer.created_by_id,
        updated_by=customer.updated_by_id,

        created_by_name=(
            customer.created_by.username
            if getattr(customer, "created_by", None)
            else None
        ),
        updated_by_name=(
            customer.updated_by.username
            if getattr(customer, "updated_by", None)
            else None
        ),

        created_at=customer.created_at,
        updated_at=customer.updated_at,
    )


async def _get_active_customer(db: AsyncSession, company_id: int, customer_id: int) -> Customer:
    customer = await db.scalar(
        select(Customer).where(
            Customer.id == customer_id,
            Customer.company_id == company_id,
            Customer.is_deleted.is_(False),
        )
    )
    if not customer or not customer.is_active:
        raise AppException(
            404,
            "Customer not found",
            ErrorCode.CUSTOMER_NOT_FOUND,
        )
    return customer


async def _email_taken(db: AsyncSession, company_id: int, email: str, exclude_id: int | None = None) -> bool:
    stmt = select(Customer.id).where(
        Customer.company_id == company_id,
        Customer.email == email,
    )
    if exclude_id is not None:
        stmt = stmt.where(Customer.id != exclude_id)
    return (await db.scalar(stmt)) is not None


# =========================
# CREATE
# =========================
async def create_customer(db: AsyncSession, payload: CustomerCreate, user):
    if await _email_taken(db, user.company_id, payload.email):
        raise AppException(
            400,
            "Customer already exists",
            ErrorCode.CUSTOMER_EMAIL_EXISTS,
        )

    customer = Customer(
        company_id=user.company_id,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        address=payload.address,
        tax_id=payload.tax_id,
        notes=payload.notes,
        created_by_id=user.id,
        updated_by_id=user.id,
    )

    db.add(customer)

    try:
        await db.flush()
    except IntegrityError:
        # concurrent insert with the same email
        raise AppException(
            409,
            "Customer already exists",
            ErrorCode.CUSTOMER_EMAIL_EXISTS,
        )

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_CUSTOMER,
        target_name=customer.name,
    )

    await db.commit()
    await db.refresh(customer)

    return _map_customer(customer)


# =========================
# GET
# =========================
async def get_customer(db: AsyncSession, customer_id: int, user):
    customer = await _get_active_customer(db, user.company_id, customer_id)
    return _map_customer(customer)


# =========================
# LIST
# =========================
SORT_FIELDS = {
    "created_at": Customer.created_at,
    "name": Customer.name,
    "email": Customer.email,
}


async def list_customers(
    db: AsyncSession,
    user,
    filters: CustomerFilters,
) -> CustomerListData:
    conditions = [
        Customer.company_id == user.company_id,
        Customer.is_deleted.is_(False),
    ]

    if filters.search:
        term = f"%{filters.search}%"
        conditions.append(
            or_(Customer.name.ilike(term), Customer.email.ilike(term), Customer.phone.ilike(term))
        )
    if filters.name:
        conditions.append(Customer.name.ilike(f"%{filters.name}%"))
    if filters.email:
        conditions.append(Customer.email.ilike(f"%{filters.email}%"))
    if filters.phone:
        conditions.append(Customer.phone.ilike(f"%{filters.phone}%"))
    if filters.is_active is not None:
        conditions.append(Customer.is_active.is_(filters.is_active))

    order_fn = desc if filters.sort_order == "desc" else asc
    total = await db.scalar(select(func.count(Customer.id)).where(*conditions)) or 0

    result = await db.execute(
        select(Customer)
        .where(*conditions)
        .order_by(order_fn(SORT_FIELDS[filters.sort_by]), order_fn(Customer.id))
        .offset((filters.page - 1) * filters.page_size)
        .limit(filters.page_size)
    )

    return CustomerListData(
        total=total,
        page=filters.page,
        page_size=filters.page_size,
        total_pages=total_pages(total, filters.page_size),
        items=[_map_customer(c) for c in result.unique().scalars().all()],
    )


# =========================
# UPDATE (OPTIMISTIC)
# =========================
async def update_customer(
    db: AsyncSession,
    customer_id: int,
    payload: CustomerUpdate,
    user,
):
    # ---------------------------------
    # FETCH CURRENT STATE (FOR AUDIT)
    # ---------------------------------
    current = await _get_active_customer(db, user.company_id, customer_id)

    changes: list[str] = []

    if payload.name is not None and payload.name != current.name:
        changes.append(f"name: '{current.name}' → '{payload.name}'")

    if payload.email is not None and payload.email != current.email:
        if await _email_taken(db, user.company_id, payload.email, exclude_id=current.id):
            raise AppException(
                400,
                "Another customer already uses this email",
                ErrorCode.CUSTOMER_EMAIL_EXISTS,
            )
        changes.append(f"email: '{current.email}' → '{payload.email}'")

    if payload.tax_id is not None and payload.tax_id != current.tax_id:
        changes.append(f"tax_id: '{current.tax_id}' → '{payload.tax_id}'")

    if payload.phone is not None and payload.phone != current.phone:
        old_phone = current.phone[-4:] if current.phone else "None"
        new_phone = payload.phone[-4:]
        changes.append(f"phone: ****{old_phone} → ****{new_phone}")

    if payload.address is not None:
        old_address = current.address or {}
        new_address = payload.address

        changed_fields = [
            key
            for key in new_address
            if new_address.get(key) != old_address.get(key)
        ]

        if changed_fields:
            changes.append(
                f"address fields updated: {', '.join(changed_fields)}"
            )

    if payload.notes is not None and payload.notes != current.notes:
        changes.append("notes updated")

    if payload.is_active is not None and payload.is_active != current.is_active:
        changes.append(
            "activated" if payload.is_active else "deactivated"
        )

    if not changes:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    # ---------------------------------
    # OPTIMISTIC UPDATE
    # ---------------------------------
    stmt = (
        update(Customer)
        .where(
            Customer.id == customer_id,
            Customer.company_id == user.company_id,
            Customer.version == payload.version,
            Customer.is_active.is_(True),
        )
        .values(
            **payload.model_dump(exclude_unset=True, exclude={"version"}),
            updated_by_id=user.id,
            version=Customer.version + 1,
        )
        .returning(Customer.id)
    )

    result = await db.execute(stmt)
    updated_id = result.scalar_one_or_none()

    if not updated_id:
        raise AppException(
            409,
            "Customer was modified by another process",
            ErrorCode.CUSTOMER_VERSION_CONFLICT,
        )

    # ---------------------------------
    # ACTIVITY LOG (REQUIRED CONTEXT)
    # ---------------------------------
    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_CUSTOMER,
        target_name=payload.name or current.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(current)
    return _map_customer(current)


# =========================
# DEACTIVATE
# =========================
async def deactivate_customer(db: AsyncSession, customer_id: int, user):
    customer = await _get_active_customer(db, user.company_id, customer_id)

    customer.is_active = False
    customer.updated_by_id = user.id
    customer.version += 1

    await emit_user_activity(
        db,
        user,
        ActivityCode.DEACTIVATE_CUSTOMER,
        target_name=customer.name,
    )

    await db.commit()
    await db.refresh(customer)
    return _map_customer(customer)
