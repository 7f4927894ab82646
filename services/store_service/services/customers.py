"""Customer, profile and address operations."""

from datetime import date
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import DeletionBlocked, NotFound
from services.store_service.models import (
    Address,
    Customer,
    CustomerProfile,
    Gender,
    Order,
)
from services.store_service.schemas import (
    AddressCreate,
    AddressUpdate,
    CustomerCreate,
    CustomerUpdate,
    ProfileCreate,
    ProfileUpdate,
)
from services.store_service.services._shared import (
    apply_changes,
    commit_or_raise,
    ensure_exists,
    get_or_raise,
    reject,
    validated,
)
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


async def create_customer(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str] = None,
) -> Customer:
    data = validated(
        CustomerCreate,
        entity="Customer",
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
    )
    customer = Customer(**data.model_dump())
    db.add(customer)
    await commit_or_raise(db, entity="Customer")
    await db.refresh(customer)

    logger.info("Created customer %s (%s)", customer.id, customer.email)
    return customer


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    return await get_or_raise(db, Customer, customer_id, entity="Customer")


async def list_customers(
    db: AsyncSession, *, skip: int = 0, limit: int = 100
) -> list[Customer]:
    result = await db.execute(
        select(Customer)
        .order_by(Customer.id)
        .offset(skip)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_customer(db: AsyncSession, customer_id: int, **changes) -> Customer:
    data = validated(CustomerUpdate, entity="Customer", **changes)
    customer = await get_customer(db, customer_id)
    apply_changes(customer, data.model_dump(exclude_unset=True), entity="Customer")
    await commit_or_raise(db, entity="Customer")
    await db.refresh(customer)

    logger.info("Updated customer %s", customer_id)
    return customer


async def delete_customer(db: AsyncSession, customer_id: int) -> None:
    """Delete a customer together with their profile and addresses.

    Reviews they wrote are kept with ``customer_id`` cleared. A customer who
    has placed orders cannot be deleted.
    """
    await get_customer(db, customer_id)

    order_count = await db.scalar(
        select(func.count(Order.id)).where(Order.customer_id == customer_id)
    )
    if order_count:
        await db.rollback()
        raise reject(
            DeletionBlocked(
                f"Customer {customer_id} has {order_count} order(s)",
                entity="Customer",
                identifier=customer_id,
                field="orders",
            )
        )

    await commit_or_raise(
        db,
        entity="Customer",
        operation="delete",
        statement=delete(Customer).where(Customer.id == customer_id),
    )

    logger.info("Deleted customer %s", customer_id)


# ---------------------------------------------------------------------------
# Profiles (one per customer, addressed by customer id)
# ---------------------------------------------------------------------------


async def create_profile(
    db: AsyncSession,
    *,
    customer_id: int,
    date_of_birth: Optional[date] = None,
    gender: Gender = Gender.OTHER,
    loyalty_points: int = 0,
    avatar_url: Optional[str] = None,
) -> CustomerProfile:
    data = validated(
        ProfileCreate,
        entity="CustomerProfile",
        date_of_birth=date_of_birth,
        gender=gender,
        loyalty_points=loyalty_points,
        avatar_url=avatar_url,
    )
    await ensure_exists(
        db, Customer, customer_id, entity="CustomerProfile", field="customer_id"
    )

    profile = CustomerProfile(customer_id=customer_id, **data.model_dump())
    db.add(profile)
    await commit_or_raise(db, entity="CustomerProfile")
    await db.refresh(profile)

    logger.info("Created profile for customer %s", customer_id)
    return profile


async def get_profile(db: AsyncSession, customer_id: int) -> CustomerProfile:
    result = await db.execute(
        select(CustomerProfile)
        .where(CustomerProfile.customer_id == customer_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFound(
            f"Profile for customer {customer_id} not found",
            entity="CustomerProfile",
            identifier=customer_id,
        )
    return profile


async def update_profile(
    db: AsyncSession, customer_id: int, **changes
) -> CustomerProfile:
    data = validated(ProfileUpdate, entity="CustomerProfile", **changes)
    profile = await get_profile(db, customer_id)
    apply_changes(
        profile, data.model_dump(exclude_unset=True), entity="CustomerProfile"
    )
    await commit_or_raise(db, entity="CustomerProfile")
    await db.refresh(profile)
    return profile


async def delete_profile(db: AsyncSession, customer_id: int) -> None:
    await get_profile(db, customer_id)
    await commit_or_raise(
        db,
        entity="CustomerProfile",
        operation="delete",
        statement=delete(CustomerProfile).where(
            CustomerProfile.customer_id == customer_id
        ),
    )

    logger.info("Deleted profile for customer %s", customer_id)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


async def create_address(
    db: AsyncSession,
    *,
    customer_id: int,
    street: str,
    city: str,
    country: str,
    label: str = "home",
    state: Optional[str] = None,
    postal_code: Optional[str] = None,
    is_default: bool = False,
) -> Address:
    data = validated(
        AddressCreate,
        entity="Address",
        label=label,
        street=street,
        city=city,
        state=state,
        postal_code=postal_code,
        country=country,
        is_default=is_default,
    )
    await ensure_exists(
        db, Customer, customer_id, entity="Address", field="customer_id"
    )

    address = Address(customer_id=customer_id, **data.model_dump())
    db.add(address)
    await commit_or_raise(db, entity="Address")
    await db.refresh(address)

    logger.info("Created %s address %s for customer %s", label, address.id, customer_id)
    return address


async def get_address(db: AsyncSession, address_id: int) -> Address:
    return await get_or_raise(db, Address, address_id, entity="Address")


async def list_addresses(db: AsyncSession, customer_id: int) -> list[Address]:
    result = await db.execute(
        select(Address)
        .where(Address.customer_id == customer_id)
        .order_by(Address.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_address(db: AsyncSession, address_id: int, **changes) -> Address:
    data = validated(AddressUpdate, entity="Address", **changes)
    address = await get_address(db, address_id)
    apply_changes(address, data.model_dump(exclude_unset=True), entity="Address")
    await commit_or_raise(db, entity="Address")
    await db.refresh(address)
    return address


async def delete_address(db: AsyncSession, address_id: int) -> None:
    """Delete an address; orders shipping or billing to it keep a null reference."""
    await get_address(db, address_id)
    await commit_or_raise(
        db,
        entity="Address",
        operation="delete",
        statement=delete(Address).where(Address.id == address_id),
    )

    logger.info("Deleted address %s", address_id)
