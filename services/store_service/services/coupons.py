"""Coupon operations. Attaching coupons to orders lives in ``orders``."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import NotFound
from services.store_service.models import Coupon, DiscountType
from services.store_service.schemas import CouponCreate, CouponUpdate
from services.store_service.services._shared import (
    apply_changes,
    commit_or_raise,
    get_or_raise,
    validated,
)
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_coupon(
    db: AsyncSession,
    *,
    code: str,
    discount_type: DiscountType,
    discount_value: Decimal,
    description: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    active: bool = True,
) -> Coupon:
    data = validated(
        CouponCreate,
        entity="Coupon",
        code=code,
        description=description,
        discount_type=discount_type,
        discount_value=discount_value,
        expires_at=expires_at,
        active=active,
    )
    coupon = Coupon(**data.model_dump())
    db.add(coupon)
    await commit_or_raise(db, entity="Coupon")
    await db.refresh(coupon)

    logger.info(
        "Created coupon %s (%s %s)",
        coupon.code,
        coupon.discount_value,
        coupon.discount_type.value,
    )
    return coupon


async def get_coupon(db: AsyncSession, coupon_id: int) -> Coupon:
    return await get_or_raise(db, Coupon, coupon_id, entity="Coupon")


async def get_coupon_by_code(db: AsyncSession, code: str) -> Coupon:
    result = await db.execute(
        select(Coupon)
        .where(Coupon.code == code)
        .execution_options(populate_existing=True)
    )
    coupon = result.scalar_one_or_none()
    if coupon is None:
        raise NotFound(f"Coupon {code} not found", entity="Coupon", identifier=code)
    return coupon


async def update_coupon(db: AsyncSession, coupon_id: int, **changes) -> Coupon:
    data = validated(CouponUpdate, entity="Coupon", **changes)
    coupon = await get_coupon(db, coupon_id)
    apply_changes(coupon, data.model_dump(exclude_unset=True), entity="Coupon")
    await commit_or_raise(db, entity="Coupon")
    await db.refresh(coupon)
    return coupon


async def delete_coupon(db: AsyncSession, coupon_id: int) -> None:
    """Delete a coupon; it is detached from every order it was applied to."""
    await get_coupon(db, coupon_id)
    await commit_or_raise(
        db,
        entity="Coupon",
        operation="delete",
        statement=delete(Coupon).where(Coupon.id == coupon_id),
    )

    logger.info("Deleted coupon %s", coupon_id)
