"""Product review operations."""

from typing import Optional

from libs.common.logging import get_logger
from services.store_service.models import Customer, Product, Review
from services.store_service.schemas import ReviewCreate, ReviewUpdate
from services.store_service.services._shared import (
    apply_changes,
    commit_or_raise,
    ensure_exists,
    get_or_raise,
    validated,
)
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_review(
    db: AsyncSession,
    *,
    product_id: int,
    rating: int,
    customer_id: Optional[int] = None,
    title: Optional[str] = None,
    body: Optional[str] = None,
) -> Review:
    """Record a 1-5 star review. Anonymous reviews have no customer."""
    data = validated(
        ReviewCreate,
        entity="Review",
        product_id=product_id,
        customer_id=customer_id,
        rating=rating,
        title=title,
        body=body,
    )
    await ensure_exists(db, Product, product_id, entity="Review", field="product_id")
    await ensure_exists(
        db, Customer, customer_id, entity="Review", field="customer_id"
    )

    review = Review(**data.model_dump())
    db.add(review)
    await commit_or_raise(db, entity="Review")
    await db.refresh(review)

    logger.info(
        "Review %s: product %s rated %d", review.id, product_id, review.rating
    )
    return review


async def get_review(db: AsyncSession, review_id: int) -> Review:
    return await get_or_raise(db, Review, review_id, entity="Review")


async def list_product_reviews(db: AsyncSession, product_id: int) -> list[Review]:
    result = await db.execute(
        select(Review)
        .where(Review.product_id == product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_review(db: AsyncSession, review_id: int, **changes) -> Review:
    data = validated(ReviewUpdate, entity="Review", **changes)
    review = await get_review(db, review_id)
    apply_changes(review, data.model_dump(exclude_unset=True), entity="Review")
    await commit_or_raise(db, entity="Review")
    await db.refresh(review)
    return review


async def delete_review(db: AsyncSession, review_id: int) -> None:
    await get_review(db, review_id)
    await commit_or_raise(
        db,
        entity="Review",
        operation="delete",
        statement=delete(Review).where(Review.id == review_id),
    )

    logger.info("Deleted review %s", review_id)
