"""Seed script for store sample data.

Creates three customers with profiles and addresses, two suppliers, three
categories, three products with stock, two orders (with items, payments and a
coupon) and two reviews, so the order summary has something to show.

Usage:
    python -m services.store_service.seed_store_data
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

from libs.common.datetime_utils import utc_now
from libs.common.logging import configure_logging, get_logger
from services.store_service.models import (
    Customer,
    DiscountType,
    Gender,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.store_service.services import (
    catalog,
    coupons,
    customers,
    orders,
    reviews,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def seed_store_data(db: AsyncSession) -> bool:
    """Insert the sample rows. Returns False when customers already exist."""
    count = await db.scalar(select(func.count(Customer.id)))
    if count:
        logger.info("Store data already exists (%d customers). Skipping seed.", count)
        return False

    # =========================================================================
    # 1. CUSTOMERS, PROFILES & ADDRESSES
    # =========================================================================
    alice = await customers.create_customer(
        db,
        first_name="Alice",
        last_name="Wanjiru",
        email="alice@example.com",
        phone="0712345678",
    )
    brian = await customers.create_customer(
        db,
        first_name="Brian",
        last_name="Otieno",
        email="brian@example.com",
        phone="0722334455",
    )
    await customers.create_customer(
        db,
        first_name="Cynthia",
        last_name="Mwangi",
        email="cynthia@example.com",
        phone="0733445566",
    )

    await customers.create_profile(
        db,
        customer_id=alice.id,
        date_of_birth=date(1995, 4, 12),
        gender=Gender.FEMALE,
        loyalty_points=100,
        avatar_url="https://example.com/avatars/alice.png",
    )
    await customers.create_profile(
        db,
        customer_id=brian.id,
        date_of_birth=date(1992, 8, 22),
        gender=Gender.MALE,
        loyalty_points=50,
        avatar_url="https://example.com/avatars/brian.png",
    )

    alice_home = await customers.create_address(
        db,
        customer_id=alice.id,
        label="home",
        street="123 Kenyatta Ave",
        city="Nairobi",
        state="Nairobi",
        postal_code="00100",
        country="Kenya",
        is_default=True,
    )
    await customers.create_address(
        db,
        customer_id=alice.id,
        label="work",
        street="456 Moi Ave",
        city="Nairobi",
        state="Nairobi",
        postal_code="00100",
        country="Kenya",
    )
    brian_home = await customers.create_address(
        db,
        customer_id=brian.id,
        label="home",
        street="789 Koinange St",
        city="Kisumu",
        state="Kisumu",
        postal_code="40100",
        country="Kenya",
        is_default=True,
    )

    # =========================================================================
    # 2. SUPPLIERS & CATEGORIES
    # =========================================================================
    tech_world = await catalog.create_supplier(
        db,
        name="Tech World Ltd",
        contact_email="sales@techworld.com",
        phone="0700001111",
    )
    fashion_hub = await catalog.create_supplier(
        db,
        name="Fashion Hub",
        contact_email="info@fashionhub.com",
        phone="0700002222",
    )

    electronics = await catalog.create_category(
        db, name="Electronics", description="Phones, laptops, and gadgets"
    )
    clothing = await catalog.create_category(
        db, name="Clothing", description="Men and Women apparel"
    )
    await catalog.create_category(
        db, name="Accessories", description="Bags, belts, watches"
    )

    # =========================================================================
    # 3. PRODUCTS & INVENTORY
    # =========================================================================
    iphone = await catalog.create_product(
        db,
        supplier_id=tech_world.id,
        sku="SKU001",
        name="iPhone 14",
        description="Latest Apple iPhone",
        price=Decimal("120000"),
        weight_kg=Decimal("0.180"),
        initial_quantity=10,
        reorder_level=2,
    )
    laptop = await catalog.create_product(
        db,
        supplier_id=tech_world.id,
        sku="SKU002",
        name="HP Laptop",
        description="Core i7, 16GB RAM",
        price=Decimal("85000"),
        weight_kg=Decimal("2.200"),
        initial_quantity=5,
        reorder_level=2,
    )
    jacket = await catalog.create_product(
        db,
        supplier_id=fashion_hub.id,
        sku="SKU003",
        name="Denim Jacket",
        description="Blue unisex jacket",
        price=Decimal("4500"),
        weight_kg=Decimal("1.200"),
        initial_quantity=30,
        reorder_level=5,
    )

    restocked_at = utc_now()
    for product in (iphone, laptop, jacket):
        await catalog.update_inventory(db, product.id, last_restock=restocked_at)

    await catalog.add_product_to_category(
        db, product_id=iphone.id, category_id=electronics.id
    )
    await catalog.add_product_to_category(
        db, product_id=laptop.id, category_id=electronics.id
    )
    await catalog.add_product_to_category(
        db, product_id=jacket.id, category_id=clothing.id
    )

    # =========================================================================
    # 4. ORDERS, ITEMS & PAYMENTS
    # =========================================================================
    alice_order = await orders.create_order(
        db,
        customer_id=alice.id,
        shipping_address_id=alice_home.id,
        billing_address_id=alice_home.id,
        order_status=OrderStatus.PROCESSING,
        total_amount=Decimal("124500"),
    )
    brian_order = await orders.create_order(
        db,
        customer_id=brian.id,
        shipping_address_id=brian_home.id,
        billing_address_id=brian_home.id,
        order_status=OrderStatus.PENDING,
        total_amount=Decimal("4500"),
    )

    await orders.add_order_item(
        db,
        order_id=alice_order.id,
        product_id=iphone.id,
        quantity=1,
        unit_price=Decimal("120000"),
    )
    await orders.add_order_item(
        db,
        order_id=alice_order.id,
        product_id=jacket.id,
        quantity=1,
        unit_price=Decimal("4500"),
    )
    await orders.add_order_item(
        db,
        order_id=brian_order.id,
        product_id=jacket.id,
        quantity=1,
        unit_price=Decimal("4500"),
    )

    await orders.create_payment(
        db,
        order_id=alice_order.id,
        payment_method=PaymentMethod.MPESA,
        amount=Decimal("124500"),
        status=PaymentStatus.COMPLETED,
        transaction_reference="MPESA12345",
    )
    await orders.create_payment(
        db,
        order_id=brian_order.id,
        payment_method=PaymentMethod.CARD,
        amount=Decimal("4500"),
        status=PaymentStatus.PENDING,
        transaction_reference="CARD98765",
    )

    # =========================================================================
    # 5. REVIEWS & COUPONS
    # =========================================================================
    await reviews.create_review(
        db,
        product_id=iphone.id,
        customer_id=alice.id,
        rating=5,
        title="Best iPhone Ever!",
        body="Totally worth the price. Camera is 🔥🔥",
    )
    await reviews.create_review(
        db,
        product_id=jacket.id,
        customer_id=brian.id,
        rating=4,
        title="Nice Jacket",
        body="Fits well, quality is good.",
    )

    welcome = await coupons.create_coupon(
        db,
        code="WELCOME10",
        description="10% off for first order",
        discount_type=DiscountType.PERCENT,
        discount_value=Decimal("10.00"),
        expires_at=datetime(2025, 12, 31, tzinfo=timezone.utc),
    )
    await coupons.create_coupon(
        db,
        code="FREESHIP",
        description="Free shipping coupon",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("500.00"),
        expires_at=datetime(2025, 6, 30, tzinfo=timezone.utc),
    )
    await orders.apply_coupon(db, order_id=alice_order.id, coupon_id=welcome.id)

    logger.info("Store sample data seeded")
    return True


async def main() -> None:
    from libs.db.config import AsyncSessionLocal, engine
    from libs.db.session import init_models

    configure_logging()
    await init_models(engine)
    async with AsyncSessionLocal() as db:
        await seed_store_data(db)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
