"""Integration tests for the store sample data."""

from decimal import Decimal

import pytest
from services.store_service.models import OrderStatus, PaymentStatus
from services.store_service.seed_store_data import seed_store_data
from services.store_service.services.catalog import (
    get_inventory,
    get_product_by_sku,
    list_product_categories,
)
from services.store_service.services.customers import (
    get_profile,
    list_addresses,
    list_customers,
)
from services.store_service.services.orders import (
    calculate_items_total,
    list_order_coupons,
    list_order_items,
    list_order_summaries,
)
from services.store_service.services.reviews import list_product_reviews
from sqlalchemy import select


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seed_creates_sample_store(db_session):
    assert await seed_store_data(db_session) is True

    customers = await list_customers(db_session)
    assert [c.email for c in customers] == [
        "alice@example.com",
        "brian@example.com",
        "cynthia@example.com",
    ]
    alice, brian, _ = customers
    assert (await get_profile(db_session, alice.id)).loyalty_points == 100
    assert [a.label for a in await list_addresses(db_session, alice.id)] == [
        "home",
        "work",
    ]

    iphone = await get_product_by_sku(db_session, "SKU001")
    assert iphone.price == Decimal("120000")
    assert (await get_inventory(db_session, iphone.id)).quantity == 10
    assert [c.name for c in await list_product_categories(db_session, iphone.id)] == [
        "Electronics"
    ]
    assert [r.rating for r in await list_product_reviews(db_session, iphone.id)] == [5]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seeded_orders_match_sample_totals(db_session):
    await seed_store_data(db_session)
    alice = (await list_customers(db_session))[0]

    (summary,) = await list_order_summaries(db_session, customer_id=alice.id)

    assert summary.customer_name == "Alice Wanjiru"
    assert summary.order_status == OrderStatus.PROCESSING
    assert summary.item_count == 2
    assert summary.total_amount == Decimal("124500")
    assert await calculate_items_total(db_session, summary.order_id) == Decimal(
        "124500.00"
    )

    items = await list_order_items(db_session, summary.order_id)
    assert sorted(i.line_total for i in items) == [Decimal("4500"), Decimal("120000")]

    coupons = await list_order_coupons(db_session, summary.order_id)
    assert [c.code for c in coupons] == ["WELCOME10"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seeded_payments(db_session):
    from services.store_service.models import Payment

    await seed_store_data(db_session)

    result = await db_session.execute(select(Payment).order_by(Payment.id))
    payments = result.scalars().all()

    assert [(p.transaction_reference, p.status) for p in payments] == [
        ("MPESA12345", PaymentStatus.COMPLETED),
        ("CARD98765", PaymentStatus.PENDING),
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seed_skips_when_data_exists(db_session):
    assert await seed_store_data(db_session) is True
    assert await seed_store_data(db_session) is False

    assert len(await list_customers(db_session)) == 3
