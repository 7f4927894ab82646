"""Unit tests for orders, order items, payments, order coupons and summaries."""

from decimal import Decimal

import pytest
from services.store_service.errors import (
    ConstraintViolation,
    DuplicateKey,
    InvalidEnumValue,
    InvalidReference,
    NotFound,
    ValueOutOfRange,
)
from services.store_service.models import (
    DiscountType,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.store_service.services.catalog import create_product
from services.store_service.services.coupons import create_coupon, get_coupon
from services.store_service.services.customers import (
    create_address,
    create_customer,
)
from services.store_service.services.orders import (
    add_order_item,
    apply_coupon,
    calculate_items_total,
    create_order,
    create_payment,
    delete_order,
    delete_order_item,
    delete_payment,
    get_order,
    get_order_item,
    get_order_summary,
    get_payment,
    list_order_coupons,
    list_order_items,
    list_order_summaries,
    remove_coupon,
    update_order,
    update_order_item,
    update_payment,
)
from sqlalchemy import insert, select, update


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _customer(db, first_name="Alice", last_name="Wanjiru", email=None):
    email = email or f"{first_name.lower()}@example.com"
    return await create_customer(
        db, first_name=first_name, last_name=last_name, email=email
    )


async def _product(db, sku="SKU001", price=Decimal("120000")):
    return await create_product(db, sku=sku, name=f"Product {sku}", price=price)


async def _order(db, customer_id, total=Decimal("0"), **overrides):
    return await create_order(
        db, customer_id=customer_id, total_amount=total, **overrides
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_defaults_to_pending(db_session):
    customer = await _customer(db_session)

    order = await _order(db_session, customer.id, Decimal("99.90"))

    assert order.order_status == OrderStatus.PENDING
    assert order.total_amount == Decimal("99.90")
    assert order.placed_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_for_missing_customer_rejected(db_session):
    with pytest.raises(InvalidReference) as exc_info:
        await _order(db_session, 4242)

    assert exc_info.value.field == "customer_id"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_negative_order_total_rejected(db_session):
    customer = await _customer(db_session)

    with pytest.raises(ValueOutOfRange):
        await _order(db_session, customer.id, Decimal("-1"))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_order_status_rejected(db_session):
    customer = await _customer(db_session)

    with pytest.raises(InvalidEnumValue) as exc_info:
        await _order(db_session, customer.id, order_status="lost")

    assert exc_info.value.field == "order_status"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_order_status(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id)

    updated = await update_order(
        db_session, order.id, order_status=OrderStatus.SHIPPED
    )

    assert updated.order_status == OrderStatus.SHIPPED
    assert updated.updated_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_with_missing_shipping_address_rejected(db_session):
    customer = await _customer(db_session)

    with pytest.raises(InvalidReference) as exc_info:
        await _order(db_session, customer.id, shipping_address_id=999)

    assert exc_info.value.field == "shipping_address_id"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_other_customers_address_is_accepted(db_session, caplog):
    """Shipping to an address owned by someone else is allowed, with a warning."""
    alice = await _customer(db_session)
    brian = await _customer(db_session, first_name="Brian", last_name="Otieno")
    brians_home = await create_address(
        db_session,
        customer_id=brian.id,
        street="789 Koinange St",
        city="Kisumu",
        country="Kenya",
    )
    order = await _order(db_session, alice.id)

    with caplog.at_level("WARNING"):
        updated = await update_order(
            db_session, order.id, shipping_address_id=brians_home.id
        )

    assert updated.shipping_address_id == brians_home.id
    assert updated.customer_id == alice.id
    assert "owned by customer" in caplog.text


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_order_cascades_items_payments_and_coupons(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id, Decimal("120000"))
    item = await add_order_item(
        db_session, order_id=order.id, product_id=product.id, quantity=1
    )
    payment = await create_payment(
        db_session,
        order_id=order.id,
        payment_method=PaymentMethod.CARD,
        amount=Decimal("120000"),
    )
    coupon = await create_coupon(
        db_session,
        code="WELCOME10",
        discount_type=DiscountType.PERCENT,
        discount_value=Decimal("10"),
    )
    await apply_coupon(db_session, order_id=order.id, coupon_id=coupon.id)

    await delete_order(db_session, order.id)

    with pytest.raises(NotFound):
        await get_order(db_session, order.id)
    with pytest.raises(NotFound):
        await get_order_item(db_session, item.id)
    with pytest.raises(NotFound):
        await get_payment(db_session, payment.id)
    assert await list_order_coupons(db_session, order.id) == []
    assert (await get_coupon(db_session, coupon.id)).code == "WELCOME10"


# ---------------------------------------------------------------------------
# Order items and line_total
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_line_total_is_quantity_times_unit_price(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session, price=Decimal("19.99"))
    order = await _order(db_session, customer.id)

    item = await add_order_item(
        db_session, order_id=order.id, product_id=product.id, quantity=3
    )

    assert item.unit_price == Decimal("19.99")
    assert item.line_total == Decimal("59.97")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_line_total_follows_updates_of_either_factor(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    item = await add_order_item(
        db_session,
        order_id=order.id,
        product_id=product.id,
        quantity=2,
        unit_price=Decimal("10.00"),
    )

    item = await update_order_item(db_session, item.id, quantity=5)
    assert item.line_total == Decimal("50.00")

    item = await update_order_item(db_session, item.id, unit_price=Decimal("2.50"))
    assert item.line_total == Decimal("12.50")

    item = await update_order_item(
        db_session, item.id, quantity=4, unit_price=Decimal("0.25")
    )
    assert item.line_total == Decimal("1.00")

    stored = await get_order_item(db_session, item.id)
    assert stored.line_total == stored.quantity * stored.unit_price


@pytest.mark.asyncio
@pytest.mark.unit
async def test_line_total_cannot_be_supplied(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    item = await add_order_item(
        db_session, order_id=order.id, product_id=product.id, quantity=1
    )

    with pytest.raises(ConstraintViolation) as exc_info:
        await update_order_item(db_session, item.id, line_total=Decimal("1"))

    assert exc_info.value.field == "line_total"
    with pytest.raises(AttributeError):
        item.line_total = Decimal("1")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sub_cent_unit_price_rejected(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)

    with pytest.raises(ValueOutOfRange) as exc_info:
        await add_order_item(
            db_session,
            order_id=order.id,
            product_id=product.id,
            quantity=2,
            unit_price=Decimal("0.125"),
        )

    assert exc_info.value.field == "unit_price"
    assert await list_order_items(db_session, order.id) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_quantity_beyond_integer_column_rejected(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    item = await add_order_item(
        db_session, order_id=order.id, product_id=product.id, quantity=1
    )

    with pytest.raises(ValueOutOfRange) as exc_info:
        await update_order_item(db_session, item.id, quantity=2**31)

    assert exc_info.value.field == "quantity"
    assert (await get_order_item(db_session, item.id)).quantity == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stored_line_total_follows_bulk_update(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    item = await add_order_item(
        db_session,
        order_id=order.id,
        product_id=product.id,
        quantity=1,
        unit_price=Decimal("10.00"),
    )
    item_id = item.id

    await db_session.execute(
        update(OrderItem).where(OrderItem.id == item_id).values(quantity=5)
    )
    await db_session.commit()

    stored = await db_session.scalar(
        select(OrderItem.line_total).where(OrderItem.id == item_id)
    )
    assert stored == Decimal("50.00")
    assert (await get_order_item(db_session, item_id)).line_total == Decimal("50.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stored_line_total_computed_for_bulk_insert(db_session):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    order_id = order.id

    await db_session.execute(
        insert(OrderItem).values(
            order_id=order_id,
            product_id=product.id,
            quantity=3,
            unit_price=Decimal("2.50"),
        )
    )
    await db_session.commit()

    stored = await db_session.scalar(
        select(OrderItem.line_total).where(OrderItem.order_id == order_id)
    )
    assert stored == Decimal("7.50")
    assert await calculate_items_total(db_session, order_id) == Decimal("7.50")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "quantity, unit_price",
    [(0, Decimal("1.00")), (-2, Decimal("1.00")), (1, Decimal("-0.01"))],
)
async def test_invalid_item_numbers_rejected(db_session, quantity, unit_price):
    customer = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, customer.id)
    order_id = order.id

    with pytest.raises(ValueOutOfRange):
        await add_order_item(
            db_session,
            order_id=order_id,
            product_id=product.id,
            quantity=quantity,
            unit_price=unit_price,
        )

    assert await list_order_items(db_session, order_id) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_item_for_missing_product_rejected(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id)

    with pytest.raises(InvalidReference) as exc_info:
        await add_order_item(
            db_session, order_id=order.id, product_id=808, quantity=1
        )

    assert exc_info.value.field == "product_id"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_calculate_items_total(db_session):
    customer = await _customer(db_session)
    phone = await _product(db_session, "SKU001", Decimal("120000"))
    jacket = await _product(db_session, "SKU003", Decimal("4500"))
    order = await _order(db_session, customer.id, Decimal("124500"))

    assert await calculate_items_total(db_session, order.id) == Decimal("0.00")

    await add_order_item(
        db_session, order_id=order.id, product_id=phone.id, quantity=1
    )
    jacket_item = await add_order_item(
        db_session, order_id=order.id, product_id=jacket.id, quantity=1
    )
    assert await calculate_items_total(db_session, order.id) == Decimal("124500.00")

    await delete_order_item(db_session, jacket_item.id)
    assert await calculate_items_total(db_session, order.id) == Decimal("120000.00")
    # total_amount is caller-owned and not recomputed
    assert (await get_order(db_session, order.id)).total_amount == Decimal("124500")


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_payment_lifecycle(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id, Decimal("4500"))

    payment = await create_payment(
        db_session,
        order_id=order.id,
        payment_method=PaymentMethod.MPESA,
        amount=Decimal("4500"),
        transaction_reference="MPESA12345",
    )
    assert payment.status == PaymentStatus.PENDING
    assert payment.paid_at is not None

    payment = await update_payment(
        db_session, payment.id, status=PaymentStatus.COMPLETED
    )
    assert payment.status == PaymentStatus.COMPLETED

    await delete_payment(db_session, payment.id)
    with pytest.raises(NotFound):
        await get_payment(db_session, payment.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_invalid_payments_rejected(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id)

    with pytest.raises(ValueOutOfRange):
        await create_payment(
            db_session,
            order_id=order.id,
            payment_method=PaymentMethod.CARD,
            amount=Decimal("-1"),
        )
    with pytest.raises(InvalidEnumValue):
        await create_payment(
            db_session,
            order_id=order.id,
            payment_method="cheque",
            amount=Decimal("1"),
        )
    with pytest.raises(InvalidReference):
        await create_payment(
            db_session,
            order_id=order.id + 1,
            payment_method=PaymentMethod.CARD,
            amount=Decimal("1"),
        )


# ---------------------------------------------------------------------------
# Order coupons
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_coupon_twice_on_order_rejected(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id)
    order_id = order.id
    coupon = await create_coupon(
        db_session,
        code="FREESHIP",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("500"),
    )
    coupon_id = coupon.id
    await apply_coupon(db_session, order_id=order_id, coupon_id=coupon_id)

    with pytest.raises(DuplicateKey):
        await apply_coupon(db_session, order_id=order_id, coupon_id=coupon_id)

    assert [c.id for c in await list_order_coupons(db_session, order_id)] == [
        coupon_id
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_remove_coupon(db_session):
    customer = await _customer(db_session)
    order = await _order(db_session, customer.id)
    coupon = await create_coupon(
        db_session,
        code="WELCOME10",
        discount_type=DiscountType.PERCENT,
        discount_value=Decimal("10"),
    )
    await apply_coupon(db_session, order_id=order.id, coupon_id=coupon.id)

    await remove_coupon(db_session, order_id=order.id, coupon_id=coupon.id)

    assert await list_order_coupons(db_session, order.id) == []
    with pytest.raises(NotFound):
        await remove_coupon(db_session, order_id=order.id, coupon_id=coupon.id)


# ---------------------------------------------------------------------------
# Order summaries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_alice_order_summary(db_session):
    """Summary reports the live item count and the caller-supplied total."""
    alice = await _customer(db_session)
    iphone = await _product(db_session, "SKU001", Decimal("120000"))
    order = await _order(db_session, alice.id, Decimal("124500"))
    await add_order_item(
        db_session,
        order_id=order.id,
        product_id=iphone.id,
        quantity=1,
        unit_price=Decimal("120000"),
    )

    summary = await get_order_summary(db_session, order.id)

    assert summary.order_id == order.id
    assert summary.customer_id == alice.id
    assert summary.customer_name == "Alice Wanjiru"
    assert summary.order_status == OrderStatus.PENDING
    assert summary.item_count == 1
    assert summary.total_amount == Decimal("124500")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_summary_tracks_item_changes(db_session):
    alice = await _customer(db_session)
    product = await _product(db_session)
    order = await _order(db_session, alice.id)

    assert (await get_order_summary(db_session, order.id)).item_count == 0

    item = await add_order_item(
        db_session, order_id=order.id, product_id=product.id, quantity=2
    )
    assert (await get_order_summary(db_session, order.id)).item_count == 1

    await delete_order_item(db_session, item.id)
    assert (await get_order_summary(db_session, order.id)).item_count == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_order_summaries_filters(db_session):
    alice = await _customer(db_session)
    brian = await _customer(db_session, first_name="Brian", last_name="Otieno")
    first = await _order(db_session, alice.id, order_status=OrderStatus.PROCESSING)
    await _order(db_session, brian.id)

    mine = await list_order_summaries(db_session, customer_id=alice.id)
    processing = await list_order_summaries(
        db_session, order_status=OrderStatus.PROCESSING
    )

    assert [s.order_id for s in mine] == [first.id]
    assert [s.order_id for s in processing] == [first.id]
    assert len(await list_order_summaries(db_session)) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_summary_for_missing_order_not_found(db_session):
    with pytest.raises(NotFound):
        await get_order_summary(db_session, 1)
