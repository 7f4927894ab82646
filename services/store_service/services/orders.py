"""Order operations: orders, line items, payments, coupons and summaries."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import InvalidReference, NotFound
from services.store_service.models import (
    Address,
    Coupon,
    Customer,
    Order,
    OrderCoupon,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Product,
    order_summary_select,
)
from services.store_service.models.commerce import CENT
from services.store_service.schemas import (
    OrderCreate,
    OrderItemCreate,
    OrderItemUpdate,
    OrderSummary,
    OrderUpdate,
    PaymentCreate,
    PaymentUpdate,
)
from services.store_service.services._shared import (
    apply_changes,
    commit_or_raise,
    ensure_exists,
    get_or_raise,
    reject,
    validated,
)
from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ADDRESS_FIELDS = ("shipping_address_id", "billing_address_id")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


async def _check_addresses(db: AsyncSession, customer_id: int, values: dict) -> None:
    """Addresses must exist. Another customer's address is allowed but logged."""
    for field in ADDRESS_FIELDS:
        address_id = values.get(field)
        if address_id is None:
            continue
        owner_id = await db.scalar(
            select(Address.customer_id).where(Address.id == address_id)
        )
        if owner_id is None:
            raise reject(
                InvalidReference(
                    f"Order.{field} references missing address {address_id}",
                    entity="Order",
                    field=field,
                    identifier=address_id,
                )
            )
        if owner_id != customer_id:
            logger.warning(
                "Order for customer %s uses address %s owned by customer %s (%s)",
                customer_id,
                address_id,
                owner_id,
                field,
            )


async def create_order(
    db: AsyncSession,
    *,
    customer_id: int,
    total_amount: Decimal,
    shipping_address_id: Optional[int] = None,
    billing_address_id: Optional[int] = None,
    order_status: OrderStatus = OrderStatus.PENDING,
) -> Order:
    """Place an order for an existing customer.

    ``total_amount`` is stored exactly as given; see ``calculate_items_total``
    for the live sum of the order's line items.
    """
    data = validated(
        OrderCreate,
        entity="Order",
        customer_id=customer_id,
        shipping_address_id=shipping_address_id,
        billing_address_id=billing_address_id,
        order_status=order_status,
        total_amount=total_amount,
    )
    await ensure_exists(db, Customer, customer_id, entity="Order", field="customer_id")
    values = data.model_dump()
    await _check_addresses(db, customer_id, values)

    order = Order(**values)
    db.add(order)
    await commit_or_raise(db, entity="Order")
    await db.refresh(order)

    logger.info(
        "Created order %s for customer %s (total=%s, status=%s)",
        order.id,
        customer_id,
        order.total_amount,
        order.order_status.value,
    )
    return order


async def get_order(db: AsyncSession, order_id: int) -> Order:
    return await get_or_raise(db, Order, order_id, entity="Order")


async def update_order(db: AsyncSession, order_id: int, **changes) -> Order:
    data = validated(OrderUpdate, entity="Order", **changes)
    order = await get_order(db, order_id)
    values = data.model_dump(exclude_unset=True)
    await _check_addresses(db, order.customer_id, values)

    apply_changes(order, values, entity="Order")
    await commit_or_raise(db, entity="Order")
    await db.refresh(order)

    logger.info("Updated order %s (%s)", order_id, ", ".join(values))
    return order


async def delete_order(db: AsyncSession, order_id: int) -> None:
    """Delete an order with its items, payments and coupon links."""
    await get_order(db, order_id)
    await commit_or_raise(
        db,
        entity="Order",
        operation="delete",
        statement=delete(Order).where(Order.id == order_id),
    )

    logger.info("Deleted order %s", order_id)


# ---------------------------------------------------------------------------
# Order items
# ---------------------------------------------------------------------------


async def add_order_item(
    db: AsyncSession,
    *,
    order_id: int,
    product_id: int,
    quantity: int,
    unit_price: Optional[Decimal] = None,
) -> OrderItem:
    """Add a line to an order.

    ``unit_price`` defaults to the product's current price. ``line_total`` is
    always derived, never accepted.
    """
    if unit_price is None:
        await ensure_exists(
            db, Product, product_id, entity="OrderItem", field="product_id"
        )
        unit_price = await db.scalar(
            select(Product.price).where(Product.id == product_id)
        )
    data = validated(
        OrderItemCreate,
        entity="OrderItem",
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
    )
    await ensure_exists(db, Order, order_id, entity="OrderItem", field="order_id")
    await ensure_exists(
        db, Product, product_id, entity="OrderItem", field="product_id"
    )

    item = OrderItem(order_id=order_id, **data.model_dump())
    db.add(item)
    await commit_or_raise(db, entity="OrderItem")
    await db.refresh(item)

    logger.info(
        "Added %d x product %s to order %s (line_total=%s)",
        item.quantity,
        product_id,
        order_id,
        item.line_total,
    )
    return item


async def get_order_item(db: AsyncSession, item_id: int) -> OrderItem:
    return await get_or_raise(db, OrderItem, item_id, entity="OrderItem")


async def list_order_items(db: AsyncSession, order_id: int) -> list[OrderItem]:
    result = await db.execute(
        select(OrderItem)
        .where(OrderItem.order_id == order_id)
        .order_by(OrderItem.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_order_item(db: AsyncSession, item_id: int, **changes) -> OrderItem:
    """Change quantity and/or unit price; line_total follows in the same write."""
    data = validated(OrderItemUpdate, entity="OrderItem", **changes)
    item = await get_or_raise(
        db, OrderItem, item_id, entity="OrderItem", for_update=True
    )
    apply_changes(item, data.model_dump(exclude_unset=True), entity="OrderItem")
    await commit_or_raise(db, entity="OrderItem")
    await db.refresh(item)

    logger.info(
        "Updated order item %s (qty=%d, line_total=%s)",
        item_id,
        item.quantity,
        item.line_total,
    )
    return item


async def delete_order_item(db: AsyncSession, item_id: int) -> None:
    await get_order_item(db, item_id)
    await commit_or_raise(
        db,
        entity="OrderItem",
        operation="delete",
        statement=delete(OrderItem).where(OrderItem.id == item_id),
    )

    logger.info("Deleted order item %s", item_id)


async def calculate_items_total(db: AsyncSession, order_id: int) -> Decimal:
    """Sum of the order's line totals; zero for an order without items."""
    await get_order(db, order_id)
    total = await db.scalar(
        select(func.coalesce(func.sum(OrderItem.line_total), 0)).where(
            OrderItem.order_id == order_id
        )
    )
    return Decimal(str(total)).quantize(CENT)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


async def create_payment(
    db: AsyncSession,
    *,
    order_id: int,
    payment_method: PaymentMethod,
    amount: Decimal,
    status: PaymentStatus = PaymentStatus.PENDING,
    paid_at: Optional[datetime] = None,
    transaction_reference: Optional[str] = None,
) -> Payment:
    data = validated(
        PaymentCreate,
        entity="Payment",
        payment_method=payment_method,
        amount=amount,
        status=status,
        paid_at=paid_at,
        transaction_reference=transaction_reference,
    )
    await ensure_exists(db, Order, order_id, entity="Payment", field="order_id")

    payment = Payment(order_id=order_id, **data.model_dump(exclude_none=True))
    db.add(payment)
    await commit_or_raise(db, entity="Payment")
    await db.refresh(payment)

    logger.info(
        "Recorded %s payment %s of %s for order %s (%s)",
        payment.payment_method.value,
        payment.id,
        payment.amount,
        order_id,
        payment.status.value,
    )
    return payment


async def get_payment(db: AsyncSession, payment_id: int) -> Payment:
    return await get_or_raise(db, Payment, payment_id, entity="Payment")


async def update_payment(db: AsyncSession, payment_id: int, **changes) -> Payment:
    data = validated(PaymentUpdate, entity="Payment", **changes)
    payment = await get_payment(db, payment_id)
    apply_changes(payment, data.model_dump(exclude_unset=True), entity="Payment")
    await commit_or_raise(db, entity="Payment")
    await db.refresh(payment)

    logger.info("Payment %s now %s", payment_id, payment.status.value)
    return payment


async def delete_payment(db: AsyncSession, payment_id: int) -> None:
    await get_payment(db, payment_id)
    await commit_or_raise(
        db,
        entity="Payment",
        operation="delete",
        statement=delete(Payment).where(Payment.id == payment_id),
    )


# ---------------------------------------------------------------------------
# Coupons on orders
# ---------------------------------------------------------------------------


async def apply_coupon(db: AsyncSession, *, order_id: int, coupon_id: int) -> None:
    """Attach a coupon to an order; each pair may be attached only once."""
    await ensure_exists(db, Order, order_id, entity="OrderCoupon", field="order_id")
    await ensure_exists(
        db, Coupon, coupon_id, entity="OrderCoupon", field="coupon_id"
    )

    await commit_or_raise(
        db,
        entity="OrderCoupon",
        statement=insert(OrderCoupon).values(order_id=order_id, coupon_id=coupon_id),
    )

    logger.info("Applied coupon %s to order %s", coupon_id, order_id)


async def remove_coupon(db: AsyncSession, *, order_id: int, coupon_id: int) -> None:
    applied = await db.scalar(
        select(OrderCoupon.order_id).where(
            OrderCoupon.order_id == order_id, OrderCoupon.coupon_id == coupon_id
        )
    )
    if applied is None:
        raise NotFound(
            f"Coupon {coupon_id} is not applied to order {order_id}",
            entity="OrderCoupon",
            identifier=(order_id, coupon_id),
        )

    await commit_or_raise(
        db,
        entity="OrderCoupon",
        operation="delete",
        statement=delete(OrderCoupon).where(
            OrderCoupon.order_id == order_id, OrderCoupon.coupon_id == coupon_id
        ),
    )

    logger.info("Removed coupon %s from order %s", coupon_id, order_id)


async def list_order_coupons(db: AsyncSession, order_id: int) -> list[Coupon]:
    result = await db.execute(
        select(Coupon)
        .join(OrderCoupon, OrderCoupon.coupon_id == Coupon.id)
        .where(OrderCoupon.order_id == order_id)
        .order_by(Coupon.code)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Order summaries
# ---------------------------------------------------------------------------


async def get_order_summary(db: AsyncSession, order_id: int) -> OrderSummary:
    result = await db.execute(order_summary_select().where(Order.id == order_id))
    row = result.one_or_none()
    if row is None:
        raise NotFound(
            f"Order {order_id} not found", entity="Order", identifier=order_id
        )
    return OrderSummary.model_validate(dict(row._mapping))


async def list_order_summaries(
    db: AsyncSession,
    *,
    customer_id: Optional[int] = None,
    order_status: Optional[OrderStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[OrderSummary]:
    query = order_summary_select()
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    if order_status is not None:
        query = query.where(Order.order_status == order_status)
    query = query.order_by(Order.placed_at.desc(), Order.id.desc())

    result = await db.execute(query.offset(skip).limit(limit))
    return [OrderSummary.model_validate(dict(row._mapping)) for row in result]
