"""Store commerce models: orders, order items, payments and coupons."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    DiscountType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import Boolean, CheckConstraint, Computed, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, true
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

CENT = Decimal("0.01")


def compute_line_total(quantity, unit_price) -> Decimal:
    """quantity x unit_price, with the price rounded to the cent as it is stored."""
    price = Decimal(str(unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)
    return Decimal(quantity) * price


# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """A customer's order.

    ``total_amount`` is supplied by the caller; it is not derived from the
    order's items.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    shipping_address_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("addresses.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )
    billing_address_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("addresses.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )

    order_status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="order_status_enum",
            create_constraint=True,
        ),
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    placed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="total_amount_non_negative"),
        Index("idx_orders_status", "order_status"),
    )

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    shipping_address = relationship("Address", foreign_keys=[shipping_address_id])
    billing_address = relationship("Address", foreign_keys=[billing_address_id])
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    coupons = relationship(
        "Coupon",
        secondary="order_coupons",
        back_populates="orders",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Order {self.id} {self.order_status}>"


class OrderItem(Base):
    """Order line item.

    ``line_total`` is a stored generated column (``quantity * unit_price``),
    so the database keeps it in step with every write, bulk statements
    included. It cannot be assigned.
    """

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    _line_total: Mapped[Decimal] = mapped_column(
        "line_total",
        Numeric(12, 2),
        Computed("quantity * unit_price", persisted=True),
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
    )

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    @hybrid_property
    def line_total(self) -> Optional[Decimal]:
        if self.quantity is None or self.unit_price is None:
            return self._line_total
        return compute_line_total(self.quantity, self.unit_price)

    @line_total.expression
    def line_total(cls):
        return cls._line_total

    def __repr__(self):
        return f"<OrderItem order={self.order_id} qty={self.quantity}>"


# ============================================================================
# PAYMENT MODEL
# ============================================================================


class Payment(Base):
    """A payment (or payment attempt) against an order."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="payment_method_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            values_callable=enum_values,
            name="payment_status_enum",
            create_constraint=True,
        ),
        default=PaymentStatus.PENDING,
        server_default=PaymentStatus.PENDING.value,
    )
    transaction_reference: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )

    __table_args__ = (CheckConstraint("amount >= 0", name="amount_non_negative"),)

    order = relationship("Order", back_populates="payments")

    def __repr__(self):
        return f"<Payment order={self.order_id} {self.payment_method} {self.status}>"


# ============================================================================
# COUPON MODELS
# ============================================================================


class Coupon(Base):
    """Discount code. Redemption rules live in the consuming application."""

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    discount_type: Mapped[DiscountType] = mapped_column(
        SAEnum(
            DiscountType,
            values_callable=enum_values,
            name="discount_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="discount_value_non_negative"),
    )

    orders = relationship(
        "Order",
        secondary="order_coupons",
        back_populates="coupons",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Coupon {self.code}>"


class OrderCoupon(Base):
    """Association between orders and coupons; one row per pair."""

    __tablename__ = "order_coupons"

    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    coupon_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("coupons.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )

    def __repr__(self):
        return f"<OrderCoupon order={self.order_id} coupon={self.coupon_id}>"
