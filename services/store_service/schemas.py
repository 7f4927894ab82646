"""Pydantic schemas for store service writes and the order summary read.

Write schemas forbid unknown fields, so derived columns such as
``OrderItem.line_total`` cannot be smuggled in.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.store_service.models import (
    DiscountType,
    Gender,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.store_service.models.inventory import DEFAULT_REORDER_LEVEL

# Column limits: Integer is 32-bit, money is Numeric(12, 2)
INT_MAX = 2**31 - 1
MONEY_DIGITS = 12


class WriteSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ============================================================================
# CUSTOMER SCHEMAS
# ============================================================================


class CustomerCreate(WriteSchema):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)


class CustomerUpdate(WriteSchema):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)


class ProfileCreate(WriteSchema):
    date_of_birth: Optional[date] = None
    gender: Gender = Gender.OTHER
    loyalty_points: int = Field(0, le=INT_MAX)
    avatar_url: Optional[str] = Field(None, max_length=512)


class ProfileUpdate(WriteSchema):
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    loyalty_points: Optional[int] = Field(None, le=INT_MAX)
    avatar_url: Optional[str] = Field(None, max_length=512)


class AddressCreate(WriteSchema):
    label: str = Field("home", max_length=50)
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    is_default: bool = False


class AddressUpdate(WriteSchema):
    label: Optional[str] = Field(None, max_length=50)
    street: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    is_default: Optional[bool] = None


# ============================================================================
# CATALOG SCHEMAS
# ============================================================================


class SupplierCreate(WriteSchema):
    name: str = Field(..., min_length=1, max_length=200)
    contact_email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)


class SupplierUpdate(WriteSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)


class CategoryCreate(WriteSchema):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(WriteSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class ProductCreate(WriteSchema):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(
        ..., ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )
    weight_kg: Optional[Decimal] = Field(None, ge=0, max_digits=8, decimal_places=3)
    active: bool = True
    supplier_id: Optional[int] = None


class ProductUpdate(WriteSchema):
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(
        None, ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )
    weight_kg: Optional[Decimal] = Field(None, ge=0, max_digits=8, decimal_places=3)
    active: Optional[bool] = None
    supplier_id: Optional[int] = None


class InventoryCreate(WriteSchema):
    quantity: int = Field(0, ge=0, le=INT_MAX)
    reorder_level: int = Field(DEFAULT_REORDER_LEVEL, le=INT_MAX)
    last_restock: Optional[datetime] = None


class InventoryUpdate(WriteSchema):
    quantity: Optional[int] = Field(None, ge=0, le=INT_MAX)
    reorder_level: Optional[int] = Field(None, le=INT_MAX)
    last_restock: Optional[datetime] = None


class ReviewCreate(WriteSchema):
    product_id: int
    customer_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    body: Optional[str] = None


class ReviewUpdate(WriteSchema):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    body: Optional[str] = None


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderCreate(WriteSchema):
    customer_id: int
    shipping_address_id: Optional[int] = None
    billing_address_id: Optional[int] = None
    order_status: OrderStatus = OrderStatus.PENDING
    total_amount: Decimal = Field(
        ..., ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )


class OrderUpdate(WriteSchema):
    shipping_address_id: Optional[int] = None
    billing_address_id: Optional[int] = None
    order_status: Optional[OrderStatus] = None
    total_amount: Optional[Decimal] = Field(
        None, ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )


class OrderItemCreate(WriteSchema):
    product_id: int
    quantity: int = Field(..., gt=0, le=INT_MAX)
    unit_price: Decimal = Field(
        ..., ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )


class OrderItemUpdate(WriteSchema):
    quantity: Optional[int] = Field(None, gt=0, le=INT_MAX)
    unit_price: Optional[Decimal] = Field(
        None, ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )


class PaymentCreate(WriteSchema):
    payment_method: PaymentMethod
    amount: Decimal = Field(
        ..., ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None
    transaction_reference: Optional[str] = Field(None, max_length=255)


class PaymentUpdate(WriteSchema):
    amount: Optional[Decimal] = Field(
        None, ge=0, max_digits=MONEY_DIGITS, decimal_places=2
    )
    status: Optional[PaymentStatus] = None
    transaction_reference: Optional[str] = Field(None, max_length=255)


class CouponCreate(WriteSchema):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0, max_digits=8, decimal_places=2)
    expires_at: Optional[datetime] = None
    active: bool = True


class CouponUpdate(WriteSchema):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(
        None, ge=0, max_digits=8, decimal_places=2
    )
    expires_at: Optional[datetime] = None
    active: Optional[bool] = None


# ============================================================================
# READ MODELS
# ============================================================================


class OrderSummary(BaseModel):
    """Live order summary, same shape as the ``vw_order_summary`` view."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    customer_id: int
    customer_name: Optional[str] = None
    placed_at: datetime
    order_status: OrderStatus
    total_amount: Decimal
    item_count: int
