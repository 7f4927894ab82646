"""Store Service models package."""

from services.store_service.models.catalog import (
    Category,
    Product,
    ProductCategory,
    Review,
    Supplier,
)
from services.store_service.models.commerce import (
    Coupon,
    Order,
    OrderCoupon,
    OrderItem,
    Payment,
    compute_line_total,
)
from services.store_service.models.customers import Address, Customer, CustomerProfile
from services.store_service.models.enums import (
    DiscountType,
    Gender,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.store_service.models.inventory import Inventory
from services.store_service.models.views import (
    ORDER_SUMMARY_VIEW,
    order_summary_select,
)

__all__ = [
    "Address",
    "Category",
    "Coupon",
    "Customer",
    "CustomerProfile",
    "DiscountType",
    "Gender",
    "Inventory",
    "ORDER_SUMMARY_VIEW",
    "Order",
    "OrderCoupon",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductCategory",
    "Review",
    "Supplier",
    "compute_line_total",
    "order_summary_select",
]
