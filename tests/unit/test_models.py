"""Model-level behaviour that needs no database."""

from decimal import Decimal

import pytest
from services.store_service.models import (
    Customer,
    Inventory,
    OrderItem,
    compute_line_total,
)


@pytest.mark.unit
def test_compute_line_total_rounds_to_cents():
    assert compute_line_total(3, Decimal("19.99")) == Decimal("59.97")
    assert compute_line_total(1, 120000) == Decimal("120000.00")
    assert compute_line_total(2, 0.1) == Decimal("0.20")


@pytest.mark.unit
def test_compute_line_total_uses_the_stored_cent_price():
    # Numeric(12, 2) rounds the stored unit price half up before multiplying
    assert compute_line_total(2, Decimal("0.125")) == Decimal("0.26")
    assert compute_line_total(3, Decimal("0.124")) == Decimal("0.36")


@pytest.mark.unit
def test_order_item_line_total_set_on_construction():
    item = OrderItem(quantity=4, unit_price=Decimal("2.50"))

    assert item.line_total == Decimal("10.00")


@pytest.mark.unit
def test_order_item_line_total_follows_either_factor():
    item = OrderItem(unit_price=Decimal("3.00"), quantity=2)
    assert item.line_total == Decimal("6.00")

    item.unit_price = Decimal("1.25")
    assert item.line_total == Decimal("2.50")

    item.quantity = 10
    assert item.line_total == Decimal("12.50")


@pytest.mark.unit
def test_order_item_line_total_is_read_only():
    item = OrderItem(quantity=1, unit_price=Decimal("1.00"))

    with pytest.raises(AttributeError):
        item.line_total = Decimal("99.00")


@pytest.mark.unit
def test_inventory_needs_reorder_at_or_below_level():
    assert Inventory(quantity=2, reorder_level=2).needs_reorder is True
    assert Inventory(quantity=3, reorder_level=2).needs_reorder is False


@pytest.mark.unit
def test_customer_full_name():
    assert Customer(first_name="Alice", last_name="Wanjiru").full_name == (
        "Alice Wanjiru"
    )
