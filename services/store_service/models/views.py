"""Order summary read model.

One select backs both the ``get_order_summary`` queries and the
``vw_order_summary`` database view, so the two can never disagree. Nothing
here is persisted: every read reflects the current rows.
"""

from libs.db.base import Base
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.customers import Customer
from sqlalchemy import Select, event, func, select

ORDER_SUMMARY_VIEW = "vw_order_summary"


def order_summary_select() -> Select:
    item_count = (
        select(func.count(OrderItem.id))
        .where(OrderItem.order_id == Order.id)
        .correlate(Order)
        .scalar_subquery()
    )
    customer_name = Customer.first_name + " " + Customer.last_name

    return (
        select(
            Order.id.label("order_id"),
            Order.customer_id.label("customer_id"),
            customer_name.label("customer_name"),
            Order.placed_at.label("placed_at"),
            Order.order_status.label("order_status"),
            Order.total_amount.label("total_amount"),
            item_count.label("item_count"),
        )
        .select_from(Order)
        .outerjoin(Customer, Customer.id == Order.customer_id)
    )


def create_order_summary_view_sql(dialect) -> str:
    compiled = order_summary_select().compile(
        dialect=dialect, compile_kwargs={"literal_binds": True}
    )
    if dialect.name == "sqlite":
        prefix = "CREATE VIEW IF NOT EXISTS"
    else:
        prefix = "CREATE OR REPLACE VIEW"
    return f"{prefix} {ORDER_SUMMARY_VIEW} AS {compiled}"


def drop_order_summary_view_sql() -> str:
    return f"DROP VIEW IF EXISTS {ORDER_SUMMARY_VIEW}"


@event.listens_for(Base.metadata, "after_create")
def _create_order_summary_view(target, connection, **kw):
    connection.exec_driver_sql(create_order_summary_view_sql(connection.dialect))


@event.listens_for(Base.metadata, "before_drop")
def _drop_order_summary_view(target, connection, **kw):
    connection.exec_driver_sql(drop_order_summary_view_sql())
