"""create_store_schema

Revision ID: 4f2a9c1d7e3b
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.store_service.models.views import (
    create_order_summary_view_sql,
    drop_order_summary_view_sql,
)


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7e3b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'gender_enum': ('male', 'female', 'other'),
    'order_status_enum': (
        'pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded'
    ),
    'payment_method_enum': (
        'card', 'mpesa', 'bank_transfer', 'wallet', 'cash_on_delivery'
    ),
    'payment_status_enum': ('pending', 'completed', 'failed', 'refunded'),
    'discount_type_enum': ('percent', 'fixed'),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name, create_constraint=True)


def _fk(column: str, table: str, referred: str, ondelete: str):
    return sa.ForeignKeyConstraint(
        [column],
        [f'{referred}.id'],
        name=op.f(f'fk_{table}_{column}_{referred}'),
        ondelete=ondelete,
        onupdate='CASCADE',
    )


def upgrade() -> None:
    """Upgrade schema - Create store tables, indexes and vw_order_summary."""

    # Customers
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_customers')),
        sa.UniqueConstraint('email', name=op.f('uq_customers_email')),
    )

    op.create_table(
        'customer_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', _enum('gender_enum'), server_default='other', nullable=False),
        sa.Column('loyalty_points', sa.Integer(), server_default='0', nullable=False),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        _fk('customer_id', 'customer_profiles', 'customers', 'CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_customer_profiles')),
        sa.UniqueConstraint('customer_id', name=op.f('uq_customer_profiles_customer_id')),
    )

    op.create_table(
        'addresses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=50), server_default='home', nullable=False),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false(), nullable=False),
        _fk('customer_id', 'addresses', 'customers', 'CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_addresses')),
    )
    op.create_index(op.f('ix_addresses_customer_id'), 'addresses', ['customer_id'])

    # Catalog
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_suppliers')),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        _fk('parent_id', 'categories', 'categories', 'SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_categories')),
        sa.UniqueConstraint('name', name=op.f('uq_categories_name')),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('weight_kg', sa.Numeric(precision=8, scale=3), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('price >= 0', name=op.f('ck_products_price_non_negative')),
        sa.CheckConstraint(
            'weight_kg >= 0', name=op.f('ck_products_weight_kg_non_negative')
        ),
        _fk('supplier_id', 'products', 'suppliers', 'SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_products')),
        sa.UniqueConstraint('sku', name=op.f('uq_products_sku')),
    )
    op.create_index('idx_products_name', 'products', ['name'])

    op.create_table(
        'product_categories',
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        _fk('product_id', 'product_categories', 'products', 'CASCADE'),
        _fk('category_id', 'product_categories', 'categories', 'CASCADE'),
        sa.PrimaryKeyConstraint(
            'product_id', 'category_id', name=op.f('pk_product_categories')
        ),
    )

    op.create_table(
        'inventory',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reorder_level', sa.Integer(), server_default='10', nullable=False),
        sa.Column('last_restock', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'quantity >= 0', name=op.f('ck_inventory_quantity_non_negative')
        ),
        _fk('product_id', 'inventory', 'products', 'CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_inventory')),
        sa.UniqueConstraint('product_id', name=op.f('uq_inventory_product_id')),
    )
    op.create_index('idx_inventory_quantity', 'inventory', ['quantity'])

    op.create_table(
        'product_reviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('rating', sa.SmallInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'rating BETWEEN 1 AND 5', name=op.f('ck_product_reviews_rating_range')
        ),
        _fk('product_id', 'product_reviews', 'products', 'CASCADE'),
        _fk('customer_id', 'product_reviews', 'customers', 'SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_product_reviews')),
    )
    op.create_index(
        op.f('ix_product_reviews_product_id'), 'product_reviews', ['product_id']
    )

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('shipping_address_id', sa.Integer(), nullable=True),
        sa.Column('billing_address_id', sa.Integer(), nullable=True),
        sa.Column(
            'order_status',
            _enum('order_status_enum'),
            server_default='pending',
            nullable=False,
        ),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('placed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'total_amount >= 0', name=op.f('ck_orders_total_amount_non_negative')
        ),
        _fk('customer_id', 'orders', 'customers', 'RESTRICT'),
        _fk('shipping_address_id', 'orders', 'addresses', 'SET NULL'),
        _fk('billing_address_id', 'orders', 'addresses', 'SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_orders')),
    )
    op.create_index(op.f('ix_orders_customer_id'), 'orders', ['customer_id'])
    op.create_index('idx_orders_status', 'orders', ['order_status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'line_total',
            sa.Numeric(precision=12, scale=2),
            sa.Computed('quantity * unit_price', persisted=True),
            nullable=False,
        ),
        sa.CheckConstraint('quantity > 0', name=op.f('ck_order_items_quantity_positive')),
        sa.CheckConstraint(
            'unit_price >= 0', name=op.f('ck_order_items_unit_price_non_negative')
        ),
        _fk('order_id', 'order_items', 'orders', 'CASCADE'),
        _fk('product_id', 'order_items', 'products', 'RESTRICT'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_order_items')),
    )
    op.create_index(op.f('ix_order_items_order_id'), 'order_items', ['order_id'])
    op.create_index(op.f('ix_order_items_product_id'), 'order_items', ['product_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('payment_method', _enum('payment_method_enum'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'status',
            _enum('payment_status_enum'),
            server_default='pending',
            nullable=False,
        ),
        sa.Column('transaction_reference', sa.String(length=255), nullable=True),
        sa.CheckConstraint('amount >= 0', name=op.f('ck_payments_amount_non_negative')),
        _fk('order_id', 'payments', 'orders', 'CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_payments')),
    )
    op.create_index(op.f('ix_payments_order_id'), 'payments', ['order_id'])

    op.create_table(
        'coupons',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('discount_type', _enum('discount_type_enum'), nullable=False),
        sa.Column('discount_value', sa.Numeric(precision=8, scale=2), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.CheckConstraint(
            'discount_value >= 0',
            name=op.f('ck_coupons_discount_value_non_negative'),
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_coupons')),
        sa.UniqueConstraint('code', name=op.f('uq_coupons_code')),
    )

    op.create_table(
        'order_coupons',
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('coupon_id', sa.Integer(), nullable=False),
        _fk('order_id', 'order_coupons', 'orders', 'CASCADE'),
        _fk('coupon_id', 'order_coupons', 'coupons', 'CASCADE'),
        sa.PrimaryKeyConstraint('order_id', 'coupon_id', name=op.f('pk_order_coupons')),
    )

    # Read model
    op.execute(create_order_summary_view_sql(op.get_context().dialect))


def downgrade() -> None:
    """Downgrade schema - Drop the view, store tables and enum types."""
    op.execute(drop_order_summary_view_sql())

    op.drop_table('order_coupons')
    op.drop_table('coupons')
    op.drop_index(op.f('ix_payments_order_id'), table_name='payments')
    op.drop_table('payments')
    op.drop_index(op.f('ix_order_items_product_id'), table_name='order_items')
    op.drop_index(op.f('ix_order_items_order_id'), table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('idx_orders_status', table_name='orders')
    op.drop_index(op.f('ix_orders_customer_id'), table_name='orders')
    op.drop_table('orders')
    op.drop_index(op.f('ix_product_reviews_product_id'), table_name='product_reviews')
    op.drop_table('product_reviews')
    op.drop_index('idx_inventory_quantity', table_name='inventory')
    op.drop_table('inventory')
    op.drop_table('product_categories')
    op.drop_index('idx_products_name', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('suppliers')
    op.drop_index(op.f('ix_addresses_customer_id'), table_name='addresses')
    op.drop_table('addresses')
    op.drop_table('customer_profiles')
    op.drop_table('customers')

    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).drop(bind, checkfirst=True)
