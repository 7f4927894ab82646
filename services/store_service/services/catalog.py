"""Catalog operations: suppliers, categories, products and inventory."""

from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import (
    ConstraintViolation,
    DeletionBlocked,
    NotFound,
)
from services.store_service.models import (
    Category,
    Inventory,
    OrderItem,
    Product,
    ProductCategory,
    Supplier,
)
from services.store_service.models.inventory import DEFAULT_REORDER_LEVEL
from services.store_service.schemas import (
    CategoryCreate,
    CategoryUpdate,
    InventoryCreate,
    InventoryUpdate,
    ProductCreate,
    ProductUpdate,
    SupplierCreate,
    SupplierUpdate,
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


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


async def create_supplier(
    db: AsyncSession,
    *,
    name: str,
    contact_email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Supplier:
    data = validated(
        SupplierCreate,
        entity="Supplier",
        name=name,
        contact_email=contact_email,
        phone=phone,
    )
    supplier = Supplier(**data.model_dump())
    db.add(supplier)
    await commit_or_raise(db, entity="Supplier")
    await db.refresh(supplier)

    logger.info("Created supplier %s (%s)", supplier.id, supplier.name)
    return supplier


async def get_supplier(db: AsyncSession, supplier_id: int) -> Supplier:
    return await get_or_raise(db, Supplier, supplier_id, entity="Supplier")


async def update_supplier(db: AsyncSession, supplier_id: int, **changes) -> Supplier:
    data = validated(SupplierUpdate, entity="Supplier", **changes)
    supplier = await get_supplier(db, supplier_id)
    apply_changes(supplier, data.model_dump(exclude_unset=True), entity="Supplier")
    await commit_or_raise(db, entity="Supplier")
    await db.refresh(supplier)
    return supplier


async def delete_supplier(db: AsyncSession, supplier_id: int) -> None:
    """Delete a supplier; its products stay in the catalog without one."""
    await get_supplier(db, supplier_id)
    await commit_or_raise(
        db,
        entity="Supplier",
        operation="delete",
        statement=delete(Supplier).where(Supplier.id == supplier_id),
    )

    logger.info("Deleted supplier %s", supplier_id)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


async def _check_parent(
    db: AsyncSession, category_id: Optional[int], parent_id: Optional[int]
) -> None:
    """The parent must exist and must not be the category or one of its descendants."""
    await ensure_exists(db, Category, parent_id, entity="Category", field="parent_id")
    if category_id is None or parent_id is None:
        return

    ancestor = parent_id
    while ancestor is not None:
        if ancestor == category_id:
            raise reject(
                ConstraintViolation(
                    f"Category {category_id} cannot be nested under itself",
                    entity="Category",
                    field="parent_id",
                    identifier=category_id,
                    rule="category_cycle",
                )
            )
        ancestor = await db.scalar(
            select(Category.parent_id).where(Category.id == ancestor)
        )


async def create_category(
    db: AsyncSession,
    *,
    name: str,
    description: Optional[str] = None,
    parent_id: Optional[int] = None,
) -> Category:
    data = validated(
        CategoryCreate,
        entity="Category",
        name=name,
        description=description,
        parent_id=parent_id,
    )
    await _check_parent(db, None, data.parent_id)

    category = Category(**data.model_dump())
    db.add(category)
    await commit_or_raise(db, entity="Category")
    await db.refresh(category)

    logger.info("Created category %s (%s)", category.id, category.name)
    return category


async def get_category(db: AsyncSession, category_id: int) -> Category:
    return await get_or_raise(db, Category, category_id, entity="Category")


async def list_child_categories(
    db: AsyncSession, parent_id: Optional[int] = None
) -> list[Category]:
    """Direct children of ``parent_id``; top-level categories when it is None."""
    if parent_id is None:
        condition = Category.parent_id.is_(None)
    else:
        condition = Category.parent_id == parent_id
    result = await db.execute(
        select(Category)
        .where(condition)
        .order_by(Category.name)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_category(db: AsyncSession, category_id: int, **changes) -> Category:
    data = validated(CategoryUpdate, entity="Category", **changes)
    category = await get_category(db, category_id)
    values = data.model_dump(exclude_unset=True)
    if "parent_id" in values:
        await _check_parent(db, category_id, values["parent_id"])

    apply_changes(category, values, entity="Category")
    await commit_or_raise(db, entity="Category")
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """Delete a category; subcategories become top-level, product links go."""
    await get_category(db, category_id)
    await commit_or_raise(
        db,
        entity="Category",
        operation="delete",
        statement=delete(Category).where(Category.id == category_id),
    )

    logger.info("Deleted category %s", category_id)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


async def create_product(
    db: AsyncSession,
    *,
    sku: str,
    name: str,
    price: Decimal,
    description: Optional[str] = None,
    weight_kg: Optional[Decimal] = None,
    active: bool = True,
    supplier_id: Optional[int] = None,
    initial_quantity: int = 0,
    reorder_level: int = DEFAULT_REORDER_LEVEL,
) -> Product:
    """Create a product and its inventory record in one transaction."""
    data = validated(
        ProductCreate,
        entity="Product",
        sku=sku,
        name=name,
        description=description,
        price=price,
        weight_kg=weight_kg,
        active=active,
        supplier_id=supplier_id,
    )
    stock = validated(
        InventoryCreate,
        entity="Inventory",
        quantity=initial_quantity,
        reorder_level=reorder_level,
    )
    await ensure_exists(
        db, Supplier, data.supplier_id, entity="Product", field="supplier_id"
    )

    product = Product(**data.model_dump())
    inventory = Inventory(product=product, **stock.model_dump())
    db.add_all([product, inventory])
    await commit_or_raise(db, entity="Product")
    # Refreshing the product also expires its cascaded inventory row
    await db.refresh(product)

    logger.info(
        "Created product %s (sku=%s, stock=%d)",
        product.id,
        product.sku,
        stock.quantity,
    )
    return product


async def get_product(db: AsyncSession, product_id: int) -> Product:
    return await get_or_raise(db, Product, product_id, entity="Product")


async def get_product_by_sku(db: AsyncSession, sku: str) -> Product:
    result = await db.execute(
        select(Product)
        .where(Product.sku == sku)
        .execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFound(
            f"Product with SKU {sku} not found", entity="Product", identifier=sku
        )
    return product


async def update_product(db: AsyncSession, product_id: int, **changes) -> Product:
    data = validated(ProductUpdate, entity="Product", **changes)
    product = await get_product(db, product_id)
    values = data.model_dump(exclude_unset=True)
    await ensure_exists(
        db, Supplier, values.get("supplier_id"), entity="Product", field="supplier_id"
    )

    apply_changes(product, values, entity="Product")
    await commit_or_raise(db, entity="Product")
    await db.refresh(product)

    logger.info("Updated product %s (%s)", product_id, ", ".join(values))
    return product


async def delete_product(db: AsyncSession, product_id: int) -> None:
    """Delete a product with its inventory, category links and reviews.

    A product that appears on any order item cannot be deleted.
    """
    await get_product(db, product_id)

    item_count = await db.scalar(
        select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
    )
    if item_count:
        await db.rollback()
        raise reject(
            DeletionBlocked(
                f"Product {product_id} is on {item_count} order item(s)",
                entity="Product",
                identifier=product_id,
                field="order_items",
            )
        )

    await commit_or_raise(
        db,
        entity="Product",
        operation="delete",
        statement=delete(Product).where(Product.id == product_id),
    )

    logger.info("Deleted product %s", product_id)


# ---------------------------------------------------------------------------
# Product <-> category links
# ---------------------------------------------------------------------------


async def add_product_to_category(
    db: AsyncSession, *, product_id: int, category_id: int
) -> None:
    """Link a product to a category; linking the same pair twice is rejected."""
    await ensure_exists(
        db, Product, product_id, entity="ProductCategory", field="product_id"
    )
    await ensure_exists(
        db, Category, category_id, entity="ProductCategory", field="category_id"
    )

    await commit_or_raise(
        db,
        entity="ProductCategory",
        statement=insert(ProductCategory).values(
            product_id=product_id, category_id=category_id
        ),
    )

    logger.info("Linked product %s to category %s", product_id, category_id)


async def remove_product_from_category(
    db: AsyncSession, *, product_id: int, category_id: int
) -> None:
    linked = await db.scalar(
        select(ProductCategory.product_id).where(
            ProductCategory.product_id == product_id,
            ProductCategory.category_id == category_id,
        )
    )
    if linked is None:
        raise NotFound(
            f"Product {product_id} is not in category {category_id}",
            entity="ProductCategory",
            identifier=(product_id, category_id),
        )

    await commit_or_raise(
        db,
        entity="ProductCategory",
        operation="delete",
        statement=delete(ProductCategory).where(
            ProductCategory.product_id == product_id,
            ProductCategory.category_id == category_id,
        ),
    )

    logger.info("Unlinked product %s from category %s", product_id, category_id)


async def list_product_categories(db: AsyncSession, product_id: int) -> list[Category]:
    result = await db.execute(
        select(Category)
        .join(ProductCategory, ProductCategory.category_id == Category.id)
        .where(ProductCategory.product_id == product_id)
        .order_by(Category.name)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Inventory (one record per product, addressed by product id)
# ---------------------------------------------------------------------------


async def _inventory_for(
    db: AsyncSession, product_id: int, *, for_update: bool = False
) -> Inventory:
    query = (
        select(Inventory)
        .where(Inventory.product_id == product_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    inventory = result.scalar_one_or_none()
    if inventory is None:
        raise NotFound(
            f"Inventory for product {product_id} not found",
            entity="Inventory",
            identifier=product_id,
        )
    return inventory


async def get_inventory(db: AsyncSession, product_id: int) -> Inventory:
    return await _inventory_for(db, product_id)


async def update_inventory(db: AsyncSession, product_id: int, **changes) -> Inventory:
    """Set quantity, reorder level or last restock time for a product."""
    data = validated(InventoryUpdate, entity="Inventory", **changes)

    inventory = await _inventory_for(db, product_id, for_update=True)
    apply_changes(inventory, data.model_dump(exclude_unset=True), entity="Inventory")
    await commit_or_raise(db, entity="Inventory")
    await db.refresh(inventory)

    logger.info(
        "Inventory for product %s now %d (reorder at %d)",
        product_id,
        inventory.quantity,
        inventory.reorder_level,
    )
    return inventory
