"""Store catalog models: suppliers, categories, products and product reviews."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy import Numeric, SmallInteger, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# SUPPLIERS & CATEGORIES
# ============================================================================


class Supplier(Base):
    """Vendor supplying products. Deleting one detaches its products."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    products = relationship("Product", back_populates="supplier", passive_deletes=True)

    def __repr__(self):
        return f"<Supplier {self.name}>"


class Category(Base):
    """Product categories, optionally nested under a parent category."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Subcategory support
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )

    # Relationships
    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", passive_deletes=True)
    products = relationship(
        "Product",
        secondary="product_categories",
        back_populates="categories",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Category {self.name}>"


# ============================================================================
# PRODUCTS
# ============================================================================


class Product(Base):
    """A sellable product identified by its SKU."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("suppliers.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )

    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    weight_kg: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(8, 3), nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint("weight_kg >= 0", name="weight_kg_non_negative"),
        Index("idx_products_name", "name"),
    )

    # Relationships
    supplier = relationship("Supplier", back_populates="products")
    categories = relationship(
        "Category",
        secondary="product_categories",
        back_populates="products",
        passive_deletes=True,
    )
    inventory = relationship(
        "Inventory",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reviews = relationship(
        "Review",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Product {self.sku}>"


class ProductCategory(Base):
    """Association between products and categories; one row per pair."""

    __tablename__ = "product_categories"

    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )

    def __repr__(self):
        return (
            f"<ProductCategory product={self.product_id} category={self.category_id}>"
        )


# ============================================================================
# REVIEWS
# ============================================================================


class Review(Base):
    """A customer's 1-5 star review of a product.

    Survives deletion of its author (customer_id is nulled) but not of the
    product.
    """

    __tablename__ = "product_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="rating_range"),
    )

    product = relationship("Product", back_populates="reviews")
    customer = relationship("Customer", back_populates="reviews")

    def __repr__(self):
        return f"<Review product={self.product_id} rating={self.rating}>"
