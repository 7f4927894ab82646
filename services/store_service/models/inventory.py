"""Store inventory model: one stock record per product."""

from datetime import datetime
from typing import Optional

from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

DEFAULT_REORDER_LEVEL = 10


class Inventory(Base):
    """Stock level for a product; created and deleted with the product."""

    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE", onupdate="CASCADE"),
        unique=True,
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    reorder_level: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_REORDER_LEVEL,
        server_default=str(DEFAULT_REORDER_LEVEL),
        nullable=False,
    )
    last_restock: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        Index("idx_inventory_quantity", "quantity"),
    )

    product = relationship("Product", back_populates="inventory")

    @property
    def needs_reorder(self) -> bool:
        return self.quantity <= self.reorder_level

    def __repr__(self):
        return f"<Inventory product={self.product_id} qty={self.quantity}>"
