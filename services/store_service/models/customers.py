"""Customer models: customers, their one-to-one profile and their addresses."""

from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import Gender, enum_values
from sqlalchemy import Boolean, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# CUSTOMER MODELS
# ============================================================================


class Customer(Base):
    """A shopper. Owns a profile, addresses, orders and (as author) reviews."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    # Relationships (the database owns ON DELETE behaviour)
    profile = relationship(
        "CustomerProfile",
        back_populates="customer",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    addresses = relationship(
        "Address",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    orders = relationship("Order", back_populates="customer", passive_deletes="all")
    reviews = relationship("Review", back_populates="customer", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Customer {self.email}>"


class CustomerProfile(Base):
    """One-to-one extension of a customer."""

    __tablename__ = "customer_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE", onupdate="CASCADE"),
        unique=True,
        nullable=False,
    )
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Gender] = mapped_column(
        SAEnum(
            Gender,
            values_callable=enum_values,
            name="gender_enum",
            create_constraint=True,
        ),
        default=Gender.OTHER,
        server_default=Gender.OTHER.value,
    )
    loyalty_points: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    customer = relationship("Customer", back_populates="profile")

    def __repr__(self):
        return f"<CustomerProfile customer={self.customer_id}>"


class Address(Base):
    """Postal address of a customer ("home", "work", ...).

    At most one default address per customer is an application rule, not a
    storage constraint.
    """

    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(
        String(50), default="home", server_default="home"
    )
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )

    customer = relationship("Customer", back_populates="addresses")

    def __repr__(self):
        return f"<Address {self.label} customer={self.customer_id}>"
