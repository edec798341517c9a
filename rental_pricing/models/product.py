"""Catalog product and pricing tier models."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rental_pricing.db.base import Base
from rental_pricing.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from rental_pricing.models.store import Store


class PricingMode(str, enum.Enum):
    """Natural rental unit of a product."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"

    @property
    def minutes(self) -> int:
        """Length of one natural unit in minutes."""
        return _MODE_MINUTES[self]


_MODE_MINUTES = {
    PricingMode.HOUR: 60,
    PricingMode.DAY: 1440,
    PricingMode.WEEK: 10080,
}


class ProductStatus(str, enum.Enum):
    """Publication status of a product."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class Product(TimestampMixin, Base):
    """A rentable product and its base pricing."""

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    deposit: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    # Null until the product is migrated to rate-based pricing.
    base_period_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pricing_mode: Mapped[PricingMode] = mapped_column(
        Enum(PricingMode), nullable=False, default=PricingMode.DAY
    )
    enforce_strict_tiers: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    status: Mapped[ProductStatus] = mapped_column(
        Enum(ProductStatus), nullable=False, default=ProductStatus.ACTIVE
    )

    store: Mapped["Store"] = relationship("Store", back_populates="products")
    pricing_tiers: Mapped[list["ProductPricingTier"]] = relationship(
        "ProductPricingTier",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductPricingTier.display_order",
    )


class ProductPricingTier(TimestampMixin, Base):
    """One pricing tier row.

    The table holds both tier representations during the migration: the
    legacy ``min_duration``/``discount_percent`` pair and the rate-based
    ``period``/``price`` pair. Either pair may be null.
    """

    __tablename__ = "product_pricing_tiers"
    __table_args__ = (
        UniqueConstraint(
            "product_id", "min_duration", name="product_pricing_tiers_unique"
        ),
        UniqueConstraint(
            "product_id", "period", name="product_pricing_tiers_unique_period"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    min_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discount_percent: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 6), nullable=True
    )
    period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped["Product"] = relationship(
        "Product", back_populates="pricing_tiers"
    )
