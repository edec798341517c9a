"""ORM models package export."""

from rental_pricing.models.product import (
    PricingMode,
    Product,
    ProductPricingTier,
    ProductStatus,
)
from rental_pricing.models.store import Store

__all__ = [
    "PricingMode",
    "Product",
    "ProductPricingTier",
    "ProductStatus",
    "Store",
]
