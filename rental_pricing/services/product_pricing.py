"""Product pricing configuration and its two pricing variants."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from rental_pricing.models.product import PricingMode
from rental_pricing.services.legacy_pricing import (
    LegacyTier,
    legacy_subtotal,
    normalize_legacy_tiers,
)
from rental_pricing.services.money import PricingResult, parse_decimal
from rental_pricing.services.pricing_errors import PricingConfigurationError
from rental_pricing.services.rate_schedule import (
    RateOption,
    parse_period,
    resolve_rate_schedule,
)
from rental_pricing.services.rate_solver import (
    DEFAULT_MAX_STEPS,
    RateSolution,
    solve_min_cost,
)

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from rental_pricing.models.product import Product


@dataclass(frozen=True, slots=True)
class TierRow:
    """Copy of one ``product_pricing_tiers`` row; any field may be null."""

    min_duration: int | None = None
    discount_percent: Decimal | None = None
    period: int | None = None
    price: Decimal | None = None

    @property
    def has_legacy_fields(self) -> bool:
        return (
            parse_period(self.min_duration) is not None
            and parse_decimal(self.discount_percent) is not None
        )

    @property
    def has_rate_fields(self) -> bool:
        return (
            parse_period(self.period) is not None
            and parse_decimal(self.price) is not None
        )


@dataclass(frozen=True, slots=True)
class ProductPricingConfig:
    """Pricing inputs of a product, detached from the ORM session."""

    product_id: str
    pricing_mode: PricingMode
    base_price: Decimal
    base_period_minutes: int | None = None
    store_id: str | None = None
    deposit: Decimal = Decimal("0.00")
    enforce_strict_tiers: bool = False
    tiers: tuple[TierRow, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, product: Product) -> ProductPricingConfig:
        return cls(
            product_id=str(product.id),
            store_id=str(product.store_id) if product.store_id else None,
            pricing_mode=PricingMode(product.pricing_mode),
            base_price=Decimal(product.price),
            base_period_minutes=product.base_period_minutes,
            deposit=Decimal(product.deposit or 0),
            enforce_strict_tiers=bool(product.enforce_strict_tiers),
            tiers=tuple(
                TierRow(
                    min_duration=tier.min_duration,
                    discount_percent=tier.discount_percent,
                    period=tier.period,
                    price=tier.price,
                )
                for tier in product.pricing_tiers or ()
            ),
        )

    @property
    def mode_period_minutes(self) -> int:
        return self.pricing_mode.minutes

    @property
    def is_rate_based(self) -> bool:
        return parse_period(self.base_period_minutes) is not None


@dataclass(frozen=True, slots=True)
class LegacyPricing:
    """Discount tiers over a natural unit."""

    base_price: Decimal
    pricing_mode: PricingMode
    tiers: tuple[LegacyTier, ...]

    def units_for(self, duration_minutes: int) -> int:
        """Natural units billed for a duration; partial units count in full."""
        return max(1, math.ceil(duration_minutes / self.pricing_mode.minutes))

    def subtotal(self, duration_units: int) -> PricingResult:
        return legacy_subtotal(self.base_price, self.tiers, duration_units)


@dataclass(frozen=True, slots=True)
class RatePricing:
    """Base rate plus extra (period, price) rates."""

    base_price: Decimal
    base_period_minutes: int
    rates: tuple[RateOption, ...]

    @property
    def base_rate(self) -> RateOption:
        return RateOption(self.base_period_minutes, self.base_price)

    def solve(
        self, duration_minutes: int, *, max_steps: int = DEFAULT_MAX_STEPS
    ) -> RateSolution:
        return solve_min_cost(duration_minutes, self.rates, max_steps=max_steps)


def build_rate_pricing(
    base_price: Decimal, base_period_minutes: int, tiers: tuple[TierRow, ...]
) -> RatePricing:
    rates = resolve_rate_schedule(
        base_price,
        base_period_minutes,
        [tier for tier in tiers if tier.has_rate_fields],
    )
    return RatePricing(
        base_price=base_price,
        base_period_minutes=base_period_minutes,
        rates=tuple(rates),
    )


def build_legacy_pricing(
    base_price: Decimal, pricing_mode: PricingMode, tiers: tuple[TierRow, ...]
) -> LegacyPricing:
    return LegacyPricing(
        base_price=base_price,
        pricing_mode=pricing_mode,
        tiers=tuple(normalize_legacy_tiers(tiers)),
    )


def resolve_product_pricing(
    config: ProductPricingConfig,
) -> LegacyPricing | RatePricing:
    """Pick the variant a product is priced with.

    Products with a base period are rate based; the others still use
    discount tiers.
    """
    if config.base_price < 0:
        raise PricingConfigurationError(
            f"Product {config.product_id} has a negative base price"
        )
    if config.is_rate_based:
        return build_rate_pricing(
            config.base_price, int(config.base_period_minutes), config.tiers
        )
    return build_legacy_pricing(config.base_price, config.pricing_mode, config.tiers)
