"""Legacy to rate-tier migration helpers.

Everything that knows how discount tiers map onto rate tiers lives here so
it can be removed once every product is rate based.
"""

from __future__ import annotations

import enum
from decimal import Decimal

from rental_pricing.services.legacy_pricing import HUNDRED, LegacyTier
from rental_pricing.services.money import parse_decimal, to_money
from rental_pricing.services.product_pricing import (
    LegacyPricing,
    ProductPricingConfig,
    RatePricing,
    TierRow,
    build_legacy_pricing,
    build_rate_pricing,
)
from rental_pricing.services.rate_schedule import RateOption, parse_period

PRICE_TOLERANCE = Decimal("0.01")


class ParityEligibility(str, enum.Enum):
    """Whether a product can be compared across both pricing models."""

    ELIGIBLE = "eligible"
    CUSTOM_BASE_PERIOD = "custom_base_period"
    NON_LEGACY_TIERS = "non_legacy_tiers"


def legacy_tier_to_rate(
    tier: LegacyTier, base_price: Decimal, unit_minutes: int
) -> RateOption:
    """Rate tier equivalent to a discount tier.

    Renting exactly ``min_duration_units`` units at the discounted unit
    price becomes one period of that length.
    """
    unit_price = base_price * (1 - tier.discount_percent / HUNDRED)
    return RateOption(
        period_minutes=tier.min_duration_units * unit_minutes,
        price=to_money(unit_price * tier.min_duration_units),
    )


def _row_matches_legacy(row: TierRow, base_price: Decimal, unit_minutes: int) -> bool:
    expected = legacy_tier_to_rate(
        LegacyTier(
            min_duration_units=parse_period(row.min_duration),
            discount_percent=parse_decimal(row.discount_percent),
        ),
        base_price,
        unit_minutes,
    )
    if parse_period(row.period) != expected.period_minutes:
        return False
    return abs(parse_decimal(row.price) - expected.price) <= PRICE_TOLERANCE


def is_legacy_equivalent(
    base_price: Decimal, unit_minutes: int, tiers: tuple[TierRow, ...]
) -> bool:
    """True when every rate tier was mechanically derived from its legacy tier.

    A row holding only rate fields was customized after the migration. Rows
    holding only legacy fields, or neither, do not disqualify the product.
    """
    for row in tiers:
        has_legacy = row.has_legacy_fields
        has_rate = row.has_rate_fields
        if has_rate and not has_legacy:
            return False
        if has_rate and has_legacy and not _row_matches_legacy(
            row, base_price, unit_minutes
        ):
            return False
    return True


def parity_eligibility(config: ProductPricingConfig) -> ParityEligibility:
    base_period = config.base_period_minutes or config.mode_period_minutes
    if base_period != config.mode_period_minutes:
        return ParityEligibility.CUSTOM_BASE_PERIOD
    if not is_legacy_equivalent(
        config.base_price, config.mode_period_minutes, config.tiers
    ):
        return ParityEligibility.NON_LEGACY_TIERS
    return ParityEligibility.ELIGIBLE


def split_pricing(config: ProductPricingConfig) -> tuple[LegacyPricing, RatePricing]:
    """Both variants of a product that still stores both tier shapes."""
    base_period = config.base_period_minutes or config.mode_period_minutes
    return (
        build_legacy_pricing(config.base_price, config.pricing_mode, config.tiers),
        build_rate_pricing(config.base_price, base_period, config.tiers),
    )
