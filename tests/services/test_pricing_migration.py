"""Tests for the legacy to rate-tier conversion helpers."""

from __future__ import annotations

from decimal import Decimal

from rental_pricing.models import PricingMode
from rental_pricing.services.legacy_pricing import LegacyTier
from rental_pricing.services.pricing_migration import (
    ParityEligibility,
    is_legacy_equivalent,
    legacy_tier_to_rate,
    parity_eligibility,
    split_pricing,
)
from rental_pricing.services.product_pricing import (
    LegacyPricing,
    ProductPricingConfig,
    RatePricing,
    TierRow,
)
from rental_pricing.services.rate_schedule import RateOption

BASE = Decimal("100.00")


def _derived_row(period: int, price: str) -> TierRow:
    return TierRow(
        min_duration=3,
        discount_percent=Decimal("10"),
        period=period,
        price=Decimal(price),
    )


def test_tier_converts_to_rate() -> None:
    rate = legacy_tier_to_rate(LegacyTier(3, Decimal("10")), BASE, 1440)
    assert rate == RateOption(4320, Decimal("270.00"))


def test_conversion_rounds_price_to_cents() -> None:
    rate = legacy_tier_to_rate(LegacyTier(7, Decimal("15")), Decimal("33.33"), 60)
    assert rate == RateOption(420, Decimal("198.31"))


def test_equivalence_rules() -> None:
    derived = _derived_row(4320, "270.00")
    legacy_only = TierRow(min_duration=7, discount_percent=Decimal("20"))
    assert is_legacy_equivalent(BASE, 1440, ())
    assert is_legacy_equivalent(BASE, 1440, (derived, legacy_only))
    assert is_legacy_equivalent(BASE, 1440, (TierRow(),))

    within_tolerance = _derived_row(4320, "270.01")
    assert is_legacy_equivalent(BASE, 1440, (within_tolerance,))

    off_price = _derived_row(4320, "270.02")
    off_period = _derived_row(4000, "270.00")
    rate_only = TierRow(period=4320, price=Decimal("270.00"))
    assert not is_legacy_equivalent(BASE, 1440, (off_price,))
    assert not is_legacy_equivalent(BASE, 1440, (off_period,))
    assert not is_legacy_equivalent(BASE, 1440, (derived, rate_only))


def test_parity_eligibility() -> None:
    unmigrated = ProductPricingConfig(
        product_id="p1", pricing_mode=PricingMode.DAY, base_price=BASE
    )
    custom = ProductPricingConfig(
        product_id="p2",
        pricing_mode=PricingMode.DAY,
        base_price=BASE,
        base_period_minutes=720,
    )
    edited = ProductPricingConfig(
        product_id="p3",
        pricing_mode=PricingMode.HOUR,
        base_price=BASE,
        base_period_minutes=60,
        tiers=(TierRow(period=240, price=Decimal("300")),),
    )
    assert parity_eligibility(unmigrated) is ParityEligibility.ELIGIBLE
    assert parity_eligibility(custom) is ParityEligibility.CUSTOM_BASE_PERIOD
    assert parity_eligibility(edited) is ParityEligibility.NON_LEGACY_TIERS


def test_split_pricing_builds_both_variants() -> None:
    config = ProductPricingConfig(
        product_id="p1",
        pricing_mode=PricingMode.WEEK,
        base_price=BASE,
        tiers=(
            TierRow(
                min_duration=2,
                discount_percent=Decimal("5"),
                period=20160,
                price=Decimal("190.00"),
            ),
        ),
    )
    legacy, rate_based = split_pricing(config)
    assert isinstance(legacy, LegacyPricing)
    assert isinstance(rate_based, RatePricing)
    assert legacy.tiers == (LegacyTier(2, Decimal("5")),)
    assert rate_based.base_period_minutes == 10080
    assert rate_based.rates == (
        RateOption(10080, BASE),
        RateOption(20160, Decimal("190.00")),
    )
