"""Tests for discount-tier pricing."""

from __future__ import annotations

from decimal import Decimal

import pytest

from rental_pricing.services.legacy_pricing import (
    LegacyTier,
    find_applicable_tier,
    legacy_subtotal,
    normalize_legacy_tiers,
    validate_legacy_tiers,
)
from rental_pricing.services.pricing_errors import (
    InvalidDurationError,
    PricingConfigurationError,
)

TIERS = [
    {"min_duration": 3, "discount_percent": "10"},
    {"min_duration": 7, "discount_percent": "20"},
]


@pytest.mark.parametrize(
    ("units", "expected"),
    [
        (1, Decimal("100.00")),
        (2, Decimal("200.00")),
        (3, Decimal("270.00")),
        (6, Decimal("540.00")),
        (7, Decimal("560.00")),
        (30, Decimal("2400.00")),
    ],
)
def test_highest_reached_tier_applies(units: int, expected: Decimal) -> None:
    assert legacy_subtotal(Decimal("100.00"), TIERS, units).subtotal == expected


def test_no_tiers_is_base_times_units() -> None:
    assert legacy_subtotal("12.50", None, 5).subtotal == Decimal("62.50")


def test_rounding_happens_on_the_subtotal() -> None:
    # 3 x 33.33 x 0.85 = 84.9915
    tiers = [LegacyTier(min_duration_units=3, discount_percent=Decimal("15"))]
    assert legacy_subtotal(Decimal("33.33"), tiers, 3).subtotal == Decimal("84.99")


def test_malformed_tiers_are_ignored() -> None:
    tiers = [
        None,
        {"min_duration": 0, "discount_percent": 50},
        {"min_duration": 2, "discount_percent": None},
        {"min_duration": True, "discount_percent": 50},
        {"min_duration": 4, "discount_percent": "25"},
    ]
    assert normalize_legacy_tiers(tiers) == [
        LegacyTier(min_duration_units=4, discount_percent=Decimal("25"))
    ]
    assert find_applicable_tier(tiers, 3) is None
    assert find_applicable_tier(tiers, 4).discount_percent == Decimal("25")


def test_tier_order_does_not_matter() -> None:
    shuffled = list(reversed(TIERS))
    assert find_applicable_tier(shuffled, 10).min_duration_units == 7


def test_non_positive_units_raise() -> None:
    with pytest.raises(InvalidDurationError):
        legacy_subtotal(Decimal("10"), TIERS, 0)


def test_invalid_base_price_raises() -> None:
    with pytest.raises(PricingConfigurationError):
        legacy_subtotal(Decimal("-1"), TIERS, 1)


def test_validate_legacy_tiers() -> None:
    assert validate_legacy_tiers(normalize_legacy_tiers(TIERS)) is None
    assert validate_legacy_tiers(
        [LegacyTier(3, Decimal("10")), LegacyTier(3, Decimal("20"))]
    ) == "Each tier must have a unique minimum duration"
    assert validate_legacy_tiers([LegacyTier(0, Decimal("10"))]) == (
        "Minimum duration must be at least 1"
    )
    assert validate_legacy_tiers([LegacyTier(2, Decimal("100"))]) == (
        "Discount must be between 0 and 99 percent"
    )


@pytest.mark.parametrize("discount", ["150", "-10", "100.01"])
def test_out_of_range_discount_is_ignored(discount: str) -> None:
    tiers = [{"min_duration": 1, "discount_percent": discount}]
    assert find_applicable_tier(tiers, 2) is None
    assert legacy_subtotal(Decimal("100"), tiers, 2).subtotal == Decimal("200.00")


def test_full_discount_prices_at_zero() -> None:
    tiers = [{"min_duration": 1, "discount_percent": "100"}]
    assert legacy_subtotal(Decimal("100"), tiers, 2).subtotal == Decimal("0.00")


def test_prebuilt_tiers_are_range_checked() -> None:
    tiers = [
        LegacyTier(min_duration_units=1, discount_percent=Decimal("150")),
        LegacyTier(min_duration_units=2, discount_percent=Decimal("5")),
    ]
    assert normalize_legacy_tiers(tiers) == [tiers[1]]
