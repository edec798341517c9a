"""Legacy discount-tier pricing.

Before rate tiers, a product carried discount tiers keyed by a minimum
duration in natural units. The tier with the largest minimum that the
rental reaches discounts the unit price for the whole rental.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from rental_pricing.services.money import PricingResult, parse_decimal
from rental_pricing.services.pricing_errors import (
    InvalidDurationError,
    PricingConfigurationError,
)

HUNDRED = Decimal(100)
MAX_DISCOUNT_PERCENT = Decimal(99)


@dataclass(frozen=True, slots=True)
class LegacyTier:
    """``discount_percent`` off the unit price from ``min_duration_units`` on."""

    min_duration_units: int
    discount_percent: Decimal


def coerce_legacy_tier(entry: Any) -> LegacyTier | None:
    """Read a tier from a row or mapping; None when it cannot be priced."""
    if entry is None:
        return None
    if isinstance(entry, LegacyTier):
        raw_min, raw_discount = entry.min_duration_units, entry.discount_percent
    elif isinstance(entry, Mapping):
        raw_min = entry.get("min_duration", entry.get("min_duration_units"))
        raw_discount = entry.get("discount_percent")
    else:
        raw_min = getattr(
            entry, "min_duration", getattr(entry, "min_duration_units", None)
        )
        raw_discount = getattr(entry, "discount_percent", None)

    if isinstance(raw_min, bool) or not isinstance(raw_min, int) or raw_min <= 0:
        return None
    discount = parse_decimal(raw_discount)
    if discount is None or not 0 <= discount <= HUNDRED:
        return None
    return LegacyTier(min_duration_units=raw_min, discount_percent=discount)


def normalize_legacy_tiers(entries: Iterable[Any] | None) -> list[LegacyTier]:
    """Keep tiers carrying a positive minimum duration and a 0-100 discount."""
    tiers = (coerce_legacy_tier(entry) for entry in entries or ())
    return [tier for tier in tiers if tier is not None]


def find_applicable_tier(
    tiers: Iterable[Any], duration_units: int
) -> LegacyTier | None:
    """Return the tier with the highest minimum duration <= ``duration_units``."""
    applicable = [
        tier
        for tier in normalize_legacy_tiers(tiers)
        if tier.min_duration_units <= duration_units
    ]
    if not applicable:
        return None
    return max(applicable, key=lambda tier: tier.min_duration_units)


def effective_unit_price(base_price: Decimal, tier: LegacyTier | None) -> Decimal:
    if tier is None:
        return base_price
    return base_price * (1 - tier.discount_percent / HUNDRED)


def legacy_subtotal(
    base_price: Decimal | int | str,
    tiers: Iterable[Any] | None,
    duration_units: int,
) -> PricingResult:
    """Price ``duration_units`` natural units under the discount-tier model.

    Rounding to cents happens once, on the final subtotal.
    """
    if isinstance(duration_units, bool) or duration_units <= 0:
        raise InvalidDurationError(
            f"Duration must be positive, got {duration_units!r} units"
        )
    price = parse_decimal(base_price)
    if price is None or price < 0:
        raise PricingConfigurationError(f"Invalid base price: {base_price!r}")

    tier = find_applicable_tier(tiers or (), duration_units)
    return PricingResult.from_raw(effective_unit_price(price, tier) * duration_units)


def validate_legacy_tiers(tiers: Iterable[LegacyTier]) -> str | None:
    """Return an error message for an invalid tier set, None when valid."""
    tiers = list(tiers)
    durations = [tier.min_duration_units for tier in tiers]
    if len(durations) != len(set(durations)):
        return "Each tier must have a unique minimum duration"
    for tier in tiers:
        if tier.min_duration_units < 1:
            return "Minimum duration must be at least 1"
        if not 0 <= tier.discount_percent <= MAX_DISCOUNT_PERCENT:
            return "Discount must be between 0 and 99 percent"
    return None
