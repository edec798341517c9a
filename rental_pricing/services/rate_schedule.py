"""Normalize product pricing configuration into rate options.

A rate option says "renting for exactly ``period_minutes`` costs ``price``".
The product's base price over its base period is always one of them; extra
rate tiers add more. Tier rows come from a table shared with the legacy
discount model, so many of them are partially filled. Such rows are
dropped here without raising.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from rental_pricing.services.money import parse_decimal
from rental_pricing.services.pricing_errors import PricingConfigurationError


@dataclass(frozen=True, slots=True)
class RateOption:
    """A (period, price) building block for the cost search."""

    period_minutes: int
    price: Decimal


def parse_period(value: Any) -> int | None:
    """Return a positive integer period in minutes, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    return value if value > 0 else None


def _coerce_rate(entry: Any) -> RateOption | None:
    if entry is None:
        return None
    if isinstance(entry, RateOption):
        raw_period, raw_price = entry.period_minutes, entry.price
    elif isinstance(entry, Mapping):
        raw_period = entry.get("period", entry.get("period_minutes"))
        raw_price = entry.get("price")
    else:
        raw_period = getattr(entry, "period", getattr(entry, "period_minutes", None))
        raw_price = getattr(entry, "price", None)

    period = parse_period(raw_period)
    price = parse_decimal(raw_price)
    if period is None or price is None or price < 0:
        return None
    return RateOption(period_minutes=period, price=price)


def resolve_rate_schedule(
    base_price: Decimal | int | str,
    base_period_minutes: int,
    extra_tiers: Iterable[Any] | None = None,
) -> list[RateOption]:
    """Build the deduplicated rate list used by the solver.

    ``extra_tiers`` may hold :class:`RateOption` instances, mappings with
    ``period``/``price`` keys, tier rows, or ``None``. Invalid entries are
    skipped. When two options share a period the cheaper one is kept; the
    base rate is considered first so it wins a tie. The result is sorted by
    ascending period.
    """
    price = parse_decimal(base_price)
    period = parse_period(base_period_minutes)
    if price is None or price < 0:
        raise PricingConfigurationError(f"Invalid base price: {base_price!r}")
    if period is None:
        raise PricingConfigurationError(
            f"Invalid base period: {base_period_minutes!r}"
        )

    candidates = [RateOption(period_minutes=period, price=price)]
    for entry in extra_tiers or ():
        rate = _coerce_rate(entry)
        if rate is not None:
            candidates.append(rate)

    by_period: dict[int, RateOption] = {}
    for rate in candidates:
        current = by_period.get(rate.period_minutes)
        if current is None or rate.price < current.price:
            by_period[rate.period_minutes] = rate

    return sorted(by_period.values(), key=lambda rate: rate.period_minutes)


def available_periods(rates: Iterable[RateOption]) -> list[int]:
    """Sorted distinct periods a strict-tier product may be booked for."""
    return sorted({rate.period_minutes for rate in rates})


def snap_to_period(duration_minutes: int, periods: list[int]) -> int:
    """Round a duration up to the nearest bookable period.

    Durations longer than every period are returned unchanged; the solver
    then covers them with a combination of periods.
    """
    for period in periods:
        if period >= duration_minutes:
            return period
    return duration_minutes
