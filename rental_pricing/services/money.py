"""Decimal helpers for monetary values."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to cents using half-up rounding."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_str(value: Decimal) -> str:
    return f"{to_money(value):.2f}"


def parse_decimal(value: object) -> Decimal | None:
    """Return ``value`` as a finite Decimal, or None when it is not a number.

    Storage rows carry prices as strings or numerics and may hold nulls;
    comma decimal separators are accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not parsed.is_finite():
        return None
    return parsed


@dataclass(frozen=True, slots=True)
class PricingResult:
    """Subtotal returned by the pricers, always rounded to cents."""

    subtotal: Decimal
    rounded_to_cents: bool = True

    @classmethod
    def from_raw(cls, value: Decimal) -> PricingResult:
        return cls(subtotal=to_money(value))
