"""Pricing engine service for product rentals."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rental_pricing.core.config import get_settings
from rental_pricing.models import PricingMode
from rental_pricing.services import catalog_service
from rental_pricing.services.legacy_pricing import find_applicable_tier
from rental_pricing.services.money import ZERO, to_money, to_str
from rental_pricing.services.pricing_errors import (
    InvalidDurationError,
    ProductNotFoundError,
)
from rental_pricing.services.product_pricing import (
    LegacyPricing,
    ProductPricingConfig,
    RatePricing,
    resolve_product_pricing,
)
from rental_pricing.services.rate_schedule import available_periods, snap_to_period
from rental_pricing.services.rate_solver import solve_min_cost


@dataclass(slots=True)
class QuotePlanLine:
    """One rate period bought for the quote."""

    period_minutes: int
    price: Decimal
    quantity: int


@dataclass(slots=True)
class ProductQuote:
    """Price of renting ``quantity`` units of a product over a date range."""

    product_id: UUID
    currency: str
    pricing_mode: PricingMode
    duration_minutes: int
    quantity: int
    unit_subtotal: Decimal
    subtotal: Decimal
    deposit: Decimal
    total: Decimal
    original_subtotal: Decimal
    savings: Decimal
    plan: list[QuotePlanLine]
    discount_percent: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the quote to plain types for responses."""
        return {
            "product_id": str(self.product_id),
            "currency": self.currency,
            "pricing_mode": self.pricing_mode.value,
            "duration_minutes": self.duration_minutes,
            "quantity": self.quantity,
            "unit_subtotal": to_str(self.unit_subtotal),
            "subtotal": to_str(self.subtotal),
            "deposit": to_str(self.deposit),
            "total": to_str(self.total),
            "original_subtotal": to_str(self.original_subtotal),
            "savings": to_str(self.savings),
            "discount_percent": (
                None if self.discount_percent is None else str(self.discount_percent)
            ),
            "plan": [
                {
                    "period_minutes": line.period_minutes,
                    "price": to_str(line.price),
                    "quantity": line.quantity,
                }
                for line in self.plan
            ],
        }


def duration_minutes_between(
    start_at: datetime.datetime, end_at: datetime.datetime
) -> int:
    """Whole minutes between two instants; a started minute counts in full."""
    try:
        delta = end_at - start_at
    except TypeError as exc:
        raise InvalidDurationError(
            "start_at and end_at must both be timezone-aware or both naive"
        ) from exc
    seconds = delta.total_seconds()
    if seconds <= 0:
        raise InvalidDurationError("Rental must end after it starts")
    return math.ceil(seconds / 60)


async def quote_product(
    session: AsyncSession,
    *,
    store_id: UUID,
    product_id: UUID,
    start_at: datetime.datetime,
    end_at: datetime.datetime,
    quantity: int = 1,
) -> ProductQuote:
    """Produce a pricing quote for renting a product between two instants."""

    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    product = await catalog_service.get_store_product(
        session, store_id=store_id, product_id=product_id
    )
    if product is None:
        raise ProductNotFoundError("Product not found for store")

    duration = duration_minutes_between(start_at, end_at)
    config = ProductPricingConfig.from_model(product)
    pricing = resolve_product_pricing(config)
    if isinstance(pricing, RatePricing):
        quote = _quote_rate_based(pricing, config, duration, quantity)
    else:
        quote = _quote_legacy(pricing, config, duration, quantity)
    if product.store is not None:
        quote.currency = product.store.currency
    return quote


def _quote_rate_based(
    pricing: RatePricing,
    config: ProductPricingConfig,
    duration: int,
    quantity: int,
) -> ProductQuote:
    max_steps = get_settings().solver_max_steps
    if config.enforce_strict_tiers:
        duration = snap_to_period(duration, available_periods(pricing.rates))

    solution = pricing.solve(duration, max_steps=max_steps)
    base_only = solve_min_cost(duration, [pricing.base_rate], max_steps=max_steps)
    plan = [
        QuotePlanLine(
            period_minutes=line.rate.period_minutes,
            price=line.rate.price,
            quantity=line.quantity,
        )
        for line in solution.plan
    ]
    return _build_quote(
        config,
        duration=duration,
        quantity=quantity,
        unit_subtotal=solution.total_cost,
        unit_original=base_only.total_cost,
        plan=plan,
    )


def _quote_legacy(
    pricing: LegacyPricing,
    config: ProductPricingConfig,
    duration: int,
    quantity: int,
) -> ProductQuote:
    units = pricing.units_for(duration)
    if config.enforce_strict_tiers and pricing.tiers:
        allowed = sorted({1, *(tier.min_duration_units for tier in pricing.tiers)})
        units = snap_to_period(units, allowed)

    result = pricing.subtotal(units)
    unit_original = to_money(pricing.base_price * units)
    tier = _applied_tier_percent(pricing, units)
    return _build_quote(
        config,
        duration=units * pricing.pricing_mode.minutes,
        quantity=quantity,
        unit_subtotal=result.subtotal,
        unit_original=unit_original,
        plan=[
            QuotePlanLine(
                period_minutes=pricing.pricing_mode.minutes,
                price=to_money(result.subtotal / units),
                quantity=units,
            )
        ],
        discount_percent=tier,
    )


def _applied_tier_percent(pricing: LegacyPricing, units: int) -> Decimal | None:
    tier = find_applicable_tier(pricing.tiers, units)
    return None if tier is None else tier.discount_percent


def _build_quote(
    config: ProductPricingConfig,
    *,
    duration: int,
    quantity: int,
    unit_subtotal: Decimal,
    unit_original: Decimal,
    plan: list[QuotePlanLine],
    discount_percent: Decimal | None = None,
) -> ProductQuote:
    subtotal = to_money(unit_subtotal * quantity)
    original = to_money(unit_original * quantity)
    deposit = to_money(config.deposit * quantity)
    savings = max(ZERO, original - subtotal)
    return ProductQuote(
        product_id=UUID(config.product_id),
        currency=get_settings().default_currency,
        pricing_mode=config.pricing_mode,
        duration_minutes=duration,
        quantity=quantity,
        unit_subtotal=unit_subtotal,
        subtotal=subtotal,
        deposit=deposit,
        total=to_money(subtotal + deposit),
        original_subtotal=original,
        savings=savings,
        plan=plan,
        discount_percent=discount_percent,
    )

