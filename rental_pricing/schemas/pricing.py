"""Pricing schema definitions."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rental_pricing.models.product import PricingMode


class PricingQuoteRequest(BaseModel):
    """Input payload for quoting a product rental."""

    store_id: uuid.UUID
    product_id: uuid.UUID
    start_at: datetime.datetime
    end_at: datetime.datetime
    quantity: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _check_range(self) -> "PricingQuoteRequest":
        if (self.start_at.tzinfo is None) != (self.end_at.tzinfo is None):
            raise ValueError("start_at and end_at must share timezone awareness")
        return self


class QuotePlanLineRead(BaseModel):
    """Rate period bought for a quote."""

    period_minutes: int
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class PricingQuoteRead(BaseModel):
    """Pricing response for a product rental."""

    product_id: uuid.UUID
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
    discount_percent: Decimal | None = None
    plan: list[QuotePlanLineRead]

    model_config = ConfigDict(from_attributes=True)
