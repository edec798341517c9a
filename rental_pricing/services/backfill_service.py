"""Fill rate-tier columns from legacy discount tiers."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rental_pricing.models import PricingMode
from rental_pricing.services.catalog_service import load_products
from rental_pricing.services.legacy_pricing import coerce_legacy_tier
from rental_pricing.services.pricing_migration import legacy_tier_to_rate
from rental_pricing.services.product_pricing import TierRow

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BackfillReport:
    """Counts of what a backfill run changed (or would change)."""

    apply: bool
    products_scanned: int = 0
    products_updated_base_period: int = 0
    tiers_scanned: int = 0
    tiers_updated: int = 0
    tiers_already_backfilled: int = 0
    tiers_skipped_missing_legacy_data: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = "apply" if data.pop("apply") else "dry-run"
        return data


async def backfill_rate_tiers(
    session: AsyncSession,
    *,
    store_id: UUID | None = None,
    product_id: UUID | None = None,
    limit: int | None = None,
    apply: bool = False,
) -> BackfillReport:
    """Populate ``base_period_minutes`` and tier ``period``/``price``.

    Without ``apply`` nothing is written and the report shows what would
    change.
    """
    report = BackfillReport(apply=apply)
    products = await load_products(
        session, store_id=store_id, product_id=product_id, limit=limit
    )

    for product in products:
        report.products_scanned += 1
        base_price = Decimal(product.price)
        base_period = (
            product.base_period_minutes or PricingMode(product.pricing_mode).minutes
        )

        if not product.base_period_minutes:
            report.products_updated_base_period += 1
            if apply:
                product.base_period_minutes = base_period

        for tier in product.pricing_tiers:
            report.tiers_scanned += 1
            row = TierRow(
                min_duration=tier.min_duration,
                discount_percent=tier.discount_percent,
                period=tier.period,
                price=tier.price,
            )
            if row.has_rate_fields:
                report.tiers_already_backfilled += 1
                continue
            legacy = coerce_legacy_tier(row)
            if legacy is None:
                report.tiers_skipped_missing_legacy_data += 1
                logger.warning(
                    "Tier skipped (unusable legacy fields) product=%s tier=%s",
                    product.id,
                    tier.id,
                )
                continue

            rate = legacy_tier_to_rate(legacy, base_price, base_period)
            report.tiers_updated += 1
            if apply:
                tier.period = rate.period_minutes
                tier.price = rate.price

    if apply:
        await session.commit()
    else:
        await session.rollback()
    logger.info("Backfill finished: %s", report.to_dict())
    return report
