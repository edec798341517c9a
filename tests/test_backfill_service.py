"""Tests for the rate-tier backfill."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from rental_pricing.db.session import get_sessionmaker
from rental_pricing.models import Product, ProductPricingTier
from rental_pricing.services.backfill_service import backfill_rate_tiers

pytestmark = pytest.mark.asyncio


async def _load(db_url: str, product_id) -> Product:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        result = await session.execute(
            select(Product)
            .options(selectinload(Product.pricing_tiers))
            .where(Product.id == product_id)
        )
        return result.scalar_one()


async def test_dry_run_reports_without_writing(catalog, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        report = await backfill_rate_tiers(session, store_id=catalog["store_id"])

    assert report.to_dict() == {
        "mode": "dry-run",
        "products_scanned": 2,
        "products_updated_base_period": 1,
        "tiers_scanned": 3,
        "tiers_updated": 2,
        "tiers_already_backfilled": 1,
        "tiers_skipped_missing_legacy_data": 0,
    }
    product = await _load(db_url, catalog["legacy_product_id"])
    assert product.base_period_minutes is None
    assert all(tier.period is None for tier in product.pricing_tiers)


async def test_apply_writes_converted_tiers(catalog, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        report = await backfill_rate_tiers(
            session, product_id=catalog["legacy_product_id"], apply=True
        )
    assert report.apply
    assert report.tiers_updated == 2

    product = await _load(db_url, catalog["legacy_product_id"])
    assert product.base_period_minutes == 1440
    tiers = sorted(product.pricing_tiers, key=lambda tier: tier.min_duration)
    assert [(tier.period, tier.price) for tier in tiers] == [
        (4320, Decimal("270.00")),
        (10080, Decimal("560.00")),
    ]

    async with sessionmaker() as session:
        again = await backfill_rate_tiers(
            session, product_id=catalog["legacy_product_id"], apply=True
        )
    assert again.tiers_updated == 0
    assert again.tiers_already_backfilled == 2
    assert again.products_updated_base_period == 0


async def test_out_of_range_discount_is_skipped(catalog, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add(
            ProductPricingTier(
                product_id=catalog["legacy_product_id"],
                min_duration=14,
                discount_percent=Decimal("150"),
                display_order=2,
            )
        )
        await session.commit()

    async with sessionmaker() as session:
        report = await backfill_rate_tiers(
            session, product_id=catalog["legacy_product_id"], apply=True
        )
    assert report.tiers_updated == 2
    assert report.tiers_skipped_missing_legacy_data == 1

    product = await _load(db_url, catalog["legacy_product_id"])
    broken = next(tier for tier in product.pricing_tiers if tier.min_duration == 14)
    assert broken.period is None
    assert broken.price is None
