"""Tests for the preflight command line entry point."""

from __future__ import annotations

import asyncio
import json
import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from rental_pricing.db.base import Base
from rental_pricing.db.session import open_session
from rental_pricing.models import PricingMode, Product, ProductPricingTier, Store
from scripts import pricing_preflight


async def _prepare(db_url: str) -> dict[str, uuid.UUID]:
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()

    async with open_session(db_url) as session:
        store = Store(name="Lakeside Gear", slug="lakeside-gear")
        session.add(store)
        await session.flush()
        kayak = Product(
            store_id=store.id,
            name="Kayak",
            price=Decimal("80.00"),
            pricing_mode=PricingMode.DAY,
        )
        paddle = Product(
            store_id=store.id,
            name="Paddle",
            price=Decimal("10.00"),
            pricing_mode=PricingMode.DAY,
        )
        session.add_all([kayak, paddle])
        await session.flush()
        session.add_all(
            [
                ProductPricingTier(
                    product_id=kayak.id, min_duration=3, discount_percent=Decimal("10")
                ),
                ProductPricingTier(
                    product_id=kayak.id,
                    min_duration=14,
                    discount_percent=Decimal("150"),
                ),
                ProductPricingTier(
                    product_id=paddle.id, min_duration=7, discount_percent=Decimal("25")
                ),
            ]
        )
        await session.commit()
        return {"store_id": store.id, "kayak_id": kayak.id, "paddle_id": paddle.id}


@pytest.fixture()
def seeded_db(tmp_path) -> tuple[str, dict[str, uuid.UUID]]:
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'preflight.db'}"
    return db_url, asyncio.run(_prepare(db_url))


def test_preflight_lists_blockers(seeded_db, capsys) -> None:
    db_url, ids = seeded_db
    exit_code = pricing_preflight.main(
        ["--database-url", db_url, "--store-id", str(ids["store_id"])]
    )
    assert exit_code == 0

    output = capsys.readouterr().out
    assert "Pricing preflight summary" in output
    assert "Products with blockers" in output
    assert "invalid_tier_discount_percent" in output
    assert f"product={ids['kayak_id']}" in output


def test_fail_on_blockers_sets_exit_code(seeded_db, tmp_path) -> None:
    db_url, ids = seeded_db
    report_path = tmp_path / "preflight.json"
    exit_code = pricing_preflight.main(
        [
            "--database-url",
            db_url,
            "--fail-on-blockers",
            "--output-json",
            str(report_path),
        ]
    )
    assert exit_code == 1

    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["report"]["products_scanned"] == 2
    assert data["report"]["products_ready"] == 1
    assert data["report"]["blocker_count"] == 1
    assert data["report"]["tiers_computed"] == 2
    assert [issue["product_id"] for issue in data["issues"]] == [str(ids["kayak_id"])]


def test_clean_product_passes(seeded_db, capsys) -> None:
    db_url, ids = seeded_db
    exit_code = pricing_preflight.main(
        [
            "--database-url",
            db_url,
            "--product-id",
            str(ids["paddle_id"]),
            "--fail-on-blockers",
        ]
    )
    assert exit_code == 0
    assert "No issues found." in capsys.readouterr().out


def test_preflight_exits_1_on_unexpected_error(tmp_path, capsys) -> None:
    missing_schema = f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}"
    assert pricing_preflight.main(["--database-url", missing_schema]) == 1
    assert "Pricing preflight summary" not in capsys.readouterr().out


def test_limit_must_be_positive() -> None:
    with pytest.raises(SystemExit) as excinfo:
        pricing_preflight.main(["--limit", "0"])
    assert excinfo.value.code == 2
