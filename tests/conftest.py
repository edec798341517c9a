"""Test fixtures for the rental pricing backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from rental_pricing.core.config import get_settings
from rental_pricing.db.base import Base
from rental_pricing.db.session import dispose_engine, get_sessionmaker
from rental_pricing.main import app
from rental_pricing.models import PricingMode, Product, ProductPricingTier, Store


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def catalog(reset_database: None, db_url: str) -> dict[str, uuid.UUID]:
    """Seed one store with a rate-based and a legacy product."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        store = Store(
            name="Alpine Rentals",
            slug=f"alpine-{uuid.uuid4().hex[:8]}",
            currency="CHF",
        )
        session.add(store)
        await session.flush()

        rate_product = Product(
            store_id=store.id,
            name="Camper van",
            price=Decimal("30.00"),
            deposit=Decimal("200.00"),
            pricing_mode=PricingMode.DAY,
            base_period_minutes=1440,
        )
        legacy_product = Product(
            store_id=store.id,
            name="Mountain bike",
            price=Decimal("100.00"),
            pricing_mode=PricingMode.DAY,
        )
        session.add_all([rate_product, legacy_product])
        await session.flush()

        session.add_all(
            [
                ProductPricingTier(
                    product_id=rate_product.id,
                    period=10080,
                    price=Decimal("150.00"),
                ),
                ProductPricingTier(
                    product_id=legacy_product.id,
                    min_duration=3,
                    discount_percent=Decimal("10"),
                    display_order=0,
                ),
                ProductPricingTier(
                    product_id=legacy_product.id,
                    min_duration=7,
                    discount_percent=Decimal("20"),
                    display_order=1,
                ),
            ]
        )
        await session.commit()

        return {
            "store_id": store.id,
            "rate_product_id": rate_product.id,
            "legacy_product_id": legacy_product.id,
        }


@pytest_asyncio.fixture()
async def client(reset_database: None) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
