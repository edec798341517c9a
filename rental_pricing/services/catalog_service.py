"""Product catalog queries used by the pricing batch jobs."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rental_pricing.models import Product, ProductStatus


async def load_products(
    session: AsyncSession,
    *,
    store_id: UUID | None = None,
    product_id: UUID | None = None,
    limit: int | None = None,
) -> list[Product]:
    """Fetch products with their tier rows, optionally filtered."""
    stmt = (
        select(Product)
        .options(selectinload(Product.pricing_tiers))
        .order_by(Product.created_at, Product.id)
    )
    if store_id is not None:
        stmt = stmt.where(Product.store_id == store_id)
    if product_id is not None:
        stmt = stmt.where(Product.id == product_id)
    if limit:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def get_store_product(
    session: AsyncSession,
    *,
    store_id: UUID,
    product_id: UUID,
) -> Product | None:
    """Return an active product of the store with its tiers and store loaded."""
    stmt: Select[tuple[Product]] = (
        select(Product)
        .options(selectinload(Product.pricing_tiers), selectinload(Product.store))
        .where(
            and_(
                Product.id == product_id,
                Product.store_id == store_id,
                Product.status == ProductStatus.ACTIVE,
            )
        )
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()
