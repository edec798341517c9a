"""Pricing-related API endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_pricing.api import deps
from rental_pricing.schemas.pricing import PricingQuoteRead, PricingQuoteRequest
from rental_pricing.services import pricing_service
from rental_pricing.services.pricing_errors import ProductNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/quote", response_model=PricingQuoteRead, summary="Quote a rental")
async def quote_product_pricing(
    payload: PricingQuoteRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> PricingQuoteRead:
    try:
        quote = await pricing_service.quote_product(
            session,
            store_id=payload.store_id,
            product_id=payload.product_id,
            start_at=payload.start_at,
            end_at=payload.end_at,
            quantity=payload.quantity,
        )
    except ProductNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
        ) from exc
    except ValueError as exc:
        logger.info("Quote rejected for product %s: %s", payload.product_id, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return PricingQuoteRead.model_validate(quote)
