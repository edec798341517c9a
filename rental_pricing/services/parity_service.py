"""Parity audit between legacy discount tiers and rate-based pricing.

For every product whose rate tiers were derived mechanically from its
discount tiers, both models are evaluated over a sweep of whole-unit
durations. Differences above a threshold are collected and the worst
products ranked. The audit is advisory: it never changes a product.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from rental_pricing.core.config import Settings
from rental_pricing.models import PricingMode, Product
from rental_pricing.services.money import ZERO, to_money
from rental_pricing.services.pricing_migration import (
    ParityEligibility,
    parity_eligibility,
    split_pricing,
)
from rental_pricing.services.product_pricing import ProductPricingConfig
from rental_pricing.services.rate_solver import DEFAULT_MAX_STEPS

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = Decimal("0.01")
DEFAULT_SWEEP_CAPS: Mapping[PricingMode, int] = {
    PricingMode.HOUR: 24 * 30,
    PricingMode.DAY: 365,
    PricingMode.WEEK: 52,
}


@dataclass(frozen=True, slots=True)
class ParityFinding:
    """Mismatch summary for one product."""

    product_id: str
    mode: PricingMode
    mismatch_count: int
    max_diff: Decimal
    avg_diff: Decimal
    first_mismatch_duration: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "mode": self.mode.value,
            "mismatch_count": self.mismatch_count,
            "max_diff": f"{self.max_diff:.2f}",
            "avg_diff": f"{self.avg_diff:.2f}",
            "first_mismatch_duration": self.first_mismatch_duration,
        }


@dataclass(slots=True)
class ParityReport:
    """Counters and ranked findings of one audit run."""

    threshold: Decimal
    products_scanned: int = 0
    products_checked: int = 0
    products_skipped_base_period: int = 0
    products_skipped_non_legacy: int = 0
    products_failed: int = 0
    mismatched_points: int = 0
    max_diff: Decimal = ZERO
    findings: list[ParityFinding] = field(default_factory=list)

    def top(self, count: int) -> list[ParityFinding]:
        return self.findings[:count]

    def summary(self) -> dict[str, Any]:
        return {
            "products_scanned": self.products_scanned,
            "products_checked": self.products_checked,
            "products_skipped_base_period": self.products_skipped_base_period,
            "products_skipped_non_legacy": self.products_skipped_non_legacy,
            "products_failed": self.products_failed,
            "mismatched_products": len(self.findings),
            "mismatched_points": self.mismatched_points,
            "threshold": str(self.threshold),
            "max_diff": f"{to_money(self.max_diff):.2f}",
        }


def sweep_caps_from_settings(settings: Settings) -> dict[PricingMode, int]:
    return {
        PricingMode.HOUR: settings.parity_cap_hour,
        PricingMode.DAY: settings.parity_cap_day,
        PricingMode.WEEK: settings.parity_cap_week,
    }


def rank_findings(findings: Iterable[ParityFinding]) -> list[ParityFinding]:
    """Worst first: largest max diff, then most mismatches, then product id."""
    return sorted(
        findings,
        key=lambda item: (-item.max_diff, -item.mismatch_count, item.product_id),
    )


@dataclass(slots=True)
class _SweepStats:
    mismatch_count: int = 0
    sum_diff: Decimal = ZERO
    max_diff: Decimal = ZERO
    max_any_diff: Decimal = ZERO
    first_mismatch: int | None = None


def _sweep(
    config: ProductPricingConfig,
    *,
    threshold: Decimal,
    cap: int,
    max_steps: int,
) -> _SweepStats:
    legacy, rate_based = split_pricing(config)
    unit_minutes = config.mode_period_minutes
    stats = _SweepStats()
    for units in range(1, cap + 1):
        legacy_value = legacy.subtotal(units).subtotal
        rate_value = rate_based.solve(
            units * unit_minutes, max_steps=max_steps
        ).total_cost
        diff = abs(legacy_value - rate_value)
        stats.max_any_diff = max(stats.max_any_diff, diff)
        if diff > threshold:
            stats.mismatch_count += 1
            stats.sum_diff += diff
            stats.max_diff = max(stats.max_diff, diff)
            if stats.first_mismatch is None:
                stats.first_mismatch = units
    return stats


def _finding(config: ProductPricingConfig, stats: _SweepStats) -> ParityFinding | None:
    if stats.mismatch_count == 0:
        return None
    return ParityFinding(
        product_id=config.product_id,
        mode=config.pricing_mode,
        mismatch_count=stats.mismatch_count,
        max_diff=to_money(stats.max_diff),
        avg_diff=to_money(stats.sum_diff / stats.mismatch_count),
        first_mismatch_duration=stats.first_mismatch,
    )


def audit_product(
    config: ProductPricingConfig,
    *,
    threshold: Decimal = DEFAULT_THRESHOLD,
    cap: int | None = None,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> ParityFinding | None:
    """Compare both models for one product; None when they agree."""
    sweep_cap = cap if cap is not None else DEFAULT_SWEEP_CAPS[config.pricing_mode]
    stats = _sweep(config, threshold=threshold, cap=sweep_cap, max_steps=max_steps)
    return _finding(config, stats)


def _as_config(product: Product | ProductPricingConfig) -> ProductPricingConfig:
    if isinstance(product, ProductPricingConfig):
        return product
    return ProductPricingConfig.from_model(product)


def run_parity_audit(
    products: Iterable[Product | ProductPricingConfig],
    *,
    threshold: Decimal = DEFAULT_THRESHOLD,
    caps: Mapping[PricingMode, int] | None = None,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> ParityReport:
    """Audit products sequentially; a failing product does not stop the run."""
    sweep_caps = dict(DEFAULT_SWEEP_CAPS)
    sweep_caps.update(caps or {})
    report = ParityReport(threshold=threshold)
    findings: list[ParityFinding] = []

    for product in products:
        report.products_scanned += 1
        product_id = getattr(product, "product_id", None) or getattr(product, "id", "?")
        try:
            config = _as_config(product)
            eligibility = parity_eligibility(config)
            if eligibility is ParityEligibility.CUSTOM_BASE_PERIOD:
                report.products_skipped_base_period += 1
                continue
            if eligibility is ParityEligibility.NON_LEGACY_TIERS:
                report.products_skipped_non_legacy += 1
                continue

            stats = _sweep(
                config,
                threshold=threshold,
                cap=sweep_caps[config.pricing_mode],
                max_steps=max_steps,
            )
        except Exception:
            report.products_failed += 1
            logger.exception("Parity audit failed for product %s", product_id)
            continue

        report.products_checked += 1
        report.max_diff = max(report.max_diff, stats.max_any_diff)
        if stats.mismatch_count:
            report.mismatched_points += stats.mismatch_count
            findings.append(_finding(config, stats))

    report.findings = rank_findings(findings)
    logger.info(
        "Parity audit finished: scanned=%s checked=%s mismatched=%s failed=%s",
        report.products_scanned,
        report.products_checked,
        len(report.findings),
        report.products_failed,
    )
    return report

