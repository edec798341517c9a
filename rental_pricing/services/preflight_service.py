"""Migration readiness checks run before the rate-tier backfill.

Every discount tier is converted the way the backfill would convert it
and problems are collected per product. Blockers mean the backfill would
skip or mis-convert data; warnings flag tier sets that convert cleanly but
price oddly. Nothing is written.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

from rental_pricing.models import PricingMode
from rental_pricing.services.legacy_pricing import LegacyTier, validate_legacy_tiers
from rental_pricing.services.money import parse_decimal
from rental_pricing.services.pricing_migration import legacy_tier_to_rate
from rental_pricing.services.rate_schedule import RateOption, parse_period

logger = logging.getLogger(__name__)


class IssueSeverity(str, enum.Enum):
    WARNING = "warning"
    BLOCKER = "blocker"


class IssueCode(str, enum.Enum):
    INVALID_PRICING_MODE = "invalid_pricing_mode"
    INVALID_BASE_PRICE = "invalid_base_price"
    MISSING_TIER_LEGACY_FIELDS = "missing_tier_legacy_fields"
    INVALID_TIER_MIN_DURATION = "invalid_tier_min_duration"
    INVALID_TIER_DISCOUNT_PERCENT = "invalid_tier_discount_percent"
    DUPLICATE_COMPUTED_PERIOD = "duplicate_computed_period"
    NON_PROGRESSIVE_RATE = "non_progressive_rate"


@dataclass(frozen=True, slots=True)
class PreflightIssue:
    severity: IssueSeverity
    code: IssueCode
    product_id: str
    message: str
    tier_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code.value,
            "product_id": self.product_id,
            "tier_id": self.tier_id,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ComputedTier:
    """A discount tier and the rate tier the backfill would write for it."""

    tier_id: str
    legacy: LegacyTier
    rate: RateOption


@dataclass(slots=True)
class ProductCheck:
    """Outcome of checking one product."""

    product_id: str
    issues: list[PreflightIssue] = field(default_factory=list)
    computed_tiers: list[ComputedTier] = field(default_factory=list)
    tiers_scanned: int = 0
    tiers_skipped: int = 0

    @property
    def blockers(self) -> list[PreflightIssue]:
        return [i for i in self.issues if i.severity is IssueSeverity.BLOCKER]

    @property
    def warnings(self) -> list[PreflightIssue]:
        return [i for i in self.issues if i.severity is IssueSeverity.WARNING]

    def add(
        self,
        severity: IssueSeverity,
        code: IssueCode,
        message: str,
        tier_id: str | None = None,
    ) -> None:
        self.issues.append(
            PreflightIssue(
                severity=severity,
                code=code,
                product_id=self.product_id,
                message=message,
                tier_id=tier_id,
            )
        )


@dataclass(slots=True)
class PreflightReport:
    """Counters and issues of one preflight run."""

    products_scanned: int = 0
    products_ready: int = 0
    products_with_warnings: int = 0
    products_with_blockers: int = 0
    products_failed: int = 0
    tiers_scanned: int = 0
    tiers_computed: int = 0
    tiers_skipped: int = 0
    warning_count: int = 0
    blocker_count: int = 0
    issues: list[PreflightIssue] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        data = asdict(self)
        data.pop("issues")
        return data

    def to_dict(self) -> dict[str, Any]:
        return {
            "report": self.summary(),
            "issues": [issue.to_dict() for issue in self.issues],
        }

    def record(self, check: ProductCheck) -> None:
        self.tiers_scanned += check.tiers_scanned
        self.tiers_skipped += check.tiers_skipped
        self.tiers_computed += len(check.computed_tiers)
        blockers, warnings = check.blockers, check.warnings
        self.blocker_count += len(blockers)
        self.warning_count += len(warnings)
        if blockers:
            self.products_with_blockers += 1
        else:
            self.products_ready += 1
        if warnings:
            self.products_with_warnings += 1
        self.issues.extend(check.issues)


def _check_tier(
    check: ProductCheck,
    tier: Any,
    base_price: Decimal | None,
    unit_minutes: int | None,
) -> None:
    tier_id = str(tier.id)
    raw_min, raw_discount = tier.min_duration, tier.discount_percent
    check.tiers_scanned += 1

    if raw_min is None and raw_discount is None:
        check.tiers_skipped += 1
        if parse_period(tier.period) is None or parse_decimal(tier.price) is None:
            check.add(
                IssueSeverity.BLOCKER,
                IssueCode.MISSING_TIER_LEGACY_FIELDS,
                "Tier has neither discount nor rate fields",
                tier_id,
            )
        # Rate-only rows need no conversion.
        return

    min_duration = parse_period(raw_min)
    if min_duration is None:
        check.tiers_skipped += 1
        check.add(
            IssueSeverity.BLOCKER,
            IssueCode.INVALID_TIER_MIN_DURATION,
            f"Invalid min_duration {raw_min!r}",
            tier_id,
        )
        return

    discount = parse_decimal(raw_discount)
    if discount is None:
        check.tiers_skipped += 1
        check.add(
            IssueSeverity.BLOCKER,
            IssueCode.MISSING_TIER_LEGACY_FIELDS
            if raw_discount is None
            else IssueCode.INVALID_TIER_DISCOUNT_PERCENT,
            f"discount_percent {raw_discount!r} cannot be converted",
            tier_id,
        )
        return

    legacy = LegacyTier(min_duration_units=min_duration, discount_percent=discount)
    problem = validate_legacy_tiers([legacy])
    if problem is not None:
        check.tiers_skipped += 1
        check.add(
            IssueSeverity.BLOCKER,
            IssueCode.INVALID_TIER_DISCOUNT_PERCENT,
            f"{problem} (got {raw_discount})",
            tier_id,
        )
        return

    if base_price is None or unit_minutes is None:
        check.tiers_skipped += 1
        return

    check.computed_tiers.append(
        ComputedTier(
            tier_id=tier_id,
            legacy=legacy,
            rate=legacy_tier_to_rate(legacy, base_price, unit_minutes),
        )
    )


def _check_tier_set(check: ProductCheck) -> None:
    problem = validate_legacy_tiers(tier.legacy for tier in check.computed_tiers)
    if problem is not None:
        by_period: dict[int, list[str]] = {}
        for tier in check.computed_tiers:
            by_period.setdefault(tier.rate.period_minutes, []).append(tier.tier_id)
        for period, tier_ids in by_period.items():
            if len(tier_ids) > 1:
                check.add(
                    IssueSeverity.BLOCKER,
                    IssueCode.DUPLICATE_COMPUTED_PERIOD,
                    f"{problem}: period={period}m tiers {', '.join(tier_ids)}",
                )

    ordered = sorted(check.computed_tiers, key=lambda tier: tier.rate.period_minutes)
    for previous, current in zip(ordered, ordered[1:]):
        # Cross-multiplied per-minute prices: current / period > previous / period.
        if (
            current.rate.price * previous.rate.period_minutes
            > previous.rate.price * current.rate.period_minutes
        ):
            check.add(
                IssueSeverity.WARNING,
                IssueCode.NON_PROGRESSIVE_RATE,
                f"Tier {current.tier_id} is less discounted per minute than "
                f"tier {previous.tier_id}",
                current.tier_id,
            )


def check_product(product: Any) -> ProductCheck:
    """Check one product row (with its ``pricing_tiers`` loaded)."""
    check = ProductCheck(product_id=str(product.id))

    unit_minutes: int | None = None
    try:
        mode = PricingMode(product.pricing_mode)
    except ValueError:
        check.add(
            IssueSeverity.BLOCKER,
            IssueCode.INVALID_PRICING_MODE,
            f"Unknown pricing mode {product.pricing_mode!r}",
        )
    else:
        unit_minutes = parse_period(product.base_period_minutes) or mode.minutes

    base_price = parse_decimal(product.price)
    if base_price is None or base_price < 0:
        check.add(
            IssueSeverity.BLOCKER,
            IssueCode.INVALID_BASE_PRICE,
            f"Invalid base price {product.price!r}",
        )
        base_price = None

    for tier in product.pricing_tiers or ():
        _check_tier(check, tier, base_price, unit_minutes)
    _check_tier_set(check)
    return check


def run_preflight(products: Iterable[Any]) -> PreflightReport:
    """Check products sequentially; a failing product does not stop the run."""
    report = PreflightReport()
    for product in products:
        report.products_scanned += 1
        try:
            check = check_product(product)
        except Exception:
            report.products_failed += 1
            logger.exception(
                "Preflight failed for product %s", getattr(product, "id", "?")
            )
            continue
        report.record(check)

    logger.info(
        "Preflight finished: scanned=%s ready=%s blockers=%s warnings=%s",
        report.products_scanned,
        report.products_ready,
        report.blocker_count,
        report.warning_count,
    )
    return report
