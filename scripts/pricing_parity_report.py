"""Compare legacy discount-tier pricing against rate-based pricing.

Usage::

    python -m scripts.pricing_parity_report --threshold 0.01 --top 20

The report is advisory. Products are read, never written.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

from rental_pricing.core.config import get_settings
from rental_pricing.core.logging import configure_logging
from rental_pricing.db.session import open_session
from rental_pricing.services.catalog_service import load_products
from rental_pricing.services.parity_service import (
    ParityReport,
    run_parity_audit,
    sweep_caps_from_settings,
)

LOGGER = logging.getLogger("pricing_parity")

SUMMARY_LABELS = (
    ("products_scanned", "Products scanned"),
    ("products_checked", "Products checked"),
    ("products_skipped_base_period", "Skipped (custom base period)"),
    ("products_skipped_non_legacy", "Skipped (non-legacy tiers)"),
    ("products_failed", "Failed"),
    ("mismatched_products", "Products with mismatches"),
    ("mismatched_points", "Mismatched points"),
    ("threshold", "Threshold"),
    ("max_diff", "Max diff"),
)


def _decimal(value: str) -> Decimal:
    try:
        parsed = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid decimal: {value!r}") from exc
    if not parsed.is_finite() or parsed < 0:
        raise argparse.ArgumentTypeError("threshold must be a non-negative number")
    return parsed


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("value must be at least 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Report pricing differences between discount tiers and rate tiers"
    )
    parser.add_argument(
        "--threshold",
        type=_decimal,
        default=settings.parity_threshold,
        help="Ignore differences up to this amount (default: %(default)s)",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        default=settings.parity_top,
        help="Number of worst products to list (default: %(default)s)",
    )
    parser.add_argument("--store-id", type=UUID, default=None, help="Only this store")
    parser.add_argument(
        "--product-id", type=UUID, default=None, help="Only this product"
    )
    parser.add_argument(
        "--limit", type=_positive_int, default=None, help="Scan at most N products"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this run",
    )
    parser.add_argument(
        "--log-file", type=Path, default=None, help="Also append logs to this file"
    )
    return parser


async def collect_report(args: argparse.Namespace) -> ParityReport:
    settings = get_settings()
    async with open_session(args.database_url) as session:
        products = await load_products(
            session,
            store_id=args.store_id,
            product_id=args.product_id,
            limit=args.limit,
        )
        # Rows are fully loaded; the audit itself is CPU-bound.
        return run_parity_audit(
            products,
            threshold=args.threshold,
            caps=sweep_caps_from_settings(settings),
            max_steps=settings.solver_max_steps,
        )


def print_report(report: ParityReport, top: int) -> None:
    summary = report.summary()
    width = max(len(label) for _, label in SUMMARY_LABELS)
    print("Pricing parity summary")
    for key, label in SUMMARY_LABELS:
        print(f"  {label:<{width}}  {summary[key]}")

    findings = report.top(top)
    if not findings:
        print("\nNo products above threshold.")
        return

    print(f"\nTop {len(findings)} mismatched products")
    print(
        f"  {'product_id':<36}  {'mode':<5}  {'mismatches':>10}  "
        f"{'max_diff':>10}  {'avg_diff':>10}  {'first':>6}"
    )
    for finding in findings:
        row = finding.to_dict()
        print(
            f"  {row['product_id']:<36}  {row['mode']:<5}  "
            f"{row['mismatch_count']:>10}  {row['max_diff']:>10}  "
            f"{row['avg_diff']:>10}  {row['first_mismatch_duration']:>6}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level, log_path=args.log_file)

    try:
        report = asyncio.run(collect_report(args))
    except Exception:
        LOGGER.exception("Parity report failed")
        return 1

    print_report(report, args.top)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
