"""Check products for data that would block the rate-tier backfill.

Usage::

    python -m scripts.pricing_preflight --store-id <uuid> --fail-on-blockers

Products are read, never written.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from uuid import UUID

from rental_pricing.core.config import get_settings
from rental_pricing.core.logging import configure_logging
from rental_pricing.db.session import open_session
from rental_pricing.services.catalog_service import load_products
from rental_pricing.services.preflight_service import PreflightReport, run_preflight

LOGGER = logging.getLogger("pricing_preflight")

MAX_LISTED_ISSUES = 30

SUMMARY_LABELS = (
    ("products_scanned", "Products scanned"),
    ("products_ready", "Products ready"),
    ("products_with_warnings", "Products with warnings"),
    ("products_with_blockers", "Products with blockers"),
    ("products_failed", "Failed"),
    ("tiers_scanned", "Tiers scanned"),
    ("tiers_computed", "Tiers computed"),
    ("tiers_skipped", "Tiers skipped"),
    ("warning_count", "Warnings"),
    ("blocker_count", "Blockers"),
)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("value must be at least 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check discount tiers before deriving rate tiers"
    )
    parser.add_argument("--store-id", type=UUID, default=None, help="Only this store")
    parser.add_argument(
        "--product-id", type=UUID, default=None, help="Only this product"
    )
    parser.add_argument(
        "--limit", type=_positive_int, default=None, help="Scan at most N products"
    )
    parser.add_argument(
        "--fail-on-blockers",
        action="store_true",
        help="Exit with status 1 when any blocker is found",
    )
    parser.add_argument(
        "--output-json", type=Path, default=None, help="Write the full report here"
    )
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


async def collect_report(args: argparse.Namespace) -> PreflightReport:
    async with open_session(args.database_url) as session:
        products = await load_products(
            session,
            store_id=args.store_id,
            product_id=args.product_id,
            limit=args.limit,
        )
        return run_preflight(products)


def print_report(report: PreflightReport) -> None:
    summary = report.summary()
    width = max(len(label) for _, label in SUMMARY_LABELS)
    print("Pricing preflight summary")
    for key, label in SUMMARY_LABELS:
        print(f"  {label:<{width}}  {summary[key]}")

    if not report.issues:
        print("\nNo issues found.")
        return

    listed = report.issues[:MAX_LISTED_ISSUES]
    print(f"\nIssues ({len(listed)} of {len(report.issues)})")
    for issue in listed:
        tier = f" tier={issue.tier_id}" if issue.tier_id else ""
        print(
            f"  [{issue.severity.value}] {issue.code.value} "
            f"product={issue.product_id}{tier}: {issue.message}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level, log_path=args.log_file)

    try:
        report = asyncio.run(collect_report(args))
    except Exception:
        LOGGER.exception("Preflight failed")
        return 1

    print_report(report)
    if args.output_json is not None:
        args.output_json.write_text(
            json.dumps(report.to_dict(), indent=2), encoding="utf-8"
        )
        LOGGER.info("Report written to %s", args.output_json)

    if args.fail_on_blockers and report.blocker_count:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
