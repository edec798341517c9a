"""Backfill rate-tier columns from legacy discount tiers.

Runs as a dry run unless ``--apply`` is given.
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
from rental_pricing.services.backfill_service import BackfillReport, backfill_rate_tiers

LOGGER = logging.getLogger("pricing_backfill")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Derive rate tiers (period/price) from discount tiers"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dry-run", action="store_true", help="Report changes without writing"
    )
    mode.add_argument("--apply", action="store_true", help="Write the changes")
    parser.add_argument("--store-id", type=UUID, default=None)
    parser.add_argument("--product-id", type=UUID, default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


async def run_backfill(args: argparse.Namespace) -> BackfillReport:
    async with open_session(args.database_url) as session:
        return await backfill_rate_tiers(
            session,
            store_id=args.store_id,
            product_id=args.product_id,
            limit=args.limit,
            apply=args.apply,
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level, log_path=args.log_file)

    try:
        report = asyncio.run(run_backfill(args))
    except Exception:
        LOGGER.exception("Backfill failed")
        return 1

    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
