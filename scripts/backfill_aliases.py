#!/usr/bin/env python3
"""
Backfill team aliases from FotMob fixtures.

Fetches the fixtures of each date, keeps those of the leagues listed in
result_service/config/leagues.yaml and registers every unseen team name as a
team with one alias and its external team.

Usage:
    python scripts/backfill_aliases.py --dates 2025-12-11 2025-12-12
    python scripts/backfill_aliases.py --from 2025-08-01 --to 2025-08-31
"""

import argparse
import asyncio
import json
from datetime import date, timedelta

import structlog

from result_service.config import get_settings
from result_service.logging_config import configure_logging
from result_service.tasks.backfill import run_backfill

logger = structlog.get_logger(__name__)


def date_range(start: date, end: date) -> list[date]:
    """Every date from ``start`` to ``end`` inclusive."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Backfill team aliases from FotMob fixtures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dates",
        nargs="+",
        type=date.fromisoformat,
        default=[],
        help="Dates (YYYY-MM-DD) to fetch fixtures for",
    )
    parser.add_argument(
        "--from",
        dest="date_from",
        type=date.fromisoformat,
        help="First date of a range (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--to",
        dest="date_to",
        type=date.fromisoformat,
        help="Last date of a range (YYYY-MM-DD), defaults to --from",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    configure_logging(get_settings().log_level)

    dates = list(args.dates)
    if args.date_from is not None:
        dates.extend(date_range(args.date_from, args.date_to or args.date_from))

    if not dates:
        raise SystemExit("no dates given, use --dates or --from/--to")

    stats = await run_backfill(sorted(set(dates)))
    print(json.dumps(stats, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
