#!/usr/bin/env python3
"""CLI entry point for the grocery price scraper."""

import argparse
import asyncio
import logging
import sys
import time

from .config import Settings
from .db import PriceDatabase
from .errors import RetailerNotFound
from .models import RUN_COMPLETED, ScrapeRun
from .runner import ScrapeRunner
from .scrapers import get_strategy_class, list_strategies


def print_run(run: ScrapeRun) -> None:
    """Print a scrape run summary."""
    label = f"retailer {run.retailer_id}"
    line = (
        f"  run {run.id} [{label}] {run.status}: "
        f"{run.products_scraped} products, {run.errors_count} errors"
    )
    if run.error_message:
        line += f" ({run.error_message})"
    print(line)


async def run_single(runner: ScrapeRunner, retailer_id: int) -> ScrapeRun:
    try:
        return await runner.scrape(retailer_id)
    finally:
        await runner.close()


async def run_all_parallel(runner: ScrapeRunner) -> list[ScrapeRun]:
    """Scrape all active retailers, bounded by the concurrency gate."""
    start = time.perf_counter()
    try:
        runs = await runner.scrape_all()
    finally:
        await runner.close()
    elapsed = time.perf_counter() - start
    print(f"\nAll retailers scraped in {elapsed:.2f}s")
    return runs


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Grocery price scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pricetracker.cli --retailer 1          # Scrape one retailer
  python -m pricetracker.cli --all                 # Scrape all active retailers
  python -m pricetracker.cli --list                # List strategies and retailers
  python -m pricetracker.cli --runs                # Show recent scrape runs
  python -m pricetracker.cli --add-retailer Walmart --website https://www.walmart.com
        """,
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--retailer", "-r", type=int, help="Scrape a retailer by ID")
    group.add_argument("--all", "-a", action="store_true", help="Scrape all active retailers in parallel")
    group.add_argument("--list", "-l", action="store_true", help="List strategies and active retailers")
    group.add_argument("--runs", action="store_true", help="Show recent scrape runs")
    group.add_argument("--add-retailer", metavar="NAME", help="Register a retailer")
    parser.add_argument("--website", help="Website URL for --add-retailer")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    db = PriceDatabase(db_path=settings.db_path)

    if args.add_retailer:
        retailer_id = db.add_retailer(args.add_retailer, website=args.website)
        print(f"Retailer added: {args.add_retailer} (id={retailer_id})")
        return 0

    if args.list:
        print("Available strategies:")
        for name in list_strategies():
            print(f"  - {name}")
        print("\nActive retailers:")
        for retailer in db.get_active_retailers():
            strategy = get_strategy_class(retailer.name).name
            print(f"  {retailer.id}. {retailer.name} ({retailer.website or 'no website'}) -> {strategy}")
        return 0

    if args.runs:
        stats = db.get_scrape_run_stats()
        print(
            f"Runs: {stats['total']} total, {stats['successful']} completed, "
            f"{stats['failed']} failed, {stats['running']} running "
            f"({stats['success_rate']:.1f}% success)"
        )
        for run in db.get_scrape_runs(limit=20):
            print_run(run)
        return 0

    runner = ScrapeRunner(db, settings)

    if args.all:
        runs = asyncio.run(run_all_parallel(runner))
        for run in runs:
            print_run(run)
        return 0 if all(run.status == RUN_COMPLETED for run in runs) else 1

    try:
        run = asyncio.run(run_single(runner, args.retailer))
    except RetailerNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_run(run)
    return 0 if run.status == RUN_COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
