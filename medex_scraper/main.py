"""CLI entry point and orchestrator."""

import argparse
import asyncio
import logging
import os
import sys

from .config import AppConfig, SiteConfig, load_config
from .db import Database
from .fetcher import Fetcher
from .logger import setup_logger
from .models import RunReport
from .scheduler import DetailScheduler, ListingScheduler
from .sites import ALL_SITES, DETAIL_SELECTORS
from .store import BatchStore, DetailStore, load_seed_items

logger = logging.getLogger("medex_scraper")


def site_output_dir(config: AppConfig, site: str) -> str:
    sc = config.sites.get(site, SiteConfig())
    return sc.output_dir or os.path.join(config.data_dir, "listing", site)


async def run_listing(config: AppConfig, db: Database, site_name=None) -> dict:
    """Scrape listing pages for one site or every enabled site."""
    names = [site_name] if site_name else list(ALL_SITES)
    reports = {}
    async with Fetcher(config.download) as fetcher:
        for name in names:
            sc = config.sites.get(name)
            if sc and not sc.enabled:
                print(f"[{name}] Disabled in config, skipping.")
                continue

            print(f"\n{'='*60}")
            print(f"  Listing: {name}")
            print(f"{'='*60}")

            store = BatchStore(site_output_dir(config, name))
            scheduler = ListingScheduler(config, name, fetcher, store, db)
            reports[name] = await scheduler.run()
    return reports


async def run_details(config: AppConfig, db: Database, input_path=None) -> RunReport:
    """Fetch detail pages for every seed item not yet in the detail log."""
    path = input_path or config.details.input_path
    items = load_seed_items(path)
    selectors = DETAIL_SELECTORS[config.details.site]
    store = DetailStore(config.details.output_path, origin=selectors.origin)

    print(f"Input items: {len(items)}. Already in output: {len(store)}.")

    async with Fetcher(config.download) as fetcher:
        scheduler = DetailScheduler(config, fetcher, store, db, selectors)
        return await scheduler.run(items)


def run_export(config: AppConfig) -> int:
    store = DetailStore(config.details.output_path)
    count = store.export(config.details.export_path)
    print(f"Exported {count} records to {config.details.export_path}")
    return count


def show_stats(db: Database):
    """Display batch and failure statistics from the run ledger."""
    print("\n" + "=" * 70)
    print("  BATCH STATISTICS")
    print("=" * 70)
    print(f"{'Job':<20} {'Batches':>8} {'Saved':>10} {'Failed':>8} {'Skipped':>8}")
    print("-" * 70)
    for job, batches, saved, failed, skipped in db.get_stats():
        print(f"{job:<20} {batches:>8} {saved:>10} {failed:>8} {skipped:>8}")

    failure_stats = db.get_failure_stats()
    if failure_stats:
        print("\n" + "=" * 70)
        print("  FAILURES")
        print("=" * 70)
        print(f"{'Job':<20} {'Kind':<12} {'Status':<10} {'Count':>8}")
        print("-" * 70)
        for job, kind, status, count in failure_stats:
            print(f"{job:<20} {kind:<12} {status:<10} {count:>8}")

    print()


def main(argv=None):
    parser = argparse.ArgumentParser(description="MedEx brand listing and detail scraper")
    parser.add_argument("--config", type=str, default="config.yaml",
                        help="Path to config file")
    sub = parser.add_subparsers(dest="command", required=True)

    listing = sub.add_parser("listing", help="Scrape paginated brand index pages")
    listing.add_argument("--site", type=str, default=None, choices=list(ALL_SITES.keys()),
                         help="Run a single site instead of all")

    details = sub.add_parser("details", help="Fetch detail pages for scraped brands")
    details.add_argument("--input", type=str, default=None,
                         help="Seed JSON array or directory of listing batch files")

    sub.add_parser("export", help="Write the detail log out as one JSON array")
    sub.add_parser("stats", help="Show batch/failure statistics")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logger(config.log_dir, config.log_level, config.log_file)
    db = Database(config.db_path)

    try:
        if args.command == "stats":
            show_stats(db)
        elif args.command == "export":
            run_export(config)
        elif args.command == "listing":
            print("MedEx Listing Scraper")
            print(f"Data directory: {config.data_dir}")
            asyncio.run(run_listing(config, db, args.site))
            show_stats(db)
        elif args.command == "details":
            try:
                asyncio.run(run_details(config, db, args.input))
            except FileNotFoundError as e:
                logger.error(f"Cannot continue without input: {e}")
                sys.exit(1)
            show_stats(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
