"""Batch scheduling for listing pages and detail items.

Batches run strictly one after another. Inside a batch every fetch is
dispatched before any is awaited, and extraction plus the single write happen
only after all of them have finished. Failures never stop the run; they are
collected into the :class:`RunReport` and the run ledger.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

from .config import AppConfig, SiteConfig
from .db import Database
from .dom import parse_html
from .extractors.detail import derive_record_id, extract_detail
from .extractors.listing import extract_summaries
from .fetcher import Fetcher
from .models import BatchOutcome, FailedUnit, PageFetchResult, RunReport
from .sites import ALL_SITES, DETAIL_SELECTORS, DetailSelectors, ListingProfile
from .store import BatchStore, DetailStore, normalize_url, seed_url

logger = logging.getLogger("medex_scraper")


def partition_batches(total: int, batch_size: int) -> Iterator[Tuple[int, int]]:
    """Yield contiguous ``(start, end)`` ranges covering ``1..total``."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    for start in range(1, total + 1, batch_size):
        yield start, min(start + batch_size - 1, total)


def _chunks(items: list, size: int) -> Iterator[list]:
    size = max(1, size)
    for i in range(0, len(items), size):
        yield items[i:i + size]


class ListingScheduler:
    def __init__(self, config: AppConfig, site: str, fetcher: Fetcher, store: BatchStore,
                 db: Database, profile: Optional[ListingProfile] = None):
        self.config = config
        self.site = site
        self.site_config: SiteConfig = config.sites.get(site, SiteConfig())
        # Config values override the built-in profile's endpoints
        overrides = {k: v for k, v in (("base_url", self.site_config.base_url),
                                       ("origin", self.site_config.origin)) if v}
        self.profile = replace(profile or ALL_SITES[site], **overrides)
        self.fetcher = fetcher
        self.store = store
        self.db = db
        self.job = f"listing:{site}"

    def page_url(self, page: int) -> str:
        return self.profile.page_url(page)

    async def run(self) -> RunReport:
        sc = self.site_config
        report = RunReport()
        failed_pages: List[int] = []
        consecutive_empty = 0
        batches = list(partition_batches(sc.max_pages, sc.batch_size))

        logger.info(f"[{self.site}] Pages 1..{sc.max_pages} in {len(batches)} batch(es) of {sc.batch_size}")

        for n, (start, end) in enumerate(batches):
            pending = [f["page"] for f in self.db.open_failures(self.job, kind="failed", start=start, end=end)]

            if self.store.has_batch_output(start, end):
                if not pending:
                    logger.info(f"[{self.site}] Skipping existing file for pages {start}..{end}")
                    report.batches_skipped += 1
                    consecutive_empty = 0
                    continue
                retry = set(pending)
                existing = [r for r in self.store.read_batch_output(start, end)
                            if r.get("origin_page") not in retry]
                pages = sorted(retry)
                logger.info(f"[{self.site}] Retrying failed page(s) {pages} of batch {start}..{end}")
            else:
                existing = []
                pages = list(range(start, end + 1))

            outcome = await self.run_batch(start, end, pages, existing)
            report.items_saved += outcome.items_saved
            failed_pages.extend(f.identity for f in outcome.failures)
            if outcome.written:
                report.batches_written += 1

            if outcome.items_saved == 0 and not existing:
                consecutive_empty += 1
            else:
                consecutive_empty = 0

            limit = sc.empty_batch_limit
            if limit > 0 and consecutive_empty >= limit and end < sc.max_pages:
                report.unverified = list(range(end + 1, sc.max_pages + 1))
                for page in report.unverified:
                    self.db.record_failure(self.job, page, f"not fetched: stopped after {limit} empty batches",
                                           kind="unverified")
                logger.warning(
                    f"[{self.site}] {consecutive_empty} consecutive empty batches, stopping early; "
                    f"pages {end + 1}..{sc.max_pages} left unverified"
                )
                break

            if n < len(batches) - 1:
                await asyncio.sleep(sc.batch_delay)

        report.failed = sorted(set(failed_pages))
        logger.info(f"[{self.site}] Done: saved {report.items_saved} items, failed {len(report.failed)}")
        if report.failed:
            logger.warning(f"[{self.site}] Pages failed and skipped after retries: {report.failed}")
        else:
            logger.info(f"[{self.site}] No pages failed after retries.")
        return report

    async def run_batch(self, start: int, end: int, pages: List[int],
                        existing: Optional[List[dict]] = None) -> BatchOutcome:
        dl = self.config.download
        results = await asyncio.gather(*(
            self.fetcher.fetch_with_retry(page, self.page_url(page), dl.max_retries, dl.retry_delay)
            for page in pages
        ))

        records = list(existing or [])
        failures: List[FailedUnit] = []
        succeeded: List[int] = []
        new_items = 0

        for res in results:
            if not res.ok:
                failures.append(FailedUnit(res.identity, res.reason or "unknown"))
                continue
            try:
                soup = parse_html(res.html)
                parsed = extract_summaries(soup, res.final_url or res.url, self.profile, page=res.identity)
            except Exception as e:
                logger.error(f"[{self.site}] Parse error on page {res.identity}: {e}")
                failures.append(FailedUnit(res.identity, f"parse_error: {e}"))
                continue
            records.extend(r.to_dict() for r in parsed)
            new_items += len(parsed)
            succeeded.append(res.identity)

        records.sort(key=lambda r: r.get("origin_page") or 0)

        written = False
        try:
            self.store.write_batch_output(start, end, records)
            written = True
        except OSError as e:
            logger.error(f"[{self.site}] Write failed for pages {start}..{end}: {e}")
            already = {f.identity for f in failures}
            failures.extend(FailedUnit(p, f"write_error: {e}") for p in pages if p not in already)
            succeeded = []
            new_items = 0

        outcome = BatchOutcome(range_start=start, range_end=end, items_saved=new_items,
                               failures=failures, written=written)

        self.db.record_batch(self.job, outcome)
        for failure in failures:
            self.db.record_failure(self.job, failure.identity, failure.reason)
        for page in succeeded:
            self.db.resolve_failure(self.job, page)

        logger.info(
            f"[{self.site}] Batch pages {start}..{end}: saved {new_items} items, "
            f"failed {len(failures)} page(s)."
        )
        return outcome


class DetailScheduler:
    job = "details"

    def __init__(self, config: AppConfig, fetcher: Fetcher, store: DetailStore, db: Database,
                 selectors: Optional[DetailSelectors] = None):
        self.config = config
        self.fetcher = fetcher
        self.store = store
        self.db = db
        self.selectors = selectors or DETAIL_SELECTORS[config.details.site]

    async def run(self, items: List[dict]) -> RunReport:
        report = RunReport()
        total = len(items)
        failed: List[str] = []
        queue = []
        queued = set()

        for i, item in enumerate(items):
            url = normalize_url(seed_url(item), self.selectors.origin)
            if url is None:
                identity = f"item:{i}"
                logger.error(f"[{i + 1}/{total}] No source_url on seed item, skipping")
                self.db.record_failure(self.job, identity, "missing source_url")
                failed.append(identity)
                continue
            if self.store.is_already_recorded(url):
                # Closes a ledger row left open by a crash between append and resolve
                self.db.resolve_failure(self.job, url)
                report.items_skipped += 1
                continue
            if url in queued:
                report.items_skipped += 1
                continue
            queued.add(url)
            queue.append((i, item, url))

        logger.info(
            f"Seed items: {total}. Already recorded or duplicate: {report.items_skipped}. "
            f"To fetch: {len(queue)}"
        )

        dl = self.config.download
        groups = list(_chunks(queue, self.config.details.concurrency))
        for n, group in enumerate(groups):
            for i, _, url in group:
                logger.info(f"[{i + 1}/{total}] Fetching: {url}")
            results = await asyncio.gather(*(
                self.fetcher.fetch_with_retry(url, url, dl.max_retries, dl.retry_delay)
                for _, _, url in group
            ))
            for (i, item, url), res in zip(group, results):
                reason = self._handle(i, total, item, url, res)
                if reason is None:
                    report.items_saved += 1
                else:
                    failed.append(url)

            if n < len(groups) - 1:
                await asyncio.sleep(self.config.details.request_delay)

        report.failed = sorted(set(failed))
        logger.info(f"Done: saved {report.items_saved} items, failed {len(report.failed)}")
        return report

    def _handle(self, index: int, total: int, item: dict, url: str, res: PageFetchResult) -> Optional[str]:
        """Extract and persist one fetched item. Returns a failure reason or None."""
        prefix = f"[{index + 1}/{total}]"
        if not res.ok:
            return self._fail(prefix, url, res.reason or "unknown")

        try:
            record = extract_detail(parse_html(res.html), url, self.selectors)
        except Exception as e:
            return self._fail(prefix, url, f"parse_error: {e}")

        record.source_url = url
        record.final_url = res.final_url
        record.record_id = derive_record_id(item, url)
        record.original_record = {"input_index": index, "brand_record": item}

        try:
            self.store.append_record(record.to_dict())
        except OSError as e:
            return self._fail(prefix, url, f"write_error: {e}")

        self.db.resolve_failure(self.job, url)
        logger.info(f"{prefix} Parsed & saved: {record.name or url}")
        return None

    def _fail(self, prefix: str, url: str, reason: str) -> str:
        logger.error(f"{prefix} Error fetching/parsing {url}: {reason}")
        self.db.record_failure(self.job, url, reason)
        return reason
