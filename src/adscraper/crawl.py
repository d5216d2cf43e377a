"""
Ad crawler entrypoint.

Loads each seed URL in Chromium, stores it as a depth-0 page and runs the ad
pipeline on it: every detected ad is archived (HTML, screenshot, prebid.js
bids, third-party URLs, iframes) and, depth permitting, clicked so its landing
page is crawled the same way.

Usage (examples)
----------------
python scripts/scrape_ads.py --db-host 127.0.0.1 --url https://news.example --crawl-name smoke

python scripts/scrape_ads.py --dry-run --url https://news.example --with-context --max-depth 1
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .click import LandingPageClicker
from .config import (
    DEFAULT_AD_CRAWL_TIMEOUT_MS,
    DEFAULT_AD_SLEEP_MS,
    DEFAULT_CRAWLER_HOSTNAME,
    DEFAULT_EXTERNAL_SCREENSHOT_DIR,
    DEFAULT_MAX_PAGE_CRAWL_DEPTH,
    DEFAULT_SCREENSHOT_DIR,
    AdScrapeSettings,
)
from .db import DbClient, sql_connect
from .hooks import AdScraperHooks
from .logging import jlog, logging_context
from .models import CrawlAdMetadata
from .orchestrator import scrape_ads_on_page
from .playwright import CHROMIUM_LAUNCH_ARGS, cleanup_playwright, wait_assets_ready

UTC = getattr(datetime, "UTC", timezone.utc)

DEFAULT_USER_AGENT = os.getenv(
    "CRAWLER_USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
)
DEFAULT_SQL_CONN = os.getenv("SQL_CONN", "")
DEFAULT_PAGE_TIMEOUT_MS = int(os.getenv("PAGE_TIMEOUT_MS", "30000"))
DEFAULT_VIEWPORT_WIDTH = 1366
DEFAULT_VIEWPORT_HEIGHT = 768


@dataclass(frozen=True)
class CliArgs:
    urls: list[str]
    crawl_name: str | None
    job_id: int | None
    crawl_id: int | None
    sql_conn: str
    db_host: str | None
    db_port: int | None
    dry_run: bool
    max_depth: int
    ad_timeout_ms: int
    ad_sleep_ms: int
    page_timeout_ms: int
    screenshot_dir: str
    external_screenshot_dir: str | None
    crawler_hostname: str
    with_context: bool
    user_agent: str
    viewport_width: int
    viewport_height: int
    headless: bool

    def ad_settings(self) -> AdScrapeSettings:
        return AdScrapeSettings(
            job_id=self.job_id,
            max_page_crawl_depth=self.max_depth,
            ad_crawl_timeout_ms=self.ad_timeout_ms,
            ad_sleep_ms=self.ad_sleep_ms,
            screenshot_dir=self.screenshot_dir,
            external_screenshot_dir=self.external_screenshot_dir,
            screenshot_host=self.crawler_hostname,
            screenshot_ads_with_context=self.with_context,
        )


def _read_url_file(path: str) -> list[str]:
    with open(path, encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Crawl pages and archive the ads on them")
    p.add_argument("--url", dest="urls", action="append", default=[], help="Seed URL (repeatable)")
    p.add_argument("--url-file", help="File with one seed URL per line")
    p.add_argument("--crawl-name")
    p.add_argument("--job-id", type=int)
    p.add_argument("--crawl-id", type=int, help="Append to an existing crawl instead of creating one")
    p.add_argument("--sql-conn", default=DEFAULT_SQL_CONN)
    p.add_argument("--db-host")
    p.add_argument("--db-port", type=int)
    p.add_argument("--dry-run", action="store_true", help="Do not write to the database")
    p.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_PAGE_CRAWL_DEPTH,
        help="Maximum page depth; 1 archives seed-page ads without clicking (default from MAX_PAGE_CRAWL_DEPTH env or 2).",
    )
    p.add_argument(
        "--ad-timeout-ms",
        type=int,
        default=DEFAULT_AD_CRAWL_TIMEOUT_MS,
        help="Time budget (ms) for capturing and storing one ad (default from AD_CRAWL_TIMEOUT_MS env or 20000).",
    )
    p.add_argument(
        "--ad-sleep-ms",
        type=int,
        default=DEFAULT_AD_SLEEP_MS,
        help="Settle time (ms) before capturing seed-page ads (default from AD_SLEEP_MS env or 5000).",
    )
    p.add_argument("--page-timeout-ms", type=int, default=DEFAULT_PAGE_TIMEOUT_MS)
    p.add_argument("--screenshot-dir", default=DEFAULT_SCREENSHOT_DIR)
    p.add_argument(
        "--external-screenshot-dir",
        default=DEFAULT_EXTERNAL_SCREENSHOT_DIR,
        help="Where --screenshot-dir is mounted outside the crawler container; stored instead of the local path.",
    )
    p.add_argument("--crawler-hostname", default=DEFAULT_CRAWLER_HOSTNAME)
    p.add_argument("--with-context", action="store_true", help="Keep a 150px margin of page around ad screenshots")
    p.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    p.add_argument("--viewport-width", type=int, default=DEFAULT_VIEWPORT_WIDTH)
    p.add_argument("--viewport-height", type=int, default=DEFAULT_VIEWPORT_HEIGHT)
    p.add_argument("--headful", action="store_true", help="Show the browser window")

    ns = p.parse_args(argv)
    urls = list(ns.urls)
    if ns.url_file:
        urls.extend(_read_url_file(ns.url_file))
    if not urls:
        p.error("at least one --url or --url-file is required")

    return CliArgs(
        urls=urls,
        crawl_name=ns.crawl_name,
        job_id=ns.job_id,
        crawl_id=ns.crawl_id,
        sql_conn=ns.sql_conn,
        db_host=ns.db_host,
        db_port=ns.db_port,
        dry_run=ns.dry_run,
        max_depth=ns.max_depth,
        ad_timeout_ms=ns.ad_timeout_ms,
        ad_sleep_ms=ns.ad_sleep_ms,
        page_timeout_ms=ns.page_timeout_ms,
        screenshot_dir=ns.screenshot_dir,
        external_screenshot_dir=ns.external_screenshot_dir,
        crawler_hostname=ns.crawler_hostname,
        with_context=ns.with_context,
        user_agent=ns.user_agent,
        viewport_width=ns.viewport_width,
        viewport_height=ns.viewport_height,
        headless=not ns.headful,
    )


async def crawl_seed_page(context, url: str, crawl_id: int, db: DbClient, settings: AdScrapeSettings, hooks: AdScraperHooks, *, page_timeout_ms: int) -> None:
    page = await context.new_page()
    try:
        try:
            await page.goto(url, wait_until="load", timeout=page_timeout_ms)
        except PlaywrightError as exc:
            jlog("error", event="seed_page_load_failed", url=url, error=str(exc))
            return
        await wait_assets_ready(page)
        page_id = db.insert(
            "page",
            {
                "crawl_id": crawl_id,
                "job_id": settings.job_id,
                "timestamp": datetime.now(UTC),
                "url": page.url,
                "depth": 0,
            },
        )
        await scrape_ads_on_page(
            page,
            CrawlAdMetadata(crawl_id=crawl_id, parent_page_id=page_id, parent_depth=0),
            db=db,
            settings=settings,
            hooks=hooks,
        )
    finally:
        await page.close()


async def run(args: CliArgs, *, db: DbClient | None = None) -> None:
    """Crawl every seed URL in ``args``."""

    settings = args.ad_settings()
    if db is None:
        con = None if args.dry_run else sql_connect(args.sql_conn, args.db_host, args.db_port)
        db = DbClient(con, dry_run=args.dry_run)

    crawl_id = args.crawl_id
    if crawl_id is None:
        crawl_id = db.insert("crawl", {"job_id": args.job_id, "name": args.crawl_name})
    jlog("info", event="crawl_started", crawl_id=crawl_id, seeds=len(args.urls), dry_run=args.dry_run)

    hooks = AdScraperHooks(click_ad=LandingPageClicker(db, settings))
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=args.headless, args=CHROMIUM_LAUNCH_ARGS)
        context = await browser.new_context(
            user_agent=args.user_agent,
            viewport={"width": args.viewport_width, "height": args.viewport_height},
        )
        try:
            with logging_context(crawl_id=crawl_id, job_id=args.job_id):
                for url in args.urls:
                    await crawl_seed_page(context, url, crawl_id, db, settings, hooks, page_timeout_ms=args.page_timeout_ms)
        finally:
            await cleanup_playwright(context, browser)
            db.close()
    jlog("info", event="crawl_finished", crawl_id=crawl_id)


__all__ = ["CliArgs", "crawl_seed_page", "parse_args", "run"]
