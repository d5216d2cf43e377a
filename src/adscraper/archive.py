"""Capture and store one ad under a fixed time budget."""

from __future__ import annotations

import asyncio

from playwright.async_api import ElementHandle, Page

from .capture import SCROLL_INTO_VIEW_JS, scrape_ad_content
from .config import AdScrapeSettings
from .db import DbClient
from .hooks import AdScraperHooks
from .logging import jlog
from .models import CrawlAdMetadata


class AdCrawlTimeout(RuntimeError):
    """The ad's capture-and-store sequence ran past ``ad_crawl_timeout_ms``."""


async def _crawl_ad(
    ad: ElementHandle,
    page: Page,
    metadata: CrawlAdMetadata,
    db: DbClient,
    settings: AdScrapeSettings,
    hooks: AdScraperHooks,
) -> int:
    # Give seed-page ads time to load; landing pages are crawled once already loaded.
    sleep_ms = 0 if metadata.parent_depth > 1 else settings.ad_sleep_ms
    await ad.evaluate(SCROLL_INTO_VIEW_JS)
    if sleep_ms:
        await asyncio.sleep(sleep_ms / 1000)

    content = await scrape_ad_content(
        page,
        ad,
        screenshot_dir=settings.screenshot_dir,
        external_screenshot_dir=settings.external_screenshot_dir,
        screenshot_host=settings.screenshot_host,
        with_context=settings.screenshot_ads_with_context,
    )

    ad_id = db.archive_ad(
        {
            "job_id": settings.job_id,
            "crawl_id": metadata.crawl_id,
            "parent_page": metadata.parent_page_id,
            "chumbox_id": metadata.chumbox_id,
            "platform": metadata.platform,
            "depth": metadata.parent_depth + 1,
            **content.as_row(),
        }
    )

    external_urls = await hooks.extract_external_urls(ad)
    db.archive_external_urls(external_urls, ad_id)

    iframes = await hooks.scrape_iframes_in_element(ad)
    for iframe in iframes:
        db.archive_scraped_iframe(iframe, ad_id, None)

    jlog(
        "info",
        event="ad_content_stored",
        ad_id=ad_id,
        screenshot=content.screenshot is not None,
        external_urls=len(external_urls),
        iframes=len(iframes),
    )
    return ad_id


async def scrape_ad(
    ad: ElementHandle,
    page: Page,
    metadata: CrawlAdMetadata,
    *,
    db: DbClient,
    settings: AdScrapeSettings,
    hooks: AdScraperHooks,
) -> int:
    """Scrape an ad (HTML, screenshot, bids, external URLs, iframes) and store it.

    Returns the database id of the stored ad. Raises :class:`AdCrawlTimeout`
    if the whole sequence does not finish within ``ad_crawl_timeout_ms``; the
    unfinished sequence is cancelled, but rows it already wrote are kept.
    """

    try:
        return await asyncio.wait_for(
            _crawl_ad(ad, page, metadata, db, settings, hooks),
            timeout=settings.ad_crawl_timeout_ms / 1000,
        )
    except asyncio.TimeoutError as exc:
        raise AdCrawlTimeout(f"{page.url}: timed out while crawling ad") from exc


__all__ = ["AdCrawlTimeout", "scrape_ad"]
