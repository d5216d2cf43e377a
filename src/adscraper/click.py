"""Click-through to ad landing pages, which are crawled for ads in turn."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from .config import AdScrapeSettings
from .db import DbClient
from .hooks import AdScraperHooks
from .logging import jlog
from .models import CrawlAdMetadata
from .orchestrator import scrape_ads_on_page
from .playwright import wait_assets_ready

UTC = getattr(datetime, "UTC", timezone.utc)

DEFAULT_LANDING_TIMEOUT_MS = 15000


class LandingPageClicker:
    """Clicks an ad into a new tab, stores the landing page and scrapes its ads."""

    def __init__(
        self,
        db: DbClient,
        settings: AdScrapeSettings,
        *,
        hooks: AdScraperHooks | None = None,
        timeout_ms: int = DEFAULT_LANDING_TIMEOUT_MS,
    ) -> None:
        self.db = db
        self.settings = settings
        self.hooks = hooks or AdScraperHooks()
        self.timeout_ms = timeout_ms

    async def __call__(
        self,
        click_target: ElementHandle,
        page: Page,
        depth: int,
        crawl_id: int,
        page_id: int,
        ad_id: int,
    ) -> None:
        origin_url = page.url
        try:
            async with page.context.expect_page(timeout=self.timeout_ms) as page_info:
                await click_target.click(modifiers=["ControlOrMeta"], timeout=self.timeout_ms)
            landing = await page_info.value
        except PlaywrightError as exc:
            jlog("warning", event="click_no_landing_page", ad_id=ad_id, error=str(exc))
            # Some ads navigate the current tab instead of opening a new one.
            if page.url != origin_url:
                await page.go_back()
            return

        try:
            try:
                await landing.wait_for_load_state("load", timeout=self.timeout_ms)
            except PlaywrightError as exc:
                jlog("warning", event="landing_page_load_timeout", ad_id=ad_id, error=str(exc))
            await wait_assets_ready(landing)

            landing_depth = depth + 2
            landing_page_id = self.db.insert(
                "page",
                {
                    "crawl_id": crawl_id,
                    "job_id": self.settings.job_id,
                    "timestamp": datetime.now(UTC),
                    "url": landing.url,
                    "depth": landing_depth,
                    "referrer_page": page_id,
                    "referrer_ad": ad_id,
                },
            )
            jlog("info", event="landing_page_stored", ad_id=ad_id, page_id=landing_page_id, url=landing.url)
            await scrape_ads_on_page(
                landing,
                CrawlAdMetadata(crawl_id=crawl_id, parent_page_id=landing_page_id, parent_depth=landing_depth),
                db=self.db,
                settings=self.settings,
                hooks=replace(self.hooks, click_ad=self),
            )
        finally:
            await landing.close()


__all__ = ["LandingPageClicker"]
