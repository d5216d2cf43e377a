"""Per-page ad pipeline: detect, split chumboxes, archive and click."""

from __future__ import annotations

from dataclasses import dataclass, replace

from playwright.async_api import Page

from .archive import AdCrawlTimeout, scrape_ad
from .config import AdScrapeSettings
from .db import DbClient
from .geometry import is_too_small
from .hooks import AdScraperHooks
from .logging import adlog, describe_exc, jlog, logging_context
from .models import AdHandleRegistry, AdHandles, CrawlAdMetadata


@dataclass
class PageAdSummary:
    detected: int = 0
    archived: int = 0
    timed_out: int = 0
    failed: int = 0
    clicked: int = 0


def should_click_at_depth(parent_depth: int, max_page_crawl_depth: int) -> bool:
    """Whether clicking from ``parent_depth`` stays within the crawl depth.

    Pages and ads alternate depths (ad = page + 1, landing page = page + 2),
    so the page limit is doubled.
    """

    return parent_depth + 2 < 2 * max_page_crawl_depth


async def scrape_ads_on_page(
    page: Page,
    metadata: CrawlAdMetadata,
    *,
    db: DbClient,
    settings: AdScrapeSettings,
    hooks: AdScraperHooks | None = None,
) -> PageAdSummary:
    """Archive every ad on ``page`` and click through eligible ones.

    Never raises: a failure aborts the rest of this page only.
    """

    hooks = hooks or AdScraperHooks()
    summary = PageAdSummary()
    with logging_context(page_url=page.url, crawl_id=metadata.crawl_id, page_id=metadata.parent_page_id, depth=metadata.parent_depth):
        try:
            ads = await hooks.identify_ads_in_dom(page)
            summary.detected = len(ads)
            jlog("info", event="ads_identified", count=len(ads))

            registry = AdHandleRegistry()
            for ad in ads:
                key = registry.register(ad)
                ad_handles: list[AdHandles]
                ad_metadata = metadata

                chumbox = await hooks.split_chumbox(ad)
                if chumbox:
                    chumbox_id = db.insert(
                        "chumbox",
                        {"platform": chumbox.platform, "parent_page": metadata.parent_page_id},
                    )
                    ad_metadata = replace(metadata, chumbox_id=chumbox_id, platform=chumbox.platform)
                    ad_handles = chumbox.ad_handles
                    jlog("info", event="chumbox_split", chumbox_id=chumbox_id, platform=chumbox.platform, ads=len(ad_handles))
                else:
                    ad_handles = [AdHandles(click_target=ad, screenshot_target=ad)]

                for handles in ad_handles:
                    try:
                        ad_id = await scrape_ad(
                            handles.scrape_target, page, ad_metadata, db=db, settings=settings, hooks=hooks
                        )
                    except AdCrawlTimeout as exc:
                        summary.timed_out += 1
                        jlog("warning", event="ad_timeout", error=str(exc))
                        continue
                    except Exception as exc:
                        summary.failed += 1
                        jlog("error", event="ad_failed", error=describe_exc(exc))
                        continue
                    summary.archived += 1
                    adlog("ad_archived", ad_id=ad_id, page_url=page.url, chumbox_id=ad_metadata.chumbox_id)
                    registry.record_ad(key, ad_id)

                    if not should_click_at_depth(metadata.parent_depth, settings.max_page_crawl_depth):
                        jlog("info", event="click_skipped", ad_id=ad_id, reason="max_depth")
                        continue

                    bounds = await handles.click_target.bounding_box()
                    if not bounds:
                        jlog("warning", event="click_skipped", ad_id=ad_id, reason="no_bounding_box")
                        continue
                    if is_too_small(bounds):
                        jlog(
                            "warning",
                            event="click_skipped",
                            ad_id=ad_id,
                            reason="too_small",
                            height=bounds["height"],
                            width=bounds["width"],
                        )
                        continue

                    if hooks.click_ad is None:
                        continue
                    await hooks.click_ad(
                        handles.click_target,
                        page,
                        metadata.parent_depth,
                        metadata.crawl_id,
                        metadata.parent_page_id,
                        ad_id,
                    )
                    summary.clicked += 1

            mutations = await hooks.match_dom_update_to_ad(page, registry)
            for mutation in mutations:
                db.insert("ad_domain", mutation, returning=None)
            if mutations:
                jlog("info", event="dom_mutations_recorded", count=len(mutations))
        except Exception as exc:
            jlog("error", event="page_ads_failed", error=describe_exc(exc))
        jlog(
            "info",
            event="page_ads_done",
            detected=summary.detected,
            archived=summary.archived,
            timed_out=summary.timed_out,
            failed=summary.failed,
            clicked=summary.clicked,
        )
    return summary


__all__ = ["PageAdSummary", "scrape_ads_on_page", "should_click_at_depth"]
