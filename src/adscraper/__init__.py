"""Ad crawler: per-page ad capture, archiving and click-through."""

from .archive import AdCrawlTimeout, scrape_ad
from .bids import get_prebid_bids_for_ad, select_bid
from .capture import ScreenshotError, scrape_ad_content
from .config import AdScrapeSettings
from .geometry import CropResult, Rect, compute_crop, is_too_small
from .hooks import AdScraperHooks
from .logging import adlog, configure_logging, jlog, logging_context, set_global_context
from .models import (
    AdHandleRegistry,
    AdHandles,
    BidInfo,
    Chumbox,
    CrawlAdMetadata,
    ExternalUrl,
    ScrapedAd,
    ScrapedIFrame,
    ScreenshotCapture,
)
from .orchestrator import PageAdSummary, scrape_ads_on_page, should_click_at_depth

__all__ = [
    "AdCrawlTimeout",
    "AdHandleRegistry",
    "AdHandles",
    "AdScrapeSettings",
    "AdScraperHooks",
    "BidInfo",
    "Chumbox",
    "CrawlAdMetadata",
    "CropResult",
    "ExternalUrl",
    "PageAdSummary",
    "Rect",
    "ScrapedAd",
    "ScrapedIFrame",
    "ScreenshotCapture",
    "ScreenshotError",
    "adlog",
    "compute_crop",
    "configure_logging",
    "get_prebid_bids_for_ad",
    "is_too_small",
    "jlog",
    "logging_context",
    "scrape_ad",
    "scrape_ad_content",
    "scrape_ads_on_page",
    "select_bid",
    "set_global_context",
    "should_click_at_depth",
]
