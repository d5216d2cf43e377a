"""Settings consumed by the ad pipeline."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass

# Defaults (overridable via CLI or env)
DEFAULT_MAX_PAGE_CRAWL_DEPTH = int(os.getenv("MAX_PAGE_CRAWL_DEPTH", "2"))
DEFAULT_AD_CRAWL_TIMEOUT_MS = int(os.getenv("AD_CRAWL_TIMEOUT_MS", "20000"))  # whole capture-and-store per ad
DEFAULT_AD_SLEEP_MS = int(os.getenv("AD_SLEEP_MS", "5000"))  # settle time before capturing seed-page ads
DEFAULT_SCREENSHOT_DIR = os.getenv("SCREENSHOT_DIR", "media/screenshots")
DEFAULT_EXTERNAL_SCREENSHOT_DIR = os.getenv("EXTERNAL_SCREENSHOT_DIR") or None
DEFAULT_CRAWLER_HOSTNAME = os.getenv("CRAWLER_HOSTNAME") or socket.gethostname()


@dataclass(frozen=True)
class AdScrapeSettings:
    job_id: int | None = None
    max_page_crawl_depth: int = DEFAULT_MAX_PAGE_CRAWL_DEPTH
    ad_crawl_timeout_ms: int = DEFAULT_AD_CRAWL_TIMEOUT_MS
    ad_sleep_ms: int = DEFAULT_AD_SLEEP_MS
    screenshot_dir: str = DEFAULT_SCREENSHOT_DIR
    external_screenshot_dir: str | None = DEFAULT_EXTERNAL_SCREENSHOT_DIR
    screenshot_host: str = DEFAULT_CRAWLER_HOSTNAME
    screenshot_ads_with_context: bool = False

    def __post_init__(self) -> None:
        if self.max_page_crawl_depth < 1:
            raise ValueError(f"max_page_crawl_depth must be >= 1 (got {self.max_page_crawl_depth})")
        if self.ad_crawl_timeout_ms <= 0:
            raise ValueError(f"ad_crawl_timeout_ms must be > 0 (got {self.ad_crawl_timeout_ms})")
        if self.ad_sleep_ms < 0:
            raise ValueError(f"ad_sleep_ms must be >= 0 (got {self.ad_sleep_ms})")


__all__ = ["AdScrapeSettings"]
