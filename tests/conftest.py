from __future__ import annotations

import itertools
from io import BytesIO
from typing import Any

import pytest
from adscraper.bids import PREBID_PROBE_JS
from adscraper.capture import OUTER_HTML_JS, SCROLL_INTO_VIEW_JS
from adscraper.config import AdScrapeSettings
from adscraper.db import DbClient
from adscraper.hooks import AdScraperHooks
from PIL import Image


class FakeElement:
    """Stands in for a Playwright ElementHandle."""

    def __init__(self, box: dict[str, float] | None, *, html: str = "<div class=\"ad\"></div>", bid_probe: Any = None):
        self.box = box
        self.html = html
        self.bid_probe = bid_probe
        self.scrolls = 0

    async def bounding_box(self):
        return self.box

    async def evaluate(self, expression: str, arg: Any = None):
        if expression == OUTER_HTML_JS:
            return self.html
        if expression == SCROLL_INTO_VIEW_JS:
            self.scrolls += 1
            return None
        if expression == PREBID_PROBE_JS:
            if isinstance(self.bid_probe, Exception):
                raise self.bid_probe
            return self.bid_probe
        raise AssertionError(f"unexpected script: {expression}")


class FakePage:
    """Stands in for a Playwright Page with a fixed viewport."""

    def __init__(self, width: int = 1000, height: int = 800, *, scale: int = 1, url: str = "https://news.example/"):
        self.viewport_size = {"width": width, "height": height} if width and height else None
        self.scale = scale
        self.url = url
        self.screenshots = 0

    async def screenshot(self, **kwargs) -> bytes:
        self.screenshots += 1
        size = (self.viewport_size["width"] * self.scale, self.viewport_size["height"] * self.scale)
        buf = BytesIO()
        Image.new("RGB", size, (200, 30, 30)).save(buf, format="PNG")
        return buf.getvalue()


class RecordingDb(DbClient):
    """DbClient that keeps inserted rows in memory."""

    def __init__(self) -> None:
        super().__init__(None, dry_run=True)
        self.rows: list[tuple[str, dict[str, Any]]] = []
        self._ids = itertools.count(100)
        self.closed = False

    def insert(self, table: str, data: dict[str, Any], *, returning: str | None = "id") -> Any:
        self.rows.append((table, dict(data)))
        return next(self._ids) if returning else None

    def close(self) -> None:
        self.closed = True

    def table(self, name: str) -> list[dict[str, Any]]:
        return [row for table, row in self.rows if table == name]


async def _no_ads(page):
    return []


async def _no_chumbox(element):
    return None


async def _no_iframes(element):
    return []


async def _no_urls(element):
    return []


async def _no_mutations(page, registry):
    return []


def make_hooks(**overrides) -> AdScraperHooks:
    fields = {
        "identify_ads_in_dom": _no_ads,
        "split_chumbox": _no_chumbox,
        "scrape_iframes_in_element": _no_iframes,
        "extract_external_urls": _no_urls,
        "match_dom_update_to_ad": _no_mutations,
        "click_ad": None,
    }
    fields.update(overrides)
    return AdScraperHooks(**fields)


@pytest.fixture
def db() -> RecordingDb:
    return RecordingDb()


@pytest.fixture
def settings(tmp_path) -> AdScrapeSettings:
    return AdScrapeSettings(
        job_id=7,
        max_page_crawl_depth=2,
        ad_crawl_timeout_ms=2000,
        ad_sleep_ms=0,
        screenshot_dir=str(tmp_path / "shots"),
        external_screenshot_dir=None,
        screenshot_host="crawler-1",
        screenshot_ads_with_context=False,
    )
