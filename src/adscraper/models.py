"""Records passed between the ad pipeline stages and the database."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from playwright.async_api import ElementHandle

from .geometry import Rect


@dataclass(frozen=True)
class AdHandles:
    """Handles to one physical ad.

    The screenshot target bounds the whole ad. The click target is the region
    to click; for native ads (image plus headline) that is usually the headline
    link.
    """

    click_target: ElementHandle
    screenshot_target: ElementHandle | None = None

    @property
    def scrape_target(self) -> ElementHandle:
        return self.screenshot_target or self.click_target


@dataclass(frozen=True)
class Chumbox:
    """A container holding several ads from one platform."""

    platform: str
    ad_handles: list[AdHandles]


@dataclass(frozen=True, slots=True)
class CrawlAdMetadata:
    """Crawler context stored alongside each scraped ad.

    ``parent_page_id`` and ``parent_depth`` describe the page the ad appears
    on; ``chumbox_id`` and ``platform`` are set for chumbox members.
    """

    crawl_id: int
    parent_page_id: int
    parent_depth: int
    chumbox_id: int | None = None
    platform: str | None = None


@dataclass(frozen=True, slots=True)
class BidInfo:
    max_bid_price: float | None = None
    winning_bid: bool | None = None


@dataclass(frozen=True, slots=True)
class ScreenshotCapture:
    path: str
    host: str
    ad_in_crop: Rect | None = None


@dataclass(frozen=True)
class ScrapedAd:
    timestamp: datetime
    html: str
    with_context: bool
    screenshot: ScreenshotCapture | None
    bid: BidInfo = field(default_factory=BidInfo)

    def as_row(self) -> dict[str, Any]:
        """Flatten into the ``ad`` table's content columns."""

        shot = self.screenshot
        bb = shot.ad_in_crop if shot else None
        return {
            "timestamp": self.timestamp,
            "html": self.html,
            "screenshot": shot.path if shot else None,
            "screenshot_host": shot.host if shot else None,
            "max_bid_price": self.bid.max_bid_price,
            "winning_bid": self.bid.winning_bid,
            "with_context": self.with_context,
            "bb_x": bb.left if bb else None,
            "bb_y": bb.top if bb else None,
            "bb_width": bb.width if bb else None,
            "bb_height": bb.height if bb else None,
        }


@dataclass(frozen=True, slots=True)
class ExternalUrl:
    url: str
    hostname: str


@dataclass(frozen=True)
class ScrapedIFrame:
    url: str
    html: str
    children: list[ScrapedIFrame] = field(default_factory=list)


class AdHandleRegistry:
    """Stable keys for the ad elements detected on one page.

    Element handles are not reliable dictionary keys, so each detected element
    gets an integer key in detection order and every later lookup goes through
    that key.
    """

    def __init__(self) -> None:
        self._elements: dict[int, ElementHandle] = {}
        self._ad_ids: dict[int, int] = {}

    def register(self, element: ElementHandle) -> int:
        key = len(self._elements)
        self._elements[key] = element
        return key

    def record_ad(self, key: int, ad_id: int) -> None:
        self._ad_ids[key] = ad_id

    def ad_id(self, key: int) -> int | None:
        return self._ad_ids.get(key)

    def archived(self) -> list[tuple[ElementHandle, int]]:
        """Return ``(element, ad_id)`` pairs for every element with a stored ad."""

        return [(self._elements[key], ad_id) for key, ad_id in self._ad_ids.items()]


__all__ = [
    "AdHandleRegistry",
    "AdHandles",
    "BidInfo",
    "Chumbox",
    "CrawlAdMetadata",
    "ExternalUrl",
    "ScrapedAd",
    "ScrapedIFrame",
    "ScreenshotCapture",
]
