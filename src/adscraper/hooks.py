"""Collaborators the ad pipeline delegates to.

Detection, chumbox splitting, iframe scraping, external URL extraction, DOM
mutation matching and clicking live outside the capture pipeline. They are
bundled in :class:`AdScraperHooks` so a crawl (or a test) can swap any of them.

The default DOM-mutation matcher is a no-op, so a crawl records mutation rows
in ``ad_domain`` only when it installs a real matcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from playwright.async_api import ElementHandle, Page

from .detection import identify_ads_in_dom, split_chumbox
from .frames import scrape_iframes_in_element
from .models import AdHandleRegistry, Chumbox, ExternalUrl, ScrapedIFrame
from .urls import extract_external_urls


class IdentifyAds(Protocol):
    async def __call__(self, page: Page) -> list[ElementHandle]: ...


class SplitChumbox(Protocol):
    async def __call__(self, element: ElementHandle) -> Chumbox | None: ...


class ScrapeIFrames(Protocol):
    async def __call__(self, element: ElementHandle) -> list[ScrapedIFrame]: ...


class ExtractExternalUrls(Protocol):
    async def __call__(self, element: ElementHandle) -> list[ExternalUrl]: ...


class MatchDomUpdates(Protocol):
    async def __call__(self, page: Page, registry: AdHandleRegistry) -> list[dict[str, Any]]: ...


class ClickAd(Protocol):
    async def __call__(
        self,
        click_target: ElementHandle,
        page: Page,
        depth: int,
        crawl_id: int,
        page_id: int,
        ad_id: int,
    ) -> None: ...


async def no_dom_updates(page: Page, registry: AdHandleRegistry) -> list[dict[str, Any]]:
    """Default matcher: no DOM monitoring is installed, so nothing to attribute."""

    return []


@dataclass(frozen=True)
class AdScraperHooks:
    identify_ads_in_dom: IdentifyAds = identify_ads_in_dom
    split_chumbox: SplitChumbox = split_chumbox
    scrape_iframes_in_element: ScrapeIFrames = scrape_iframes_in_element
    extract_external_urls: ExtractExternalUrls = extract_external_urls
    match_dom_update_to_ad: MatchDomUpdates = no_dom_updates
    # None disables clicking; ads are still archived.
    click_ad: ClickAd | None = None


__all__ = [
    "AdScraperHooks",
    "ClickAd",
    "ExtractExternalUrls",
    "IdentifyAds",
    "MatchDomUpdates",
    "ScrapeIFrames",
    "SplitChumbox",
    "no_dom_updates",
]
