"""Selector-based ad detection and chumbox splitting."""

from __future__ import annotations

from playwright.async_api import ElementHandle, Page

from .models import AdHandles, Chumbox
from .playwright import element_is_visibly_displayed

# CSS selectors that match known ad containers
AD_SELECTORS = [
    # Google Ads / GPT
    "ins.adsbygoogle",
    "[id^='google_ads_']",
    "[id^='div-gpt-ad']",
    "div[data-google-query-id]",
    "div[data-ad-slot]",
    "iframe[src*='doubleclick.net']",
    "iframe[src*='googlesyndication']",
    # Header bidding
    "[id^='pb-slot']",
    # Native ad widgets
    "[id^='taboola-']",
    ".trc_rbox_container",
    ".OUTBRAIN",
    # Generic ad containers
    "[id*='ad-container']",
    "[id*='ad-slot']",
    "[class*='ad-container']",
    "[class*='ad-slot']",
    "[class*='ad-unit']",
    "[data-ad]",
    "[data-ad-unit]",
    "iframe[src*='amazon-adsystem']",
    "iframe[src*='adserver']",
]

# platform -> (container selector, item selector)
CHUMBOX_PLATFORMS: dict[str, tuple[str, str]] = {
    "taboola": ("[id^='taboola-'], .trc_rbox_container", ".videoCube"),
    "outbrain": (".OUTBRAIN", ".ob-dynamic-rec-container"),
}

_OUTERMOST_JS = "(el, sel) => !el.parentElement || !el.parentElement.closest(sel)"


async def identify_ads_in_dom(page: Page) -> list[ElementHandle]:
    """Return visible ad containers in document order.

    Matches nested inside another match are dropped so each ad is found once.
    """

    selector = ", ".join(AD_SELECTORS)
    ads: list[ElementHandle] = []
    for handle in await page.query_selector_all(selector):
        if not await handle.evaluate(_OUTERMOST_JS, selector):
            continue
        if not await element_is_visibly_displayed(handle):
            continue
        ads.append(handle)
    return ads


async def split_chumbox(element: ElementHandle) -> Chumbox | None:
    """Split a native ad widget into its individual ads, if it is one.

    Each item becomes one ad: the item is screenshotted and its first link is
    clicked.
    """

    for platform, (container_sel, item_sel) in CHUMBOX_PLATFORMS.items():
        if not await element.evaluate("(el, sel) => el.matches(sel)", container_sel):
            continue
        handles: list[AdHandles] = []
        for item in await element.query_selector_all(item_sel):
            if not await element_is_visibly_displayed(item):
                continue
            link = await item.query_selector("a[href]")
            handles.append(AdHandles(click_target=link or item, screenshot_target=item))
        if len(handles) > 1:
            return Chumbox(platform=platform, ad_handles=handles)
        return None
    return None


__all__ = ["AD_SELECTORS", "CHUMBOX_PLATFORMS", "identify_ads_in_dom", "split_chumbox"]
