"""Iframe content scraping for ads."""

from __future__ import annotations

from playwright.async_api import ElementHandle, Frame
from playwright.async_api import Error as PlaywrightError

from .logging import jlog
from .models import ScrapedIFrame

# Ad iframes nest (ad server -> creative -> tracker); stop well before pathological chains.
MAX_IFRAME_DEPTH = 5


async def _scrape_frame(frame: Frame, depth: int) -> ScrapedIFrame | None:
    try:
        html = await frame.evaluate("() => document.documentElement ? document.documentElement.outerHTML : ''")
    except PlaywrightError as exc:
        jlog("warning", event="iframe_scrape_failed", frame_url=frame.url, error=str(exc))
        return None
    children: list[ScrapedIFrame] = []
    if depth < MAX_IFRAME_DEPTH:
        for child in frame.child_frames:
            scraped = await _scrape_frame(child, depth + 1)
            if scraped:
                children.append(scraped)
    return ScrapedIFrame(url=frame.url, html=html, children=children)


async def scrape_iframes_in_element(element: ElementHandle) -> list[ScrapedIFrame]:
    """Return the content of every iframe inside ``element``, nested frames included."""

    scraped: list[ScrapedIFrame] = []
    for iframe in await element.query_selector_all("iframe"):
        frame = await iframe.content_frame()
        if frame is None or frame.is_detached():
            continue
        result = await _scrape_frame(frame, 1)
        if result:
            scraped.append(result)
    return scraped


__all__ = ["MAX_IFRAME_DEPTH", "scrape_iframes_in_element"]
