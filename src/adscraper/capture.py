"""Ad content capture: HTML, cropped screenshot and bid values."""

from __future__ import annotations

import asyncio
import os
import uuid
from datetime import datetime, timezone
from io import BytesIO

from PIL import Image
from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from .bids import get_prebid_bids_for_ad
from .geometry import CropResult, Rect, compute_crop, is_too_small, lies_within, round_outward, scale_rect
from .logging import describe_exc, jlog
from .models import ScrapedAd, ScreenshotCapture

UTC = getattr(datetime, "UTC", timezone.utc)

OUTER_HTML_JS = "(e) => e.outerHTML"
SCROLL_INTO_VIEW_JS = "(e) => e.scrollIntoView({ block: 'center' })"


class ScreenshotError(RuntimeError):
    """Raised when an ad screenshot cannot be taken; the ad is still archived."""


def save_crop(png_bytes: bytes, crop: Rect, save_path: str, *, viewport_width: int) -> float:
    """Crop a viewport screenshot and store it as lossless WebP.

    ``crop`` is in CSS pixels; the screenshot may be larger when the page runs
    with a device scale factor, so the crop is scaled to match. Returns that
    scale.
    """

    with Image.open(BytesIO(png_bytes)) as im:
        scale = im.width / viewport_width if viewport_width else 1.0
        scaled = scale_rect(crop, scale)
        box = (scaled.left, scaled.top, scaled.right, scaled.bottom)
        if box[0] < 0 or box[1] < 0 or box[2] > im.width or box[3] > im.height:
            raise ScreenshotError(f"Crop {box} outside screenshot {im.width}x{im.height}")
        im.crop(box).save(save_path, format="WEBP", lossless=True)
    return scale


async def _screenshot_ad(page: Page, ad: ElementHandle, save_path: str, with_context: bool) -> CropResult:
    await ad.evaluate(SCROLL_INTO_VIEW_JS)

    box = await ad.bounding_box()
    if not box:
        raise ScreenshotError("No ad bounding box")
    if is_too_small(box):
        raise ScreenshotError(f"Ad smaller than 30px in one dimension ({box['height']},{box['width']})")

    viewport = page.viewport_size
    if not viewport:
        raise ScreenshotError("Page has no viewport")

    if not lies_within(round_outward(box), viewport):
        raise ScreenshotError(f"Ad {box} extends outside the viewport {viewport}")

    result = compute_crop(box, viewport, with_context)
    png = await page.screenshot()
    scale = await asyncio.to_thread(save_crop, png, result.crop, save_path, viewport_width=viewport["width"])
    if result.ad_in_crop is None or scale == 1:
        return result
    # bb_* columns locate the ad in the stored image, so they use its pixels.
    return CropResult(crop=result.crop, ad_in_crop=scale_rect(result.ad_in_crop, scale))


async def scrape_ad_content(
    page: Page,
    ad: ElementHandle,
    *,
    screenshot_dir: str,
    external_screenshot_dir: str | None,
    screenshot_host: str,
    with_context: bool,
) -> ScrapedAd:
    """Collect the HTML, a screenshot and prebid.js bid values for one ad.

    ``external_screenshot_dir`` is where ``screenshot_dir`` is visible outside
    the crawler (e.g. on the Docker host); when set, it is the stored path.
    """

    html = await ad.evaluate(OUTER_HTML_JS)

    screenshot_file = f"{uuid.uuid4()}.webp"
    save_path = os.path.join(screenshot_dir, screenshot_file)
    real_path = os.path.join(external_screenshot_dir, screenshot_file) if external_screenshot_dir else save_path

    screenshot: ScreenshotCapture | None = None
    try:
        os.makedirs(screenshot_dir, exist_ok=True)
        crop = await _screenshot_ad(page, ad, save_path, with_context)
        screenshot = ScreenshotCapture(path=real_path, host=screenshot_host, ad_in_crop=crop.ad_in_crop)
    except (ScreenshotError, PlaywrightError, OSError) as exc:
        jlog("warning", event="screenshot_failed", error=describe_exc(exc))

    bid = await get_prebid_bids_for_ad(ad)

    return ScrapedAd(
        timestamp=datetime.now(UTC),
        html=html,
        with_context=with_context,
        screenshot=screenshot,
        bid=bid,
    )


__all__ = ["OUTER_HTML_JS", "SCROLL_INTO_VIEW_JS", "ScreenshotError", "save_crop", "scrape_ad_content"]
