"""Crop rectangle computation for ad screenshots."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

# Margin of surrounding page kept around an ad when capturing with context.
CONTEXT_MARGIN_PX = 150

# Ads narrower or shorter than this are neither screenshotted nor clicked.
MIN_AD_DIMENSION_PX = 30


@dataclass(frozen=True, slots=True)
class Rect:
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True, slots=True)
class CropResult:
    """Region of the viewport to keep, and where the ad sits inside it.

    ``ad_in_crop`` is only set for context captures; otherwise the crop is the
    ad itself.
    """

    crop: Rect
    ad_in_crop: Rect | None = None


def is_too_small(box: Mapping[str, float]) -> bool:
    return box["height"] < MIN_AD_DIMENSION_PX or box["width"] < MIN_AD_DIMENSION_PX


def round_outward(box: Mapping[str, float]) -> Rect:
    """Snap a float bounding box to integer pixels."""

    return Rect(
        left=math.floor(box["x"]),
        top=math.floor(box["y"]),
        width=math.ceil(box["width"]),
        height=math.ceil(box["height"]),
    )


def lies_within(rect: Rect, viewport: Mapping[str, int]) -> bool:
    return rect.left >= 0 and rect.top >= 0 and rect.right <= viewport["width"] and rect.bottom <= viewport["height"]


def scale_rect(rect: Rect, scale: float) -> Rect:
    """Map a CSS-pixel rect onto a screenshot rendered at ``scale``.

    Edges are rounded independently, so adjacent rects stay adjacent.
    """

    left = round(rect.left * scale)
    top = round(rect.top * scale)
    return Rect(left=left, top=top, width=round(rect.right * scale) - left, height=round(rect.bottom * scale) - top)


def compute_crop(
    box: Mapping[str, float],
    viewport: Mapping[str, int],
    with_context: bool,
    margin: int = CONTEXT_MARGIN_PX,
) -> CropResult:
    """Compute the screenshot crop for an ad bounding box.

    ``box`` uses Playwright's ``{x, y, width, height}`` shape and ``viewport``
    its ``{width, height}`` shape. The ad is expected to lie inside the viewport
    (see :func:`lies_within`). With context, the ad box is grown by up to
    ``margin`` pixels on each side without leaving the viewport.
    """

    ad = round_outward(box)
    if not with_context:
        return CropResult(crop=ad)

    left = max(ad.left - margin, 0)
    top = max(ad.top - margin, 0)
    margin_left = ad.left - left
    margin_top = ad.top - top
    if ad.right + margin < viewport["width"]:
        margin_right = margin
    else:
        margin_right = max(viewport["width"] - ad.right, 0)
    if ad.bottom + margin < viewport["height"]:
        margin_bottom = margin
    else:
        margin_bottom = max(viewport["height"] - ad.bottom, 0)

    crop = Rect(
        left=left,
        top=top,
        width=ad.width + margin_left + margin_right,
        height=ad.height + margin_top + margin_bottom,
    )
    ad_in_crop = Rect(left=ad.left - crop.left, top=ad.top - crop.top, width=ad.width, height=ad.height)
    return CropResult(crop=crop, ad_in_crop=ad_in_crop)


__all__ = [
    "CONTEXT_MARGIN_PX",
    "MIN_AD_DIMENSION_PX",
    "CropResult",
    "Rect",
    "compute_crop",
    "is_too_small",
    "lies_within",
    "round_outward",
    "scale_rect",
]
