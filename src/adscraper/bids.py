"""Bid price extraction from prebid.js, when the page runs it."""

from __future__ import annotations

import math
from typing import Any

from playwright.async_api import ElementHandle
from playwright.async_api import Error as PlaywrightError

from .logging import jlog
from .models import BidInfo

# Returns null when the page has no usable pbjs global. Otherwise reports each
# winning bid and each bid-response ad unit, flagged with whether the unit's
# element is the ad or sits inside it.
PREBID_PROBE_JS = """
(ad) => {
    const pb = window.pbjs;
    if (!pb || typeof pb.getAllWinningBids !== 'function' || typeof pb.getBidResponses !== 'function') {
        return null;
    }
    const price = (cpm) => {
        const n = Number(cpm);
        return Number.isFinite(n) ? n : null;
    };
    const insideAd = (code) => {
        let node = document.getElementById(code);
        while (node) {
            if (node === ad) return true;
            if (node === document.body) return false;
            node = node.parentNode;
        }
        return false;
    };
    const winning = (pb.getAllWinningBids() || []).map(win => ({
        ad_unit_code: String(win.adUnitCode),
        cpm: price(win.cpm),
        matches: insideAd(win.adUnitCode),
    }));
    const responses = pb.getBidResponses() || {};
    const units = Object.keys(responses).map(code => ({
        ad_unit_code: code,
        cpms: ((responses[code] || {}).bids || []).map(b => price(b.cpm)),
        matches: insideAd(code),
    }));
    return { winning, units };
}
"""


def _price(cpm: Any) -> float | None:
    if isinstance(cpm, bool) or not isinstance(cpm, (int, float)) or not math.isfinite(cpm):
        return None
    return float(cpm)


def select_bid(probe: dict[str, Any] | None) -> BidInfo:
    """Pick the bid values for an ad from a prebid probe result.

    A matching winning bid takes priority. Failing that, the highest bid from
    the first matching bid-response unit is reported as a losing bid. Missing
    or non-numeric CPMs count as no price.
    """

    if not probe:
        return BidInfo()
    for win in probe.get("winning") or []:
        if win.get("matches"):
            return BidInfo(max_bid_price=_price(win.get("cpm")), winning_bid=True)
    for unit in probe.get("units") or []:
        if unit.get("matches"):
            cpms = [c for c in map(_price, unit.get("cpms") or []) if c is not None]
            return BidInfo(max_bid_price=max(cpms) if cpms else None, winning_bid=False)
    return BidInfo()


async def get_prebid_bids_for_ad(ad: ElementHandle) -> BidInfo:
    try:
        probe = await ad.evaluate(PREBID_PROBE_JS)
    except PlaywrightError as exc:
        jlog("warning", event="bid_probe_failed", error=str(exc))
        return BidInfo()
    return select_bid(probe)


__all__ = ["PREBID_PROBE_JS", "get_prebid_bids_for_ad", "select_bid"]
