"""Third-party URL extraction from ad markup."""

from __future__ import annotations

import urllib.parse

from playwright.async_api import ElementHandle

from .models import ExternalUrl

_TRACKER_PARAMS = {"gclid", "dclid", "gclsrc", "fbclid", "mc_eid", "mc_cid", "_hsenc", "_hsmi"}

_COLLECT_URLS_JS = """
(el) => {
    const out = [];
    const attrs = ['src', 'href', 'data-src', 'srcset', 'action'];
    for (const node of [el, ...el.querySelectorAll('*')]) {
        for (const attr of attrs) {
            const value = node.getAttribute && node.getAttribute(attr);
            if (!value) continue;
            if (attr === 'srcset') {
                for (const part of value.split(',')) {
                    const url = part.trim().split(/\\s+/)[0];
                    if (url) out.push(url);
                }
            } else {
                out.push(value);
            }
        }
    }
    return { base: document.baseURI, urls: out };
}
"""


def normalize_url(url: str, base: str | None = None) -> str | None:
    """Resolve ``url`` against ``base`` and strip tracking parameters.

    Returns None for non-http(s) URLs.
    """

    try:
        if not url:
            return None
        if base:
            url = urllib.parse.urljoin(base, url)
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None

        qs = urllib.parse.parse_qs(parsed.query, keep_blank_values=True)
        clean_qs = {k: v for k, v in qs.items() if (k not in _TRACKER_PARAMS and not k.startswith("utm_"))}
        clean_query = urllib.parse.urlencode([(k, vv) for k, vs in clean_qs.items() for vv in vs], doseq=True)
        return urllib.parse.urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, clean_query, ""))
    except ValueError:
        return None


def hostname_of(url: str) -> str:
    return (urllib.parse.urlparse(url).hostname or "").lower()


def select_external_urls(urls: list[str], base: str) -> list[ExternalUrl]:
    """Keep unique URLs whose host differs from the page's, in first-seen order."""

    page_host = hostname_of(base)
    seen: set[str] = set()
    out: list[ExternalUrl] = []
    for raw in urls:
        url = normalize_url(raw, base)
        if not url or url in seen:
            continue
        host = hostname_of(url)
        if not host or host == page_host:
            continue
        seen.add(url)
        out.append(ExternalUrl(url=url, hostname=host))
    return out


async def extract_external_urls(element: ElementHandle) -> list[ExternalUrl]:
    collected = await element.evaluate(_COLLECT_URLS_JS)
    return select_external_urls(collected.get("urls") or [], collected.get("base") or "")


__all__ = ["extract_external_urls", "hostname_of", "normalize_url", "select_external_urls"]
