"""Playwright helpers shared by the crawler and the ad collaborators."""

from __future__ import annotations

from playwright.async_api import ElementHandle, Page


async def element_is_visibly_displayed(handle: ElementHandle | None) -> bool:
    if not handle:
        return False
    try:
        return await handle.evaluate(
            """
            (el) => {
                if (!el) return false;
                const rect = el.getBoundingClientRect();
                if (rect.width <= 1 || rect.height <= 1) return false;
                let node = el;
                while (node) {
                    if (node instanceof HTMLElement) {
                        if (node.hidden || node.getAttribute('aria-hidden') === 'true') {
                            return false;
                        }
                        const ns = window.getComputedStyle(node);
                        if (ns.display === 'none' || ns.visibility === 'hidden' || ns.opacity === '0') {
                            return false;
                        }
                    }
                    node = node.parentElement;
                }
                return true;
            }
            """
        )
    except Exception:
        return False


async def wait_assets_ready(page: Page, timeout_ms: int = 10000) -> None:
    """Wait (up to ``timeout_ms``) for fonts and images to settle before looking for ads."""

    try:
        await page.evaluate(
            """
            (timeoutMs) => Promise.race([
                Promise.all([
                    (document.fonts && document.fonts.ready) ? document.fonts.ready : Promise.resolve(),
                    Promise.all(
                        Array.from(document.images || []).map(img => {
                            if (img.complete) return Promise.resolve();
                            return new Promise(res => {
                                img.addEventListener('load', () => res(), { once: true });
                                img.addEventListener('error', () => res(), { once: true });
                            });
                        })
                    )
                ]),
                new Promise(res => setTimeout(res, timeoutMs)),
            ])
            """,
            timeout_ms,
        )
    except Exception:
        pass


async def cleanup_playwright(context, browser) -> None:
    """Close the browser context and browser, ignoring already-closed errors."""

    try:
        if context:
            await context.close()
    except Exception:
        pass
    try:
        if browser:
            await browser.close()
    except Exception:
        pass


CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-gpu",
]


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "cleanup_playwright",
    "element_is_visibly_displayed",
    "wait_assets_ready",
]
