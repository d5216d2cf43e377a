"""Structured JSON logging for the crawler.

Every record is one JSON object on the ``adscraper`` logger. Fields set with
:func:`set_global_context` (crawler host, job) and the innermost
:func:`logging_context` blocks (page URL, crawl, depth) are merged into each
record so ad-level events can be traced back to their page.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "adscraper"
_configured = False
_base_context: dict[str, Any] = {}
_context_stack: list[dict[str, Any]] = []


def configure_logging(level: int | str | None = None) -> None:
    """Configure the root handler once; ``LOG_LEVEL`` env wins over the default."""

    global _configured
    if _configured:
        return
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    # Playwright's own logger is chatty at INFO during navigations.
    logging.getLogger("playwright").setLevel(logging.WARNING)
    _configured = True


def set_global_context(**fields: Any) -> None:
    _base_context.update({k: v for k, v in fields.items() if v is not None})


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Add ``fields`` to every record logged inside the ``with`` block."""

    ctx = {k: v for k, v in fields.items() if v is not None}
    _context_stack.append(ctx)
    try:
        yield
    finally:
        _context_stack.pop()


def _merged_context() -> dict[str, Any]:
    merged: dict[str, Any] = dict(_base_context)
    for ctx in _context_stack:
        merged.update(ctx)
    return merged


def describe_exc(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def jlog(level: str, /, **fields: Any) -> None:
    """Emit a structured JSON log payload under the ``adscraper`` logger."""

    log = logging.getLogger(_LOGGER_NAME)
    level_no = logging.getLevelName(level.upper())
    if not log.isEnabledFor(level_no):
        return
    record = {"ts": datetime.now(UTC).isoformat(), **_merged_context(), **fields}
    log.log(level_no, json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))


def adlog(event: str, *, ad_id: int, page_url: str, **kw: Any) -> None:
    """Shortcut for ad-scoped records."""

    jlog("info", event=event, ad_id=ad_id, page_url=page_url, **kw)


__all__ = ["adlog", "configure_logging", "describe_exc", "jlog", "logging_context", "set_global_context"]
