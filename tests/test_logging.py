import json
import logging

from adscraper.logging import jlog, logging_context


def test_jlog_merges_context_fields(caplog):
    caplog.set_level(logging.INFO, logger="adscraper")
    with logging_context(page_url="https://news.example/", depth=None):
        jlog("warning", event="ad_timeout", ad_index=2)
    jlog("info", event="after")

    first, second = (json.loads(r.getMessage()) for r in caplog.records)
    assert first["event"] == "ad_timeout"
    assert first["page_url"] == "https://news.example/"
    assert "depth" not in first
    assert caplog.records[0].levelname == "WARNING"
    assert "page_url" not in second
