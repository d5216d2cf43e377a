import pytest
from adscraper.models import ExternalUrl
from adscraper.urls import extract_external_urls, normalize_url, select_external_urls


def test_normalize_url_strips_trackers_and_fragment():
    url = "https://shop.example/p?id=3&utm_campaign=x&gclid=abc#top"
    assert normalize_url(url) == "https://shop.example/p?id=3"


def test_normalize_url_resolves_relative_urls():
    assert normalize_url("/img/a.png", "https://news.example/story/1") == "https://news.example/img/a.png"
    assert normalize_url("//cdn.adnet.example/x.js", "https://news.example/") == "https://cdn.adnet.example/x.js"


def test_normalize_url_handles_invalid_inputs():
    assert normalize_url("") is None
    assert normalize_url("mailto:test@example.com") is None
    assert normalize_url("javascript:void(0)") is None
    assert normalize_url("data:image/png;base64,AAAA") is None


def test_select_external_urls_drops_first_party_and_duplicates():
    urls = [
        "https://news.example/local.js",
        "https://ads.adnet.example/click?x=1&utm_source=y",
        "https://ads.adnet.example/click?x=1",
        "/relative.png",
        "https://cdn.other.example/img.png",
    ]
    assert select_external_urls(urls, "https://news.example/story") == [
        ExternalUrl(url="https://ads.adnet.example/click?x=1", hostname="ads.adnet.example"),
        ExternalUrl(url="https://cdn.other.example/img.png", hostname="cdn.other.example"),
    ]


class _UrlElement:
    async def evaluate(self, expression, arg=None):
        return {"base": "https://news.example/", "urls": ["https://t.adnet.example/p.gif", "/x"]}


@pytest.mark.asyncio
async def test_extract_external_urls_from_element():
    assert await extract_external_urls(_UrlElement()) == [ExternalUrl(url="https://t.adnet.example/p.gif", hostname="t.adnet.example")]
