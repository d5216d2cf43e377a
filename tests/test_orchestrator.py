import asyncio
from dataclasses import replace

import pytest
from adscraper.hooks import AdScraperHooks, no_dom_updates
from adscraper.models import AdHandleRegistry, AdHandles, Chumbox, CrawlAdMetadata
from adscraper.orchestrator import scrape_ads_on_page, should_click_at_depth
from conftest import FakeElement, FakePage, make_hooks

METADATA = CrawlAdMetadata(crawl_id=1, parent_page_id=10, parent_depth=0)


def _box(width=300, height=250):
    return {"x": 100, "y": 100, "width": width, "height": height}


class ClickRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, click_target, page, depth, crawl_id, page_id, ad_id):
        self.calls.append((click_target, depth, crawl_id, page_id, ad_id))


def _detect(*ads):
    async def identify(page):
        return list(ads)

    return identify


@pytest.mark.asyncio
@pytest.mark.parametrize("with_context", [False, True])
async def test_single_ad_page_end_to_end(db, settings, with_context):
    settings = replace(settings, screenshot_ads_with_context=with_context)
    ad = FakeElement({"x": 400, "y": 300, "width": 100, "height": 100}, html="<ins class=\"adsbygoogle\"></ins>")

    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=make_hooks(identify_ads_in_dom=_detect(ad)))

    assert summary.detected == 1 and summary.archived == 1
    [row] = db.table("ad")
    assert row["html"] == "<ins class=\"adsbygoogle\"></ins>"
    assert row["screenshot"] is not None and row["screenshot_host"] == "crawler-1"
    assert row["max_bid_price"] is None and row["winning_bid"] is None
    assert row["with_context"] is with_context
    assert (row["bb_x"] is not None) is with_context
    assert db.table("chumbox") == []


@pytest.mark.asyncio
async def test_chumbox_members_share_one_chumbox_row(db, settings):
    container = FakeElement(_box(900, 400))
    items = [FakeElement(_box(), html=f"<div>item {i}</div>") for i in range(3)]
    links = [FakeElement(_box(200, 40)) for _ in range(3)]

    async def split(element):
        assert element is container
        return Chumbox(platform="taboola", ad_handles=[AdHandles(click_target=l, screenshot_target=i) for l, i in zip(links, items)])

    clicks = ClickRecorder()
    hooks = make_hooks(identify_ads_in_dom=_detect(container), split_chumbox=split, click_ad=clicks)
    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=hooks)

    [chumbox] = db.table("chumbox")
    assert chumbox == {"platform": "taboola", "parent_page": 10}
    ads = db.table("ad")
    assert [row["html"] for row in ads] == ["<div>item 0</div>", "<div>item 1</div>", "<div>item 2</div>"]
    assert {row["chumbox_id"] for row in ads} == {100}
    assert {row["platform"] for row in ads} == {"taboola"}
    assert [c[0] for c in clicks.calls] == links
    assert [c[4] for c in clicks.calls] == [101, 102, 103]
    assert summary.clicked == 3


@pytest.mark.asyncio
async def test_native_ad_without_screenshot_target_uses_click_target(db, settings):
    container = FakeElement(_box())
    link = FakeElement(_box(), html="<a>headline</a>")

    async def split(element):
        return Chumbox(platform="outbrain", ad_handles=[AdHandles(click_target=link)])

    await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=make_hooks(identify_ads_in_dom=_detect(container), split_chumbox=split))
    assert db.table("ad")[0]["html"] == "<a>headline</a>"


def test_depth_gate():
    assert not should_click_at_depth(2, 2)
    assert should_click_at_depth(1, 2)
    assert should_click_at_depth(0, 2)
    assert not should_click_at_depth(0, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("parent_depth,expect_click", [(2, False), (1, True)])
async def test_click_respects_depth_gate(db, settings, parent_depth, expect_click):
    clicks = ClickRecorder()
    hooks = make_hooks(identify_ads_in_dom=_detect(FakeElement(_box())), click_ad=clicks)
    metadata = replace(METADATA, parent_depth=parent_depth)

    await scrape_ads_on_page(FakePage(), metadata, db=db, settings=settings, hooks=hooks)

    assert len(db.table("ad")) == 1
    assert bool(clicks.calls) is expect_click
    if expect_click:
        _, depth, crawl_id, page_id, ad_id = clicks.calls[0]
        assert (depth, crawl_id, page_id, ad_id) == (1, 1, 10, 100)


@pytest.mark.asyncio
@pytest.mark.parametrize("box", [None, _box(300, 20), _box(25, 250)])
async def test_small_or_missing_click_targets_are_not_clicked(db, settings, box):
    clicks = ClickRecorder()
    hooks = make_hooks(identify_ads_in_dom=_detect(FakeElement(box)), click_ad=clicks)
    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=hooks)
    assert summary.archived == 1
    assert clicks.calls == []


@pytest.mark.asyncio
async def test_timed_out_ad_is_skipped_and_not_clicked(db, settings):
    slow, fast = FakeElement(_box(), html="<div>slow</div>"), FakeElement(_box(), html="<div>fast</div>")

    async def urls(element):
        if element is slow:
            await asyncio.sleep(1.5)
        return []

    clicks = ClickRecorder()
    settings = replace(settings, ad_crawl_timeout_ms=500)
    hooks = make_hooks(identify_ads_in_dom=_detect(slow, fast), extract_external_urls=urls, click_ad=clicks)

    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=hooks)

    assert summary.timed_out == 1 and summary.archived == 1
    assert [c[0] for c in clicks.calls] == [fast]
    await asyncio.sleep(1.6)
    assert [row["html"] for row in db.table("ad")] == ["<div>slow</div>", "<div>fast</div>"]
    assert db.table("ad_domain") == []


@pytest.mark.asyncio
async def test_failed_ad_does_not_stop_the_page(db, settings):
    broken, ok = FakeElement(_box()), FakeElement(_box())

    async def iframes(element):
        if element is broken:
            raise RuntimeError("frame detached")
        return []

    hooks = make_hooks(identify_ads_in_dom=_detect(broken, ok), scrape_iframes_in_element=iframes)
    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=hooks)
    assert summary.failed == 1 and summary.archived == 1


@pytest.mark.asyncio
async def test_detection_failure_is_contained(db, settings):
    async def identify(page):
        raise RuntimeError("page crashed")

    summary = await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=make_hooks(identify_ads_in_dom=identify))
    assert summary.detected == 0
    assert db.rows == []


@pytest.mark.asyncio
async def test_dom_mutations_are_attributed_to_stored_ads(db, settings):
    first, second = FakeElement(_box()), FakeElement(_box())
    seen = {}

    async def match(page, registry):
        seen["archived"] = registry.archived()
        return [{"ad_id": registry.ad_id(1), "hostname": "tracker.example", "url": "https://tracker.example/px"}]

    hooks = make_hooks(identify_ads_in_dom=_detect(first, second), match_dom_update_to_ad=match)
    await scrape_ads_on_page(FakePage(), METADATA, db=db, settings=settings, hooks=hooks)

    assert seen["archived"] == [(first, 100), (second, 101)]
    assert db.table("ad_domain") == [{"ad_id": 101, "hostname": "tracker.example", "url": "https://tracker.example/px"}]


@pytest.mark.asyncio
async def test_default_dom_matcher_records_nothing():
    hooks = AdScraperHooks()
    assert hooks.match_dom_update_to_ad is no_dom_updates
    assert hooks.click_ad is None
    assert await no_dom_updates(FakePage(), AdHandleRegistry()) == []
