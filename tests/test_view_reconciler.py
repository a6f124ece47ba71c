import asyncio

from dal.image_dal import ImageDAL
from models.search_models import QueryStatus, SearchFilters
from services.result_cache import ResultCache
from services.view_reconciler import ViewReconciler


def _reconciler(gateway, clock):
    return ViewReconciler(ResultCache(clock=clock), ImageDAL(gateway))


def test_warm_baseline_is_served_without_a_call(gateway, clock, record_payload):
    gateway.set("list_recent", [record_payload("c"), record_payload("b"), record_payload("a")])
    reconciler = _reconciler(gateway, clock)

    async def scenario():
        await reconciler.warm_baseline()
        return await reconciler.apply_filters(SearchFilters())

    view = asyncio.run(scenario())
    assert [r.id for r in view.records] == ["c", "b", "a"]
    assert view.status is QueryStatus.SUCCESS
    assert not view.is_searching
    assert gateway.calls == [("query", "list_recent", ["50"])]


def test_active_filters_display_the_search(gateway, clock, record_payload):
    gateway.set("list_recent", [record_payload("recent")])
    gateway.set("search", [record_payload("hit", rarity="rare", rating=8)])
    reconciler = _reconciler(gateway, clock)

    async def scenario():
        await reconciler.warm_baseline()
        return await reconciler.apply_filters(SearchFilters(rarity="rare", min_rating=7))

    view = asyncio.run(scenario())
    assert [r.id for r in view.records] == ["hit"]
    assert view.identity.method == "search"
    assert gateway.calls_for("search") == [["rare", "7", ""]]


def test_switching_back_and_forth_reuses_both_caches(gateway, clock, record_payload):
    gateway.set("list_recent", [record_payload("recent")])
    gateway.set("filter_by_style_tag", [record_payload("tagged", style_tags=("noir",))])
    reconciler = _reconciler(gateway, clock)

    async def scenario():
        await reconciler.apply_filters(SearchFilters())
        await reconciler.apply_filters(SearchFilters(style_tag="noir"))
        baseline = await reconciler.apply_filters(SearchFilters())
        tagged = await reconciler.apply_filters(SearchFilters(style_tag="noir"))
        return baseline, tagged

    baseline, tagged = asyncio.run(scenario())
    assert [r.id for r in baseline.records] == ["recent"]
    assert [r.id for r in tagged.records] == ["tagged"]
    assert len(gateway.calls) == 2


def test_late_response_for_old_filters_is_not_displayed(gateway, clock, record_payload):
    gateway.set("filter_by_style_tag", [record_payload("slow")])
    gateway.set("filter_by_dominant_color", [record_payload("red")])
    reconciler = _reconciler(gateway, clock)

    async def scenario():
        gateway.gate = asyncio.Event()
        slow = asyncio.ensure_future(reconciler.apply_filters(SearchFilters(style_tag="noir")))
        await asyncio.sleep(0)
        fast = asyncio.ensure_future(reconciler.apply_filters(SearchFilters(dominant_color="#ff0000")))
        await asyncio.sleep(0)
        gateway.gate.set()
        return await slow, await fast

    slow_view, fast_view = asyncio.run(scenario())
    assert [r.id for r in slow_view.records] == ["red"]
    assert [r.id for r in fast_view.records] == ["red"]
    assert reconciler.current_view().identity.method == "filter_by_dominant_color"


def test_error_status_degrades_to_empty_records(gateway, clock):
    gateway.set("search", "not json at all")
    reconciler = _reconciler(gateway, clock)

    view = asyncio.run(reconciler.apply_filters(SearchFilters(keyword="cat")))

    assert view.status is QueryStatus.ERROR
    assert view.records == ()
    assert view.error


def test_listeners_only_hear_the_active_identity(gateway, clock, record_payload):
    gateway.set("list_recent", [record_payload("recent")])
    gateway.set("search", [])
    reconciler = _reconciler(gateway, clock)
    seen = []
    reconciler.subscribe(lambda view: seen.append((view.identity.method, view.status)))

    async def scenario():
        await reconciler.apply_filters(SearchFilters(keyword="x"))
        await reconciler.warm_baseline()

    asyncio.run(scenario())
    assert seen == [("search", QueryStatus.LOADING), ("search", QueryStatus.SUCCESS)]
