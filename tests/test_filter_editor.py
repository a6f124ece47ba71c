import asyncio

import pytest

from models.image_record import Rarity
from models.search_models import SearchFilters
from services.debouncer import Debouncer
from services.filter_editor import FilterEditor


def test_rapid_edits_collapse_into_one_event():
    delivered = []

    async def scenario():
        debouncer = Debouncer(delivered.append, wait=0.02)
        for text in ("c", "ca", "cat"):
            debouncer.push(text)
            await asyncio.sleep(0.005)
        assert delivered == []
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert delivered == ["cat"]


def test_cancel_drops_pending_value():
    delivered = []

    async def scenario():
        debouncer = Debouncer(delivered.append, wait=0.01)
        debouncer.push("x")
        debouncer.cancel()
        await asyncio.sleep(0.03)
        return debouncer.pending

    assert asyncio.run(scenario()) is False
    assert delivered == []


def test_coroutine_callbacks_are_awaited():
    delivered = []

    async def on_change(value):
        await asyncio.sleep(0)
        delivered.append(value)

    async def scenario():
        debouncer = Debouncer(on_change, wait=0.01)
        debouncer.push(1)
        debouncer.flush()
        await debouncer.drain()

    asyncio.run(scenario())
    assert delivered == [1]


def test_keyword_typing_publishes_one_filter_change():
    published = []

    async def scenario():
        editor = FilterEditor(published.append, wait=0.02)
        for text in ("s", "su", "sun", "sunset"):
            editor.set_keyword(text)
        await asyncio.sleep(0.06)

    asyncio.run(scenario())
    assert published == [SearchFilters(keyword="sunset")]


def test_clear_publishes_immediately():
    published = []

    async def scenario():
        editor = FilterEditor(published.append, wait=10)
        editor.set_keyword("tree")
        editor.clear()
        return editor

    editor = asyncio.run(scenario())
    assert published == [SearchFilters()]
    assert not editor.debouncer.pending
    assert editor.active_filter_count == 0


def test_rarity_toggles_off_when_selected_twice():
    async def scenario():
        editor = FilterEditor(lambda filters: None, wait=10)
        editor.toggle_rarity("rare")
        first = editor.draft.rarity
        editor.toggle_rarity(Rarity.RARE)
        editor.debouncer.cancel()
        return first, editor.draft.rarity

    assert asyncio.run(scenario()) == (Rarity.RARE, None)


def test_min_rating_is_clamped_and_zero_clears():
    async def scenario():
        editor = FilterEditor(lambda filters: None, wait=10)
        editor.set_min_rating(14)
        high = editor.draft.min_rating
        editor.set_min_rating(-3)
        low = editor.draft.min_rating
        editor.debouncer.cancel()
        return high, low

    assert asyncio.run(scenario()) == (10.0, None)


def test_blank_values_use_the_absent_sentinel():
    async def scenario():
        editor = FilterEditor(lambda filters: None, wait=10)
        editor.set_style_tag("noir")
        editor.set_style_tag("  ")
        editor.set_dominant_color("#FF00AA")
        editor.debouncer.cancel()
        return editor.draft

    draft = asyncio.run(scenario())
    assert draft.style_tag is None
    assert draft.dominant_color == "#ff00aa"


def test_unknown_field_cannot_be_removed():
    editor = FilterEditor(lambda filters: None)
    with pytest.raises(ValueError):
        editor.remove("colour")
