"""Map search filters onto the single contract read that serves them."""

from __future__ import annotations

from typing import Optional

from models.search_models import QueryIdentity, SearchFilters

RECENT_IMAGES_COUNT = 50

COUNT_METHOD = "count_images"
RECENT_METHOD = "list_recent"
RECORD_METHOD = "get_record_by_id"
STYLE_TAG_METHOD = "filter_by_style_tag"
DOMINANT_COLOR_METHOD = "filter_by_dominant_color"
SEARCH_METHOD = "search"


def count_identity() -> QueryIdentity:
    return QueryIdentity(COUNT_METHOD)


def recent_identity(count: int = RECENT_IMAGES_COUNT) -> QueryIdentity:
    """Identity of the baseline feed: the most recent `count` records."""
    return QueryIdentity(RECENT_METHOD, (str(count),))


def record_identity(record_id: str) -> QueryIdentity:
    return QueryIdentity(RECORD_METHOD, (record_id,))


def format_rating(value: float) -> str:
    """Render a rating the way the contract expects: 7 -> "7", 7.5 -> "7.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def resolve_search(filters: SearchFilters) -> Optional[QueryIdentity]:
    """Return the one read that serves `filters`, or None for the baseline feed.

    Style tag wins over dominant color, which wins over the general search. The
    contract has no combined lookup, so lower-priority fields are dropped when
    a style tag or color is set.
    """
    if filters.style_tag is not None:
        return QueryIdentity(STYLE_TAG_METHOD, (filters.style_tag,))
    if filters.dominant_color is not None:
        return QueryIdentity(DOMINANT_COLOR_METHOD, (filters.dominant_color,))
    if not filters.is_active:
        return None
    return QueryIdentity(
        SEARCH_METHOD,
        (
            filters.rarity.value if filters.rarity is not None else "",
            format_rating(filters.min_rating) if filters.min_rating is not None else "0",
            filters.keyword or "",
        ),
    )
