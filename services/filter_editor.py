"""Turn raw filter-panel edits into debounced filter transitions."""

from __future__ import annotations

from typing import Any, Callable, Optional

from models.image_record import Rarity
from models.search_models import SearchFilters
from services.debouncer import DEBOUNCE_SECONDS, Debouncer

MIN_RATING = 0.0
MAX_RATING = 10.0

FILTER_FIELDS = ("rarity", "min_rating", "keyword", "style_tag", "dominant_color")


def clamp_rating(value: float) -> float:
    return min(MAX_RATING, max(MIN_RATING, float(value)))


class FilterEditor:
    """Own the draft filters and publish them through a debouncer.

    Every edit updates the draft immediately and schedules a publish; edits
    arriving within the debounce window collapse into one. ``clear`` bypasses
    the window.

    Args:
        on_change: Receives each published `SearchFilters`. May be a coroutine function.
        wait: Debounce window in seconds.
    """

    def __init__(self, on_change: Callable[[SearchFilters], Any], wait: float = DEBOUNCE_SECONDS) -> None:
        self._on_change = on_change
        self._debouncer: Debouncer[SearchFilters] = Debouncer(on_change, wait=wait)
        self.draft = SearchFilters()

    @property
    def active_filter_count(self) -> int:
        return self.draft.active_count

    @property
    def debouncer(self) -> Debouncer[SearchFilters]:
        return self._debouncer

    def set_keyword(self, text: Optional[str]) -> SearchFilters:
        return self._edit(keyword=_clean(text))

    def toggle_rarity(self, rarity: Rarity | str) -> SearchFilters:
        """Select `rarity`, or clear it when it is already selected."""
        rarity = Rarity(rarity)
        return self._edit(rarity=None if self.draft.rarity is rarity else rarity)

    def set_min_rating(self, value: Optional[float]) -> SearchFilters:
        """Set the minimum rating, clamped to 0-10. Zero means no rating filter."""
        if value is None:
            return self._edit(min_rating=None)
        rating = clamp_rating(value)
        return self._edit(min_rating=rating if rating > 0 else None)

    def set_style_tag(self, tag: Optional[str]) -> SearchFilters:
        return self._edit(style_tag=_clean(tag))

    def set_dominant_color(self, color: Optional[str]) -> SearchFilters:
        color = _clean(color)
        return self._edit(dominant_color=color.lower() if color else None)

    def remove(self, field: str) -> SearchFilters:
        if field not in FILTER_FIELDS:
            raise ValueError(f"Unknown filter field: {field}")
        return self._edit(**{field: None})

    def replace(self, filters: SearchFilters, immediate: bool = False) -> Any:
        """Swap in a whole filter set.

        With `immediate` the pending edit is dropped and `filters` published at
        once; the return value is whatever the change callback returns.
        """
        self.draft = filters
        if immediate:
            self._debouncer.cancel()
            return self._on_change(filters)
        self._debouncer.push(filters)
        return filters

    def clear(self) -> Any:
        """Reset every field and publish the empty filter immediately."""
        self._debouncer.cancel()
        self.draft = SearchFilters()
        return self._on_change(self.draft)

    def _edit(self, **changes: Any) -> SearchFilters:
        self.draft = self.draft.with_changes(**changes)
        self._debouncer.push(self.draft)
        return self.draft


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None
