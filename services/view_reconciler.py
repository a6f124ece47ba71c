"""Choose between the baseline feed and the active search for the gallery."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from dal.image_dal import ImageDAL
from models.image_record import ImageRecord
from models.search_models import QueryIdentity, QueryResult, QueryStatus, SearchFilters
from services.query_resolver import RECENT_IMAGES_COUNT, recent_identity, resolve_search
from services.result_cache import ResultCache

ViewListener = Callable[["GalleryView"], None]


@dataclass(frozen=True)
class GalleryView:
    """The single ordered sequence the gallery, stats and compare views consume."""

    filters: SearchFilters
    identity: QueryIdentity
    status: QueryStatus
    records: Tuple[ImageRecord, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def is_searching(self) -> bool:
        return self.filters.is_active

    @property
    def result_count(self) -> int:
        return len(self.records)


class ViewReconciler:
    """Track the current filters and expose whichever identity serves them.

    Active filters show the resolved search identity; no filters show the
    baseline ``list_recent`` feed in the order the contract returns it. Both
    identities stay cached independently, so switching back and forth inside
    the freshness window needs no new call.
    """

    def __init__(self, cache: ResultCache, dal: ImageDAL, recent_count: int = RECENT_IMAGES_COUNT) -> None:
        self._cache = cache
        self._dal = dal
        self.baseline = recent_identity(recent_count)
        self._filters = SearchFilters()
        self._listeners: List[ViewListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._watch(self.baseline)

    @property
    def filters(self) -> SearchFilters:
        return self._filters

    @property
    def active_identity(self) -> QueryIdentity:
        return resolve_search(self._filters) or self.baseline

    def current_view(self) -> GalleryView:
        """Build the view from the cache without calling out."""
        return self._to_view(self._cache.snapshot(self.active_identity))

    async def apply_filters(self, filters: SearchFilters) -> GalleryView:
        """Switch to `filters` and load whatever identity now serves them.

        The returned view reflects the filters current when the load finishes,
        so a slow response for superseded filters is cached but not shown.
        """
        if filters != self._filters:
            logging.info("Gallery filters changed: %s", filters.as_dict() or "none")
            self._filters = filters
            self._watch(self.active_identity)
        await self._load(self.active_identity)
        return self.current_view()

    async def refresh(self) -> GalleryView:
        """Load the active identity again if it is stale or missing."""
        await self._load(self.active_identity)
        return self.current_view()

    async def warm_baseline(self) -> QueryResult:
        """Load the baseline feed even while a search is displayed."""
        return await self._cache.fetch(self.baseline, self._dal.loader_for(self.baseline))

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _load(self, identity: QueryIdentity) -> QueryResult:
        return await self._cache.fetch(identity, self._dal.loader_for(identity))

    def _watch(self, identity: QueryIdentity) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self._cache.subscribe(identity, self._on_cache_change)

    def _on_cache_change(self, result: QueryResult) -> None:
        if result.identity != self.active_identity:
            return
        view = self._to_view(result)
        for listener in list(self._listeners):
            listener(view)

    def _to_view(self, result: QueryResult) -> GalleryView:
        records: Tuple[ImageRecord, ...] = ()
        if result.is_success and result.data:
            records = tuple(result.data)
        error = str(result.error) if result.is_error and result.error is not None else None
        return GalleryView(
            filters=self._filters,
            identity=result.identity,
            status=result.status,
            records=records,
            error=error,
        )
