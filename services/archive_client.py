"""Wire the gallery, filter, upload and compare components around one cache."""

from __future__ import annotations

from typing import Optional

from dal.contract_gateway import ContractGateway
from dal.image_dal import ImageDAL
from models.search_models import QueryResult
from services.debouncer import DEBOUNCE_SECONDS
from services.filter_editor import FilterEditor
from services.mutation_coordinator import CompareCoordinator, UploadCoordinator
from services.query_resolver import RECENT_IMAGES_COUNT, count_identity, record_identity
from services.result_cache import FRESHNESS_SECONDS, ResultCache
from services.statistics import CollectionStatistics, compute_statistics
from services.view_reconciler import ViewReconciler


class ArchiveClient:
    """Per-process client state for one user session.

    Everything shares a single `ResultCache`, so an upload's invalidation is
    seen by the gallery and the statistics alike.
    """

    def __init__(
        self,
        gateway: ContractGateway,
        recent_count: int = RECENT_IMAGES_COUNT,
        freshness: float = FRESHNESS_SECONDS,
        debounce: float = DEBOUNCE_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.dal = ImageDAL(gateway)
        self.cache = ResultCache(freshness=freshness)
        self.gallery = ViewReconciler(self.cache, self.dal, recent_count=recent_count)
        self.filters = FilterEditor(self.gallery.apply_filters, wait=debounce)
        self.uploads = UploadCoordinator(self.dal, self.cache)
        self.comparisons = CompareCoordinator(self.dal)

    async def get_record(self, record_id: str) -> QueryResult:
        identity = record_identity(record_id)
        return await self.cache.fetch(identity, self.dal.loader_for(identity))

    async def count_images(self) -> QueryResult:
        identity = count_identity()
        return await self.cache.fetch(identity, self.dal.loader_for(identity))

    async def statistics(self) -> CollectionStatistics:
        """Summarise the records on display, plus the contract's total if it loads."""
        view = await self.gallery.refresh()
        count = await self.count_images()
        remote_total: Optional[int] = count.data if count.is_success else None
        return compute_statistics(view.records, remote_total=remote_total)
