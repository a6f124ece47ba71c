"""Identity-keyed cache for contract reads.

Each `QueryIdentity` (method name plus arguments) owns one `CacheEntry`. The
cache serves fresh entries without a remote call, shares one pending call
between concurrent requesters, retries a failed read once, and lets mutations
mark entries stale by method-name prefix.

Observers subscribe per identity and receive a `QueryResult` snapshot every
time that identity's status changes. `fetch` returns snapshots too, so remote
failures show up as an ``error`` status rather than as exceptions.

Example:
    cache = ResultCache()
    result = await cache.fetch(recent_identity(), dal.loader_for(recent_identity()))
    if result.is_success:
        render(result.data)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from models.search_models import QueryIdentity, QueryResult, QueryStatus

FRESHNESS_SECONDS = 30.0
MAX_READ_ATTEMPTS = 2

Loader = Callable[[], Awaitable[Any]]
Listener = Callable[[QueryResult], None]


@dataclass
class CacheEntry:
    """Mutable state for one identity. Only the cache touches it."""

    identity: QueryIdentity
    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Optional[BaseException] = None
    fetched_at: Optional[float] = None
    stale: bool = False
    in_flight: Optional[asyncio.Future] = None
    generation: int = 0
    epoch: int = 0

    def snapshot(self) -> QueryResult:
        return QueryResult(
            identity=self.identity,
            status=self.status,
            data=self.data,
            error=self.error,
            fetched_at=self.fetched_at,
        )


class ResultCache:
    """Memoize contract reads per identity.

    Args:
        freshness: Seconds a successful result is served without a new call.
        clock: Monotonic time source, injectable for tests.
        max_attempts: Total attempts per read, the first call included.
    """

    def __init__(
        self,
        freshness: float = FRESHNESS_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_attempts: int = MAX_READ_ATTEMPTS,
    ) -> None:
        self.freshness = freshness
        self.max_attempts = max(1, max_attempts)
        self._clock = clock
        self._entries: Dict[QueryIdentity, CacheEntry] = {}
        self._listeners: Dict[QueryIdentity, List[Listener]] = {}

    def snapshot(self, identity: QueryIdentity) -> QueryResult:
        """Return what observers currently see for `identity`. Never calls out."""
        entry = self._entries.get(identity)
        if entry is None:
            return QueryResult(identity=identity, status=QueryStatus.IDLE)
        return entry.snapshot()

    def is_fresh(self, identity: QueryIdentity) -> bool:
        entry = self._entries.get(identity)
        return entry is not None and self._is_fresh(entry)

    def is_in_flight(self, identity: QueryIdentity) -> bool:
        entry = self._entries.get(identity)
        return entry is not None and entry.in_flight is not None

    async def fetch(self, identity: QueryIdentity, loader: Loader) -> QueryResult:
        """Return the result for `identity`, calling `loader` only when needed.

        A fresh success is returned as-is. Otherwise the pending call for the
        identity is joined, or a new one is started.
        """
        self._prune(keep=identity)
        entry = self._entries.get(identity)
        if entry is None:
            entry = self._entries[identity] = CacheEntry(identity=identity)

        if self._is_fresh(entry):
            return entry.snapshot()

        if entry.in_flight is None:
            self._start(entry, loader)
        # Shield so one cancelled requester does not cancel the shared call.
        return await asyncio.shield(entry.in_flight)

    async def refetch(self, identity: QueryIdentity, loader: Loader) -> QueryResult:
        """Fetch `identity` ignoring its freshness window."""
        entry = self._entries.get(identity)
        if entry is not None:
            self._mark_stale(entry)
        return await self.fetch(identity, loader)

    def invalidate(self, prefix: str) -> int:
        """Mark every identity whose method starts with `prefix` as stale.

        A call already in flight for such an identity is superseded: the next
        fetch issues a new call and only that newer response is applied.
        Returns the number of entries marked.
        """
        marked = 0
        for identity, entry in self._entries.items():
            if identity.matches(prefix):
                self._mark_stale(entry)
                marked += 1
        logging.info("Invalidated %d cached read(s) for %r", marked, prefix)
        return marked

    def subscribe(self, identity: QueryIdentity, listener: Listener) -> Callable[[], None]:
        """Register `listener` for status changes on `identity`.

        Returns a callable that removes the registration.
        """
        listeners = self._listeners.setdefault(identity, [])
        listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)
            if not listeners and self._listeners.get(identity) is listeners:
                del self._listeners[identity]

        return _unsubscribe

    def __len__(self) -> int:
        return len(self._entries)

    def _prune(self, keep: QueryIdentity) -> None:
        """Forget expired entries that nobody watches and nothing is loading."""
        now = self._clock()
        expired = [
            identity
            for identity, entry in self._entries.items()
            if identity != keep
            and entry.in_flight is None
            and not self._listeners.get(identity)
            and (entry.fetched_at is None or now - entry.fetched_at >= self.freshness)
        ]
        for identity in expired:
            del self._entries[identity]

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if entry.status is not QueryStatus.SUCCESS or entry.stale or entry.fetched_at is None:
            return False
        return self._clock() - entry.fetched_at < self.freshness

    def _mark_stale(self, entry: CacheEntry) -> None:
        entry.stale = True
        entry.epoch += 1
        entry.in_flight = None

    def _start(self, entry: CacheEntry, loader: Loader) -> None:
        entry.generation += 1
        previous = entry.status
        # A stale success keeps being served while its refetch runs.
        if entry.status is not QueryStatus.SUCCESS:
            entry.status = QueryStatus.LOADING
            entry.data = None
            entry.error = None
        entry.in_flight = asyncio.ensure_future(self._run(entry, entry.generation, entry.epoch, loader))
        if entry.status is not previous:
            self._notify(entry)

    async def _run(self, entry: CacheEntry, generation: int, epoch: int, loader: Loader) -> QueryResult:
        attempt = 0
        while True:
            attempt += 1
            try:
                data = await loader()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                if attempt < self.max_attempts:
                    logging.warning("Read %s failed (%s); retrying", entry.identity, exc)
                    continue
                logging.error("Read %s failed after %d attempt(s): %s", entry.identity, attempt, exc)
                return self._settle(entry, generation, epoch, error=exc)
            return self._settle(entry, generation, epoch, data=data)

    def _settle(
        self,
        entry: CacheEntry,
        generation: int,
        epoch: int,
        data: Any = None,
        error: Optional[BaseException] = None,
    ) -> QueryResult:
        now = self._clock()
        status = QueryStatus.ERROR if error is not None else QueryStatus.SUCCESS
        if generation != entry.generation:
            # A newer call owns this entry; hand the result only to its own awaiters.
            logging.debug("Dropping superseded response for %s", entry.identity)
            return QueryResult(entry.identity, status, data, error, now)

        entry.in_flight = None
        entry.status = status
        entry.data = data
        entry.error = error
        entry.fetched_at = now
        # Invalidated while in flight: keep the data but refetch on next use.
        entry.stale = epoch != entry.epoch
        self._notify(entry)
        return entry.snapshot()

    def _notify(self, entry: CacheEntry) -> None:
        snapshot = entry.snapshot()
        for listener in list(self._listeners.get(entry.identity, ())):
            try:
                listener(snapshot)
            except Exception:  # pylint: disable=broad-exception-caught
                logging.exception("Cache listener failed for %s", entry.identity)
