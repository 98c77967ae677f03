"""Turns keystrokes into debounced, coalesced, cached book searches."""

import asyncio
import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from shelfsync.config import (
    SEARCH_CACHE_SWEEP_SECONDS,
    SEARCH_CACHE_TTL_SECONDS,
    SEARCH_DEBOUNCE_SECONDS,
    SEARCH_MIN_QUERY_LENGTH,
)
from shelfsync.errors import Cancelled, ShelfSyncError
from shelfsync.sync.entities import BookSummary
from shelfsync.sync.stores import BookSearchApi

logger = logging.getLogger(__name__)


def normalize_query(text: str) -> str:
    return text.strip().casefold()


@dataclass(frozen=True)
class CachedQueryResult:
    results: tuple[BookSummary, ...]
    captured_at: float


@dataclass(frozen=True)
class SearchState:
    """What the search view renders: loading flag, results, and whether a search ran."""

    query: str = ""
    loading: bool = False
    results: tuple[BookSummary, ...] = ()
    searched: bool = False
    error: ShelfSyncError | None = None


class SearchQueryCache:
    """
    Debounced search front end over a BookSearchApi.

    Each call to ``search`` waits out the debounce window; a newer call
    supersedes it. Results are cached per normalized query for ``ttl``
    seconds, and a newer request for a key aborts the one in flight.
    """

    def __init__(
        self,
        api: BookSearchApi,
        *,
        debounce: float = SEARCH_DEBOUNCE_SECONDS,
        ttl: float = SEARCH_CACHE_TTL_SECONDS,
        sweep_interval: float = SEARCH_CACHE_SWEEP_SECONDS,
        min_length: int = SEARCH_MIN_QUERY_LENGTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self.debounce = debounce
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.min_length = min_length
        self._clock = clock
        self._generation = 0
        self._tokens = itertools.count(1)
        self._entries: dict[str, CachedQueryResult] = {}
        self._inflight: dict[str, tuple[int, asyncio.Task]] = {}
        self._sweeper: asyncio.Task | None = None
        self._listeners: list[Callable[[SearchState], None]] = []
        self.state = SearchState()

    async def __aenter__(self) -> "SearchQueryCache":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, callback: Callable[[SearchState], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_state(self, state: SearchState) -> None:
        self.state = state
        for callback in list(self._listeners):
            callback(state)

    async def search(self, raw: str) -> list[BookSummary]:
        key = normalize_query(raw)
        self._generation += 1
        generation = self._generation
        if len(key) < self.min_length:
            self._set_state(SearchState(query=key))
            return []

        await asyncio.sleep(self.debounce)
        if generation != self._generation:
            return []

        cached = self.lookup(key)
        if cached is not None:
            self._set_state(SearchState(query=key, results=cached, searched=True))
            return list(cached)

        self._set_state(SearchState(query=key, loading=True, results=self.state.results, searched=True))
        try:
            results = await self._request(key)
        except Cancelled:
            logger.debug("Search for %r was superseded", key)
            self._abandon(key, generation)
            return []
        except asyncio.CancelledError:
            self._abandon(key, generation)
            raise
        except ShelfSyncError as exc:
            if generation == self._generation:
                self._set_state(SearchState(query=key, searched=True, error=exc))
            raise
        if generation == self._generation:
            self._set_state(SearchState(query=key, results=tuple(results), searched=True))
        return results

    def _abandon(self, key: str, generation: int) -> None:
        if generation == self._generation and self.state.loading:
            self._set_state(SearchState(query=key))

    async def _request(self, key: str) -> list[BookSummary]:
        previous = self._inflight.pop(key, None)
        if previous is not None:
            logger.debug("Aborting in-flight search for %r", key)
            previous[1].cancel()

        token = next(self._tokens)
        task = asyncio.get_running_loop().create_task(self._api.search(key))
        self._inflight[key] = (token, task)
        superseded = False
        try:
            results = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise Cancelled(f"Search for {key!r} was aborted") from None
        finally:
            entry = self._inflight.get(key)
            superseded = entry is None or entry[0] != token
            if not superseded:
                del self._inflight[key]
        if superseded:
            raise Cancelled(f"Search for {key!r} was superseded")

        self._entries[key] = CachedQueryResult(tuple(results), self._clock())
        return list(results)

    def lookup(self, key: str) -> tuple[BookSummary, ...] | None:
        """Fresh cached results for a normalized key; expired entries count as absent."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        return entry.results

    def _expired(self, entry: CachedQueryResult) -> bool:
        return self._clock() - entry.captured_at >= self.ttl

    def sweep(self) -> int:
        expired = [key for key, entry in self._entries.items() if self._expired(entry)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired search results", len(expired))
        return len(expired)

    def start(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()

    async def aclose(self) -> None:
        tasks = [task for _, task in self._inflight.values()]
        if self._sweeper is not None:
            tasks.append(self._sweeper)
            self._sweeper = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
