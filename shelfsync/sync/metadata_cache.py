"""Process-wide book metadata cache shared by shelf views and search results."""

import asyncio
import logging
from collections.abc import Callable, Iterable

from shelfsync.errors import NotFound
from shelfsync.sync.entities import BookMetadata
from shelfsync.sync.stores import BookStore

logger = logging.getLogger(__name__)


class MetadataCache:
    """
    Lazily populated book_id -> BookMetadata mapping.

    Entries are never evicted. Concurrent requests for the same missing id
    share one store call. Create one per application (or per test) and call
    ``aclose`` when done.
    """

    def __init__(self, store: BookStore) -> None:
        self._store = store
        self._entries: dict[str, BookMetadata] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, book_id: str) -> bool:
        return book_id in self._entries

    async def __aenter__(self) -> "MetadataCache":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def peek(self, book_id: str) -> BookMetadata | None:
        """Cached metadata without triggering a fetch."""
        return self._entries.get(book_id)

    def put(self, metadata: BookMetadata) -> None:
        self._entries[metadata.book_id] = metadata

    def is_loading(self, book_id: str) -> bool:
        return book_id in self._inflight

    def get(
        self,
        book_id: str,
        callback: Callable[[BookMetadata | None], None] | None = None,
    ) -> BookMetadata | None:
        """
        Return cached metadata, or None while it loads in the background.

        Args:
            book_id: Book to look up.
            callback: Called once with the fetched metadata (None if the book
                does not exist or the fetch failed). Not called on a cache hit.
        """
        cached = self._entries.get(book_id)
        if cached is not None:
            return cached
        task = self._start(book_id)
        if callback is not None:
            task.add_done_callback(lambda t: callback(self._outcome(t)))
        return None

    async def fetch(self, book_id: str) -> BookMetadata | None:
        cached = self._entries.get(book_id)
        if cached is not None:
            return cached
        return await asyncio.shield(self._start(book_id))

    async def get_batch(self, book_ids: Iterable[str]) -> list[BookMetadata | None]:
        """Fetch the uncached subset once per distinct id; results follow input order."""
        book_ids = list(book_ids)
        missing = [book_id for book_id in dict.fromkeys(book_ids) if book_id not in self._entries]
        if missing:
            await asyncio.gather(*(self.fetch(book_id) for book_id in missing))
        return [self._entries.get(book_id) for book_id in book_ids]

    async def aclose(self) -> None:
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        self._entries.clear()

    def _start(self, book_id: str) -> asyncio.Task:
        task = self._inflight.get(book_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._load(book_id))
            self._inflight[book_id] = task
            task.add_done_callback(lambda t: self._finished(book_id, t))
        return task

    def _finished(self, book_id: str, task: asyncio.Task) -> None:
        if self._inflight.get(book_id) is task:
            del self._inflight[book_id]
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Metadata fetch for %s failed: %s", book_id, task.exception())

    async def _load(self, book_id: str) -> BookMetadata | None:
        try:
            metadata = await self._store.get(book_id)
        except NotFound:
            logger.info("No metadata for book %s", book_id)
            return None
        self._entries[book_id] = metadata
        return metadata

    @staticmethod
    def _outcome(task: asyncio.Task) -> BookMetadata | None:
        if task.cancelled() or task.exception() is not None:
            return None
        return task.result()
