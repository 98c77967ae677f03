from dataclasses import dataclass

from shelfsync.remote import HttpBookSearch, HttpBookStore, HttpShelfStore, ShelfsyncClient
from shelfsync.sync.events import ShelfChangeFeed
from shelfsync.sync.interaction import ShelfInteraction
from shelfsync.sync.metadata_cache import MetadataCache
from shelfsync.sync.reconciler import ShelfReconciler
from shelfsync.sync.search_cache import SearchQueryCache


@dataclass
class ReadingDesk:
    """The client-side objects one viewer works with, wired together."""

    reconciler: ShelfReconciler
    interaction: ShelfInteraction
    search: SearchQueryCache
    metadata: MetadataCache

    @classmethod
    def connect(
        cls,
        client: ShelfsyncClient,
        viewer_id: str | None = None,
        feed: ShelfChangeFeed | None = None,
        **search_options,
    ) -> "ReadingDesk":
        metadata = MetadataCache(HttpBookStore(client))
        reconciler = ShelfReconciler(HttpShelfStore(client), viewer_id=viewer_id)
        if feed is not None:
            reconciler.attach(feed)
        return cls(
            reconciler=reconciler,
            interaction=ShelfInteraction(reconciler, metadata),
            search=SearchQueryCache(HttpBookSearch(client), **search_options),
            metadata=metadata,
        )

    async def aclose(self) -> None:
        self.reconciler.detach()
        await self.search.aclose()
        await self.metadata.aclose()
