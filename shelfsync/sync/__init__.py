from shelfsync.sync.entities import (
    SHELF_ORDER,
    BookMetadata,
    BookSummary,
    ShelfEntry,
    ShelfStatus,
    adjacent_of,
    parse_status,
)
from shelfsync.sync.events import LocalChangeFeed, ShelfChange, ShelfChangeFeed
from shelfsync.sync.interaction import DropOutcome, DropTarget, Phase, ShelfInteraction
from shelfsync.sync.metadata_cache import MetadataCache
from shelfsync.sync.reconciler import ShelfReconciler, ShelfView
from shelfsync.sync.search_cache import SearchQueryCache, SearchState, normalize_query

__all__ = [
    "SHELF_ORDER",
    "BookMetadata",
    "BookSummary",
    "DropOutcome",
    "DropTarget",
    "LocalChangeFeed",
    "MetadataCache",
    "Phase",
    "SearchQueryCache",
    "SearchState",
    "ShelfChange",
    "ShelfChangeFeed",
    "ShelfEntry",
    "ShelfInteraction",
    "ShelfReconciler",
    "ShelfStatus",
    "ShelfView",
    "adjacent_of",
    "normalize_query",
    "parse_status",
]
