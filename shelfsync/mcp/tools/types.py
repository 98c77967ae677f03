from shelfsync.errors import ShelfSyncError
from shelfsync.sync.entities import BookMetadata, BookSummary, ShelfEntry


def error_result(exc: ShelfSyncError) -> dict:
    return {"error": True, "type": type(exc).__name__, "detail": str(exc)}


def book_dict(metadata: BookMetadata | BookSummary) -> dict:
    return {
        "book_id": metadata.book_id,
        "title": metadata.title,
        "authors": list(metadata.authors),
        "thumbnail": metadata.thumbnail,
        "page_count": metadata.page_count,
        "published_date": metadata.published_date,
    }


def entry_dict(entry: ShelfEntry, metadata: BookMetadata | None = None) -> dict:
    return {
        "id": entry.id,
        "book_id": entry.book_id,
        "status": str(entry.status),
        "title": metadata.title if metadata else None,
        "authors": list(metadata.authors) if metadata else [],
        "date_added": entry.date_added.isoformat() if entry.date_added else None,
        "date_started": entry.date_started.isoformat() if entry.date_started else None,
        "date_finished": entry.date_finished.isoformat() if entry.date_finished else None,
    }
