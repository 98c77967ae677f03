from shelfsync.errors import ShelfSyncError
from shelfsync.mcp.desk import ReadingDesk
from shelfsync.mcp.tools.types import book_dict, error_result


async def search_books(desk: ReadingDesk, query: str) -> dict:
    desk.search.start()
    try:
        results = await desk.search.search(query)
    except ShelfSyncError as e:
        return error_result(e)
    state = desk.search.state
    return {
        "query": state.query,
        "searched": state.searched,
        "results": [book_dict(book) for book in results],
    }


async def get_book(desk: ReadingDesk, book_id: str) -> dict:
    try:
        metadata = await desk.metadata.fetch(book_id)
    except ShelfSyncError as e:
        return error_result(e)
    if metadata is None:
        return {"error": True, "type": "NotFound", "detail": f"Book {book_id} not found"}
    return dict(
        book_dict(metadata),
        categories=list(metadata.categories),
        description=metadata.description,
    )
