from fastmcp import FastMCP

from shelfsync.mcp.desk import ReadingDesk
from shelfsync.mcp.tools.discovery import get_book as _get_book, search_books as _search_books
from shelfsync.mcp.tools.shelves import (
    load_shelves as _load_shelves,
    move_book as _move_book,
    remove_book as _remove_book,
    reorder_book as _reorder_book,
    shelve_book as _shelve_book,
)


def create_mcp_server(desk: ReadingDesk) -> FastMCP:
    mcp = FastMCP(
        name="shelfsync",
        instructions=(
            "Shelfsync is a reading tracker. Each user has three shelves: "
            "'want-to-read', 'currently-reading' and 'read'. Load a user's shelves "
            "first, then shelve, move, reorder or remove books. Books are identified "
            "by their Google Books id; search to find one."
        ),
    )

    @mcp.tool()
    async def load_shelves(user_id: str) -> dict:
        """Load a user's three shelves with book titles."""
        return await _load_shelves(desk, user_id=user_id)

    @mcp.tool()
    async def shelve_book(book_id: str, shelf: str) -> dict:
        """Put a book on a shelf ('want-to-read', 'currently-reading' or 'read').
        A book already on another shelf is moved."""
        return await _shelve_book(desk, book_id=book_id, shelf=shelf)

    @mcp.tool()
    async def move_book(book_id: str, direction: str) -> dict:
        """Move a book to the neighbouring shelf: 'up' towards want-to-read,
        'down' towards read."""
        return await _move_book(desk, book_id=book_id, direction=direction)

    @mcp.tool()
    async def reorder_book(shelf: str, from_index: int, to_index: int) -> dict:
        """Change a book's position within a shelf. Order is not saved remotely."""
        return await _reorder_book(desk, shelf=shelf, from_index=from_index, to_index=to_index)

    @mcp.tool()
    async def remove_book(book_id: str, confirm: bool = False) -> dict:
        """Remove a book from the shelves. Call once without confirm to ask,
        then again with confirm=true to remove."""
        return await _remove_book(desk, book_id=book_id, confirm=confirm)

    @mcp.tool()
    async def search_books(query: str) -> dict:
        """Search Google Books by title, author or ISBN (at least 2 characters)."""
        return await _search_books(desk, query=query)

    @mcp.tool()
    async def get_book(book_id: str) -> dict:
        """Get full details for a book."""
        return await _get_book(desk, book_id=book_id)

    return mcp
