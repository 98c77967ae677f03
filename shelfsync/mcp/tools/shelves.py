import logging

from shelfsync.errors import ShelfSyncError, ValidationError
from shelfsync.mcp.desk import ReadingDesk
from shelfsync.mcp.tools.types import entry_dict, error_result
from shelfsync.sync.entities import ShelfEntry
from shelfsync.sync.interaction import Phase

logger = logging.getLogger(__name__)


async def render_shelves(desk: ReadingDesk) -> dict:
    reconciler = desk.reconciler
    shelves = reconciler.shelves
    book_ids = [entry.book_id for entries in shelves.values() for entry in entries]
    try:
        books = await desk.metadata.get_batch(book_ids)
    except ShelfSyncError as e:
        logger.warning("Rendering shelves without metadata: %s", e)
        books = [desk.metadata.peek(book_id) for book_id in book_ids]
    by_id = dict(zip(book_ids, books))

    rendered = {}
    for status, entries in shelves.items():
        rendered[str(status)] = [
            dict(
                entry_dict(entry, by_id.get(entry.book_id)),
                moves=sorted(desk.interaction.directions(entry)),
            )
            for entry in entries
        ]
    return {"user_id": reconciler.user_id, "shelves": rendered, "pending": reconciler.pending}


def _entry_or_error(desk: ReadingDesk, book_id: str) -> ShelfEntry:
    entry = desk.reconciler.find(book_id)
    if entry is None:
        raise ValidationError(f"Book {book_id} is not on any shelf")
    return entry


async def load_shelves(desk: ReadingDesk, user_id: str) -> dict:
    try:
        await desk.reconciler.load(user_id)
    except ShelfSyncError as e:
        return error_result(e)
    return await render_shelves(desk)


async def shelve_book(desk: ReadingDesk, book_id: str, shelf: str) -> dict:
    try:
        await desk.reconciler.add_to_shelf(book_id, shelf)
    except ShelfSyncError as e:
        return error_result(e)
    return await render_shelves(desk)


async def move_book(desk: ReadingDesk, book_id: str, direction: str) -> dict:
    try:
        await desk.interaction.move(_entry_or_error(desk, book_id), direction)
    except ShelfSyncError as e:
        return error_result(e)
    return await render_shelves(desk)


async def reorder_book(desk: ReadingDesk, shelf: str, from_index: int, to_index: int) -> dict:
    try:
        desk.reconciler.reorder_within_shelf(shelf, from_index, to_index)
    except ShelfSyncError as e:
        return error_result(e)
    return await render_shelves(desk)


async def remove_book(desk: ReadingDesk, book_id: str, confirm: bool = False) -> dict:
    interaction = desk.interaction
    try:
        entry = _entry_or_error(desk, book_id)
        if not confirm:
            interaction.dismiss_remove()
            interaction.request_remove(entry)
            return {"confirm_required": True, "book_id": book_id}
        pending = interaction.pending_removal
        if interaction.phase is not Phase.CONFIRMING_REMOVE or pending is None or pending.book_id != book_id:
            raise ValidationError("Ask to remove the book first, then confirm")
        await interaction.confirm_remove()
    except ShelfSyncError as e:
        return error_result(e)
    return await render_shelves(desk)
