import pytest

from shelfsync.mcp.desk import ReadingDesk
from shelfsync.mcp.server import create_mcp_server
from shelfsync.remote import ShelfsyncClient


@pytest.mark.asyncio
async def test_mcp_server_has_all_tools(client):
    desk = ReadingDesk.connect(ShelfsyncClient(client), viewer_id="alice")
    mcp = create_mcp_server(desk)
    assert mcp.name == "shelfsync"

    tools = await mcp.get_tools()
    assert set(tools) == {
        "load_shelves",
        "shelve_book",
        "move_book",
        "reorder_book",
        "remove_book",
        "search_books",
        "get_book",
    }
    await desk.aclose()
