from unittest.mock import AsyncMock

import httpx
import pytest

from shelfsync.errors import NotFound, RemoteUnavailable, ShelfSyncError, Unauthorized, ValidationError
from shelfsync.remote import HttpBookSearch, HttpBookStore, HttpShelfStore, ShelfsyncClient
from shelfsync.sync.entities import BookMetadata, ShelfStatus


@pytest.fixture
def ss(client):
    client.headers["X-User-Id"] = "alice"
    return ShelfsyncClient(client)


def _client_returning(status_code, body=None):
    def handler(request):
        return httpx.Response(status_code, json=body if body is not None else {"detail": "nope"})

    return ShelfsyncClient(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error"),
    [
        (500, RemoteUnavailable),
        (503, RemoteUnavailable),
        (401, Unauthorized),
        (403, Unauthorized),
        (404, NotFound),
        (409, ValidationError),
        (422, ValidationError),
        (418, ShelfSyncError),
    ],
)
async def test_status_mapping(status_code, error):
    sc = _client_returning(status_code)
    with pytest.raises(error, match="nope"):
        await sc.get("/anything")
    await sc.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_remote_unavailable():
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    sc = ShelfsyncClient(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"))
    with pytest.raises(RemoteUnavailable):
        await sc.get("/api/activity")
    await sc.aclose()


@pytest.mark.asyncio
async def test_no_content_is_none(ss):
    assert await ss.delete("/api/users/alice/shelf/vol1") is None


@pytest.mark.asyncio
async def test_shelf_store_round_trip(ss):
    store = HttpShelfStore(ss)
    entry_id = await store.upsert_membership("alice", "vol1", ShelfStatus.CURRENTLY_READING)
    await store.upsert_membership("alice", "vol2", ShelfStatus.READ)

    reading = await store.list_memberships("alice", ShelfStatus.CURRENTLY_READING)
    assert [(e.id, e.book_id) for e in reading] == [(entry_id, "vol1")]
    assert reading[0].status is ShelfStatus.CURRENTLY_READING
    assert reading[0].date_started is not None
    assert len(await store.list_memberships("alice")) == 2

    await store.delete_membership("alice", "vol1")
    assert [e.book_id for e in await store.list_memberships("alice")] == ["vol2"]


@pytest.mark.asyncio
async def test_shelf_store_rejects_other_user(ss):
    with pytest.raises(Unauthorized):
        await HttpShelfStore(ss).upsert_membership("bob", "vol1", ShelfStatus.READ)


@pytest.mark.asyncio
async def test_book_store(ss, monkeypatch):
    monkeypatch.setattr("shelfsync.routers.books.fetch_volume", AsyncMock(return_value=None))
    store = HttpBookStore(ss)
    with pytest.raises(NotFound):
        await store.get("vol1")

    await store.put(BookMetadata(book_id="vol1", title="Dune", authors=("Frank Herbert",), page_count=412))
    book = await store.get("vol1")
    assert book.title == "Dune"
    assert book.authors == ("Frank Herbert",)
    assert book.page_count == 412


@pytest.mark.asyncio
async def test_book_search_maps_bad_gateway(ss, monkeypatch):
    monkeypatch.setattr("shelfsync.routers.books.search_volumes", AsyncMock(return_value=None))
    with pytest.raises(RemoteUnavailable):
        await HttpBookSearch(ss).search("dune")
