import asyncio

import pytest

from shelfsync.sync.entities import BookMetadata
from shelfsync.sync.metadata_cache import MetadataCache


@pytest.fixture
def slow_store(book_store):
    book_store.delay = 0.02
    return book_store


async def test_get_miss_then_callback_then_hit(slow_store):
    delivered = []
    async with MetadataCache(slow_store) as cache:
        assert cache.get("b1", callback=delivered.append) is None
        assert cache.is_loading("b1")

        await asyncio.sleep(0.05)
        assert [m.title for m in delivered] == ["Title b1"]
        assert cache.get("b1", callback=delivered.append).title == "Title b1"
        assert len(delivered) == 1
        assert slow_store.calls == ["b1"]


async def test_concurrent_fetches_share_one_call(slow_store):
    async with MetadataCache(slow_store) as cache:
        cache.get("b1")
        first, second = await asyncio.gather(cache.fetch("b1"), cache.fetch("b1"))
        assert first is second
        assert slow_store.calls == ["b1"]


async def test_get_batch_dedups_and_keeps_order(slow_store):
    async with MetadataCache(slow_store) as cache:
        results = await cache.get_batch(["b1", "b1", "b2"])
        assert [m.book_id for m in results] == ["b1", "b1", "b2"]
        assert sorted(slow_store.calls) == ["b1", "b2"]


async def test_get_batch_skips_cached(slow_store):
    async with MetadataCache(slow_store) as cache:
        cache.put(BookMetadata(book_id="b1", title="Already Here"))
        results = await cache.get_batch(["b1", "b2"])
        assert results[0].title == "Already Here"
        assert slow_store.calls == ["b2"]


async def test_missing_book_is_none_and_not_cached(slow_store):
    async with MetadataCache(slow_store) as cache:
        assert await cache.fetch("nope") is None
        assert "nope" not in cache
        assert await cache.get_batch(["nope", "b1"]) == [None, slow_store.books["b1"]]
        assert slow_store.calls.count("nope") == 2


async def test_failed_fetch_delivers_none(slow_store):
    slow_store.unavailable = True
    delivered = []
    async with MetadataCache(slow_store) as cache:
        cache.get("b1", callback=delivered.append)
        await asyncio.sleep(0.05)
        assert delivered == [None]
        assert not cache.is_loading("b1")
        assert len(cache) == 0


async def test_aclose_cancels_inflight(slow_store):
    cache = MetadataCache(slow_store)
    cache.get("b1")
    cache.put(BookMetadata(book_id="b2", title="Two"))
    await cache.aclose()
    assert len(cache) == 0
    assert not cache.is_loading("b1")
