import asyncio
import uuid
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shelfsync.app import create_app
from shelfsync.database import Base, get_session
from shelfsync.errors import NotFound, RemoteUnavailable, ShelfSyncError
from shelfsync.sync.entities import BookMetadata, BookSummary, ShelfEntry, ShelfStatus
from shelfsync.sync.stores import BookSearchApi, BookStore, ShelfStore
import shelfsync.models  # noqa: F401

TEST_DB_URL = "sqlite+aiosqlite://"  # in-memory

engine = create_async_engine(TEST_DB_URL, echo=False)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def app():
    app = create_app()

    async def override_session():
        async with TestSession() as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    return app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# --- in-memory collaborators for the sync layer ---


class FakeShelfStore(ShelfStore):
    """Records calls; per-book gates hold a write open, per-book failures make it fail."""

    def __init__(self):
        self.rows: dict[tuple[str, str], ShelfEntry] = {}
        self.calls: list[tuple] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, ShelfSyncError] = {}
        self.unavailable = False

    def seed(self, user_id: str, book_id: str, status: ShelfStatus) -> ShelfEntry:
        entry = ShelfEntry(
            id=uuid.uuid4().hex,
            user_id=user_id,
            book_id=book_id,
            status=status,
            date_added=datetime.now(UTC),
        )
        self.rows[(user_id, book_id)] = entry
        return entry

    def hold(self, book_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[book_id] = gate
        return gate

    async def _write(self, book_id: str) -> None:
        gate = self.gates.get(book_id)
        if gate is not None:
            await gate.wait()
        if book_id in self.failures:
            raise self.failures[book_id]

    async def upsert_membership(self, user_id, book_id, status):
        self.calls.append(("upsert", user_id, book_id, status))
        await self._write(book_id)
        existing = self.rows.get((user_id, book_id))
        if existing is None:
            existing = self.seed(user_id, book_id, status)
        self.rows[(user_id, book_id)] = existing.moved_to(status, datetime.now(UTC))
        return existing.id

    async def delete_membership(self, user_id, book_id):
        self.calls.append(("delete", user_id, book_id))
        await self._write(book_id)
        if self.rows.pop((user_id, book_id), None) is None:
            raise NotFound(f"{book_id} is not shelved")

    async def list_memberships(self, user_id, status=None):
        self.calls.append(("list", user_id, status))
        if self.unavailable:
            raise RemoteUnavailable("store is down")
        return [
            entry
            for (owner, _), entry in self.rows.items()
            if owner == user_id and (status is None or entry.status == status)
        ]

    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "list"]


class FakeBookStore(BookStore):
    def __init__(self, books: dict[str, BookMetadata] | None = None, delay: float = 0.0):
        self.books = dict(books or {})
        self.delay = delay
        self.calls: list[str] = []
        self.unavailable = False

    async def get(self, book_id):
        self.calls.append(book_id)
        await asyncio.sleep(self.delay)
        if self.unavailable:
            raise RemoteUnavailable("metadata store is down")
        if book_id not in self.books:
            raise NotFound(book_id)
        return self.books[book_id]

    async def put(self, metadata):
        self.books[metadata.book_id] = metadata


class FakeSearchApi(BookSearchApi):
    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: list[str] = []
        self.cancelled: list[str] = []
        self.error: ShelfSyncError | None = None

    async def search(self, text):
        self.calls.append(text)
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(text)
            raise
        if self.error is not None:
            raise self.error
        if text == "nothing":
            return []
        return [BookSummary(book_id=f"{text}-1", title=f"{text.title()} One", authors=("A. Writer",))]


def make_book(book_id: str, title: str | None = None) -> BookMetadata:
    return BookMetadata(book_id=book_id, title=title or f"Title {book_id}", authors=("Author",))


@pytest.fixture
def shelf_store():
    return FakeShelfStore()


@pytest.fixture
def book_store():
    return FakeBookStore({book_id: make_book(book_id) for book_id in ("b1", "b2", "b3", "b4", "b5")})


@pytest.fixture
def search_api():
    return FakeSearchApi()
