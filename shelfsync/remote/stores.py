"""Collaborator implementations backed by the shelfsync HTTP API."""

from shelfsync.errors import NotFound
from shelfsync.remote.client import ShelfsyncClient
from shelfsync.schemas.book import BookResponse, BookSummaryResponse
from shelfsync.schemas.shelf import MembershipId, MembershipResponse
from shelfsync.sync.entities import BookMetadata, BookSummary, ShelfEntry, ShelfStatus
from shelfsync.sync.stores import BookSearchApi, BookStore, ShelfStore


class HttpShelfStore(ShelfStore):
    def __init__(self, client: ShelfsyncClient) -> None:
        self.client = client

    async def upsert_membership(self, user_id: str, book_id: str, status: ShelfStatus) -> str:
        data = await self.client.put(
            f"/api/users/{user_id}/shelf/{book_id}", json={"status": str(status)}
        )
        return MembershipId.model_validate(data).id

    async def delete_membership(self, user_id: str, book_id: str) -> None:
        await self.client.delete(f"/api/users/{user_id}/shelf/{book_id}")

    async def list_memberships(
        self, user_id: str, status: ShelfStatus | None = None
    ) -> list[ShelfEntry]:
        params = {"status": str(status)} if status is not None else {}
        try:
            data = await self.client.get(f"/api/users/{user_id}/shelf", params=params)
        except NotFound:
            return []
        return [
            ShelfEntry.from_payload(MembershipResponse.model_validate(item).model_dump())
            for item in data
        ]


class HttpBookStore(BookStore):
    def __init__(self, client: ShelfsyncClient) -> None:
        self.client = client

    async def get(self, book_id: str) -> BookMetadata:
        data = await self.client.get(f"/api/books/{book_id}")
        return BookMetadata.from_payload(BookResponse.model_validate(data).model_dump())

    async def put(self, metadata: BookMetadata) -> None:
        await self.client.put(f"/api/books/{metadata.book_id}", json=metadata.to_payload())


class HttpBookSearch(BookSearchApi):
    def __init__(self, client: ShelfsyncClient) -> None:
        self.client = client

    async def search(self, text: str) -> list[BookSummary]:
        data = await self.client.get("/api/search", params={"q": text})
        return [
            BookSummary.from_payload(BookSummaryResponse.model_validate(item).model_dump())
            for item in data
        ]
