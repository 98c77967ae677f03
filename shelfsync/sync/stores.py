"""Remote collaborator contracts the sync layer depends on.

Implementations handle transport details (see ``shelfsync.remote``); the
reconciler and caches only ever see these interfaces and the error taxonomy
in ``shelfsync.errors``.
"""

from abc import ABC, abstractmethod

from shelfsync.sync.entities import BookMetadata, BookSummary, ShelfEntry, ShelfStatus


class ShelfStore(ABC):
    """Durable per-(user, book) shelf membership records."""

    @abstractmethod
    async def upsert_membership(self, user_id: str, book_id: str, status: ShelfStatus) -> str:
        """
        Create or update the single membership for (user_id, book_id).

        Returns:
            The membership id. Existing memberships keep their id.
        """

    @abstractmethod
    async def delete_membership(self, user_id: str, book_id: str) -> None:
        """Delete the membership for (user_id, book_id)."""

    @abstractmethod
    async def list_memberships(
        self, user_id: str, status: ShelfStatus | None = None
    ) -> list[ShelfEntry]:
        """List a user's memberships, optionally restricted to one status."""


class BookStore(ABC):
    """Book metadata keyed by book id."""

    @abstractmethod
    async def get(self, book_id: str) -> BookMetadata:
        """Return metadata for ``book_id`` or raise NotFound."""

    @abstractmethod
    async def put(self, metadata: BookMetadata) -> None:
        """Idempotent upsert."""


class BookSearchApi(ABC):
    """Free-text book search. Must tolerate task cancellation mid-request."""

    @abstractmethod
    async def search(self, text: str) -> list[BookSummary]:
        pass
