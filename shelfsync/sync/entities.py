"""Value types held in client-side shelf and cache state."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum

from shelfsync.errors import ValidationError


class ShelfStatus(StrEnum):
    WANT_TO_READ = "want-to-read"
    CURRENTLY_READING = "currently-reading"
    READ = "read"


SHELF_ORDER = (ShelfStatus.WANT_TO_READ, ShelfStatus.CURRENTLY_READING, ShelfStatus.READ)


def parse_status(value: str | ShelfStatus) -> ShelfStatus:
    try:
        return ShelfStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown shelf status: {value!r}") from None


def adjacent_of(status: str | ShelfStatus) -> tuple[ShelfStatus | None, ShelfStatus | None]:
    """Return the statuses directly above and below ``status`` in SHELF_ORDER.

    The ends do not wrap, so the first status has nothing above it and the
    last has nothing below.
    """
    index = SHELF_ORDER.index(parse_status(status))
    above = SHELF_ORDER[index - 1] if index > 0 else None
    below = SHELF_ORDER[index + 1] if index + 1 < len(SHELF_ORDER) else None
    return above, below


@dataclass(frozen=True)
class ShelfEntry:
    """One user's membership record for one book."""

    id: str
    user_id: str
    book_id: str
    status: ShelfStatus
    date_added: datetime | None = None
    date_started: datetime | None = None
    date_finished: datetime | None = None

    def moved_to(self, status: ShelfStatus, now: datetime) -> "ShelfEntry":
        """Copy with a new status; start/finish dates are only ever set once."""
        date_started = self.date_started
        if status is ShelfStatus.CURRENTLY_READING and date_started is None:
            date_started = now
        date_finished = self.date_finished
        if status is ShelfStatus.READ and date_finished is None:
            date_finished = now
        return replace(self, status=status, date_started=date_started, date_finished=date_finished)

    @classmethod
    def from_payload(cls, data: dict) -> "ShelfEntry":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            book_id=data["book_id"],
            status=parse_status(data["status"]),
            date_added=data.get("date_added"),
            date_started=data.get("date_started"),
            date_finished=data.get("date_finished"),
        )


@dataclass(frozen=True)
class BookMetadata:
    book_id: str
    title: str
    authors: tuple[str, ...] = ()
    thumbnail: str = ""
    page_count: int = 0
    published_date: str = ""
    categories: tuple[str, ...] = field(default_factory=tuple)
    description: str = ""

    @classmethod
    def from_payload(cls, data: dict) -> "BookMetadata":
        return cls(
            book_id=data["id"],
            title=data.get("title") or "Unknown Title",
            authors=tuple(data.get("authors") or ()),
            thumbnail=data.get("thumbnail") or "",
            page_count=data.get("page_count") or 0,
            published_date=data.get("published_date") or "",
            categories=tuple(data.get("categories") or ()),
            description=data.get("description") or "",
        )

    def to_payload(self) -> dict:
        return {
            "title": self.title,
            "authors": list(self.authors),
            "thumbnail": self.thumbnail,
            "page_count": self.page_count,
            "published_date": self.published_date,
            "categories": list(self.categories),
            "description": self.description,
        }


@dataclass(frozen=True)
class BookSummary:
    """A single search hit."""

    book_id: str
    title: str
    authors: tuple[str, ...] = ()
    thumbnail: str = ""
    page_count: int = 0
    published_date: str = ""

    @classmethod
    def from_payload(cls, data: dict) -> "BookSummary":
        return cls(
            book_id=data["id"],
            title=data.get("title") or "Unknown Title",
            authors=tuple(data.get("authors") or ()),
            thumbnail=data.get("thumbnail") or "",
            page_count=data.get("page_count") or 0,
            published_date=data.get("published_date") or "",
        )
